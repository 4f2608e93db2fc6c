"""
CodeSnippet Manager Backend: Snippet & Tag SQLAlchemy Models
=============================================================

What:  ORM mapping for the `snippets`, `tags` and `snippet_tags` tables.
How:   Declarative models on the shared `Base`; `create_tables()` builds the
       schema from this metadata on startup.
Who:   Used by SnippetStore for writes and SnippetQueryService for reads.

Table Design:
    snippets(id PK, title NOT NULL CHECK non-empty, code NOT NULL CHECK non-empty,
             language DEFAULT 'javascript', created_at DEFAULT now)
    tags(id PK, name UNIQUE NOT NULL CHECK non-empty, created_at)
    snippet_tags(snippet_id FK→snippets CASCADE, tag_id FK→tags CASCADE,
                 created_at, PRIMARY KEY(snippet_id, tag_id))

    The constraints live in the database so that they hold for every writer,
    not only for code paths that go through the repository.
"""

from datetime import datetime, timezone
from typing import List

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from snippet_manager.database import Base
from snippet_manager.languages import DEFAULT_LANGUAGE


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# 64-bit ids on server databases; SQLite keeps INTEGER so the column stays
# a rowid alias and autoincrements
SnippetId = BigInteger().with_variant(Integer, "sqlite")

# Largest id the snippets table can hold (signed 64-bit on both dialects)
MAX_SNIPPET_ID = 2**63 - 1


# ── Association Table ─────────────────────────────────────────────────────
# Composite primary key: a (snippet, tag) pair can be linked at most once.
# ON DELETE CASCADE on both sides: no orphan links survive either deletion.
snippet_tags = Table(
    "snippet_tags",
    Base.metadata,
    Column(
        "snippet_id",
        SnippetId,
        ForeignKey("snippets.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Integer,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    ),
    Index("idx_snippet_tags_snippet", "snippet_id"),
    Index("idx_snippet_tags_tag", "tag_id"),
)


class Tag(Base):
    """
    A user-defined label, shared by every snippet that uses the same name.

    Rows are created at most once per distinct name (UNIQUE on `name`) and
    are never deleted when the last snippet referencing them goes away.
    """

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint("length(name) > 0", name="ck_tags_name_not_empty"),
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}')>"


class Snippet(Base):
    """
    A titled block of source code with a language identifier.

    Lifecycle:
        1. Inserted together with its tag associations in one transaction
        2. Never updated in place
        3. Deleted explicitly; the database cascades its association rows

    Query Patterns:
        - Newest first: ORDER BY created_at DESC, id DESC
          → idx_snippets_created_at
        - Search: LIKE over title, code, language, or any linked tag name
    """

    __tablename__ = "snippets"

    id: Mapped[int] = mapped_column(SnippetId, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(Text, nullable=False)

    code: Mapped[str] = mapped_column(Text, nullable=False)

    language: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=DEFAULT_LANGUAGE,
        server_default=text(f"'{DEFAULT_LANGUAGE}'"),
    )

    # Python-side default gives sub-second precision on SQLite, where
    # CURRENT_TIMESTAMP only resolves to whole seconds
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )

    # passive_deletes: rely on ON DELETE CASCADE instead of ORM-issued deletes
    tags: Mapped[List[Tag]] = relationship(
        secondary=snippet_tags,
        order_by=Tag.name,
        lazy="selectin",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("length(title) > 0", name="ck_snippets_title_not_empty"),
        CheckConstraint("length(code) > 0", name="ck_snippets_code_not_empty"),
        Index("idx_snippets_title", "title"),
        Index("idx_snippets_language", "language"),
        Index("idx_snippets_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Snippet(id={self.id}, title='{self.title}', "
            f"language='{self.language}')>"
        )

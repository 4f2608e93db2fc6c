"""
CodeSnippet Manager Backend: Snippet Store
===========================================

What:  Single-statement persistence operations for snippets, tags and their
       associations, bound to one AsyncSession.
How:   Each method issues one SQL statement inside the caller's transaction.
       It never commits or rolls back; the repository owns the unit of work.
       Store-level IntegrityErrors are translated into ConstraintViolation
       or DanglingReferenceError.
Who:   Constructed per unit of work by SnippetRepository.

Upserts:
    Tag insert-or-reuse is one atomic statement:

        INSERT INTO tags (name) VALUES (:name)
        ON CONFLICT (name) DO UPDATE SET name = excluded.name
        RETURNING id

    A concurrent writer of the same new name either inserts first (we get
    its row back) or waits on the row lock; there is no separate lookup
    that could observe a missing row. The no-op DO UPDATE is what makes
    RETURNING yield the existing id; DO NOTHING returns no row on conflict.

    Both supported dialects (SQLite >= 3.35, PostgreSQL) provide
    ON CONFLICT ... RETURNING through their dialect-specific insert().
"""

import logging
from typing import Optional, Tuple

from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from snippet_manager.exceptions import (
    ConstraintViolation,
    DanglingReferenceError,
    PersistenceError,
)
from snippet_manager.languages import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES
from snippet_manager.models.snippet import Snippet, Tag, snippet_tags

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


class SnippetStore:
    """
    Persistence primitives for the three tables.

    Contract:
        insert_snippet()        → Snippet row with store-assigned id/created_at
        insert_tag_if_absent()  → id of the (new or existing) tag row
        link_snippet_tag()      → None, idempotent per pair
        delete_snippet()        → number of snippet rows removed (0 = not found)
        query_languages()       → the fixed language tuple
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    def _insert(self, table):
        """Dialect-specific INSERT supporting ON CONFLICT."""
        dialect = self._session.get_bind().dialect.name
        try:
            return _DIALECT_INSERTS[dialect](table)
        except KeyError:
            raise PersistenceError(
                message="The configured database does not support tag upserts",
                context={"dialect": dialect},
            )

    async def insert_snippet(
        self,
        title: str,
        code: str,
        language: Optional[str] = None,
    ) -> Snippet:
        """
        Insert a snippet row and flush it so the id is assigned.

        Raises:
            ConstraintViolation: title or code is empty (CHECK constraint)
        """
        snippet = Snippet(
            title=title,
            code=code,
            language=language or DEFAULT_LANGUAGE,
        )
        self._session.add(snippet)
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise ConstraintViolation(
                message="Snippet title and code must not be empty",
                context={"table": "snippets", "error": str(e.orig)},
            ) from e
        return snippet

    async def insert_tag_if_absent(self, name: str) -> int:
        """
        Return the id of the tag called `name`, creating the row if needed.

        Calling this twice with the same name returns the same id.

        Raises:
            ConstraintViolation: name is empty (CHECK constraint)
        """
        insert_stmt = self._insert(Tag.__table__).values(name=name)
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=[Tag.__table__.c.name],
            set_={"name": insert_stmt.excluded.name},
        ).returning(Tag.__table__.c.id)
        try:
            result = await self._session.execute(stmt)
        except IntegrityError as e:
            raise ConstraintViolation(
                message="Tag name must not be empty",
                context={"table": "tags", "error": str(e.orig)},
            ) from e
        return result.scalar_one()

    async def link_snippet_tag(self, snippet_id: int, tag_id: int) -> None:
        """
        Associate a tag with a snippet; linking an existing pair is a no-op.

        Raises:
            DanglingReferenceError: either id does not exist (foreign key)
        """
        stmt = (
            self._insert(snippet_tags)
            .values(snippet_id=snippet_id, tag_id=tag_id)
            .on_conflict_do_nothing(index_elements=["snippet_id", "tag_id"])
        )
        try:
            await self._session.execute(stmt)
        except IntegrityError as e:
            raise DanglingReferenceError(
                snippet_id=snippet_id,
                tag_id=tag_id,
                context={"error": str(e.orig)},
            ) from e

    async def delete_snippet(self, snippet_id: int) -> int:
        """
        Delete a snippet; its snippet_tags rows go with it (ON DELETE CASCADE).

        Returns the number of snippet rows removed, 0 when the id is unknown.
        Tag rows are left in place even if no snippet references them anymore.
        """
        result = await self._session.execute(
            delete(Snippet)
            .where(Snippet.id == snippet_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    @staticmethod
    def query_languages() -> Tuple[str, ...]:
        """The built-in language list; independent of stored data."""
        return SUPPORTED_LANGUAGES

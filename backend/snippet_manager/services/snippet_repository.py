"""
CodeSnippet Manager Backend: Snippet Repository (Write Path)
=============================================================

What:  Creates and deletes snippets as atomic units of work.
How:   Validates input, then drives SnippetStore operations on the request's
       AsyncSession and decides commit or rollback once every step is done.
Who:   Called by the snippet route handlers.

Create Flow (POST /api/snippets):
    ┌──────────┐   ┌──────────────┐   ┌──────────────────────┐   ┌──────────┐
    │ Validate │──▶│Insert snippet│──▶│ For each distinct tag│──▶│  Commit  │
    └──────────┘   └──────────────┘   │ upsert tag → link it │   └──────────┘
                                      └──────────────────────┘
    Any failure after validation rolls back the whole transaction: no
    snippet row, no new tag rows, no association rows become visible.
    The first failure is surfaced as PersistenceError with the store
    exception chained as __cause__.

    Tag operations share the session's single connection, so they are
    awaited one after another; the commit decision is taken only after all
    of them have completed.
"""

import logging
from typing import Callable, Iterable, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from snippet_manager.exceptions import (
    PersistenceError,
    SnippetManagerError,
    ValidationError,
)
from snippet_manager.languages import DEFAULT_LANGUAGE
from snippet_manager.models.snippet import MAX_SNIPPET_ID
from snippet_manager.schemas.snippet import SnippetDeleteResult, SnippetRecord
from snippet_manager.services.snippet_store import SnippetStore

logger = logging.getLogger(__name__)


def distinct_tag_names(tags: Iterable[str]) -> List[str]:
    """Trim, drop blanks, and collapse duplicates keeping first occurrence."""
    seen = {}
    for name in tags:
        trimmed = name.strip()
        if trimmed:
            seen.setdefault(trimmed, None)
    return list(seen)


def parse_snippet_id(snippet_id: Union[int, str]) -> int:
    """
    Accepts a positive int, or a string of ASCII digits denoting one.

    Raises:
        ValidationError: anything else (bools, negatives, "abc", "1.5")
    """
    if isinstance(snippet_id, bool):
        raise ValidationError(message="Invalid snippet ID", field="id")
    if isinstance(snippet_id, str):
        candidate = snippet_id.strip()
        if not (candidate.isascii() and candidate.isdigit()):
            raise ValidationError(message="Invalid snippet ID", field="id")
        snippet_id = int(candidate)
    if not isinstance(snippet_id, int) or snippet_id <= 0:
        raise ValidationError(message="Invalid snippet ID", field="id")
    return snippet_id


class SnippetRepository:
    """
    Transactional write operations over SnippetStore.

    The store class is injected so tests can substitute a store that fails
    at a chosen step.
    """

    def __init__(self, store_factory: Callable[[AsyncSession], SnippetStore] = SnippetStore):
        self._store_factory = store_factory

    async def create_snippet(
        self,
        db: AsyncSession,
        title: Optional[str],
        code: Optional[str],
        language: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> SnippetRecord:
        """
        Persist a snippet and all of its tag associations, or nothing.

        Args:
            db: Async database session (injected by FastAPI)
            title: Required; trimmed before storing
            code: Required; stored exactly as given
            language: Trimmed; blank/absent falls back to 'javascript'
            tags: Tag names; trimmed and de-duplicated

        Returns:
            SnippetRecord including the resolved tag names (sorted)

        Raises:
            ValidationError: title or code missing/blank (store untouched)
            PersistenceError: any store step failed; transaction rolled back
        """
        title = title.strip() if title else ""
        if not title:
            raise ValidationError(message="Title and code are required", field="title")
        if not code or not code.strip():
            raise ValidationError(message="Title and code are required", field="code")

        language = (language or "").strip() or DEFAULT_LANGUAGE
        tag_names = distinct_tag_names(tags or [])

        store = self._store_factory(db)
        step = "insert_snippet"
        try:
            snippet = await store.insert_snippet(title, code, language)
            for name in tag_names:
                step = "insert_tag"
                tag_id = await store.insert_tag_if_absent(name)
                step = "link_tag"
                await store.link_snippet_tag(snippet.id, tag_id)
            step = "commit"
            await db.commit()
        except (SnippetManagerError, SQLAlchemyError) as e:
            await db.rollback()
            logger.warning(
                "Snippet creation rolled back at step '%s': %s: %s",
                step,
                type(e).__name__,
                e,
            )
            raise PersistenceError(
                message="Could not save the snippet. Please try again.",
                context={"step": step, "error_type": type(e).__name__},
            ) from e

        logger.info("Snippet %d created with %d tag(s)", snippet.id, len(tag_names))
        return SnippetRecord(
            id=snippet.id,
            title=snippet.title,
            code=snippet.code,
            language=snippet.language,
            created_at=snippet.created_at,
            tags=sorted(tag_names),
        )

    async def delete_snippet(
        self,
        db: AsyncSession,
        snippet_id: Union[int, str],
    ) -> SnippetDeleteResult:
        """
        Delete a snippet by id. An unknown id is reported, not raised; ids
        beyond the column range are reported as not found without querying.

        Raises:
            ValidationError: id is not a positive integer (store untouched)
            PersistenceError: the delete statement failed
        """
        snippet_id = parse_snippet_id(snippet_id)
        if snippet_id > MAX_SNIPPET_ID:
            # No row can carry an id past the column range
            logger.info("Snippet %d not found for deletion (out of id range)", snippet_id)
            return SnippetDeleteResult(found=False)

        store = self._store_factory(db)
        try:
            deleted = await store.delete_snippet(snippet_id)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting snippet %d: %s", snippet_id, e)
            raise PersistenceError(
                message="Could not delete the snippet. Please try again.",
                context={"snippet_id": snippet_id, "error_type": type(e).__name__},
            ) from e

        if deleted:
            logger.info("Snippet %d deleted", snippet_id)
        else:
            logger.info("Snippet %d not found for deletion", snippet_id)
        return SnippetDeleteResult(found=deleted > 0)


snippet_repository = SnippetRepository()

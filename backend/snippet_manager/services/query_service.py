"""
CodeSnippet Manager Backend: Snippet Query Service (Read Path)
==============================================================

What:  Lists snippets with their full tag sets, optionally filtered by a
       free-text search.
How:   One SELECT over snippets (tag match expressed as a correlated EXISTS,
       so a snippet never repeats per matching tag) plus one selectin load
       of the tag collections for the returned snippets.

Query plan (with search text):
    SELECT snippets.* FROM snippets
    WHERE lower(title) LIKE :p OR lower(code) LIKE :p OR lower(language) LIKE :p
       OR EXISTS (SELECT 1 FROM snippet_tags JOIN tags ON tags.id = snippet_tags.tag_id
                  WHERE snippet_tags.snippet_id = snippets.id AND lower(tags.name) LIKE :p)
    ORDER BY created_at DESC, id DESC

    SELECT ... FROM tags JOIN snippet_tags ... WHERE snippet_id IN (...)
"""

import logging
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from snippet_manager.exceptions import PersistenceError
from snippet_manager.models.snippet import Snippet, Tag, snippet_tags
from snippet_manager.schemas.snippet import SnippetRecord

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches as a literal substring."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


class SnippetQueryService:
    """Read-side queries over snippets and tags."""

    @staticmethod
    def _search_filter(term: str):
        pattern = f"%{escape_like(term)}%"
        tag_match = (
            select(snippet_tags.c.snippet_id)
            .join(Tag, Tag.id == snippet_tags.c.tag_id)
            .where(
                snippet_tags.c.snippet_id == Snippet.id,
                Tag.name.ilike(pattern, escape=LIKE_ESCAPE),
            )
            .exists()
        )
        return or_(
            Snippet.title.ilike(pattern, escape=LIKE_ESCAPE),
            Snippet.code.ilike(pattern, escape=LIKE_ESCAPE),
            Snippet.language.ilike(pattern, escape=LIKE_ESCAPE),
            tag_match,
        )

    async def list_snippets(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
    ) -> List[SnippetRecord]:
        """
        Return snippets newest first, each with its complete tag list.

        With search text, a snippet qualifies when the text occurs
        (case-insensitively) in its title, code, language, or in the name of
        any of its tags. Blank search text means no filter.

        Raises:
            PersistenceError: the query failed
        """
        query = select(Snippet).options(selectinload(Snippet.tags))

        term = (search or "").strip()
        if term:
            query = query.where(self._search_filter(term))

        query = query.order_by(Snippet.created_at.desc(), Snippet.id.desc())

        try:
            result = await db.execute(query)
            snippets = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing snippets: %s", e, exc_info=True)
            raise PersistenceError(
                message="Could not retrieve snippets. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        return [
            SnippetRecord(
                id=snippet.id,
                title=snippet.title,
                code=snippet.code,
                language=snippet.language,
                created_at=snippet.created_at,
                tags=[tag.name for tag in snippet.tags],
            )
            for snippet in snippets
        ]


query_service = SnippetQueryService()

"""
CodeSnippet Manager Backend: Snippet Route Handlers
====================================================

What:  GET/POST /api/snippets, DELETE /api/snippets/{id}, GET /api/languages.
How:   Extracts request data, delegates to the repository or query service,
       wraps the result in the response envelope.
Who:   Called by the browser frontend (list, search box, create form,
       delete button, language dropdown).

Caching Strategy:
    - GET /api/languages: Long cache (1 day); the list is static
    - Everything else: no caching headers (data changes on every write)
"""

import logging

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from snippet_manager.database import get_db_session
from snippet_manager.exceptions import NotFoundError
from snippet_manager.schemas.snippet import (
    ErrorResponse,
    LanguagesResponse,
    MessageResponse,
    SnippetCreate,
    SnippetCreatedResponse,
    SnippetListResponse,
)
from snippet_manager.services.query_service import query_service
from snippet_manager.services.snippet_repository import snippet_repository
from snippet_manager.services.snippet_store import SnippetStore

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api", tags=["Snippets"])


@router.get(
    "/snippets",
    response_model=SnippetListResponse,
    responses={
        200: {"description": "Snippets, newest first", "model": SnippetListResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List snippets, optionally filtered by a search term",
    description=(
        "Returns every snippet with its tags, newest first. With `search`, only "
        "snippets whose title, code, language or any tag name contains the term "
        "(case-insensitive) are returned."
    ),
)
async def list_snippets(
    response: Response,
    search: str | None = Query(
        default=None,
        description="Case-insensitive substring matched against title, code, language and tag names",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetListResponse:
    snippets = await query_service.list_snippets(db=db, search=search)
    response.headers["X-Total-Count"] = str(len(snippets))
    return SnippetListResponse(count=len(snippets), data=snippets)


@router.post(
    "/snippets",
    response_model=SnippetCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Snippet stored", "model": SnippetCreatedResponse},
        400: {"description": "Title or code missing", "model": ErrorResponse},
        500: {"description": "Snippet could not be stored", "model": ErrorResponse},
    },
    summary="Create a snippet with tags",
    description=(
        "Stores a snippet and links it to the given tags, creating tags that do "
        "not exist yet. Either everything is stored or nothing is."
    ),
)
async def create_snippet(
    payload: SnippetCreate,
    db: AsyncSession = Depends(get_db_session),
) -> SnippetCreatedResponse:
    """
    Create a snippet.

    Example body:
        {"title": "Array Map", "code": "[1, 2].map(n => n * 2)",
         "language": "javascript", "tags": ["array", "functional"]}
    """
    record = await snippet_repository.create_snippet(
        db=db,
        title=payload.title,
        code=payload.code,
        language=payload.language,
        tags=payload.tags,
    )
    return SnippetCreatedResponse(data=record)


@router.delete(
    "/snippets/{snippet_id}",
    response_model=MessageResponse,
    responses={
        200: {"description": "Snippet deleted", "model": MessageResponse},
        400: {"description": "Invalid snippet ID", "model": ErrorResponse},
        404: {"description": "Snippet not found", "model": ErrorResponse},
    },
    summary="Delete a snippet",
    description="Deletes a snippet and its tag links. Tags themselves are kept.",
)
async def delete_snippet(
    snippet_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """
    snippet_id is taken as a string so that malformed ids reach the
    repository's validation and come back as 400, not FastAPI's 422.
    """
    result = await snippet_repository.delete_snippet(db=db, snippet_id=snippet_id)
    if not result.found:
        raise NotFoundError(resource="snippet", resource_id=snippet_id)
    return MessageResponse(message="Snippet deleted successfully")


@router.get(
    "/languages",
    response_model=LanguagesResponse,
    summary="List supported languages",
    description="Returns the fixed, ordered list of supported language identifiers.",
)
async def list_languages(response: Response) -> LanguagesResponse:
    response.headers["Cache-Control"] = "public, max-age=86400"
    return LanguagesResponse(data=list(SnippetStore.query_languages()))

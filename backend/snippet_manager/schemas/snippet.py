"""
CodeSnippet Manager Backend: Pydantic Request/Response Schemas
===============================================================

What:  Pydantic models defining the API contract with the browser frontend.
How:   FastAPI validates request bodies against these models, serializes the
       responses, and generates the OpenAPI document from them.
Who:   Route handlers (request/response types) and the core services
       (`SnippetRecord`, `SnippetDeleteResult` are the core's result types).

Envelope:
    Successful responses wrap their payload as
    {"success": true, "data": ...} (plus "count" for lists, "message" for
    mutations). Errors use ErrorResponse with "success": false.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SnippetCreate(BaseModel):
    """
    Body of POST /api/snippets.

    title and code are optional at the schema level: a missing or blank
    value is reported by the repository as a 400 validation error rather
    than FastAPI's generic 422.
    """
    title: Optional[str] = Field(default=None, description="Snippet title (required, non-blank)")
    code: Optional[str] = Field(default=None, description="Source code (required, non-blank)")
    language: Optional[str] = Field(
        default=None,
        description="Language identifier; defaults to 'javascript' when absent",
    )
    tags: List[str] = Field(default_factory=list, description="Tag names to attach")

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, v):
        """Treats an explicit null as an empty tag list."""
        return [] if v is None else v

    @field_validator("tags")
    @classmethod
    def trim_tags(cls, v: List[str]) -> List[str]:
        """Trims each tag name and drops the ones left blank."""
        return [name.strip() for name in v if name.strip()]


# ══════════════════════════════════════════════════════════════════════════
# Core Result Models
# ══════════════════════════════════════════════════════════════════════════


class SnippetRecord(BaseModel):
    """
    A persisted snippet together with the names of its tags.

    Frozen: records are built once by the repository or query service and
    handed upward unchanged.
    """
    id: int = Field(description="Store-assigned snippet identifier")
    title: str = Field(description="Snippet title")
    code: str = Field(description="Source code")
    language: str = Field(description="Language identifier")
    created_at: datetime = Field(description="When the snippet was stored")
    tags: List[str] = Field(default_factory=list, description="Associated tag names, no duplicates")

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        """
        Timestamps are stored in UTC. SQLite hands them back naive, so
        attach UTC there; aware values are converted to UTC.
        """
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class SnippetDeleteResult(BaseModel):
    """Outcome of a delete: whether a snippet with the id existed."""
    found: bool

    model_config = {"frozen": True}


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SnippetListResponse(BaseModel):
    """GET /api/snippets: every matching snippet, newest first."""
    success: bool = True
    count: int = Field(description="Number of snippets in data")
    data: List[SnippetRecord] = Field(description="Snippets with their tags")


class SnippetCreatedResponse(BaseModel):
    """POST /api/snippets: the stored snippet, returned with HTTP 201."""
    success: bool = True
    message: str = Field(default="Snippet created successfully")
    data: SnippetRecord


class MessageResponse(BaseModel):
    """Plain acknowledgement, used by DELETE /api/snippets/{id}."""
    success: bool = True
    message: str


class LanguagesResponse(BaseModel):
    """GET /api/languages: the fixed list of supported language identifiers."""
    success: bool = True
    data: List[str]


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "success": false,
            "error": "validation_error",
            "message": "Title and code are required",
            "details": {"field": "title"},
            "request_id": "a1b2c3d4"
        }
    """
    success: bool = False
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """GET /health: service status plus database reachability."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")

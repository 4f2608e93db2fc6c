"""
CodeSnippet Manager Backend: Custom Exception Hierarchy
========================================================

What:  Application-specific exceptions for each failure class of the core.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) map them to HTTP
       status codes and structured JSON error bodies.
Who:   Raised by the store, repository and query service; caught by the
       handlers in main.py.

Exception Hierarchy:
    SnippetManagerError (base)
    ├── ValidationError          → 400 Bad Request (caller-supplied data rejected)
    ├── NotFoundError            → 404 Not Found
    ├── ConstraintViolation      → 409 Conflict (store-level CHECK/UNIQUE rejection)
    ├── DanglingReferenceError   → 409 Conflict (association to a missing row)
    └── PersistenceError         → 500 Internal Server Error (transaction failed)

Propagation:
    ValidationError is raised before any store access. ConstraintViolation
    and DanglingReferenceError are raised by the store; inside the create
    transaction they are wrapped into PersistenceError after rollback, with
    the original attached as __cause__.
"""

from typing import Any, Dict, Optional


class SnippetManagerError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  Error description (safe to return in an API response)
        context:  Additional debug info (logged, returned only where the
                  handler chooses to)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SnippetManagerError):
    """
    Raised when caller-supplied data fails a precondition.

    When:    Blank title or code on create, non-numeric or non-positive id on delete.
    HTTP:    400 Bad Request

    Example response:
        {
            "success": false,
            "error": "validation_error",
            "message": "Title and code are required",
            "details": {"field": "code"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(SnippetManagerError):
    """
    Raised when a requested resource does not exist.

    The core reports "not found" as data (`found=False`); the HTTP layer
    raises this to produce the 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConstraintViolation(SnippetManagerError):
    """
    Raised when a declared store constraint rejects a write.

    When:    Empty title/code/tag name reaching the CHECK constraints.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "A storage constraint rejected the operation",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DanglingReferenceError(SnippetManagerError):
    """
    Raised when a snippet/tag association points at a row that does not exist.

    When:    link_snippet_tag() with an unknown snippet id or tag id.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        snippet_id: Optional[int] = None,
        tag_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "Association references a snippet or tag that does not exist"
        ctx = context or {}
        ctx["snippet_id"] = snippet_id
        ctx["tag_id"] = tag_id
        super().__init__(message=message, context=ctx)
        self.snippet_id = snippet_id
        self.tag_id = tag_id


class PersistenceError(SnippetManagerError):
    """
    Raised when a database operation or transaction step fails.

    When:    Any failure inside the create-snippet transaction (after rollback),
             connectivity or query failures while listing or deleting.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Detailed error
    info (SQL, constraint name) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

"""
CodeSnippet Manager Backend: Application Package
=================================================

What: Marks `snippet_manager` as a Python package.
Who:  Imported by uvicorn (`snippet_manager.main:app`), pytest, and every module below.

Architecture Note:
    The backend is layered:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Repository / Query Service         │  ← Transactions, validation, search
    ├─────────────────────────────────────┤
    │            Snippet Store            │  ← Single-statement persistence
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never touch the ORM directly; the repository and query service
    never format user-facing text.
"""

__version__ = "1.0.0"

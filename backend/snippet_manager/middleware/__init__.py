# Middleware package init
"""
CodeSnippet Manager Backend: Middleware Package
================================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: Generates the correlation ID used in logs and error bodies
    2. Logging: Logs request details with the generated request ID
    3. GZip / CORS: Provided by FastAPI/Starlette

    The order is reversed for responses, so the request ID header is set
    last and the access log sees the final status code.
"""

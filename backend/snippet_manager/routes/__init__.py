# Routes package init
"""
CodeSnippet Manager Backend: API Routes Package
================================================

Route Inventory:
    - snippets.py: GET    /api/snippets        (list, optional ?search=)
                   POST   /api/snippets        (create with tags)
                   DELETE /api/snippets/{id}   (delete)
                   GET    /api/languages       (supported languages)
    - health.py:   GET    /health              (service health check)

Routes are thin: they read the request, call the repository or query
service, and wrap the result. Business rules live in services/.
"""

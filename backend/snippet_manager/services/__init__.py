# Services package init
"""
CodeSnippet Manager Backend: Services Layer
============================================

What:  The core between routes (HTTP) and the database (persistence).

Service Inventory:
    - SnippetStore: Single-statement persistence for snippets, tags, links
    - SnippetRepository: Atomic create (snippet + tags) and delete
    - SnippetQueryService: Search-filtered, tag-aggregated listing

The repository and query service receive the request's AsyncSession from
the caller; none of them hold state between requests.
"""

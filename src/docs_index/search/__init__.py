"""
Search indexing and query package.

This package layers ranked full-text search on SQLite FTS5:
- schema: Table definitions and versioned migrations
- content: Indexed text, summaries and attribute extraction
- query: Source prefixes, attribute filters and FTS5 sanitizing
- ranking: Heuristic re-ranking of bm25 candidates
- availability: Platform version filtering
- aliases: Framework name resolution
- store: The lock-guarded document store
"""

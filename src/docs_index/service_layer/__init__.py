"""Service layer - async orchestration over the document store.

- search_service: event-loop friendly facade used by tool-calling frontends
"""

from docs_index.service_layer.search_service import SearchService, create_search_service


__all__ = ["SearchService", "create_search_service"]

from .search_result import SearchResult

__all__ = ["SearchResult"]

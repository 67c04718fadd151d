"""GitHub integration."""

from .search import GhSearch, SearchResult

__all__ = ["GhSearch", "SearchResult"]

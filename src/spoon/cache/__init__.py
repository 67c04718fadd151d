"""Local repository cache: metadata, index and TTL eviction."""

from .evictor import Partition, TtlEvictor
from .index import CacheIndex
from .metadata_store import MetadataStore
from .models import META_FILENAME, CacheEntry, HistoryEntry, RepoMeta

__all__ = [
    "CacheEntry",
    "CacheIndex",
    "HistoryEntry",
    "META_FILENAME",
    "MetadataStore",
    "Partition",
    "RepoMeta",
    "TtlEvictor",
]

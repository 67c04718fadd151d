"""Time-to-live eviction of cached checkouts."""

import logging
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, List, Optional

from .index import CacheIndex
from .models import CacheEntry, utc_now

logger = logging.getLogger(__name__)


@dataclass
class Partition:
    """Cached entries split by TTL, each list newest access first."""
    active: List[CacheEntry] = field(default_factory=list)
    expired: List[CacheEntry] = field(default_factory=list)


class TtlEvictor:
    """Deletes checkouts whose last access is older than the TTL."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    @staticmethod
    def is_expired(entry: CacheEntry, ttl_ms: int, now: Optional[datetime] = None) -> bool:
        """True iff ``now - lastAccess > ttl`` (an entry exactly at the boundary is kept)."""
        now = now or utc_now()
        return now - entry.meta.last_access > timedelta(milliseconds=ttl_ms)

    def partition(self, entries: Iterable[CacheEntry], ttl_ms: int, now: Optional[datetime] = None) -> Partition:
        now = now or utc_now()
        result = Partition()
        for entry in entries:
            if self.is_expired(entry, ttl_ms, now):
                result.expired.append(entry)
            else:
                result.active.append(entry)
        result.active.sort(key=lambda e: e.meta.last_access, reverse=True)
        result.expired.sort(key=lambda e: e.meta.last_access, reverse=True)
        return result

    def remove(self, repo_dir: Path) -> None:
        """
        Delete a checkout and, if that empties it, its owner directory.

        Only one level of empty parent is cleaned up, and never the base
        directory itself.
        """
        repo_dir = Path(repo_dir)
        if repo_dir.exists():
            shutil.rmtree(repo_dir)
            logger.info(f"Removed {repo_dir}")

        owner_dir = repo_dir.parent
        if owner_dir == self.base_dir or not owner_dir.is_dir():
            return
        if not any(owner_dir.iterdir()):
            owner_dir.rmdir()
            logger.debug(f"Removed empty owner directory {owner_dir}")

    def purge(self, entries: Iterable[CacheEntry], ttl_ms: int, now: Optional[datetime] = None) -> int:
        """Remove every expired entry; returns how many were removed."""
        now = now or utc_now()
        expired = [entry for entry in entries if self.is_expired(entry, ttl_ms, now)]
        for entry in expired:
            self.remove(entry.path)
        return len(expired)

    def purge_on_invoke(
        self,
        index: CacheIndex,
        ttl_ms: int,
        threshold: int,
        now: Optional[datetime] = None,
    ) -> int:
        """Automatic purge, skipped while fewer than ``threshold`` repos are cached."""
        entries = index.scan()
        if len(entries) < threshold:
            return 0
        purged = self.purge(entries, ttl_ms, now)
        if purged:
            logger.info(f"Purged {purged} expired repos")
        return purged

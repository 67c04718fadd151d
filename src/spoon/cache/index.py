"""Enumerates cached checkouts under the base directory."""

import logging
from pathlib import Path
from typing import List

from .metadata_store import MetadataStore
from .models import CacheEntry

logger = logging.getLogger(__name__)


class CacheIndex:
    """Scans ``<base_dir>/<owner>/<repo>`` for directories with valid metadata."""

    def __init__(self, base_dir: Path, store: MetadataStore):
        self.base_dir = Path(base_dir)
        self.store = store

    def scan(self) -> List[CacheEntry]:
        """
        Walk two directory levels and load each checkout's RepoMeta.

        Directories without well-formed metadata (partial clones, foreign
        content) are left out silently.
        """
        if not self.base_dir.is_dir():
            return []

        entries: List[CacheEntry] = []
        for owner_dir in sorted(self.base_dir.iterdir()):
            if not owner_dir.is_dir():
                continue
            for repo_dir in sorted(owner_dir.iterdir()):
                if not repo_dir.is_dir():
                    continue
                meta = self.store.read_meta(repo_dir)
                if meta is not None:
                    entries.append(CacheEntry(path=repo_dir, meta=meta))

        logger.debug(f"Found {len(entries)} cached repos under {self.base_dir}")
        return entries

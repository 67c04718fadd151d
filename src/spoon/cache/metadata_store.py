"""Persistence for per-repository metadata and the global access history."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Set

from pydantic import ValidationError

from ..utils.atomic_io import atomic_write_model
from ..utils.stream_parser import model_to_jsonl_line, parse_jsonl_to_models
from .models import META_FILENAME, CacheEntry, HistoryEntry, RepoMeta, utc_now

logger = logging.getLogger(__name__)


class MetadataStore:
    """Reads and writes RepoMeta files and the history log.

    RepoMeta writes replace the whole file atomically; history writes only
    ever append a line.
    """

    def __init__(self, history_path: Path):
        self.history_path = Path(history_path)

    @staticmethod
    def meta_path(repo_dir: Path) -> Path:
        return Path(repo_dir) / META_FILENAME

    def read_meta(self, repo_dir: Path) -> Optional[RepoMeta]:
        """Load a checkout's metadata; None when missing or malformed."""
        path = self.meta_path(repo_dir)
        if not path.is_file():
            return None
        try:
            return RepoMeta.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.debug(f"Ignoring unreadable metadata at {path}: {e}")
            return None

    def write_meta(self, repo_dir: Path, meta: RepoMeta) -> None:
        atomic_write_model(self.meta_path(repo_dir), meta)
        logger.debug(f"Wrote metadata for {meta.repo_full_name} (branch={meta.branch})")

    def read_history(self) -> List[HistoryEntry]:
        """All history entries in file order; malformed lines are skipped."""
        if not self.history_path.exists():
            return []
        try:
            content = self.history_path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"History log unreadable: {self.history_path}: {e}")
            return []
        return parse_jsonl_to_models(content, HistoryEntry)

    def append_history(self, repo_full_name: str, timestamp: Optional[datetime] = None) -> HistoryEntry:
        """Append one access event to the history log."""
        entry = HistoryEntry(repo_full_name=repo_full_name, timestamp=timestamp or utc_now())
        self.history_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.history_path, "a", encoding="utf-8") as f:
            f.write(model_to_jsonl_line(entry))
        return entry

    def sync_history(self, entries: Iterable[CacheEntry]) -> int:
        """
        Log every cached repository that history does not know about yet.

        Running it twice appends nothing the second time.

        Returns:
            Number of entries appended
        """
        entries = list(entries)
        if not entries:
            return 0

        logged: Set[str] = {h.repo_full_name for h in self.read_history()}
        appended = 0
        for entry in entries:
            if entry.full_name not in logged:
                self.append_history(entry.full_name)
                logged.add(entry.full_name)
                appended += 1

        if appended:
            logger.debug(f"Synced {appended} cached repos into history")
        return appended

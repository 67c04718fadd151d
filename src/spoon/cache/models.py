"""Data models for the repository cache."""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

META_FILENAME = ".meta.json"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # Timestamps written without an offset are treated as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RepoMeta(BaseModel):
    """Per-checkout metadata, stored as ``<repo dir>/.meta.json``."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    repo_url: str
    repo_full_name: str
    branch: str
    cloned_at: datetime
    last_access: datetime

    @field_validator("cloned_at", "last_access")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    def touched(self, branch: str, now: datetime) -> "RepoMeta":
        """Copy with a new branch and last access time; clonedAt is kept."""
        return self.model_copy(update={"branch": branch, "last_access": now})


class HistoryEntry(BaseModel):
    """One access event in the append-only history log."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    repo_full_name: str
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


@dataclass
class CacheEntry:
    """A cached checkout found on disk."""
    path: Path
    meta: RepoMeta

    @property
    def full_name(self) -> str:
        return self.meta.repo_full_name

"""Shared fixtures for unit tests."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest

from spoon.cache.metadata_store import MetadataStore
from spoon.cache.models import RepoMeta

# Fixed "now" so TTL arithmetic in tests is exact
NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def base_dir(tmp_path):
    """Empty cache base directory."""
    path = tmp_path / "repos"
    path.mkdir()
    return path


@pytest.fixture
def store(tmp_path):
    """MetadataStore with its history log under a temporary home."""
    return MetadataStore(tmp_path / "home" / "history.jsonl")


@pytest.fixture
def make_meta():
    """Factory for RepoMeta records."""
    def _make(
        full_name: str = "octocat/Hello-World",
        last_access: datetime = NOW,
        branch: str = "main",
        cloned_at: Optional[datetime] = None,
    ) -> RepoMeta:
        return RepoMeta(
            repo_url=f"https://github.com/{full_name}",
            repo_full_name=full_name,
            branch=branch,
            cloned_at=cloned_at or (last_access - timedelta(days=1)),
            last_access=last_access,
        )
    return _make


@pytest.fixture
def add_cached_repo(base_dir, store, make_meta):
    """Create ``base_dir/owner/repo`` with a metadata file; returns the directory."""
    def _add(full_name: str, last_access: datetime = NOW, branch: str = "main") -> Path:
        owner, repo = full_name.split("/")
        repo_dir = base_dir / owner / repo
        repo_dir.mkdir(parents=True)
        store.write_meta(repo_dir, make_meta(full_name, last_access=last_access, branch=branch))
        return repo_dir
    return _add

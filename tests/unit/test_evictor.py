"""Tests for TTL eviction."""

from datetime import timedelta

from spoon.cache.evictor import TtlEvictor
from spoon.cache.index import CacheIndex
from spoon.cache.models import CacheEntry

DAY_MS = 86_400_000
TTL_14D = 14 * DAY_MS


class TestIsExpired:
    """Eligibility is strictly now - lastAccess > ttl."""

    def test_boundary_is_retained(self, tmp_path, make_meta, now):
        entry = CacheEntry(tmp_path, make_meta(last_access=now - timedelta(milliseconds=TTL_14D)))
        assert TtlEvictor.is_expired(entry, TTL_14D, now) is False

    def test_one_ms_past_boundary_expires(self, tmp_path, make_meta, now):
        entry = CacheEntry(tmp_path, make_meta(last_access=now - timedelta(milliseconds=TTL_14D + 1)))
        assert TtlEvictor.is_expired(entry, TTL_14D, now) is True

    def test_recent_entry(self, tmp_path, make_meta, now):
        entry = CacheEntry(tmp_path, make_meta(last_access=now - timedelta(hours=1)))
        assert TtlEvictor.is_expired(entry, TTL_14D, now) is False


class TestRemove:
    """Tests for removing checkouts and their empty owner directory."""

    def test_last_repo_removes_owner_dir(self, base_dir, add_cached_repo):
        repo_dir = add_cached_repo("solo/repo")
        TtlEvictor(base_dir).remove(repo_dir)

        assert not repo_dir.exists()
        assert not (base_dir / "solo").exists()
        assert base_dir.exists()

    def test_sibling_keeps_owner_dir(self, base_dir, add_cached_repo):
        first = add_cached_repo("octocat/one")
        second = add_cached_repo("octocat/two")
        TtlEvictor(base_dir).remove(first)

        assert not first.exists()
        assert second.exists()
        assert (base_dir / "octocat").is_dir()

    def test_never_removes_base_dir(self, base_dir):
        stray = base_dir / "stray"
        stray.mkdir()
        TtlEvictor(base_dir).remove(stray)
        assert base_dir.is_dir()

    def test_missing_dir_is_noop(self, base_dir):
        TtlEvictor(base_dir).remove(base_dir / "ghost" / "repo")
        assert base_dir.is_dir()


class TestPurge:
    """Tests for purge and the automatic purge floor."""

    def test_purge_removes_only_expired(self, base_dir, store, add_cached_repo, now):
        old = add_cached_repo("old/repo", last_access=now - timedelta(days=20))
        fresh = add_cached_repo("fresh/repo", last_access=now - timedelta(days=2))
        entries = CacheIndex(base_dir, store).scan()

        purged = TtlEvictor(base_dir).purge(entries, TTL_14D, now)

        assert purged == 1
        assert not old.exists()
        assert not (base_dir / "old").exists()
        assert fresh.exists()

    def test_purge_on_invoke_skips_small_cache(self, base_dir, store, add_cached_repo, now):
        old = add_cached_repo("old/repo", last_access=now - timedelta(days=20))
        for i in range(8):
            add_cached_repo(f"user/repo{i}")

        purged = TtlEvictor(base_dir).purge_on_invoke(CacheIndex(base_dir, store), TTL_14D, 10, now)

        assert purged == 0
        assert old.exists()

    def test_purge_on_invoke_at_threshold(self, base_dir, store, add_cached_repo, now):
        """A 20-day-old repo is evicted once ten repos are cached."""
        old = add_cached_repo("old/repo", last_access=now - timedelta(days=20))
        for i in range(9):
            add_cached_repo(f"user/repo{i}")

        purged = TtlEvictor(base_dir).purge_on_invoke(CacheIndex(base_dir, store), TTL_14D, 10, now)

        assert purged == 1
        assert not old.exists()
        assert len(CacheIndex(base_dir, store).scan()) == 9

    def test_threshold_is_configurable(self, base_dir, store, add_cached_repo, now):
        old = add_cached_repo("old/repo", last_access=now - timedelta(days=20))
        purged = TtlEvictor(base_dir).purge_on_invoke(CacheIndex(base_dir, store), TTL_14D, 1, now)
        assert purged == 1
        assert not old.exists()


class TestPartition:
    """Tests for splitting entries for the remove command."""

    def test_partition_sorted_newest_first(self, tmp_path, make_meta, now):
        entries = [
            CacheEntry(tmp_path / "a", make_meta("a/a", last_access=now - timedelta(days=3))),
            CacheEntry(tmp_path / "b", make_meta("b/b", last_access=now - timedelta(days=30))),
            CacheEntry(tmp_path / "c", make_meta("c/c", last_access=now - timedelta(days=1))),
            CacheEntry(tmp_path / "d", make_meta("d/d", last_access=now - timedelta(days=20))),
        ]

        split = TtlEvictor(tmp_path).partition(entries, TTL_14D, now)

        assert [e.full_name for e in split.active] == ["c/c", "a/a"]
        assert [e.full_name for e in split.expired] == ["d/d", "b/b"]

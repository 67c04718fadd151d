"""Tests for reference parsing and resolution."""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from spoon.cache.index import CacheIndex
from spoon.exceptions import ResolutionError
from spoon.integrations.github.search import GhSearch, SearchResult
from spoon.ui.chooser import PromptChooser
from spoon.workspace.resolver import ReferenceResolver, RepoRef, is_url, parse_reference


class TestParseReference:
    """Direct parsing of owner/repo strings and URLs."""

    def test_owner_repo(self):
        ref = parse_reference("octocat/Hello-World")
        assert ref == RepoRef("octocat", "Hello-World", "https://github.com/octocat/Hello-World")

    @pytest.mark.parametrize("url", [
        "https://github.com/octocat/Hello-World",
        "https://github.com/octocat/Hello-World/",
        "https://github.com/octocat/Hello-World.git",
        "https://www.github.com/octocat/Hello-World",
        "http://github.com/octocat/Hello-World/tree/main/docs",
    ])
    def test_https_variants(self, url):
        ref = parse_reference(url)
        assert ref.full_name == "octocat/Hello-World"
        assert ref.url == "https://github.com/octocat/Hello-World"

    def test_scp_url(self):
        ref = parse_reference("git@github.com:octocat/Hello-World.git")
        assert ref.full_name == "octocat/Hello-World"
        assert ref.url == "git@github.com:octocat/Hello-World.git"

    def test_case_preserved(self):
        assert parse_reference("https://github.com/OctoCat/HELLO").full_name == "OctoCat/HELLO"

    @pytest.mark.parametrize("value", [
        "hello",
        "a/b/c",
        "https://gitlab.com/octocat/Hello-World",
        "https://github.com/octocat",
        "git@gitlab.com:octocat/Hello-World.git",
    ])
    def test_not_parsed(self, value):
        assert parse_reference(value) is None

    def test_custom_host(self):
        ref = parse_reference("https://git.example.com/team/tool", host="git.example.com")
        assert ref.url == "https://git.example.com/team/tool"
        assert parse_reference("team/tool", host="git.example.com").url == "https://git.example.com/team/tool"

    def test_is_url(self):
        assert is_url("https://x/y")
        assert is_url("git@host:a/b")
        assert not is_url("a/b")


@pytest.fixture
def chooser():
    return MagicMock(spec=PromptChooser)


@pytest.fixture
def search():
    return MagicMock(spec=GhSearch)


@pytest.fixture
def resolver(base_dir, store, chooser, search):
    return ReferenceResolver(CacheIndex(base_dir, store), store, chooser, search=search, output=MagicMock())


class TestResolve:
    """Resolution order: parse, known repos, remote search."""

    def test_owner_repo_never_spawns_processes(self, resolver, search, chooser):
        with patch("subprocess.run") as run, patch("subprocess.Popen") as popen:
            ref = resolver.resolve("octocat/Hello-World")

        assert ref.full_name == "octocat/Hello-World"
        run.assert_not_called()
        popen.assert_not_called()
        search.search.assert_not_called()
        chooser.choose.assert_not_called()

    def test_empty_reference(self, resolver):
        with pytest.raises(ResolutionError, match="required"):
            resolver.resolve("   ")

    def test_unsupported_url_host(self, resolver, search):
        with pytest.raises(ResolutionError, match="Not a github.com repository URL"):
            resolver.resolve("https://gitlab.com/a/b")
        search.search.assert_not_called()

    def test_exact_repo_name_beats_substring(self, resolver, add_cached_repo, chooser):
        add_cached_repo("octocat/spoon")
        add_cached_repo("octocat/spoon-knife")

        ref = resolver.resolve("spoon")

        assert ref.full_name == "octocat/spoon"
        chooser.choose.assert_not_called()

    def test_match_is_case_insensitive(self, resolver, add_cached_repo):
        add_cached_repo("octocat/Hello-World")
        assert resolver.resolve("hello-world").full_name == "octocat/Hello-World"

    def test_single_substring_match(self, resolver, add_cached_repo, search):
        add_cached_repo("octocat/Spoon-Knife")
        assert resolver.resolve("knife").full_name == "octocat/Spoon-Knife"
        search.search.assert_not_called()

    def test_history_only_repo_matches(self, resolver, store, now):
        store.append_history("someone/dotfiles", now)
        ref = resolver.resolve("dotfiles")
        assert ref.full_name == "someone/dotfiles"
        assert ref.url == "https://github.com/someone/dotfiles"

    def test_ambiguous_match_asks_chooser(self, resolver, add_cached_repo, store, chooser, now):
        add_cached_repo("alice/tools-web")
        store.append_history("bob/tools-cli", now)
        chooser.choose.return_value = "bob/tools-cli"

        ref = resolver.resolve("tools")

        assert ref.full_name == "bob/tools-cli"
        values = [c.value for c in chooser.choose.call_args.args[0]]
        assert values == ["alice/tools-web", "bob/tools-cli"]

    def test_ambiguous_match_canceled(self, resolver, add_cached_repo, chooser):
        add_cached_repo("alice/tools-web")
        add_cached_repo("bob/tools-cli")
        chooser.choose.return_value = None

        with pytest.raises(ResolutionError, match="canceled"):
            resolver.resolve("tools")

    def test_falls_back_to_search(self, resolver, search, chooser):
        search.search.return_value = [
            SearchResult("pallets/flask", "https://github.com/pallets/flask"),
            SearchResult("someone/flask-demo", "https://github.com/someone/flask-demo"),
        ]
        chooser.choose.return_value = "pallets/flask"

        ref = resolver.resolve("flask")

        search.search.assert_called_once_with("flask")
        assert ref == RepoRef("pallets", "flask", "https://github.com/pallets/flask")

    def test_search_without_results(self, resolver, search):
        search.search.return_value = []
        with pytest.raises(ResolutionError, match="No repositories found"):
            resolver.resolve("zzz-nothing")

    def test_search_canceled(self, resolver, search, chooser):
        search.search.return_value = [SearchResult("a/b", "https://github.com/a/b")]
        chooser.choose.return_value = None
        with pytest.raises(ResolutionError, match="Search canceled"):
            resolver.resolve("b-ish")


class TestPick:
    """Interactive pick among local and history repos."""

    def test_nothing_to_pick(self, resolver):
        with pytest.raises(ResolutionError, match="No local or recent repos"):
            resolver.pick()

    def test_local_first_then_history(self, resolver, add_cached_repo, store, chooser, now):
        add_cached_repo("a/older", last_access=now - timedelta(days=2))
        add_cached_repo("a/newer", last_access=now - timedelta(hours=1), branch="dev")
        store.append_history("h/first", now - timedelta(days=5))
        store.append_history("h/second", now - timedelta(days=1))
        store.append_history("a/older", now - timedelta(days=2))
        chooser.choose.return_value = "a/newer"

        resolver.pick()

        choices = chooser.choose.call_args.args[0]
        assert [c.value for c in choices] == ["a/newer", "a/older", "h/second", "h/first"]
        assert choices[0].hint == "(dev)"
        assert choices[2].hint == "history"

    def test_pick_appends_history(self, resolver, add_cached_repo, store, chooser):
        add_cached_repo("a/repo")
        chooser.choose.return_value = "a/repo"

        ref = resolver.pick()

        assert ref.full_name == "a/repo"
        assert [h.repo_full_name for h in store.read_history()] == ["a/repo"]

    def test_pick_canceled(self, resolver, add_cached_repo, chooser, store):
        add_cached_repo("a/repo")
        chooser.choose.return_value = None

        with pytest.raises(ResolutionError, match="canceled"):
            resolver.pick()
        assert store.read_history() == []

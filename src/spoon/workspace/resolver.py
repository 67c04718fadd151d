"""Turns user input into a concrete repository reference."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional
from urllib.parse import urlparse

from ..cache.index import CacheIndex
from ..cache.metadata_store import MetadataStore
from ..exceptions import ResolutionError
from ..integrations.github.search import GhSearch
from ..ui.chooser import Choice, PromptChooser
from ..ui.output import Output

logger = logging.getLogger(__name__)

_OWNER_REPO = re.compile(r'^[^/\s]+/[^/\s]+$')
_SCP_URL = re.compile(r'^git@([^:]+):(.+)$')

ORIGIN_LOCAL = "local"
ORIGIN_HISTORY = "history"


@dataclass(frozen=True)
class RepoRef:
    owner: str
    repo: str
    url: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_full_name(cls, full_name: str, host: str = "github.com", url: Optional[str] = None) -> "RepoRef":
        owner, repo = full_name.split("/", 1)
        return cls(owner=owner, repo=repo, url=url or f"https://{host}/{owner}/{repo}")


@dataclass
class Candidate:
    """A repository known locally or from history."""
    full_name: str
    origin: str
    url: str

    @property
    def repo_name(self) -> str:
        return self.full_name.split("/", 1)[-1]


def is_url(value: str) -> bool:
    return value.startswith(("http://", "https://", "git@"))


def _strip_git_suffix(name: str) -> str:
    return name[:-4] if name.endswith(".git") else name


def parse_reference(value: str, host: str = "github.com") -> Optional[RepoRef]:
    """
    Parse a URL or ``owner/repo`` without touching the network.

    Owner and repo are the first two path segments of a URL, case preserved,
    with trailing slashes and ``.git`` stripped.

    Returns:
        RepoRef, or None when ``value`` is neither form
    """
    value = value.strip()
    host = host.lower()

    if value.startswith(("http://", "https://")):
        parsed = urlparse(value)
        netloc = (parsed.hostname or "").lower()
        if netloc not in (host, f"www.{host}"):
            return None
        segments = [s for s in parsed.path.split("/") if s]
        if len(segments) < 2:
            return None
        owner, repo = segments[0], _strip_git_suffix(segments[1])
        if not repo:
            return None
        return RepoRef(owner=owner, repo=repo, url=f"https://{host}/{owner}/{repo}")

    if value.startswith("git@"):
        match = _SCP_URL.match(value)
        if not match or match.group(1).lower() != host:
            return None
        segments = [s for s in match.group(2).split("/") if s]
        if len(segments) < 2:
            return None
        owner, repo = segments[0], _strip_git_suffix(segments[1])
        if not repo:
            return None
        return RepoRef(owner=owner, repo=repo, url=f"git@{host}:{owner}/{repo}.git")

    if _OWNER_REPO.match(value):
        owner, repo = value.split("/")
        return RepoRef(owner=owner, repo=repo, url=f"https://{host}/{owner}/{repo}")

    return None


class ReferenceResolver:
    """Exact parse, then local/history match, then remote search."""

    def __init__(
        self,
        index: CacheIndex,
        store: MetadataStore,
        chooser: PromptChooser,
        search: Optional[GhSearch] = None,
        host: str = "github.com",
        output: Optional[Output] = None,
    ):
        self.index = index
        self.store = store
        self.chooser = chooser
        self.search = search or GhSearch()
        self.host = host
        self.output = output or Output()

    def resolve(self, value: str) -> RepoRef:
        """
        Raises:
            ResolutionError: If nothing matches or the user cancels
        """
        value = value.strip()
        if not value:
            raise ResolutionError("Repository reference required.")

        parsed = parse_reference(value, self.host)
        if parsed:
            return parsed
        if is_url(value):
            raise ResolutionError(f"Not a {self.host} repository URL: {value}")

        local = self.match_known(value)
        if local:
            return local

        return self.search_remote(value)

    def candidates(self) -> List[Candidate]:
        """Local checkouts first, then repos only present in history."""
        known: Dict[str, Candidate] = {}
        for entry in self.index.scan():
            known[entry.full_name] = Candidate(
                full_name=entry.full_name,
                origin=ORIGIN_LOCAL,
                url=entry.meta.repo_url,
            )
        for item in self.store.read_history():
            if item.repo_full_name not in known and "/" in item.repo_full_name:
                known[item.repo_full_name] = Candidate(
                    full_name=item.repo_full_name,
                    origin=ORIGIN_HISTORY,
                    url=RepoRef.from_full_name(item.repo_full_name, self.host).url,
                )
        return list(known.values())

    def match_known(self, query: str) -> Optional[RepoRef]:
        """
        Match the query against local and historical repository names.

        Exact repo-name matches win over substring matches; a single preferred
        match is taken directly, several go to the chooser.

        Returns:
            RepoRef, or None when nothing known matches

        Raises:
            ResolutionError: If the user cancels the disambiguation
        """
        query = query.lower()
        exact: List[Candidate] = []
        partial: List[Candidate] = []
        for candidate in self.candidates():
            repo_name = candidate.repo_name.lower()
            if repo_name == query:
                exact.append(candidate)
            elif query in repo_name or query in candidate.full_name.lower():
                partial.append(candidate)

        preferred = exact or partial
        if not preferred:
            return None
        if len(preferred) == 1:
            chosen = preferred[0]
        else:
            by_name = {c.full_name: c for c in preferred}
            selection = self.chooser.choose(
                [Choice(value=c.full_name, label=c.full_name, hint=c.origin) for c in preferred],
                prompt="Repo",
                header=f"Several known repos match \"{query}\"",
            )
            if not selection:
                raise ResolutionError("Repository selection canceled.")
            chosen = by_name[selection]

        logger.debug(f"Matched '{query}' to {chosen.full_name} ({chosen.origin})")
        return RepoRef.from_full_name(chosen.full_name, self.host, url=chosen.url)

    def search_remote(self, query: str) -> RepoRef:
        """
        Raises:
            ResolutionError: If the search has no results or is canceled
        """
        self.output.info("search", f'Searching for "{query}"...')
        results = self.search.search(query)
        if not results:
            raise ResolutionError(f'No repositories found for "{query}".')

        urls = {r.full_name: r.url for r in results}
        selection = self.chooser.choose(
            [Choice(value=r.full_name, label=r.full_name, hint=r.url) for r in results],
            prompt="Repo",
        )
        if not selection:
            raise ResolutionError("Search canceled.")

        parsed = parse_reference(selection, self.host)
        if parsed is None:
            raise ResolutionError(f"Unexpected search result: {selection}")
        return RepoRef.from_full_name(parsed.full_name, self.host, url=urls.get(selection) or parsed.url)

    def pick(self) -> RepoRef:
        """
        Interactive pick among local checkouts (newest access first) and
        history-only repos. Each pick is logged to history.

        Raises:
            ResolutionError: If there is nothing to pick or the user cancels
        """
        entries = sorted(self.index.scan(), key=lambda e: e.meta.last_access, reverse=True)
        choices = [
            Choice(value=e.full_name, label=e.full_name, hint=f"({e.meta.branch})")
            for e in entries
        ]
        urls = {e.full_name: e.meta.repo_url for e in entries}

        local_names = set(urls)
        last_seen: Dict[str, datetime] = {}
        for item in self.store.read_history():
            if item.repo_full_name not in local_names and "/" in item.repo_full_name:
                last_seen[item.repo_full_name] = item.timestamp
        for full_name in sorted(last_seen, key=lambda name: last_seen[name], reverse=True):
            choices.append(Choice(value=full_name, label=full_name, hint="history"))

        if not choices:
            raise ResolutionError("No local or recent repos yet. Pass a repo reference to clone one.")

        selection = self.chooser.choose(choices, prompt="Repo")
        if not selection:
            raise ResolutionError("Selection canceled.")

        self.store.append_history(selection)
        return RepoRef.from_full_name(selection, self.host, url=urls.get(selection))

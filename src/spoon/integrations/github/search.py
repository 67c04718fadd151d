"""Repository search through the GitHub CLI (``gh search repos``)."""

import json
import logging
from dataclasses import dataclass
from typing import List

from ...exceptions import ResolutionError
from ...utils.subprocess_utils import SubprocessError, get_command_output

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    full_name: str
    url: str


class GhSearch:
    """Free-text repository search backed by ``gh``."""

    def __init__(self, executable: str = "gh", limit: int = 50):
        self.executable = executable
        self.limit = limit

    def search(self, query: str) -> List[SearchResult]:
        """
        Search repositories matching ``query``.

        Raises:
            ResolutionError: If gh is missing, fails, or returns unparseable output
        """
        cmd = [
            self.executable, "search", "repos", query,
            "--limit", str(self.limit),
            "--json", "fullName,url",
        ]
        try:
            output = get_command_output(cmd)
        except FileNotFoundError as e:
            raise ResolutionError(
                f"'{self.executable}' not found; install the GitHub CLI or pass owner/repo."
            ) from e
        except SubprocessError as e:
            raise ResolutionError(f"Repository search failed: {e.stderr.strip() or e}") from e

        try:
            items = json.loads(output or "[]")
        except json.JSONDecodeError as e:
            raise ResolutionError(f"Unexpected output from {self.executable}: {e}") from e

        results = []
        for item in items if isinstance(items, list) else []:
            if isinstance(item, dict) and item.get("fullName") and item.get("url"):
                results.append(SearchResult(full_name=item["fullName"], url=item["url"]))
            else:
                logger.debug(f"Skipping malformed search result: {item!r}")
        return results

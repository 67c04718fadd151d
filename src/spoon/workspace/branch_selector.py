"""Chooses which branch to clone."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..exceptions import BranchSelectionError, GitOperationError
from ..ui.chooser import Choice, PromptChooser
from .git_client import GitClient

logger = logging.getLogger(__name__)

FALLBACK_DEFAULT_BRANCH = "main"


@dataclass
class BranchListing:
    """Remote branches, default first.

    ``sorted`` is False when the commit-date ordering was unavailable and the
    plain listing was used instead; ``default_detected`` is False when the
    remote HEAD could not be read and ``main`` was assumed.
    """
    default_branch: str
    branches: List[str] = field(default_factory=list)
    sorted: bool = True
    default_detected: bool = True


class BranchSelector:
    """Explicit override, or an interactive pick among the remote's branches."""

    def __init__(self, git: GitClient, chooser: PromptChooser):
        self.git = git
        self.chooser = chooser

    def list_branches(self, repo_url: str) -> BranchListing:
        default = self.git.remote_default_branch(repo_url)
        default_detected = default is not None
        default = default or FALLBACK_DEFAULT_BRANCH

        try:
            heads = self.git.remote_heads(repo_url, sort_by_date=True)
            is_sorted = True
        except GitOperationError as e:
            logger.debug(f"Sorted branch listing failed, using unsorted listing: {e}")
            heads = self.git.remote_heads(repo_url, sort_by_date=False)
            is_sorted = False

        ordered = [default]
        for branch in heads:
            if branch not in ordered:
                ordered.append(branch)

        return BranchListing(
            default_branch=default,
            branches=ordered,
            sorted=is_sorted,
            default_detected=default_detected,
        )

    def select(self, repo_url: str, forced_branch: Optional[str] = None) -> str:
        """
        Decide which branch to use for ``repo_url``.

        A forced branch is returned as-is; a wrong name surfaces later as a
        git failure.

        Raises:
            BranchSelectionError: If the user cancels the choice
        """
        if forced_branch:
            return forced_branch

        listing = self.list_branches(repo_url)
        choices = [
            Choice(value=b, label=b, hint="(default)" if b == listing.default_branch else "")
            for b in listing.branches
        ]
        selection = self.chooser.choose(
            choices,
            prompt="Branch",
            header=f"Default branch: {listing.default_branch}",
        )
        if not selection:
            raise BranchSelectionError("Branch selection canceled.")
        return selection

"""Clone, reuse, update or reclone a cached checkout, then launch in it.

Each invocation moves one repository through an explicit state:

    ABSENT              no directory yet -> pick a branch and clone
    PRESENT_UP_TO_DATE  remote has nothing new -> checkout silently
    PRESENT_BEHIND      remote is ahead -> ask, then checkout or ff-only pull
    PRESENT_UNKNOWN     remote unreachable or branch missing upstream ->
                        warn and open the last local branch without syncing

Git failures abort the invocation. The only tolerated failure is the fetch
used to compute the status, which degrades to PRESENT_UNKNOWN.
"""

import logging
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..cache.metadata_store import MetadataStore
from ..cache.models import RepoMeta, utc_now
from ..core.config import SpoonConfig
from ..exceptions import GitOperationError, ResolutionError
from ..ui.chooser import PromptChooser
from ..ui.output import Output
from ..utils.durations import format_duration
from ..utils.validators import validate_owner_repo
from .branch_selector import FALLBACK_DEFAULT_BRANCH, BranchSelector
from .git_client import GitClient
from .launcher import Launcher
from .resolver import RepoRef

logger = logging.getLogger(__name__)


class RepoState(str, Enum):
    ABSENT = "absent"
    PRESENT_UP_TO_DATE = "up_to_date"
    PRESENT_BEHIND = "behind"
    PRESENT_UNKNOWN = "unknown"


@dataclass
class RepoStatus:
    """Outcome of comparing a local branch with its remote counterpart."""
    state: RepoState
    branch: str
    behind: int = 0
    reason: Optional[str] = None


@dataclass
class EnsureResult:
    path: Path
    branch: str
    state: RepoState
    behind: int = 0


class RepoLifecycleManager:
    """Keeps one checkout per ``owner/repo`` under the configured base dir."""

    def __init__(
        self,
        config: SpoonConfig,
        store: MetadataStore,
        git: GitClient,
        branch_selector: BranchSelector,
        chooser: PromptChooser,
        launcher: Optional[Launcher] = None,
        output: Optional[Output] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.store = store
        self.git = git
        self.branch_selector = branch_selector
        self.chooser = chooser
        self.launcher = launcher or Launcher()
        self.output = output or Output()
        self.clock = clock

    def repo_dir(self, ref: RepoRef) -> Path:
        try:
            validate_owner_repo(ref.full_name)
        except ValueError as e:
            raise ResolutionError(str(e)) from e
        return self.config.base_dir / ref.owner / ref.repo

    # -- status -------------------------------------------------------------

    def effective_branch(self, repo_dir: Path, meta: Optional[RepoMeta], branch_override: Optional[str]) -> str:
        if branch_override:
            return branch_override
        if meta and meta.branch:
            return meta.branch
        return self.git.current_branch(repo_dir) or FALLBACK_DEFAULT_BRANCH

    def status(self, repo_dir: Path, branch: str) -> RepoStatus:
        """
        Fetch ``branch`` and count commits the local branch is missing.

        A failed fetch or a branch without a remote-tracking ref yields
        PRESENT_UNKNOWN with the reason attached instead of raising.
        """
        fetched = self.git.fetch(repo_dir, branch, check=False)
        if fetched.returncode != 0:
            reason = (fetched.stderr or "").strip() or "fetch failed"
            return RepoStatus(RepoState.PRESENT_UNKNOWN, branch, reason=reason)

        if not self.git.has_remote_branch(repo_dir, branch):
            return RepoStatus(
                RepoState.PRESENT_UNKNOWN,
                branch,
                reason=f"{self.git.remote}/{branch} not found",
            )

        if not self.git.has_local_branch(repo_dir, branch):
            # Checkout will create it straight from the remote-tracking ref
            return RepoStatus(RepoState.PRESENT_UP_TO_DATE, branch)

        behind = self.git.count_commits(repo_dir, branch, f"{self.git.remote}/{branch}")
        state = RepoState.PRESENT_BEHIND if behind > 0 else RepoState.PRESENT_UP_TO_DATE
        return RepoStatus(state, branch, behind=behind)

    # -- git helpers --------------------------------------------------------

    def checkout_branch(self, repo_dir: Path, branch: str) -> None:
        """Checkout a local branch, creating it from the remote when missing."""
        if self.git.has_local_branch(repo_dir, branch):
            self.git.checkout(repo_dir, branch)
            return
        self.git.fetch(repo_dir, branch)
        self.git.checkout_tracking(repo_dir, branch)

    def _clone(self, ref: RepoRef, branch: str, target: Path) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        self.output.info("clone", ref.url)
        start = time.monotonic()
        self.git.clone(ref.url, branch, target, shallow=self.config.shallow_clone)
        elapsed_ms = (time.monotonic() - start) * 1000
        self.output.info("cloned", f"in {format_duration(elapsed_ms)}")

    # -- state handlers -----------------------------------------------------

    def _handle_absent(self, ref: RepoRef, target: Path, branch_override: Optional[str]) -> EnsureResult:
        branch = self.branch_selector.select(ref.url, branch_override)
        self._clone(ref, branch, target)

        now = self.clock()
        self.store.append_history(ref.full_name, now)
        self.store.write_meta(target, RepoMeta(
            repo_url=ref.url,
            repo_full_name=ref.full_name,
            branch=branch,
            cloned_at=now,
            last_access=now,
        ))
        return EnsureResult(path=target, branch=branch, state=RepoState.ABSENT)

    def _handle_up_to_date(self, target: Path, status: RepoStatus, meta: Optional[RepoMeta], update: Optional[bool]) -> str:
        self.checkout_branch(target, status.branch)
        return status.branch

    def _handle_behind(self, target: Path, status: RepoStatus, meta: Optional[RepoMeta], update: Optional[bool]) -> str:
        noun = "commit" if status.behind == 1 else "commits"
        self.output.info("behind", f"{status.branch} is {status.behind} {noun} behind {self.git.remote}")

        wants_update = update
        if wants_update is None:
            wants_update = self.chooser.confirm(
                f"Pull {status.behind} new {noun} into {status.branch}?",
                default=False,
            )

        if wants_update:
            self.git.fetch(target, status.branch)
            self.checkout_branch(target, status.branch)
            self.git.pull_ff_only(target, status.branch)
            self.output.info("updated", f"{status.branch} fast-forwarded")
        else:
            self.checkout_branch(target, status.branch)
        return status.branch

    def _handle_unknown(self, target: Path, status: RepoStatus, meta: Optional[RepoMeta], update: Optional[bool]) -> str:
        self.output.warn(
            f"Could not check {status.branch} against {self.git.remote} ({status.reason}); "
            "opening the local copy without syncing."
        )
        candidates = [status.branch, meta.branch if meta else None, self.git.current_branch(target)]
        for branch in candidates:
            if branch and self.git.has_local_branch(target, branch):
                if branch != status.branch:
                    self.output.warn(f"{status.branch} is not available locally; using {branch}.")
                self.git.checkout(target, branch)
                return branch
        raise GitOperationError(
            f"Branch '{status.branch}' is not available locally and the remote could not be reached."
        )

    # -- entry points -------------------------------------------------------

    def ensure(
        self,
        ref: RepoRef,
        branch_override: Optional[str] = None,
        update: Optional[bool] = None,
        reclone: bool = False,
    ) -> EnsureResult:
        """
        Bring the checkout for ``ref`` into a usable state.

        Args:
            ref: Resolved repository
            branch_override: Branch to use instead of the remembered one
            update: Answer to the "pull new commits?" prompt (None asks)
            reclone: Delete the checkout and clone it fresh

        Returns:
            EnsureResult with the checkout path and final branch

        Raises:
            GitOperationError: If a git operation fails
            BranchSelectionError: If branch selection is canceled
            PromptCanceledError: If the update prompt is canceled
        """
        target = self.repo_dir(ref)

        if reclone and target.exists():
            self.output.info("reclone", ref.full_name)
            shutil.rmtree(target)

        if not target.exists():
            return self._handle_absent(ref, target, branch_override)

        meta = self.store.read_meta(target)
        if meta:
            self.output.info("found", f"{ref.full_name} (cloned {meta.cloned_at.astimezone():%Y-%m-%d %H:%M})")
        else:
            self.output.info("found", ref.full_name)

        branch = self.effective_branch(target, meta, branch_override)
        status = self.status(target, branch)
        logger.debug(f"{ref.full_name}: state={status.state.value} branch={branch} behind={status.behind}")

        handlers = {
            RepoState.PRESENT_UP_TO_DATE: self._handle_up_to_date,
            RepoState.PRESENT_BEHIND: self._handle_behind,
            RepoState.PRESENT_UNKNOWN: self._handle_unknown,
        }
        final_branch = handlers[status.state](target, status, meta, update)

        now = self.clock()
        if meta:
            updated = meta.touched(final_branch, now)
        else:
            updated = RepoMeta(
                repo_url=ref.url,
                repo_full_name=ref.full_name,
                branch=final_branch,
                cloned_at=now,
                last_access=now,
            )
        self.store.write_meta(target, updated)
        return EnsureResult(path=target, branch=final_branch, state=status.state, behind=status.behind)

    def open(
        self,
        ref: RepoRef,
        command: str,
        branch_override: Optional[str] = None,
        update: Optional[bool] = None,
        reclone: bool = False,
    ) -> EnsureResult:
        """
        Ensure the checkout, run ``command`` inside it, and record the access.

        lastAccess is written again after the command exits so the session
        length does not count towards the TTL.

        Raises:
            LaunchError: If the command exits non-zero
        """
        result = self.ensure(ref, branch_override=branch_override, update=update, reclone=reclone)

        last_commit = self.git.last_commit_date(result.path)
        detail = f"with {command} on {result.branch}"
        if last_commit:
            detail += f" (last commit {last_commit:%Y-%m-%d})"
        self.output.info("open", detail)

        self.launcher.launch(command, result.path)

        meta = self.store.read_meta(result.path)
        if meta:
            self.store.write_meta(result.path, meta.touched(result.branch, self.clock()))
        return result

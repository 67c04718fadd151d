"""Thin wrapper over the git CLI used by the cache lifecycle."""

import logging
import re
import subprocess
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..exceptions import GitOperationError
from ..utils.subprocess_utils import SubprocessError, run_git_command

logger = logging.getLogger(__name__)

_SYMREF_HEAD = re.compile(r'^ref:\s+refs/heads/(\S+)\s+HEAD', re.MULTILINE)


class GitClient:
    """Runs git subprocesses; any non-zero exit becomes GitOperationError."""

    def __init__(self, remote: str = "origin"):
        self.remote = remote

    def run(
        self,
        args: List[str],
        cwd: Optional[Path] = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        try:
            return run_git_command(args, cwd=cwd, check=check)
        except FileNotFoundError as e:
            raise GitOperationError("git not found; install git and make sure it is on PATH.") from e
        except SubprocessError as e:
            message = e.stderr.strip() or f"git {args[0]} failed with exit code {e.returncode}"
            raise GitOperationError(message, cmd=e.cmd, stderr=e.stderr) from e

    def clone(self, url: str, branch: str, target: Path, shallow: bool = False) -> None:
        args = ["clone", "--branch", branch, "--single-branch"]
        if shallow:
            args += ["--depth", "1"]
        self.run(args + [url, str(target)])

    def fetch(self, cwd: Path, branch: Optional[str] = None, check: bool = True) -> subprocess.CompletedProcess:
        """
        Fetch from the remote.

        A branch is fetched with an explicit refspec so its remote-tracking
        ref is written even in a single-branch clone.
        """
        args = ["fetch", self.remote]
        if branch:
            args.append(f"+refs/heads/{branch}:refs/remotes/{self.remote}/{branch}")
        return self.run(args, cwd=cwd, check=check)

    def checkout(self, cwd: Path, branch: str) -> None:
        self.run(["checkout", branch], cwd=cwd)

    def checkout_tracking(self, cwd: Path, branch: str) -> None:
        self.run(["checkout", "-b", branch, f"{self.remote}/{branch}"], cwd=cwd)

    def pull_ff_only(self, cwd: Path, branch: str) -> None:
        # Branches created after a single-branch clone have no upstream configured
        self.run(["pull", "--ff-only", self.remote, branch], cwd=cwd)

    def has_local_branch(self, cwd: Path, branch: str) -> bool:
        result = self.run(["show-ref", "--verify", "--quiet", f"refs/heads/{branch}"], cwd=cwd, check=False)
        return result.returncode == 0

    def has_remote_branch(self, cwd: Path, branch: str) -> bool:
        result = self.run(
            ["show-ref", "--verify", "--quiet", f"refs/remotes/{self.remote}/{branch}"],
            cwd=cwd,
            check=False,
        )
        return result.returncode == 0

    def count_commits(self, cwd: Path, base: str, head: str) -> int:
        """Number of commits reachable from ``head`` but not from ``base``."""
        result = self.run(["rev-list", "--count", f"{base}..{head}"], cwd=cwd)
        return int(result.stdout.strip() or 0)

    def current_branch(self, cwd: Path) -> Optional[str]:
        """Checked-out branch name, or None for a detached HEAD or a broken repo."""
        result = self.run(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd, check=False)
        branch = result.stdout.strip()
        if result.returncode != 0 or not branch or branch == "HEAD":
            return None
        return branch

    def last_commit_date(self, cwd: Path, ref: str = "HEAD") -> Optional[datetime]:
        result = self.run(["log", "-1", "--format=%cI", ref], cwd=cwd, check=False)
        value = result.stdout.strip()
        if result.returncode != 0 or not value:
            return None
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            logger.debug(f"Unparseable commit date from git log: {value!r}")
            return None

    def remote_default_branch(self, url: str) -> Optional[str]:
        """Branch the remote HEAD points at, or None when it cannot be read."""
        result = self.run(["ls-remote", "--symref", url, "HEAD"], check=False)
        if result.returncode != 0:
            logger.debug(f"ls-remote --symref failed for {url}: {result.stderr.strip()}")
            return None
        match = _SYMREF_HEAD.search(result.stdout)
        return match.group(1) if match else None

    def remote_heads(self, url: str, sort_by_date: bool = False) -> List[str]:
        """Branch names on the remote, newest commit first when sorted."""
        args = ["ls-remote"]
        if sort_by_date:
            args.append("--sort=-committerdate")
        result = self.run(args + ["--heads", url])

        branches = []
        for line in result.stdout.splitlines():
            parts = line.split("\t")
            if len(parts) == 2 and parts[1].startswith("refs/heads/"):
                branches.append(parts[1][len("refs/heads/"):])
        return branches

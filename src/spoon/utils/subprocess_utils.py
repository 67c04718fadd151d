"""Standardized subprocess utilities for command execution."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)


class SubprocessError(Exception):
    """Exception raised when a subprocess command fails."""

    def __init__(self, cmd: str, returncode: int, stderr: str, stdout: str = "", cwd: Optional[Path] = None):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        self.cwd = cwd
        location = f" (in {cwd})" if cwd else ""
        super().__init__(
            f"Command failed with exit code {returncode}: {cmd}{location}\nstderr: {stderr}"
        )


def run_command(
    cmd: Union[str, List[str]],
    *,
    cwd: Optional[Path] = None,
    capture_output: bool = True,
    check: bool = True,
    input: Optional[str] = None,
    env: Optional[dict] = None,
    shell: bool = False,
) -> subprocess.CompletedProcess:
    """
    Run a command with standardized error handling.

    No timeout is applied: git and gh calls block until they finish.

    Args:
        cmd: Command to run (string or list)
        cwd: Working directory
        capture_output: Capture stdout/stderr
        check: Raise exception on non-zero exit
        input: Text fed to stdin
        env: Environment variables
        shell: Use shell execution

    Returns:
        CompletedProcess with stdout, stderr, returncode

    Raises:
        SubprocessError: If check=True and command fails
    """
    logger.debug(f"Running: {cmd if isinstance(cmd, str) else ' '.join(cmd)}")
    result = subprocess.run(
        cmd,
        cwd=cwd,
        capture_output=capture_output,
        text=True,
        input=input,
        env=env,
        shell=shell,
        check=False,  # We handle check ourselves for better error messages
    )

    if check and result.returncode != 0:
        cmd_str = cmd if isinstance(cmd, str) else " ".join(cmd)
        raise SubprocessError(
            cmd=cmd_str,
            returncode=result.returncode,
            stderr=result.stderr or "",
            stdout=result.stdout or "",
            cwd=cwd,
        )

    return result


def run_git_command(
    args: List[str],
    *,
    cwd: Optional[Path] = None,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """
    Run a git command with standardized error handling.

    Args:
        args: Git command arguments (without 'git' prefix)
        cwd: Working directory (git repo)
        check: Raise exception on non-zero exit

    Returns:
        CompletedProcess with stdout, stderr, returncode

    Raises:
        SubprocessError: If check=True and command fails
    """
    cmd = ["git"] + args

    try:
        return run_command(cmd, cwd=cwd, capture_output=True, check=check)
    except SubprocessError:
        logger.debug(f"Git command failed in {cwd}: {' '.join(args)}")
        raise


def run_interactive(
    cmd: Union[str, List[str]],
    *,
    cwd: Optional[Path] = None,
    shell: bool = False,
) -> int:
    """Run a command attached to the current terminal and return its exit code."""
    logger.debug(f"Launching: {cmd if isinstance(cmd, str) else ' '.join(cmd)} in {cwd}")
    return subprocess.call(cmd, cwd=cwd, shell=shell)


def check_command_exists(command: str) -> bool:
    """
    Check if a command exists in PATH.

    Args:
        command: Command name to check

    Returns:
        True if command exists, False otherwise
    """
    return shutil.which(command) is not None


def get_command_output(
    cmd: Union[str, List[str]],
    *,
    cwd: Optional[Path] = None,
) -> str:
    """
    Run a command and return its output (stdout).

    Raises:
        SubprocessError: If command fails
    """
    result = run_command(cmd, cwd=cwd, check=True)
    return result.stdout.strip()

"""Exceptions raised by spoon.

Every error the CLI reports derives from SpoonError so the top-level handler
can print it as a single line and exit with status 1.
"""

from typing import Optional


class SpoonError(Exception):
    """Base class for user-facing spoon errors."""


class ResolutionError(SpoonError):
    """No repository matched the reference, or the user canceled the choice."""


class BranchSelectionError(SpoonError):
    """Branch selection was canceled."""


class PromptCanceledError(SpoonError):
    """A yes/no prompt was canceled (Ctrl-C or end of input)."""


class GitOperationError(SpoonError):
    """A git subprocess exited non-zero."""

    def __init__(self, message: str, cmd: Optional[str] = None, stderr: str = ""):
        self.cmd = cmd
        self.stderr = stderr
        super().__init__(message)


class LaunchError(SpoonError):
    """The launch command exited non-zero."""

    def __init__(self, command: str, returncode: int):
        self.command = command
        self.returncode = returncode
        super().__init__(f"{command} exited with code {returncode}.")


class ConfigError(SpoonError):
    """Config file is unreadable or invalid."""

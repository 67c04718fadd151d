"""Runs the configured launch command inside a checkout."""

import logging
from pathlib import Path

from ..exceptions import LaunchError
from ..utils.subprocess_utils import run_interactive

logger = logging.getLogger(__name__)


class Launcher:
    """Runs a shell command attached to the terminal and waits for it."""

    def launch(self, command: str, cwd: Path) -> None:
        """
        Raises:
            LaunchError: If the command exits non-zero
        """
        returncode = run_interactive(command, cwd=cwd, shell=True)
        logger.debug(f"{command} exited with {returncode}")
        if returncode != 0:
            raise LaunchError(command, returncode)

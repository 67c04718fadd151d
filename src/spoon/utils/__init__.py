"""Shared utility functions for spoon."""

from .atomic_io import atomic_write_model, atomic_write_text
from .durations import format_duration, parse_duration
from .stream_parser import model_to_jsonl_line, parse_jsonl_to_models
from .subprocess_utils import (
    SubprocessError,
    run_command,
    run_git_command,
    run_interactive,
    check_command_exists,
    get_command_output,
)
from .validators import validate_owner_repo

__all__ = [
    # Atomic I/O
    "atomic_write_text",
    "atomic_write_model",
    # Durations
    "parse_duration",
    "format_duration",
    # Stream parsing
    "parse_jsonl_to_models",
    "model_to_jsonl_line",
    # Subprocess utilities
    "SubprocessError",
    "run_command",
    "run_git_command",
    "run_interactive",
    "check_command_exists",
    "get_command_output",
    # Validators
    "validate_owner_repo",
]

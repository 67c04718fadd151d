"""Atomic file I/O operations."""

import os
import logging
from pathlib import Path

from pydantic import BaseModel

logger = logging.getLogger(__name__)


def atomic_write_text(file_path: Path, content: str) -> None:
    """
    Atomically write content to a file using temp file + rename.

    The target is either fully replaced or left untouched, so a crash
    mid-write cannot leave a truncated metadata file behind.

    Args:
        file_path: Target file path
        content: Content to write

    Raises:
        OSError: If the write or rename fails
    """
    # Use PID to avoid temp file collisions between processes
    tmp_file = file_path.with_suffix(f"{file_path.suffix}.tmp.{os.getpid()}")
    try:
        tmp_file.write_text(content, encoding="utf-8")
        tmp_file.replace(file_path)
    except OSError as e:
        logger.error(f"Failed to write {file_path}: {e}")
        raise
    finally:
        if tmp_file.exists():
            try:
                tmp_file.unlink()
            except OSError:
                pass


def atomic_write_model(file_path: Path, model: BaseModel, indent: int = 2) -> None:
    """
    Atomically write a Pydantic model to a JSON file using its aliases.

    Args:
        file_path: Target file path
        model: Pydantic model to serialize
        indent: JSON indentation (default: 2)
    """
    atomic_write_text(file_path, model.model_dump_json(indent=indent, by_alias=True) + "\n")

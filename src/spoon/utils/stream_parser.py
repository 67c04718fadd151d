"""Utilities for parsing JSONL (JSON Lines) streams."""

import json
from typing import TypeVar
import logging

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)


def parse_jsonl_to_models(
    content: str,
    model_class: type[T],
    *,
    strict: bool = False
) -> list[T]:
    """
    Parse JSONL content into list of Pydantic models.

    Args:
        content: JSONL content (one JSON object per line)
        model_class: Pydantic model class to parse into
        strict: If True, raise on parse errors; if False, skip invalid lines

    Returns:
        List of successfully parsed model instances

    Raises:
        ValidationError: If strict=True and a line fails to parse
    """
    models = []
    for line in content.strip().split('\n'):
        if not line.strip():
            continue

        try:
            models.append(model_class.model_validate(json.loads(line)))
        except (json.JSONDecodeError, ValidationError) as e:
            if strict:
                raise
            logger.debug(f"Skipping malformed JSONL line: {e}")

    return models


def model_to_jsonl_line(model: BaseModel) -> str:
    """Serialize a model as one compact JSONL line (with trailing newline)."""
    return model.model_dump_json(by_alias=True) + "\n"

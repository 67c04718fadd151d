"""Validation utilities for repository names."""

import re

_SEGMENT = re.compile(r'^[A-Za-z0-9_.-]+$')


def validate_owner_repo(owner_repo: str) -> str:
    """
    Validate repository name format (owner/repo).

    Case is preserved. Both segments become directory names under the cache
    base directory, so anything that could escape it is rejected.

    Args:
        owner_repo: Repository name in owner/repo format

    Returns:
        Validated repository name

    Raises:
        ValueError: If repository name format is invalid
    """
    if not owner_repo:
        raise ValueError("Repository name cannot be empty")

    # Must contain exactly one slash
    if owner_repo.count('/') != 1:
        raise ValueError(
            f"Repository must be in format 'owner/repo': {owner_repo}"
        )

    for segment in owner_repo.split('/'):
        if not _SEGMENT.match(segment):
            raise ValueError(
                f"Invalid repository format: {owner_repo}. Must be 'owner/repo'"
            )
        # Prevent path traversal
        if segment in ('.', '..'):
            raise ValueError(f"Invalid repository name: {owner_repo}")

    return owner_repo

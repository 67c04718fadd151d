"""Repository resolution, branch selection and checkout lifecycle."""

from .branch_selector import BranchListing, BranchSelector
from .git_client import GitClient
from .launcher import Launcher
from .lifecycle import EnsureResult, RepoLifecycleManager, RepoState, RepoStatus
from .resolver import ReferenceResolver, RepoRef, parse_reference

__all__ = [
    "BranchListing",
    "BranchSelector",
    "EnsureResult",
    "GitClient",
    "Launcher",
    "ReferenceResolver",
    "RepoLifecycleManager",
    "RepoRef",
    "RepoState",
    "RepoStatus",
    "parse_reference",
]

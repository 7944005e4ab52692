"""Git interface layer — produces patch text for the parser."""

from gitpatch.git.adapter import (
    GitError,
    get_range_diff,
    get_repo_root,
    get_staged_diff,
)

__all__ = [
    "GitError",
    "get_range_diff",
    "get_repo_root",
    "get_staged_diff",
]

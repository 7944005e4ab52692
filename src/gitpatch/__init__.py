"""gitpatch — parse unified diffs and git patches into structured records."""

__version__ = "0.1.0"

from gitpatch.patch import PatchDocument, PatchError, PatchParser, parse_patch

__all__ = [
    "PatchDocument",
    "PatchError",
    "PatchParser",
    "__version__",
    "parse_patch",
]

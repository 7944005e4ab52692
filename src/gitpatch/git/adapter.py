"""Git subprocess wrapper — staged and commit-range patches as bytes."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

# Flags that make git emit everything the parser understands: full object
# ids, binary payloads and no colour escapes.
_PATCH_FLAGS = ["--binary", "--full-index", "--no-color", "--no-ext-diff"]


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


def _run_git(args: list[str], cwd: Path, timeout: int = 30) -> bytes:
    """Run a git command and return raw stdout. Raises GitError on failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", "replace").strip()
        raise GitError(f"git error: {stderr or f'exit status {result.returncode}'}")
    return result.stdout


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the current git repository."""
    cwd = cwd or Path.cwd()
    out = _run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    return Path(out.decode("utf-8", "surrogateescape").strip())


def get_staged_diff(repo_root: Path) -> bytes:
    """Return the patch of staged changes (--cached)."""
    return _run_git(["diff", "--cached", *_PATCH_FLAGS], cwd=repo_root)


def get_range_diff(repo_root: Path, base: str, head: str = "HEAD") -> bytes:
    """Return the patch between two commits."""
    return _run_git(["diff", f"{base}..{head}", *_PATCH_FLAGS], cwd=repo_root)

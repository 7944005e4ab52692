"""Shared test fixtures — sample patches, temp git repos."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path

import pytest


@pytest.fixture
def sample_patch_modify() -> str:
    """A single modified file with one hunk."""
    return textwrap.dedent("""\
        diff --git a/file.txt b/file.txt
        index 1234567..89abcde 100644
        --- a/file.txt
        +++ b/file.txt
        @@ -1,3 +1,4 @@
         one
        -two
        +two!
        +three
         four
    """)


@pytest.fixture
def sample_patch_added() -> str:
    """A new file."""
    return textwrap.dedent("""\
        diff --git a/hello.py b/hello.py
        new file mode 100644
        index 0000000..e69de29
        --- /dev/null
        +++ b/hello.py
        @@ -0,0 +1,3 @@
        +def greet(name):
        +    return f"Hello, {name}!"
        +
    """)


@pytest.fixture
def sample_patch_deleted() -> str:
    """A deleted file."""
    return textwrap.dedent("""\
        diff --git a/old.txt b/old.txt
        deleted file mode 100644
        index e69de29..0000000
        --- a/old.txt
        +++ /dev/null
        @@ -1,2 +0,0 @@
        -goodbye
        -world
    """)


@pytest.fixture
def sample_patch_rename() -> str:
    """A renamed file with a content change."""
    return textwrap.dedent("""\
        diff --git a/old_name.py b/new_name.py
        similarity index 97%
        rename from old_name.py
        rename to new_name.py
        index abc1234..def5678 100644
        --- a/old_name.py
        +++ b/new_name.py
        @@ -1,0 +2,1 @@
        +# New line added after rename
    """)


@pytest.fixture
def sample_patch_mode_only() -> str:
    """Only a file mode change."""
    return textwrap.dedent("""\
        diff --git a/script.sh b/script.sh
        old mode 100644
        new mode 100755
    """)


@pytest.fixture
def sample_patch_binary_nodata() -> str:
    """A binary file without payload."""
    return textwrap.dedent("""\
        diff --git a/image.png b/image.png
        new file mode 100644
        index 0000000..abc1234
        Binary files /dev/null and b/image.png differ
    """)


@pytest.fixture
def sample_patch_no_newline() -> str:
    """An addition followed by the 'No newline at end of file' marker."""
    return textwrap.dedent("""\
        diff --git a/data.txt b/data.txt
        index 1111111..2222222 100644
        --- a/data.txt
        +++ b/data.txt
        @@ -1 +1 @@
        -old line
        +final line without newline
        \\ No newline at end of file
    """)


@pytest.fixture
def sample_patch_plain() -> str:
    """A plain ``diff -u`` patch with timestamps."""
    return (
        "--- old/notes.txt\t2024-01-01 10:00:00.000000000 +0000\n"
        "+++ new/notes.txt\t2024-01-02 10:00:00.000000000 +0000\n"
        "@@ -1,2 +1,2 @@\n"
        " keep\n"
        "-drop\n"
        "+add\n"
    )


@pytest.fixture
def sample_patch_multi(sample_patch_modify, sample_patch_added, sample_patch_deleted) -> str:
    """Three files in one patch, wrapped in format-patch mail text."""
    return (
        "From 0123456789abcdef0123456789abcdef01234567 Mon Sep 17 00:00:00 2001\n"
        "From: Dev <dev@example.com>\n"
        "Subject: [PATCH] Update files\n"
        "\n"
        "---\n"
        " file.txt  | 3 ++-\n"
        " hello.py  | 3 +++\n"
        " old.txt   | 2 --\n"
        "\n"
        + sample_patch_modify
        + sample_patch_added
        + sample_patch_deleted
        + "-- \n"
        "2.43.0\n"
    )


@pytest.fixture
def patch_file(tmp_path: Path, sample_patch_modify: str) -> Path:
    """The modify patch written to disk."""
    path = tmp_path / "change.patch"
    path.write_text(sample_patch_modify)
    return path


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository for integration tests."""
    subprocess.run(["git", "init", str(tmp_path)], capture_output=True, check=True)
    subprocess.run(
        ["git", "config", "user.email", "test@test.com"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    subprocess.run(
        ["git", "config", "user.name", "Test"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    # Initial commit
    readme = tmp_path / "README.md"
    readme.write_text("# Test\n")
    subprocess.run(["git", "add", "."], cwd=tmp_path, capture_output=True, check=True)
    subprocess.run(
        ["git", "commit", "-m", "init"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    return tmp_path

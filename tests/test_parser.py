"""Tests for the patch assembler — whole documents in, file deltas out."""

import pytest

from gitpatch import parse_patch
from gitpatch.patch import (
    BinaryKind,
    DeltaStatus,
    DuplicatePathError,
    HeaderError,
    HunkError,
    HunkHeaderError,
    HunkLineCountError,
    LineCountOverflowError,
    LineOrigin,
    NoPatchFoundError,
    PatchError,
    PatchParser,
    PathMismatchError,
)
from gitpatch.patch.binary import encode_binary_block


def _declared_vs_counted(hunk):
    old = sum(1 for line in hunk.lines if line.old_lineno >= 0)
    new = sum(1 for line in hunk.lines if line.new_lineno >= 0)
    return (hunk.old_lines, hunk.new_lines), (old, new)


class TestBasicParsing:
    def test_modified_file(self, sample_patch_modify):
        doc = parse_patch(sample_patch_modify)
        assert len(doc) == 1
        delta = doc.files[0]
        assert delta.status == DeltaStatus.MODIFIED
        assert delta.old_path == "file.txt"
        assert delta.new_path == "file.txt"
        assert delta.old_mode == delta.new_mode == 0o100644
        assert delta.old_id == "1234567"
        assert delta.new_id == "89abcde"
        assert delta.line_no == 1
        assert delta.is_binary is False
        assert doc.warnings == ()

    def test_hunk_ranges(self, sample_patch_modify):
        hunk = parse_patch(sample_patch_modify).files[0].hunks[0]
        assert (hunk.old_start, hunk.old_lines, hunk.new_start, hunk.new_lines) == (1, 3, 1, 4)
        assert hunk.header == "@@ -1,3 +1,4 @@"

    def test_line_origins_and_numbers(self, sample_patch_modify):
        lines = parse_patch(sample_patch_modify).files[0].hunks[0].lines
        assert [line.origin for line in lines] == [
            LineOrigin.CONTEXT,
            LineOrigin.DELETION,
            LineOrigin.ADDITION,
            LineOrigin.ADDITION,
            LineOrigin.CONTEXT,
        ]
        assert [(line.old_lineno, line.new_lineno) for line in lines] == [
            (1, 1), (2, -1), (-1, 2), (-1, 3), (3, 4),
        ]
        assert lines[1].content == b"two\n"
        assert lines[1].text == "two"

    def test_content_offset_points_into_buffer(self, sample_patch_modify):
        raw = sample_patch_modify.encode()
        for line in parse_patch(raw).files[0].lines:
            assert raw[line.content_offset:line.content_offset + line.content_len] == line.content

    def test_declared_counts_match_consumed(self, sample_patch_multi):
        for delta in parse_patch(sample_patch_multi):
            for hunk in delta.hunks:
                declared, counted = _declared_vs_counted(hunk)
                assert declared == counted

    def test_str_input_accepted(self, sample_patch_modify):
        assert parse_patch(sample_patch_modify) == parse_patch(sample_patch_modify.encode())

    def test_additions_and_deletions(self, sample_patch_modify):
        delta = parse_patch(sample_patch_modify).files[0]
        assert delta.additions == 2
        assert delta.deletions == 1

    def test_multiple_hunks(self):
        doc = parse_patch(
            "diff --git a/f b/f\n"
            "--- a/f\n"
            "+++ b/f\n"
            "@@ -1,2 +1,2 @@\n"
            " a\n"
            "-b\n"
            "+B\n"
            "@@ -10 +10,2 @@ def section():\n"
            " j\n"
            "+k\n"
        )
        hunks = doc.files[0].hunks
        assert len(hunks) == 2
        assert hunks[1].old_start == 10
        assert hunks[1].old_lines == 1
        assert hunks[1].header == "@@ -10 +10,2 @@ def section():"
        assert [line.new_lineno for line in hunks[1].lines] == [10, 11]

    def test_blank_line_is_context(self):
        doc = parse_patch(
            "diff --git a/f b/f\n"
            "--- a/f\n"
            "+++ b/f\n"
            "@@ -1,3 +1,3 @@\n"
            " a\n"
            "\n"
            "-c\n"
            "+C\n"
        )
        blank = doc.files[0].hunks[0].lines[1]
        assert blank.origin == LineOrigin.CONTEXT
        assert blank.content == b"\n"
        assert (blank.old_lineno, blank.new_lineno) == (2, 2)


class TestStatusInference:
    def test_added(self, sample_patch_added):
        delta = parse_patch(sample_patch_added).files[0]
        assert delta.status == DeltaStatus.ADDED
        assert delta.old_path is None
        assert delta.new_path == "hello.py"
        assert delta.old_mode is None
        assert delta.new_mode == 0o100644
        assert delta.old_id is None
        assert all(line.old_lineno == -1 for line in delta.lines)
        assert [line.new_lineno for line in delta.lines] == [1, 2, 3]

    def test_deleted(self, sample_patch_deleted):
        delta = parse_patch(sample_patch_deleted).files[0]
        assert delta.status == DeltaStatus.DELETED
        assert delta.old_path == "old.txt"
        assert delta.new_path is None
        assert delta.new_mode is None
        assert delta.new_id is None
        assert delta.path == "old.txt"

    def test_deleted_mode_only(self):
        doc = parse_patch("diff --git a/gone.txt b/gone.txt\ndeleted file mode 100644\n")
        delta = doc.files[0]
        assert delta.status == DeltaStatus.DELETED
        assert delta.old_path == "gone.txt"
        assert delta.new_path is None
        assert delta.old_mode == 0o100644

    def test_rename_with_hunk(self, sample_patch_rename):
        delta = parse_patch(sample_patch_rename).files[0]
        assert delta.status == DeltaStatus.RENAMED
        assert delta.old_path == "old_name.py"
        assert delta.new_path == "new_name.py"
        assert delta.similarity == 97
        assert next(delta.lines).new_lineno == 2

    def test_rename_without_hunks(self):
        doc = parse_patch(
            "diff --git a/a b/b\n"
            "similarity index 100%\n"
            "rename from a\n"
            "rename to b\n"
        )
        delta = doc.files[0]
        assert delta.status == DeltaStatus.RENAMED
        assert delta.hunks == ()
        assert delta.similarity == 100
        assert (delta.old_path, delta.new_path) == ("a", "b")

    @pytest.mark.parametrize("prefix_len", [0, 2])
    def test_rename_paths_ignore_prefix_len(self, sample_patch_rename, prefix_len):
        delta = parse_patch(sample_patch_rename, prefix_len=prefix_len).files[0]
        assert delta.status == DeltaStatus.RENAMED
        assert (delta.old_path, delta.new_path) == ("old_name.py", "new_name.py")

    def test_rename_without_hunks_prefix_len_zero(self):
        doc = parse_patch(
            "diff --git a/a b/b\n"
            "similarity index 100%\n"
            "rename from a\n"
            "rename to b\n",
            prefix_len=0,
        )
        assert (doc.files[0].old_path, doc.files[0].new_path) == ("a", "b")

    def test_copy(self):
        doc = parse_patch(
            "diff --git a/src.c b/dst.c\n"
            "similarity index 90%\n"
            "copy from src.c\n"
            "copy to dst.c\n"
        )
        delta = doc.files[0]
        assert delta.status == DeltaStatus.COPIED
        assert delta.similarity == 90

    def test_dissimilarity(self):
        doc = parse_patch(
            "diff --git a/a b/b\n"
            "dissimilarity index 30%\n"
            "rename from a\n"
            "rename to b\n"
        )
        assert doc.files[0].similarity == 70

    def test_mode_change(self, sample_patch_mode_only):
        delta = parse_patch(sample_patch_mode_only).files[0]
        assert delta.status == DeltaStatus.MODIFIED
        assert delta.old_mode == 0o100644
        assert delta.new_mode == 0o100755
        assert delta.hunks == ()
        assert delta.is_binary is False

    def test_typechange(self):
        doc = parse_patch(
            "diff --git a/link b/link\n"
            "old mode 100644\n"
            "new mode 120000\n"
        )
        assert doc.files[0].status == DeltaStatus.TYPECHANGE

    def test_equal_mode_change_rejected(self):
        with pytest.raises(HeaderError, match="patch contains no changes"):
            parse_patch("diff --git a/f b/f\nold mode 100644\nnew mode 100644\n")

    def test_header_only_section_is_binary(self):
        doc = parse_patch("diff --git a/f.bin b/f.bin\nindex 1234567..89abcde 100644\n")
        assert doc.files[0].is_binary is True


class TestNoNewline:
    def test_add_eofnl(self, sample_patch_no_newline):
        lines = parse_patch(sample_patch_no_newline).files[0].hunks[0].lines
        last = lines[-1]
        assert last.origin == LineOrigin.ADD_EOFNL
        assert last.old_lineno == -1
        assert last.new_lineno == -1
        assert last.content.startswith(b"\\")

    def test_del_eofnl(self):
        doc = parse_patch(
            "diff --git a/f b/f\n"
            "--- a/f\n"
            "+++ b/f\n"
            "@@ -1 +1 @@\n"
            "+new\n"
            "-old\n"
            "\\ No newline at end of file\n"
        )
        assert doc.files[0].hunks[0].lines[-1].origin == LineOrigin.DEL_EOFNL

    def test_context_eofnl(self):
        doc = parse_patch(
            "diff --git a/f b/f\n"
            "--- a/f\n"
            "+++ b/f\n"
            "@@ -1,2 +1,2 @@\n"
            "-a\n"
            "+A\n"
            " end\n"
            "\\ No newline at end of file\n"
        )
        assert doc.files[0].hunks[0].lines[-1].origin == LineOrigin.CONTEXT_EOFNL

    def test_marker_text_not_checked(self):
        doc = parse_patch(
            "diff --git a/f b/f\n"
            "--- a/f\n"
            "+++ b/f\n"
            "@@ -1 +1 @@\n"
            "-a\n"
            "+b\n"
            "\\ Kein Zeilenumbruch am Dateiende.\n"
        )
        assert doc.files[0].hunks[0].lines[-1].origin == LineOrigin.ADD_EOFNL

    def test_missing_final_newline_warns(self, sample_patch_modify):
        doc = parse_patch(sample_patch_modify.rstrip("\n"))
        assert len(doc.warnings) == 1
        assert doc.warnings[0].message == "last line has no trailing newline"
        assert doc.warnings[0].line_no == 10
        assert doc.files[0].hunks[0].lines[-1].content == b"four"


class TestFormats:
    def test_plain_unified_diff(self, sample_patch_plain):
        delta = parse_patch(sample_patch_plain).files[0]
        assert delta.old_path == "notes.txt"
        assert delta.new_path == "notes.txt"
        assert delta.additions == 1
        assert delta.deletions == 1

    def test_mail_wrapped_multi_file(self, sample_patch_multi):
        doc = parse_patch(sample_patch_multi)
        assert [d.status for d in doc] == [
            DeltaStatus.MODIFIED, DeltaStatus.ADDED, DeltaStatus.DELETED,
        ]
        assert [d.line_no for d in doc] == [10, 20, 29]

    def test_quoted_paths(self):
        doc = parse_patch(
            b'diff --git "a/caf\\303\\251 menu.txt" "b/caf\\303\\251 menu.txt"\n'
            b'--- "a/caf\\303\\251 menu.txt"\n'
            b'+++ "b/caf\\303\\251 menu.txt"\n'
            b"@@ -1 +1 @@\n"
            b"-x\n"
            b"+y\n"
        )
        assert doc.files[0].new_path == "café menu.txt"

    def test_unquoted_path_with_spaces(self):
        doc = parse_patch(
            "diff --git a/my file.txt b/my file.txt\n"
            "new file mode 100644\n"
            "index 0000000..1234567\n"
            "--- /dev/null\n"
            "+++ b/my file.txt\n"
            "@@ -0,0 +1 @@\n"
            "+x\n"
        )
        assert doc.files[0].new_path == "my file.txt"

    def test_mode_only_section_before_plain_diff(self, sample_patch_mode_only):
        doc = parse_patch(
            sample_patch_mode_only
            + "--- old/notes.txt\n"
            "+++ new/notes.txt\n"
            "@@ -1 +1 @@\n"
            "-a\n"
            "+b\n"
        )
        assert len(doc) == 2
        mode_change, plain = doc.files
        assert mode_change.path == "script.sh"
        assert mode_change.hunks == ()
        assert mode_change.new_mode == 0o100755
        assert plain.old_path == plain.new_path == "notes.txt"
        assert plain.line_no == 4
        assert len(plain.hunks) == 1

    def test_prefix_len_zero(self, sample_patch_modify):
        delta = parse_patch(sample_patch_modify, prefix_len=0).files[0]
        assert delta.old_path == "a/file.txt"
        assert delta.new_path == "b/file.txt"

    def test_prefix_len_too_long(self, sample_patch_modify):
        with pytest.raises(HeaderError, match="does not contain 2 path components"):
            parse_patch(sample_patch_modify, prefix_len=2)

    def test_negative_prefix_len(self):
        with pytest.raises(ValueError):
            PatchParser(b"", prefix_len=-1)

    def test_combined_diff(self):
        doc = parse_patch(
            "diff --cc file.txt\n"
            "index 1111111,2222222..3333333\n"
            "--- a/file.txt\n"
            "+++ b/file.txt\n"
            "@@@ -1,2 -1,2 +1,2 @@@\n"
            "  shared\n"
            "- ours\n"
            " -theirs\n"
            "++merged\n"
        )
        delta = doc.files[0]
        assert delta.path == "file.txt"
        assert delta.old_id == "1111111"
        assert delta.new_id == "3333333"
        hunk = delta.hunks[0]
        assert hunk.merge_ranges == ((1, 2),)
        assert [line.origin for line in hunk.lines] == [
            LineOrigin.CONTEXT, LineOrigin.DELETION, LineOrigin.DELETION, LineOrigin.ADDITION,
        ]
        assert hunk.lines[3].content == b"merged\n"

    def test_git_binary_patch(self):
        new, old = b"\x89PNG\r\n\x1a\n" + bytes(range(64)), b"old contents"
        text = (
            b"diff --git a/blob.bin b/blob.bin\n"
            b"index 1234567..89abcde 100644\n"
            b"GIT binary patch\n"
            + encode_binary_block(new)
            + b"\n"
            + encode_binary_block(old)
            + b"\n"
        )
        delta = parse_patch(text).files[0]
        assert delta.is_binary is True
        assert delta.new_binary.kind == BinaryKind.LITERAL
        assert delta.new_binary.data == new
        assert delta.old_binary.data == old
        assert delta.hunks == ()

    def test_binary_short_form(self, sample_patch_binary_nodata):
        delta = parse_patch(sample_patch_binary_nodata).files[0]
        assert delta.status == DeltaStatus.ADDED
        assert delta.is_binary is True
        assert delta.new_binary is None

    def test_binary_short_form_path_mismatch(self):
        with pytest.raises(PathMismatchError, match="corrupt binary data without paths"):
            parse_patch(
                "diff --git a/x.bin b/z.bin\n"
                "Binary files a/x.bin and b/y.bin differ\n"
            )

    def test_iter_files_is_lazy(self, sample_patch_multi):
        files = PatchParser(sample_patch_multi).iter_files()
        assert next(files).path == "file.txt"
        assert next(files).path == "hello.py"


class TestErrors:
    def test_empty_input(self):
        with pytest.raises(NoPatchFoundError, match="no patch found"):
            parse_patch(b"")

    def test_whitespace_input(self):
        with pytest.raises(NoPatchFoundError):
            parse_patch("  \n\n\t\n")

    def test_prose_only(self):
        with pytest.raises(NoPatchFoundError):
            parse_patch("Just some notes.\nNothing to see here.\n")

    def test_duplicate_old_path(self):
        with pytest.raises(DuplicatePathError) as exc_info:
            parse_patch(
                "diff --git a/file.txt b/file.txt\n"
                "--- a/file.txt\n"
                "--- a/file.txt\n"
                "+++ b/file.txt\n"
            )
        assert exc_info.value.line_no == 3
        assert exc_info.value.side == "old"
        assert str(exc_info.value) == "patch contains duplicate old path at line 3"

    def test_duplicate_new_path(self):
        with pytest.raises(DuplicatePathError, match="duplicate new path at line 4"):
            parse_patch(
                "diff --git a/f b/f\n"
                "--- a/f\n"
                "+++ b/f\n"
                "+++ b/f\n"
            )

    def test_line_count_overflow(self):
        with pytest.raises(LineCountOverflowError, match="unrepresentable line count"):
            parse_patch(
                "diff --git a/f b/f\n"
                "--- a/f\n"
                "+++ b/f\n"
                "@@ -9223372036854775807,1 +1,1 @@\n"
                "-a\n"
                "+b\n"
            )

    def test_out_of_range_header_number(self):
        with pytest.raises(HunkHeaderError, match="invalid patch hunk header"):
            parse_patch(
                "diff --git a/f b/f\n"
                "--- a/f\n"
                "+++ b/f\n"
                "@@ -1,9223372036854775808 +1 @@\n"
                "-a\n"
            )

    def test_overlong_header_number(self):
        with pytest.raises(HunkHeaderError, match="invalid patch hunk header at line 4"):
            parse_patch(
                "diff --git a/f b/f\n"
                "--- a/f\n"
                "+++ b/f\n"
                "@@ -" + "1" * 5000 + ",1 +1 @@\n"
                "-a\n"
            )

    def test_overlong_header_number_outside_patch(self):
        with pytest.raises(NoPatchFoundError):
            parse_patch("@@ -" + "1" * 5000 + ",1 +1 @@\n-a\n")

    def test_hunk_too_short(self):
        with pytest.raises(HunkLineCountError) as exc_info:
            parse_patch(
                "diff --git a/f b/f\n"
                "--- a/f\n"
                "+++ b/f\n"
                "@@ -1,2 +1,2 @@\n"
                "-a\n"
                "+b\n"
            )
        assert "expected 2 old lines and 2 new lines" in str(exc_info.value)

    def test_hunk_too_long(self):
        with pytest.raises(HunkLineCountError):
            parse_patch(
                "diff --git a/f b/f\n"
                "--- a/f\n"
                "+++ b/f\n"
                "@@ -1 +1,2 @@\n"
                "-a\n"
                "-b\n"
                "+c\n"
            )

    def test_invalid_hunk_line(self):
        with pytest.raises(HunkError, match="invalid hunk at line 5"):
            parse_patch(
                "diff --git a/f b/f\n"
                "--- a/f\n"
                "+++ b/f\n"
                "@@ -1 +1 @@\n"
                "*a\n"
            )

    def test_hunk_outside_patch(self):
        with pytest.raises(HunkHeaderError, match="outside patch"):
            parse_patch("@@ -1 +1 @@\n-a\n+b\n")

    def test_mismatched_paths(self):
        with pytest.raises(PathMismatchError, match="mismatched old path names"):
            parse_patch(
                "diff --git a/x b/x\n"
                "--- a/y\n"
                "+++ b/x\n"
                "@@ -1 +1 @@\n"
                "-a\n"
                "+b\n"
            )

    def test_new_file_with_real_old_path(self):
        with pytest.raises(PathMismatchError, match="expected old path of '/dev/null'"):
            parse_patch(
                "diff --git a/f b/f\n"
                "new file mode 100644\n"
                "--- a/f\n"
                "+++ b/f\n"
                "@@ -0,0 +1 @@\n"
                "+x\n"
            )

    def test_trailing_data_after_field(self):
        with pytest.raises(HeaderError, match="trailing data at line 2"):
            parse_patch("diff --git a/f b/f\nindex 1234567..89abcde 100644 junk\n")

    def test_invalid_similarity(self):
        with pytest.raises(HeaderError, match="invalid similarity percentage"):
            parse_patch("diff --git a/a b/b\nsimilarity index 150%\nrename from a\nrename to b\n")

    def test_all_errors_share_base(self):
        with pytest.raises(PatchError):
            parse_patch("diff --git a/f b/f\nold mode banana\n")

"""JSON reporter for scripts and CI pipelines."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from gitpatch.patch.models import BinaryPayload, FileDelta, Hunk, PatchDocument


def _mode(mode: Optional[int]) -> Optional[str]:
    return None if mode is None else f"{mode:06o}"


def _binary(payload: Optional[BinaryPayload]) -> Optional[Dict[str, Any]]:
    if payload is None:
        return None
    return {"kind": payload.kind.value, "length": payload.length}


def _hunk(hunk: Hunk, *, include_lines: bool) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "header": hunk.header,
        "old_start": hunk.old_start,
        "old_lines": hunk.old_lines,
        "new_start": hunk.new_start,
        "new_lines": hunk.new_lines,
    }
    if hunk.merge_ranges:
        data["merge_ranges"] = [list(r) for r in hunk.merge_ranges]
    if include_lines:
        data["lines"] = [
            {
                "origin": line.origin.name.lower(),
                "old_lineno": line.old_lineno,
                "new_lineno": line.new_lineno,
                "content": line.content.decode("utf-8", "replace"),
                "offset": line.content_offset,
            }
            for line in hunk.lines
        ]
    return data


def _file(delta: FileDelta, *, include_lines: bool) -> Dict[str, Any]:
    return {
        "status": delta.status.value,
        "old_path": delta.old_path,
        "new_path": delta.new_path,
        "old_mode": _mode(delta.old_mode),
        "new_mode": _mode(delta.new_mode),
        "old_id": delta.old_id,
        "new_id": delta.new_id,
        "similarity": delta.similarity,
        "binary": delta.is_binary,
        "additions": delta.additions,
        "deletions": delta.deletions,
        "line": delta.line_no,
        **({"old_binary": _binary(delta.old_binary)} if delta.old_binary else {}),
        **({"new_binary": _binary(delta.new_binary)} if delta.new_binary else {}),
        "hunks": [_hunk(h, include_lines=include_lines) for h in delta.hunks],
    }


def to_dict(document: PatchDocument, *, include_lines: bool = True) -> Dict[str, Any]:
    """Convert a PatchDocument to a JSON-serialisable dict."""
    files: List[Dict[str, Any]] = [_file(d, include_lines=include_lines) for d in document]
    return {
        "version": "1.0",
        "total_files": len(document),
        "additions": sum(d.additions for d in document),
        "deletions": sum(d.deletions for d in document),
        "files": files,
        "warnings": [{"message": w.message, "line": w.line_no} for w in document.warnings],
    }


def render(document: PatchDocument, *, include_lines: bool = True) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(document, include_lines=include_lines), indent=2)

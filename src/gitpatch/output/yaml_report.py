"""YAML reporter — same structure as the JSON report."""

from __future__ import annotations

import yaml

from gitpatch.output.json_report import to_dict
from gitpatch.patch.models import PatchDocument


def render(document: PatchDocument, *, include_lines: bool = True) -> str:
    """Return the document as a YAML string."""
    return yaml.safe_dump(
        to_dict(document, include_lines=include_lines),
        sort_keys=False,
        allow_unicode=True,
    )

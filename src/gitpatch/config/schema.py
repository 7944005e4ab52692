"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

OutputFormat = Literal["terminal", "json", "yaml"]

OUTPUT_FORMATS: tuple[str, ...] = ("terminal", "json", "yaml")


@dataclass
class ParseConfig:
    prefix_len: int = 1  # leading path components stripped from a/ b/ paths
    fail_on_warnings: bool = False


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_lines: bool = False
    show_summary: bool = True


@dataclass
class GitPatchConfig:
    version: str = "1.0"
    parse: ParseConfig = field(default_factory=ParseConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

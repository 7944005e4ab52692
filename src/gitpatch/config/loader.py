"""Load and merge configuration from .gitpatch.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from gitpatch.config.schema import OUTPUT_FORMATS, GitPatchConfig, OutputConfig, ParseConfig

CONFIG_FILENAME = ".gitpatch.toml"

_TRUE = ("1", "true", "yes")
_FALSE = ("0", "false", "no")


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    return cls(**{k: v for k, v in raw.items() if k in valid_fields})


def _validate(cfg: GitPatchConfig) -> None:
    prefix_len = cfg.parse.prefix_len
    if isinstance(prefix_len, bool) or not isinstance(prefix_len, int) or prefix_len < 0:
        raise ConfigError("parse.prefix_len must be a non-negative integer")
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(f"output.format must be one of: {', '.join(OUTPUT_FORMATS)}")


def _merge_env_overrides(cfg: GitPatchConfig) -> None:
    """Apply GITPATCH_* environment variable overrides; invalid values are ignored."""
    if val := os.environ.get("GITPATCH_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("GITPATCH_PREFIX_LEN"):
        try:
            prefix_len = int(val)
        except ValueError:
            pass
        else:
            if prefix_len >= 0:
                cfg.parse.prefix_len = prefix_len
    if val := os.environ.get("GITPATCH_FAIL_ON_WARNINGS"):
        if val.lower() in _TRUE:
            cfg.parse.fail_on_warnings = True
        elif val.lower() in _FALSE:
            cfg.parse.fail_on_warnings = False


def load_config(root: Path, config_override: Optional[str] = None) -> GitPatchConfig:
    """Load, validate, and return a GitPatchConfig."""
    config_path = find_config_file(root, config_override)

    if config_path is None:
        cfg = GitPatchConfig()
    else:
        raw = _parse_toml(config_path)
        try:
            cfg = GitPatchConfig(
                version=str(raw.get("version", "1.0")),
                parse=_build_section(raw, ParseConfig, "parse"),
                output=_build_section(raw, OutputConfig, "output"),
            )
        except TypeError as exc:
            raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc
        _validate(cfg)

    _merge_env_overrides(cfg)
    return cfg

"""Configuration loading, schema, and defaults."""

from gitpatch.config.loader import ConfigError, load_config
from gitpatch.config.schema import GitPatchConfig, OutputFormat

__all__ = [
    "ConfigError",
    "GitPatchConfig",
    "OutputFormat",
    "load_config",
]

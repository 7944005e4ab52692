"""Starter .gitpatch.toml template."""

DEFAULT_TOML = """\
# gitpatch configuration
version = "1.0"

[parse]
prefix_len = 1            # path components stripped from a/ and b/ paths
fail_on_warnings = false  # exit 1 when a patch parses with warnings

[output]
format = "terminal"       # terminal | json | yaml
show_lines = false        # include every hunk line in the report
show_summary = true
"""

"""Output formatting utilities."""

from lotto_core.formatters.console import (
    format_hierarchy_for_console,
    format_rollup_for_console,
    sanitize_for_console,
)

__all__ = ["format_hierarchy_for_console", "format_rollup_for_console", "sanitize_for_console"]

"""Output formatting for analyzed plans."""

from plansense.output.renderers import (
    LocatedWarning,
    OutputFormat,
    build_report,
    collect_warnings,
    count_by_severity,
    format_location,
    max_severity,
    message_lines,
    render,
    render_json,
    render_markdown,
    render_text,
)

__all__ = [
    "LocatedWarning",
    "OutputFormat",
    "build_report",
    "collect_warnings",
    "count_by_severity",
    "format_location",
    "max_severity",
    "message_lines",
    "render",
    "render_json",
    "render_markdown",
    "render_text",
]

"""a11y_scout.report: JSON, HTML, Markdown and CI step-output renderers used by the CLI."""

from a11y_scout.report.html_report import render_html
from a11y_scout.report.json_report import render_json
from a11y_scout.report.markdown_report import format_markdown, render_markdown
from a11y_scout.report.step_output import format_step_output, write_step_output

__all__ = [
    "render_json",
    "render_html",
    "format_markdown",
    "render_markdown",
    "format_step_output",
    "write_step_output",
]

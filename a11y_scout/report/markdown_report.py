"""a11y_scout.report.markdown_report: Markdown report for targeted tests."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from jinja2 import Environment, PackageLoader, StrictUndefined

from a11y_scout.aggregator import TargetedReport

TEMPLATE_NAME = "test_report.md"


def format_markdown(report: TargetedReport, timestamp: Optional[str] = None) -> str:
    """Render a targeted test as Markdown, one section per violating element."""
    env = Environment(
        loader=PackageLoader("a11y_scout", "templates"),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    return env.get_template(TEMPLATE_NAME).render(
        report=report,
        summary=report.summary(),
        ticket=report.ticket,
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(timespec="seconds"),
    )


def render_markdown(report: TargetedReport, output_path: Union[Path, str]) -> Path:
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(format_markdown(report), encoding="utf-8")
    return output

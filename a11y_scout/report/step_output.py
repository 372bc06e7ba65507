"""a11y_scout.report.step_output: key=value lines for CI step outputs."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from a11y_scout.aggregator import ScanSummary

STEP_OUTPUT_KEYS = (
    "pages_scanned",
    "total_violations",
    "unique_violations",
    "issues_created",
    "issues_updated",
)


def format_step_output(summary: ScanSummary) -> str:
    values = summary.as_dict()
    return "".join(f"{key}={values[key]}\n" for key in STEP_OUTPUT_KEYS)


def write_step_output(summary: ScanSummary, path: Union[str, Path]) -> Path:
    """Append the summary to a GitHub Actions ``$GITHUB_OUTPUT`` style file."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("a", encoding="utf-8") as f:
        f.write(format_step_output(summary))
    return p

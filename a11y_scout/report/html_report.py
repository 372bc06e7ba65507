"""a11y_scout.report.html_report: HTML report rendering with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import BaseLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape

from a11y_scout.aggregator import ScanReport

TEMPLATE_NAME = "report.html"


def render_html(
    report: ScanReport,
    template_dir: Optional[Union[Path, str]],
    output_path: Union[Path, str],
) -> Path:
    """Render the HTML report and save it at the given path.

    Args:
        report: ScanReport of a finished run.
        template_dir: directory holding ``report.html``; ``None`` uses the packaged template.
        output_path: path of the resulting HTML file.

    Returns:
        Path of the saved HTML file.

    Example:
    ```python
    from a11y_scout.report.html_report import render_html
    html_path = render_html(report, template_dir=None, output_path='reports/a11y.html')
    ```
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    loader: BaseLoader
    if template_dir is None:
        loader = PackageLoader("a11y_scout", "templates")
    else:
        loader = FileSystemLoader(str(Path(template_dir)))
    env = Environment(loader=loader, autoescape=select_autoescape(["html", "xml"]))
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "summary": report.summary,
        "groups": report.groups,
        "pages": report.pages,
        "failed_pages": report.failed_pages,
        "issues": report.results + report.closed,
    }

    html_content = template.render(**context)
    output_path.write_text(html_content, encoding="utf-8")

    return output_path

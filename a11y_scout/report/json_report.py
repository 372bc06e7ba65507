# a11y_scout/report/json_report.py

"""
JSON report generation for a11y-scout.

Serializes a ScanReport or TargetedReport to a file.
"""
from pathlib import Path
from typing import Union

from a11y_scout.aggregator import ScanReport, TargetedReport


def render_json(report: Union[ScanReport, TargetedReport], output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Save ``report`` as JSON at the given path.

    :param report: report of a finished scan or targeted test
    :param output_path: path of the JSON file
    :return: Path of the written file

    Example:
    ```python
    from a11y_scout.report.json_report import render_json
    report_path = render_json(report, 'reports/a11y.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(report.json(pretty=pretty), encoding="utf-8")
    return output

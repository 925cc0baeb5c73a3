import json
from typing import List

from pinelint.models import LintReport


def format_text(reports: List[LintReport]) -> str:
    """`path:line:col - [SEVERITY] CODE - message`, one finding per line."""
    lines = []
    for report in reports:
        for d in report.diagnostics:
            lines.append(f"{report.path}:{d.line}:{d.column} - [{d.severity.value}] {d.code} - {d.message}")
    return "\n".join(lines)


def format_json(reports: List[LintReport]) -> str:
    records = [record for report in reports for record in report.to_records()]
    return json.dumps(records, indent=2)

import json

from pinelint.models import Diagnostic, LintReport
from pinelint.utils.formatting import format_json, format_text


def sample_reports():
    return [
        LintReport(path="a.pine", diagnostics=[
            Diagnostic.error("E_TAB", "Tabs are not allowed; use spaces.", 3, 4),
            Diagnostic.warn("W_NO_CANCEL", "No cancel.", 5),
        ]),
        LintReport(path="b.pine"),
    ]


def test_text_format():
    assert format_text(sample_reports()).splitlines() == [
        "a.pine:3:4 - [ERROR] E_TAB - Tabs are not allowed; use spaces.",
        "a.pine:5:1 - [WARN] W_NO_CANCEL - No cancel.",
    ]


def test_json_format():
    records = json.loads(format_json(sample_reports()))

    assert records[0] == {
        "file": "a.pine",
        "line": 3,
        "column": 4,
        "code": "E_TAB",
        "message": "Tabs are not allowed; use spaces.",
        "severity": "ERROR",
    }
    assert [r["severity"] for r in records] == ["ERROR", "WARN"]


def test_column_clamped_to_one():
    assert Diagnostic.error("E_X", "m", 1, 0).column == 1

"""
aggregator.py — Per-file diagnostic collection and pass/fail.

Line-level findings (delimiter check, per-line and per-statement rules) may be
produced out of line order: the delimiter check runs before the line pass, and
continuation findings are resolved one line late. They are stable-sorted by
line. Whole-file summaries follow them, in the order the file rules ran.
"""

from __future__ import annotations
from typing import Iterable

from pinelint.models import Diagnostic, LintReport, Severity


class DiagnosticAggregator:

    def __init__(self) -> None:
        self._ordered: list[Diagnostic] = []
        self._summary: list[Diagnostic] = []

    def add(self, diagnostics: Iterable[Diagnostic]) -> None:
        self._ordered.extend(diagnostics)

    def add_summary(self, diagnostics: Iterable[Diagnostic]) -> None:
        self._summary.extend(diagnostics)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return sorted(self._ordered, key=lambda d: d.line) + list(self._summary)

    @property
    def failed(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self._ordered + self._summary)

    def report(self, path: str) -> LintReport:
        return LintReport(path=path, diagnostics=self.diagnostics)

"""
pine_lint.py — Deterministic Pine Script linter.

Single forward pass over one file:

  1. file preconditions   (LF-only newlines, trailing newline)
  2. delimiter balance    (once, over every line)
  3. per line             classify → scope tracker → text / line rules
  4. per statement        call-argument rules, flushed when a statement ends
  5. whole file           declaration / ceiling / cancel rules

Usage:
    from pinelint.services.pine_lint import PineLinter

    linter = PineLinter()
    report = linter.lint_file("strategies/es-orb/strategy.pine")
    # → LintReport(path=..., diagnostics=[Diagnostic(...)], passed=bool)
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable

from pinelint.models import Diagnostic, LintConfig, LintReport, RunReport
from pinelint.services.aggregator import DiagnosticAggregator
from pinelint.services.delimiters import check_delimiters
from pinelint.services.line_classifier import ClassifiedLine, LineKind, classify
from pinelint.services.rules import (
    FILE_RULES,
    LINE_RULES,
    STATEMENT_RULES,
    TEXT_RULES,
    FileContext,
    FileTally,
    LineContext,
    StatementContext,
    dangling_diagnostic,
)
from pinelint.services.scope_tracker import ScopeSnapshot, ScopeTracker

logger = logging.getLogger("pinelint.engine")


def split_lines(content: str) -> list[str]:
    """Physical lines without the phantom entry after a final newline; stray CRs dropped."""
    lines = content.split("\n")
    if content.endswith("\n"):
        lines.pop()
    return [ln[:-1] if ln.endswith("\r") else ln for ln in lines]


def _precondition_diagnostics(content: str, lines: list[str]) -> list[Diagnostic]:
    diagnostics = []
    if "\r" in content:
        diagnostics.append(Diagnostic.error("E_NEWLINE", "Use Unix newlines (no CR characters).", 1, 1))
    if not content.endswith("\n"):
        last = len(lines) or 1
        col = len(lines[-1]) + 1 if lines else 1
        diagnostics.append(Diagnostic.error("E_NO_FINAL_NEWLINE", "File must end with a newline.", last, col))
    return diagnostics


class PineLinter:
    """
    Pine Script lint runner.

    Holds only the resolved configuration; every scan builds its own tracker,
    tally and aggregator, so one instance can lint any number of files.
    """

    def __init__(self, config: LintConfig | None = None) -> None:
        self.config = config or LintConfig()

    def lint_text(self, content: str, path: str = "<string>") -> LintReport:
        """Lint source text already in memory."""
        config = self.config
        lines = split_lines(content)
        classified = [classify(i + 1, text) for i, text in enumerate(lines)]

        agg = DiagnosticAggregator()
        agg.add(_precondition_diagnostics(content, lines))
        agg.add(check_delimiters([c.code for c in classified]))

        tracker = ScopeTracker(guard_window=config.entry_guard_window)
        tally = FileTally()
        statement: list[ClassifiedLine] = []
        statement_scope: ScopeSnapshot | None = None

        for line in classified:
            is_first = tally.first_nonblank is None and line.kind != LineKind.BLANK
            tally.observe(line)

            ctx = LineContext(line=line, config=config, is_first_nonblank=is_first)
            for rule in TEXT_RULES:
                agg.add(rule(ctx))

            if not line.is_code:
                continue

            scope, found = tracker.advance(line)
            agg.add(found)

            if scope.continuation and statement:
                statement.append(line)
            else:
                agg.add(self._flush(statement, statement_scope))
                statement, statement_scope = [line], scope

            ctx = LineContext(line=line, config=config, scope=scope, is_first_nonblank=is_first)
            for rule in LINE_RULES:
                agg.add(rule(ctx))

        agg.add(self._flush(statement, statement_scope))

        trailing = tracker.trailing_dangling
        if trailing is not None:
            agg.add([dangling_diagnostic(trailing)])

        file_ctx = FileContext(tally=tally, config=config)
        for rule in FILE_RULES:
            agg.add_summary(rule(file_ctx))

        report = agg.report(path)
        if not agg.failed:
            logger.info(f"[PineLint] {path}: PASSED ({len(report.warnings)} warning(s))")
        else:
            logger.warning(f"[PineLint] {path}: FAILED with {len(report.errors)} error(s)")
        for d in report.diagnostics:
            logger.debug(f"[PineLint] {path}:{d.line}:{d.column} {d.code} {d.message}")
        return report

    def lint_file(self, path: str | Path) -> LintReport:
        """Lint one file. An unreadable file yields a single E_IO diagnostic."""
        try:
            content = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"[PineLint] Unable to read {path}: {e}")
            return LintReport(
                path=str(path),
                diagnostics=[Diagnostic.error("E_IO", f"Unable to read file: {e}", 1, 1)],
            )
        return self.lint_text(content, str(path))

    def lint_paths(self, paths: Iterable[str | Path]) -> RunReport:
        """Lint every path in order. The run fails if any file fails."""
        reports = [self.lint_file(p) for p in paths]
        run = RunReport(reports=reports)
        logger.info(
            f"[PineLint] {len(reports)} file(s): {run.total_errors} error(s), "
            f"{run.total_warnings} warning(s)"
        )
        return run

    def _flush(
        self,
        statement: list[ClassifiedLine],
        scope: ScopeSnapshot | None,
    ) -> list[Diagnostic]:
        if not statement or scope is None:
            return []
        ctx = StatementContext(lines=tuple(statement), scope=scope, config=self.config)
        diagnostics: list[Diagnostic] = []
        for rule in STATEMENT_RULES:
            diagnostics.extend(rule(ctx))
        return diagnostics


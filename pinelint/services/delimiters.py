"""
delimiters.py — Whole-file delimiter balance check.

Verifies that ( [ { open and ) ] } close in properly nested order across the
entire file, not per line or per block. Runs once, before the line pass, over
the comment-stripped view of every line.

Delimiters inside string literals are treated as real delimiters, so a quoted
"(" still counts. The check is purely lexical.

Usage:
    from pinelint.services.delimiters import check_delimiters

    diagnostics = check_delimiters(["x = (a, [b)]"])
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

from pinelint.models import Diagnostic

logger = logging.getLogger("pinelint.delimiters")

PAIRS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {v: k for k, v in PAIRS.items()}


@dataclass(frozen=True)
class _Opener:
    char: str
    line: int
    col: int


def check_delimiters(code_lines: list[str]) -> list[Diagnostic]:
    """
    Scan comment-stripped lines (index 0 is line 1) and report E_DELIM findings.

    A closer that does not match the innermost opener is reported once. If an
    opener further down the stack matches it (crossed pairs like `(a, [b)]`),
    that opener is consumed and the innermost one stays open; otherwise the
    innermost opener is discarded.
    """
    diagnostics: list[Diagnostic] = []
    stack: list[_Opener] = []

    for idx, code in enumerate(code_lines):
        lineno = idx + 1
        for pos, ch in enumerate(code):
            if ch in PAIRS:
                stack.append(_Opener(ch, lineno, pos + 1))
                continue
            if ch not in CLOSERS:
                continue

            if not stack:
                diagnostics.append(Diagnostic.error(
                    "E_DELIM",
                    f"Unmatched closing delimiter '{ch}'.",
                    lineno, pos + 1,
                ))
                continue

            top = stack[-1]
            if PAIRS[top.char] == ch:
                stack.pop()
                continue

            diagnostics.append(Diagnostic.error(
                "E_DELIM",
                f"Mismatched delimiter: '{top.char}' (line {top.line}) closed by '{ch}'.",
                lineno, pos + 1,
            ))
            crossed = _find_opener(stack, CLOSERS[ch])
            if crossed is not None:
                del stack[crossed]
            else:
                stack.pop()

    if stack:
        unclosed = stack[-1]
        diagnostics.append(Diagnostic.error(
            "E_DELIM",
            f"Unclosed delimiter '{unclosed.char}'.",
            unclosed.line, unclosed.col,
        ))

    logger.debug(f"[Delimiters] {len(diagnostics)} finding(s) over {len(code_lines)} line(s)")
    return diagnostics


def _find_opener(stack: list[_Opener], opener: str) -> int | None:
    """Index of the nearest opener below the top that matches, if any."""
    for i in range(len(stack) - 2, -1, -1):
        if stack[i].char == opener:
            return i
    return None

"""
scope_tracker.py — Indentation-driven scope state machine.

Consumes code lines in order and keeps:
  • a stack of open function / loop frames, keyed by the indentation they
    opened at,
  • the set of persistent (`var` / `varip`) variables declared at indent 0,
  • enough look-behind to resolve rules that depend on the previous statement
    (dangling continuation, block-indent increase, entry gating window).

Indentation is the only scoping signal and is compared by raw character
count. Pathological indentation can fool the tracker; that is an accepted
limitation of a line-oriented checker, not something corrected here.
"""

from __future__ import annotations
import re
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum

from pinelint.models import Diagnostic
from pinelint.services.line_classifier import ClassifiedLine

logger = logging.getLogger("pinelint.scope")

FUNCTION_DEF_RE = re.compile(r"^(?:export\s+)?(?:method\s+)?[A-Za-z_]\w*\s*\(.*\)\s*=>")
LOOP_RE = re.compile(r"^(?:for|while)\b")
VAR_DECL_RE = re.compile(
    r"^(?:var|varip)\s+(?:[A-Za-z_][\w.]*(?:<[^>]*>)?(?:\[\])?\s+)?([A-Za-z_]\w*)\s*=(?!=)"
)
BLOCK_KEYWORD_RE = re.compile(r"^(?:if|else|for|while|switch|type)\b")
BLOCK_ASSIGN_RE = re.compile(r"^[^=]*?(?::=|=)\s*(?:if|switch|for|while)\b")
ARROW_END_RE = re.compile(r"=>\s*$")
CONTINUATION_END_RE = re.compile(r"(?:[,+\-*/%?:<>=(\[{]|\b(?:and|or|not))\s*$")

_OPENERS = "([{"
_CLOSERS = ")]}"


class FrameKind(str, Enum):
    FUNCTION = "function"
    LOOP = "loop"


@dataclass(frozen=True)
class ScopeFrame:
    kind: FrameKind
    indent: int


@dataclass(frozen=True)
class ScopeSnapshot:
    """Read-only view of tracker state for one code line."""
    indent: int
    in_function: bool
    in_block: bool
    globals: frozenset[str]
    continuation: bool = False
    block_opener: ClassifiedLine | None = None
    dangling: ClassifiedLine | None = None
    recent: tuple[str, ...] = ()


def ends_with_continuation(code: str) -> bool:
    """True when a statement visibly continues on the next line."""
    stripped = code.rstrip()
    if not stripped or ARROW_END_RE.search(stripped):
        return False
    return bool(CONTINUATION_END_RE.search(stripped))


def opens_block(code: str) -> bool:
    stripped = code.strip()
    return bool(
        BLOCK_KEYWORD_RE.match(stripped)
        or ARROW_END_RE.search(stripped)
        or BLOCK_ASSIGN_RE.match(stripped)
    )


class ScopeTracker:
    """One instance per file scan. Never shared between files."""

    def __init__(self, guard_window: int = 3) -> None:
        self._frames: list[ScopeFrame] = []
        self._globals: set[str] = set()
        self._pending_block: ClassifiedLine | None = None
        self._last_code: ClassifiedLine | None = None
        self._paren_depth = 0
        self._statement_indent = 0
        self._recent: deque[str] = deque(maxlen=guard_window)

    @property
    def globals(self) -> frozenset[str]:
        return frozenset(self._globals)

    @property
    def frames(self) -> tuple[ScopeFrame, ...]:
        return tuple(self._frames)

    @property
    def trailing_dangling(self) -> ClassifiedLine | None:
        """Last code line of the file, if it still expects a continuation."""
        last = self._last_code
        if last is not None and ends_with_continuation(last.code):
            return last
        return None

    def advance(self, line: ClassifiedLine) -> tuple[ScopeSnapshot, list[Diagnostic]]:
        """Feed the next code line. Returns the snapshot rules see, plus tracker findings."""
        diagnostics: list[Diagnostic] = []
        code = line.stripped

        prev = self._last_code
        dangling = prev if prev is not None and ends_with_continuation(prev.code) else None
        # An open bracket only carries over while lines stay deeper than the
        # statement start or the previous line dangles; otherwise it was never closed
        if self._paren_depth > 0 and dangling is None and line.indent <= self._statement_indent:
            logger.debug(f"[Scope] dropped {self._paren_depth} unclosed bracket(s) before line {line.number}")
            self._paren_depth = 0
        continuation = self._paren_depth > 0 or (
            dangling is not None and line.indent > dangling.indent
        )

        block_opener = None
        if not continuation:
            self._statement_indent = line.indent
            block_opener = self._pending_block
            self._pending_block = None
            self._pop_frames(line.indent)

            if FUNCTION_DEF_RE.match(code):
                self._frames.append(ScopeFrame(FrameKind.FUNCTION, line.indent))

            if LOOP_RE.match(code):
                if any(f.kind == FrameKind.LOOP for f in self._frames):
                    diagnostics.append(Diagnostic.warn(
                        "W_NESTED_LOOP",
                        "Nested loops detected; consider simplifying.",
                        line.number, line.indent + 1,
                    ))
                self._frames.append(ScopeFrame(FrameKind.LOOP, line.indent))

            if line.indent == 0:
                m = VAR_DECL_RE.match(code)
                if m:
                    self._globals.add(m.group(1))

            if opens_block(code):
                self._pending_block = line

        snapshot = ScopeSnapshot(
            indent=line.indent,
            in_function=any(f.kind == FrameKind.FUNCTION for f in self._frames),
            in_block=line.indent > 0,
            globals=frozenset(self._globals),
            continuation=continuation,
            block_opener=block_opener,
            dangling=dangling,
            recent=tuple(self._recent),
        )

        self._paren_depth = max(0, self._paren_depth + _net_depth(line.code))
        self._recent.append(code)
        self._last_code = line
        return snapshot, diagnostics

    def _pop_frames(self, indent: int) -> None:
        while self._frames and self._frames[-1].indent >= indent:
            frame = self._frames.pop()
            logger.debug(f"[Scope] closed {frame.kind.value} frame opened at indent {frame.indent}")


def _net_depth(code: str) -> int:
    return sum(1 for ch in code if ch in _OPENERS) - sum(1 for ch in code if ch in _CLOSERS)

"""
line_classifier.py — Per-line classification.

Splits each physical line into its code view (everything before the first
`//`), measures indentation and tags it blank / comment / code. Tab and
trailing-whitespace hygiene is checked here on every line, including the
blank and comment lines the rest of the pipeline skips.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from enum import Enum

from pinelint.models import Diagnostic

COMMENT_MARKER = "//"

_LEADING_WS = re.compile(r"\s*")
_TRAILING_WS = re.compile(r"\s+$")


class LineKind(str, Enum):
    BLANK = "blank"
    COMMENT = "comment"
    CODE = "code"


@dataclass(frozen=True)
class ClassifiedLine:
    number: int
    text: str
    code: str
    indent: int
    kind: LineKind

    @property
    def is_code(self) -> bool:
        return self.kind == LineKind.CODE

    @property
    def stripped(self) -> str:
        return self.code.strip()


def strip_comment(text: str) -> str:
    return text.split(COMMENT_MARKER, 1)[0]


def classify(number: int, text: str) -> ClassifiedLine:
    code = strip_comment(text)
    indent = _LEADING_WS.match(text).end()
    if not text.strip():
        kind = LineKind.BLANK
    elif not code.strip():
        kind = LineKind.COMMENT
    else:
        kind = LineKind.CODE
    return ClassifiedLine(number=number, text=text, code=code, indent=indent, kind=kind)


def check_tabs(line: ClassifiedLine) -> list[Diagnostic]:
    pos = line.text.find("\t")
    if pos < 0:
        return []
    return [Diagnostic.error("E_TAB", "Tabs are not allowed; use spaces.", line.number, pos + 1)]


def check_trailing_whitespace(line: ClassifiedLine) -> list[Diagnostic]:
    if line.kind == LineKind.BLANK:
        return []
    m = _TRAILING_WS.search(line.text)
    if not m:
        return []
    return [Diagnostic.error("E_TRAILING_WS", "Trailing whitespace detected.", line.number, m.start() + 1)]

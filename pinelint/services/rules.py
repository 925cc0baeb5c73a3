"""
rules.py — Pine Script lint rules.

Four fixed, ordered rule sets:

  TEXT_RULES       run on every physical line (blank and comment lines too)
  LINE_RULES       run on every code line, with the scope snapshot
  STATEMENT_RULES  run once per logical statement (a line plus its
                   continuation lines), for checks that read call arguments
  FILE_RULES       run once after the pass, over the accumulated FileTally

Every rule is a plain function of its context returning a list of
Diagnostics. Rules never depend on another rule having fired.
"""

from __future__ import annotations
import re
import logging
from dataclasses import dataclass, field

from pinelint.models import Diagnostic, LintConfig
from pinelint.services.line_classifier import (
    ClassifiedLine,
    LineKind,
    check_tabs,
    check_trailing_whitespace,
)
from pinelint.services.scope_tracker import ScopeSnapshot

logger = logging.getLogger("pinelint.rules")


# ── Patterns ──────────────────────────────────────────────────────────────────

VERSION_LINE_RE = re.compile(r"^//@version=(\d+)$")
DECLARATION_RE = re.compile(r"^(?:strategy|indicator)\s*\(")
INPUT_RE = re.compile(r"(?<![\w.])input(?:\.\w+)?\s*\(")
SECURITY_RE = re.compile(r"(?<![\w.])request\.security(?:_lower_tf)?\s*\(")
ENTRY_RE = re.compile(r"(?<![\w.])strategy\.(?:entry|order)\s*\(")
CANCEL_RE = re.compile(r"(?<![\w.])strategy\.(?:cancel|cancel_all|close|close_all)\s*\(")
PLOT_RE = re.compile(
    r"(?<![\w.])(?:plot|plotshape|plotchar|plotarrow|plotbar|plotcandle|hline|fill|bgcolor|barcolor)\s*\("
)
LOOKAHEAD_ON_RE = re.compile(r"\blookahead\s*=\s*barmerge\.lookahead_on\b")
LOOKAHEAD_ANY_RE = re.compile(r"\blookahead\s*=")
LIMIT_ARG_RE = re.compile(r"\blimit\s*=")
LIMIT_RAW_PRICE_RE = re.compile(r"\blimit\s*=\s*(?:close|open)\s*(?=[,)]|$)")
EVERY_TICK_RE = re.compile(r"\bcalc_on_every_tick\s*=\s*true\b")
REALTIME_RE = re.compile(r"\bbarstate\.isrealtime\b")
GUARD_RE = re.compile(
    r"crossover|crossunder|\bta\.cross\b|(?<![\w.])cross\s*\("
    r"|\bstrategy\.position_size\b|\bstrategy\.opentrades\b"
    r"|\bbarstate\.isconfirmed\b|\bbarstate\.isnew\b"
)
MULTI_STATEMENT_RE = re.compile(r";(?=\s*\S)")
CALL_LIKE_RE = re.compile(r"[\w.]\s*\(")
ASSIGN_TARGET_RE = re.compile(
    r"^(?:(?:var|varip|const|simple|series)\s+)*"
    r"(?:[A-Za-z_][\w.]*(?:<[^>]*>)?(?:\[\])?\s+)?"
    r"([A-Za-z_]\w*)\s*(?::=|=)(?![=>])"
)

RESERVED_IDENTIFIERS = frozenset({
    "and", "or", "not", "if", "else", "for", "to", "by", "in", "while",
    "switch", "var", "varip", "import", "export", "method", "type",
    "true", "false", "na", "continue", "break", "const", "simple", "series",
})


# ── Contexts ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LineContext:
    line: ClassifiedLine
    config: LintConfig
    scope: ScopeSnapshot | None = None
    is_first_nonblank: bool = False


@dataclass(frozen=True)
class StatementContext:
    lines: tuple[ClassifiedLine, ...]
    scope: ScopeSnapshot
    config: LintConfig

    @property
    def text(self) -> str:
        return "\n".join(line.code for line in self.lines)

    def locate(self, offset: int) -> tuple[int, int]:
        """Translate an offset into `text` to (line number, column)."""
        for line in self.lines:
            if offset <= len(line.code):
                return line.number, offset + 1
            offset -= len(line.code) + 1
        last = self.lines[-1]
        return last.number, len(last.code) + 1


@dataclass
class FileTally:
    """Accumulators for whole-file rules, updated once per line."""
    first_nonblank: int | None = None
    version_line: int | None = None
    declarations: list[int] = field(default_factory=list)
    input_count: int = 0
    security_count: int = 0
    entries: list[tuple[int, int]] = field(default_factory=list)
    has_cancel: bool = False

    def observe(self, line: ClassifiedLine) -> None:
        if line.kind == LineKind.BLANK:
            return
        if self.first_nonblank is None:
            self.first_nonblank = line.number
        if self.version_line is None and VERSION_LINE_RE.match(line.text.strip()):
            self.version_line = line.number
        if not line.is_code:
            return

        code = line.code
        if line.indent == 0 and DECLARATION_RE.match(code):
            self.declarations.append(line.number)
        self.input_count += len(INPUT_RE.findall(code))
        self.security_count += len(SECURITY_RE.findall(code))
        for m in ENTRY_RE.finditer(code):
            self.entries.append((line.number, m.start() + 1))
        if CANCEL_RE.search(code):
            self.has_cancel = True


@dataclass(frozen=True)
class FileContext:
    tally: FileTally
    config: LintConfig


# ── Text rules (every line) ───────────────────────────────────────────────────

def _rule_tabs(ctx: LineContext) -> list[Diagnostic]:
    if not ctx.config.disallow_tabs:
        return []
    return check_tabs(ctx.line)


def _rule_trailing_whitespace(ctx: LineContext) -> list[Diagnostic]:
    return check_trailing_whitespace(ctx.line)


def _rule_version(ctx: LineContext) -> list[Diagnostic]:
    """E_VERSION: the first non-blank line must be exactly //@version=N."""
    if not ctx.is_first_nonblank:
        return []
    marker = f"//@version={ctx.config.version}"
    stripped = ctx.line.text.strip()
    if stripped == marker:
        return []
    if stripped.startswith("//@version="):
        message = f"Version line must be {marker}."
    else:
        message = f"First non-empty line must declare {marker}."
    return [Diagnostic.error("E_VERSION", message, ctx.line.number, 1)]


# ── Line rules (code lines) ───────────────────────────────────────────────────

def _rule_eol_continuation(ctx: LineContext) -> list[Diagnostic]:
    """
    E_EOL_CONTINUATION: the previous code line ended with an operator, comma,
    open bracket or boolean keyword, but this line does not continue it.
    Reported on the dangling line.
    """
    dangling = ctx.scope.dangling
    if dangling is None or ctx.scope.continuation:
        return []
    return [dangling_diagnostic(dangling)]


def dangling_diagnostic(line: ClassifiedLine) -> Diagnostic:
    return Diagnostic.error(
        "E_EOL_CONTINUATION",
        "Line ends with an operator, comma or open bracket but the next line does not continue it.",
        line.number, len(line.code.rstrip()),
    )


def _rule_indent_multiple(ctx: LineContext) -> list[Diagnostic]:
    unit = ctx.config.indent_unit
    indent = ctx.line.indent
    if ctx.scope.continuation or indent == 0 or indent % unit == 0:
        return []
    message = f"Indentation should use {unit}-space multiples (found {indent})."
    if ctx.config.strict_indent:
        return [Diagnostic.error("E_INDENT", message, ctx.line.number, 1)]
    return [Diagnostic.warn("W_INDENT", message, ctx.line.number, 1)]


def _rule_block_indent(ctx: LineContext) -> list[Diagnostic]:
    opener = ctx.scope.block_opener
    unit = ctx.config.indent_unit
    if opener is None or ctx.line.indent >= opener.indent + unit:
        return []
    return [Diagnostic.warn(
        "W_BLOCK_INDENT",
        f"Expected indent by {unit} spaces after block opener on line {opener.number}.",
        ctx.line.number, ctx.line.indent + 1,
    )]


def _rule_reserved_identifier(ctx: LineContext) -> list[Diagnostic]:
    if ctx.line.indent != 0 or ctx.scope.continuation:
        return []
    m = ASSIGN_TARGET_RE.match(ctx.line.code)
    if not m or m.group(1) not in RESERVED_IDENTIFIERS:
        return []
    return [Diagnostic.error(
        "E_RESERVED_IDENTIFIER",
        f"Reserved keyword '{m.group(1)}' cannot be used as a variable name.",
        ctx.line.number, m.start(1) + 1,
    )]


def _rule_global_mutation(ctx: LineContext) -> list[Diagnostic]:
    """E_GLOBAL_MUTATION: `:=` / compound assignment to a top-level var inside a function."""
    scope = ctx.scope
    if not scope.in_function or not scope.globals or scope.continuation:
        return []
    diagnostics = []
    code = ctx.line.code
    for name in sorted(scope.globals):
        m = re.search(rf"(?<![\w.]){re.escape(name)}\s*(?::=|\+=|-=|\*=|/=|%=)", code)
        if m:
            diagnostics.append(Diagnostic.error(
                "E_GLOBAL_MUTATION",
                f"Global var '{name}' modified inside function.",
                ctx.line.number, m.start() + 1,
            ))
    return diagnostics


def _rule_plot_scope(ctx: LineContext) -> list[Diagnostic]:
    if not (ctx.scope.in_block or ctx.scope.in_function):
        return []
    m = PLOT_RE.search(ctx.line.code)
    if not m:
        return []
    return [Diagnostic.warn(
        "W_PLOT_SCOPE",
        "Plotting call inside a local block or function; Pine requires global-scope plotting.",
        ctx.line.number, m.start() + 1,
    )]


def _rule_every_tick(ctx: LineContext) -> list[Diagnostic]:
    m = EVERY_TICK_RE.search(ctx.line.code)
    if not m:
        return []
    message = "calc_on_every_tick=true can cause live/backtest drift."
    if ctx.config.disallow_every_tick:
        return [Diagnostic.error("E_EVERY_TICK", message, ctx.line.number, m.start() + 1)]
    return [Diagnostic.warn("W_EVERY_TICK", message, ctx.line.number, m.start() + 1)]


def _rule_realtime(ctx: LineContext) -> list[Diagnostic]:
    m = REALTIME_RE.search(ctx.line.code)
    if not m:
        return []
    return [Diagnostic.warn(
        "W_REALTIME",
        "barstate.isrealtime can diverge between live and backtest.",
        ctx.line.number, m.start() + 1,
    )]


def _rule_input_style(ctx: LineContext) -> list[Diagnostic]:
    if not ctx.config.one_input_per_line:
        return []
    matches = list(INPUT_RE.finditer(ctx.line.code))
    if len(matches) <= 1:
        return []
    return [Diagnostic.warn(
        "W_INPUT_STYLE",
        "Use one input.* call per line.",
        ctx.line.number, matches[0].start() + 1,
    )]


def _rule_multi_statement(ctx: LineContext) -> list[Diagnostic]:
    m = MULTI_STATEMENT_RE.search(ctx.line.code)
    if not m:
        return []
    return [Diagnostic.warn(
        "W_MULTI_STATEMENT",
        "Avoid multiple statements on one line separated by ';'.",
        ctx.line.number, m.start() + 1,
    )]


def _rule_line_length(ctx: LineContext) -> list[Diagnostic]:
    limit = ctx.config.max_line_length
    code = ctx.line.code.rstrip()
    if len(code) <= limit or not CALL_LIKE_RE.search(code):
        return []
    return [Diagnostic.warn(
        "W_LINE_LENGTH",
        f"Line exceeds {limit} characters; consider line breaks.",
        ctx.line.number, limit + 1,
    )]


# ── Statement rules (call arguments) ──────────────────────────────────────────

def call_arguments(text: str, open_paren: int) -> str:
    """Text between the paren at `open_paren` and its matching close (or end of text)."""
    depth = 0
    for i in range(open_paren, len(text)):
        ch = text[i]
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
            if depth == 0:
                return text[open_paren + 1:i]
    return text[open_paren + 1:]


def _calls(ctx: StatementContext, pattern: re.Pattern) -> list[tuple[int, str]]:
    """(offset, arguments) for every call matching `pattern` in the statement."""
    text = ctx.text
    return [(m.start(), call_arguments(text, m.end() - 1)) for m in pattern.finditer(text)]


def _rule_lookahead(ctx: StatementContext) -> list[Diagnostic]:
    """E_LOOKAHEAD_ON / W_LOOKAHEAD_DEFAULT for request.security calls."""
    diagnostics = []
    text = ctx.text
    for offset, args in _calls(ctx, SECURITY_RE):
        args_start = text.index("(", offset) + 1
        on = LOOKAHEAD_ON_RE.search(args)
        if on:
            if ctx.config.disallow_lookahead:
                line, col = ctx.locate(args_start + on.start())
                diagnostics.append(Diagnostic.error(
                    "E_LOOKAHEAD_ON",
                    "request.security with lookahead=barmerge.lookahead_on is disallowed (repainting risk).",
                    line, col,
                ))
        elif not LOOKAHEAD_ANY_RE.search(args):
            line, col = ctx.locate(offset)
            diagnostics.append(Diagnostic.warn(
                "W_LOOKAHEAD_DEFAULT",
                "request.security without an explicit lookahead= setting; state it to avoid surprises.",
                line, col,
            ))
    return diagnostics


def _rule_limit_order(ctx: StatementContext) -> list[Diagnostic]:
    """E_LIMIT_ORDER / W_LIMIT_MARKET_LIKE for strategy.entry / strategy.order calls."""
    diagnostics = []
    text = ctx.text
    for offset, args in _calls(ctx, ENTRY_RE):
        if not LIMIT_ARG_RE.search(args):
            if ctx.config.require_limit_orders:
                line, col = ctx.locate(offset)
                diagnostics.append(Diagnostic.error(
                    "E_LIMIT_ORDER",
                    "Order entry must set an explicit limit= price.",
                    line, col,
                ))
            continue
        raw = LIMIT_RAW_PRICE_RE.search(args)
        if raw:
            args_start = text.index("(", offset) + 1
            line, col = ctx.locate(args_start + raw.start())
            diagnostics.append(Diagnostic.warn(
                "W_LIMIT_MARKET_LIKE",
                "Limit price equals the raw bar price; the order behaves like a market order.",
                line, col,
            ))
    return diagnostics


def _rule_entry_gating(ctx: StatementContext) -> list[Diagnostic]:
    """
    W_SPAM_ENTRY: an order entry with no crossover / position / confirmed-bar
    guard in the statement itself or in the trailing window of previous
    meaningful lines (LintConfig.entry_guard_window).
    """
    calls = _calls(ctx, ENTRY_RE)
    if not calls:
        return []
    guard_source = "\n".join(ctx.scope.recent + (ctx.text,))
    if GUARD_RE.search(guard_source):
        return []
    diagnostics = []
    for offset, _ in calls:
        line, col = ctx.locate(offset)
        diagnostics.append(Diagnostic.warn(
            "W_SPAM_ENTRY",
            "Order entry may fire every bar: no crossover, position or confirmed-bar guard nearby.",
            line, col,
        ))
    return diagnostics


# ── File rules (after the pass) ───────────────────────────────────────────────

def _rule_version_present(ctx: FileContext) -> list[Diagnostic]:
    if ctx.tally.first_nonblank is not None:
        return []
    return [Diagnostic.error("E_VERSION", f"Missing //@version={ctx.config.version} declaration.", 1, 1)]


def _rule_declaration_count(ctx: FileContext) -> list[Diagnostic]:
    decls = ctx.tally.declarations
    if not decls:
        return [Diagnostic.error(
            "E_DECLARATION_MISSING",
            "Missing top-level strategy()/indicator() declaration.",
            ctx.tally.first_nonblank or 1, 1,
        )]
    if len(decls) > 1:
        return [Diagnostic.error(
            "E_DECLARATION_COUNT",
            f"Multiple strategy()/indicator() declarations found ({len(decls)}); only one allowed.",
            decls[1], 1,
        )]
    return []


def _rule_declaration_order(ctx: FileContext) -> list[Diagnostic]:
    decls = ctx.tally.declarations
    version_line = ctx.tally.version_line
    if not decls or version_line is None or decls[0] > version_line:
        return []
    return [Diagnostic.error(
        "E_DECLARATION_ORDER",
        "strategy()/indicator() must appear after the version line.",
        decls[0], 1,
    )]


def _rule_input_ceiling(ctx: FileContext) -> list[Diagnostic]:
    count, limit = ctx.tally.input_count, ctx.config.max_inputs
    if count <= limit:
        return []
    return [Diagnostic.warn(
        "W_INPUT_BLOAT",
        f"Too many input.* calls ({count}) > maxInputs ({limit}).",
        1, 1,
    )]


def _rule_security_ceiling(ctx: FileContext) -> list[Diagnostic]:
    count, limit = ctx.tally.security_count, ctx.config.max_request_security
    if count <= limit:
        return []
    return [Diagnostic.warn(
        "W_SECURITY_BLOAT",
        f"Too many request.security calls ({count}) > limit ({limit}).",
        1, 1,
    )]


def _rule_cancel_presence(ctx: FileContext) -> list[Diagnostic]:
    if not ctx.tally.entries or ctx.tally.has_cancel:
        return []
    line, col = ctx.tally.entries[0]
    return [Diagnostic.warn(
        "W_NO_CANCEL",
        "Order entries found but no strategy.cancel/close call; unfilled limits never time out.",
        line, col,
    )]


# ── Rule registries (declared order) ──────────────────────────────────────────

TEXT_RULES = [
    _rule_tabs,                  # E_TAB
    _rule_trailing_whitespace,   # E_TRAILING_WS
    _rule_version,               # E_VERSION
]

LINE_RULES = [
    _rule_eol_continuation,      # E_EOL_CONTINUATION
    _rule_indent_multiple,       # W_INDENT / E_INDENT
    _rule_block_indent,          # W_BLOCK_INDENT
    _rule_reserved_identifier,   # E_RESERVED_IDENTIFIER
    _rule_global_mutation,       # E_GLOBAL_MUTATION
    _rule_plot_scope,            # W_PLOT_SCOPE
    _rule_every_tick,            # W_EVERY_TICK / E_EVERY_TICK
    _rule_realtime,              # W_REALTIME
    _rule_input_style,           # W_INPUT_STYLE
    _rule_multi_statement,       # W_MULTI_STATEMENT
    _rule_line_length,           # W_LINE_LENGTH
]

STATEMENT_RULES = [
    _rule_lookahead,             # E_LOOKAHEAD_ON / W_LOOKAHEAD_DEFAULT
    _rule_limit_order,           # E_LIMIT_ORDER / W_LIMIT_MARKET_LIKE
    _rule_entry_gating,          # W_SPAM_ENTRY
]

FILE_RULES = [
    _rule_version_present,       # E_VERSION (empty file)
    _rule_declaration_count,     # E_DECLARATION_MISSING / E_DECLARATION_COUNT
    _rule_declaration_order,     # E_DECLARATION_ORDER
    _rule_input_ceiling,         # W_INPUT_BLOAT
    _rule_security_ceiling,      # W_SECURITY_BLOAT
    _rule_cancel_presence,       # W_NO_CANCEL
]

"""
Tests for individual lint rules

Bodies are linted under a clean version + declaration header, so body line 1
is file line 3.
"""

from pinelint.models import Severity


def found(report, code):
    return [(d.line, d.column) for d in report.diagnostics if d.code == code]


# ── Text rules ────────────────────────────────────────────────────────

def test_tab_rule_follows_config(lint):
    assert found(lint("x =\t1\n"), "E_TAB") == [(3, 4)]
    assert found(lint("x =\t1\n", disallow_tabs=False), "E_TAB") == []


def test_trailing_whitespace(lint):
    assert found(lint("x = 1 \n"), "E_TRAILING_WS") == [(3, 6)]


def test_wrong_version_number(lint_raw):
    report = lint_raw('//@version=5\nstrategy("T")\n')

    assert report.codes() == ["E_VERSION"]
    assert "//@version=6" in report.diagnostics[0].message


def test_missing_version_reported_once(lint_raw):
    report = lint_raw('strategy("T")\nx = 1\n')

    assert report.codes().count("E_VERSION") == 1
    assert found(report, "E_VERSION") == [(1, 1)]


def test_version_option_changes_expected_marker(lint_raw):
    assert lint_raw('//@version=5\nstrategy("T")\n', version=5).diagnostics == []


# ── Line rules ────────────────────────────────────────────────────────

def test_dangling_continuation(lint):
    report = lint("x = 1 +\ny = 2\n")

    assert found(report, "E_EOL_CONTINUATION") == [(3, 7)]


def test_continued_line_is_not_dangling(lint):
    assert lint("x = 1 +\n     2\n").diagnostics == []


def test_dangling_continuation_at_end_of_file(lint):
    assert found(lint("x = close and\n"), "E_EOL_CONTINUATION") == [(3, 13)]


def test_indent_multiple_warns_by_default(lint):
    report = lint("if close > open\n      x = 1\n")

    assert report.codes() == ["W_INDENT"]
    assert report.passed


def test_indent_multiple_strict(lint):
    report = lint("if close > open\n      x = 1\n", strict_indent=True)

    assert report.codes() == ["E_INDENT"]
    assert not report.passed


def test_block_body_must_be_indented(lint):
    report = lint("if close > open\nx = 1\n")

    assert found(report, "W_BLOCK_INDENT") == [(4, 1)]


def test_reserved_identifier_at_top_level(lint):
    assert found(lint("true = 1\n"), "E_RESERVED_IDENTIFIER") == [(3, 1)]
    assert found(lint("float na = close\n"), "E_RESERVED_IDENTIFIER") == [(3, 7)]
    assert found(lint("total = 1\n"), "E_RESERVED_IDENTIFIER") == []


def test_global_mutation_inside_function(lint):
    body = (
        "var int count = 0\n"
        "bump() =>\n"
        "    count := count + 1\n"
    )
    report = lint(body)

    assert report.codes() == ["E_GLOBAL_MUTATION"]
    assert found(report, "E_GLOBAL_MUTATION") == [(5, 5)]


def test_compound_assignment_is_mutation(lint):
    body = "var float acc = 0.0\nadd(x) =>\n    acc += x\n"

    assert found(lint(body), "E_GLOBAL_MUTATION") == [(5, 5)]


def test_shadowing_global_is_allowed(lint):
    body = "var int count = 0\nlocal() =>\n    count = 5\n    count\ncount := 1\n"

    assert "E_GLOBAL_MUTATION" not in lint(body).codes()


def test_plot_in_block(lint):
    report = lint("if close > open\n    plot(close)\n")

    assert found(report, "W_PLOT_SCOPE") == [(4, 5)]
    assert found(lint("plot(close)\n"), "W_PLOT_SCOPE") == []


def test_every_tick_severity_follows_config(lint_raw):
    source = '//@version=6\nstrategy("T", calc_on_every_tick=true)\n'

    assert lint_raw(source).codes() == ["W_EVERY_TICK"]
    assert lint_raw(source, disallow_every_tick=True).codes() == ["E_EVERY_TICK"]


def test_realtime_branch(lint):
    assert found(lint("live = barstate.isrealtime\n"), "W_REALTIME") == [(3, 8)]


def test_input_style(lint):
    body = "len = input.int(14) + input.int(2)\n"

    assert found(lint(body), "W_INPUT_STYLE") == [(3, 7)]
    assert found(lint(body, one_input_per_line=False), "W_INPUT_STYLE") == []


def test_multi_statement(lint):
    assert found(lint("a = 1; b = 2\n"), "W_MULTI_STATEMENT") == [(3, 6)]
    assert found(lint("a = 1;\n"), "W_MULTI_STATEMENT") == []


def test_line_length_requires_call(lint):
    long_call = "x = math.max(" + "1, " * 50 + "1)\n"
    long_expr = "x = " + "1 + " * 40 + "1\n"

    assert found(lint(long_call), "W_LINE_LENGTH") == [(3, 121)]
    assert found(lint(long_expr), "W_LINE_LENGTH") == []
    assert found(lint(long_call, max_line_length=400), "W_LINE_LENGTH") == []


# ── Statement rules ───────────────────────────────────────────────────

SECURITY_ON = 'x = request.security(syminfo.tickerid, "D", close, lookahead=barmerge.lookahead_on)'


def test_lookahead_on(lint):
    report = lint(SECURITY_ON + "\n")

    assert found(report, "E_LOOKAHEAD_ON") == [(3, SECURITY_ON.index("lookahead=") + 1)]


def test_lookahead_on_allowed_is_silent(lint):
    assert lint(SECURITY_ON + "\n", disallow_lookahead=False).diagnostics == []


def test_lookahead_default(lint):
    report = lint('x = request.security(syminfo.tickerid, "D", close)\n')

    assert found(report, "W_LOOKAHEAD_DEFAULT") == [(3, 5)]


def test_lookahead_on_continuation_line(lint):
    body = (
        'x = request.security(syminfo.tickerid, "D", close,\n'
        "      lookahead=barmerge.lookahead_off)\n"
    )

    assert lint(body).diagnostics == []


def test_entry_without_limit(lint):
    body = (
        "if ta.crossover(close, open)\n"
        '    strategy.entry("L", strategy.long)\n'
        'strategy.cancel("L")\n'
    )

    assert lint(body).codes() == ["E_LIMIT_ORDER"]
    assert found(lint(body), "E_LIMIT_ORDER") == [(4, 5)]
    assert lint(body, require_limit_orders=False).diagnostics == []


def test_limit_at_raw_bar_price(lint):
    body = (
        "if ta.crossover(close, open)\n"
        '    strategy.entry("L", strategy.long, limit=close)\n'
        'strategy.cancel("L")\n'
    )
    report = lint(body)

    assert report.codes() == ["W_LIMIT_MARKET_LIKE"]
    assert report.diagnostics[0].column == len('    strategy.entry("L", strategy.long, ') + 1


def test_limit_argument_on_continuation_line(lint):
    body = (
        "if ta.crossover(close, open)\n"
        '    strategy.entry("L", strategy.long,\n'
        "          limit=low)\n"
        'strategy.cancel("L")\n'
    )

    assert lint(body).diagnostics == []


def test_ungated_entry(lint):
    report = lint('strategy.entry("L", strategy.long, limit=low)\nstrategy.cancel("L")\n')

    assert report.codes() == ["W_SPAM_ENTRY"]
    assert found(report, "W_SPAM_ENTRY") == [(3, 1)]


def test_entry_guard_window(lint):
    body = (
        "longOk = ta.crossover(close, open)\n"
        "a = 1\n"
        "b = 2\n"
        "c = 3\n"
        'strategy.entry("L", strategy.long, limit=low)\n'
        'strategy.cancel("L")\n'
    )

    assert lint(body).codes() == ["W_SPAM_ENTRY"]
    assert lint(body, entry_guard_window=4).diagnostics == []


def test_guard_in_same_statement(lint):
    body = (
        'strategy.entry("L", strategy.long, limit=low, when=barstate.isconfirmed)\n'
        'strategy.close("L")\n'
    )

    assert lint(body).diagnostics == []


# ── File rules ────────────────────────────────────────────────────────

def test_missing_declaration(lint_raw):
    report = lint_raw("//@version=6\nx = 1\n")

    assert report.codes() == ["E_DECLARATION_MISSING"]
    assert found(report, "E_DECLARATION_MISSING") == [(1, 1)]


def test_declaration_count_reported_once_at_second(lint_raw):
    report = lint_raw('//@version=6\nstrategy("A")\nindicator("B")\nstrategy("C")\n')

    assert report.codes() == ["E_DECLARATION_COUNT"]
    assert found(report, "E_DECLARATION_COUNT") == [(3, 1)]


def test_declaration_before_version(lint_raw):
    report = lint_raw('strategy("A")\n//@version=6\n')

    assert found(report, "E_DECLARATION_ORDER") == [(1, 1)]
    assert found(report, "E_VERSION") == [(1, 1)]


def test_indented_declaration_does_not_count(lint_raw):
    report = lint_raw('//@version=6\nif true\n    strategy("A")\n')

    assert "E_DECLARATION_MISSING" in report.codes()


def test_input_ceiling(lint):
    body = "".join(f"i{n} = input.int({n})\n" for n in range(41))
    report = lint(body)

    assert report.codes() == ["W_INPUT_BLOAT"]
    assert found(report, "W_INPUT_BLOAT") == [(1, 1)]
    assert report.diagnostics[-1].severity == Severity.WARN


def test_input_ceiling_is_inclusive(lint):
    body = "".join(f"i{n} = input.int({n})\n" for n in range(40))

    assert lint(body).diagnostics == []


def test_security_ceiling(lint):
    call = 'request.security(syminfo.tickerid, "D", close, lookahead=barmerge.lookahead_off)'
    report = lint(f"a = {call}\nb = {call}\n", max_request_security=1)

    assert report.codes() == ["W_SECURITY_BLOAT"]


def test_entries_without_cancel(lint):
    body = (
        "if ta.crossover(close, open)\n"
        '    strategy.entry("L", strategy.long, limit=low)\n'
        "if ta.crossunder(close, open)\n"
        '    strategy.entry("S", strategy.short, limit=high)\n'
    )
    report = lint(body)

    assert report.codes() == ["W_NO_CANCEL"]
    assert found(report, "W_NO_CANCEL") == [(4, 5)]
    assert report.passed

"""
Strategy Scaffold Generator

Creates strategies/<name>/ with a limit-order-first Pine v6 strategy,
a manifest.json accepted by the manifest validator, and a README staging
checklist. The generated strategy.pine lints clean under the default config.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

from pinelint.utils.errors import ScaffoldError

logger = logging.getLogger("pinelint.scaffold")

NAME_RE = re.compile(r"^[a-z0-9-]+$")


def pretty_name(name: str) -> str:
    return " ".join(part.capitalize() for part in name.split("-") if part)


def strategy_template(name: str) -> str:
    title = pretty_name(name)
    return f'''//@version=6
strategy("{title} v6", overlay=true, pyramiding=0, process_orders_on_close=true, calc_on_every_tick=false)

// Pane lock keeps the script anchored without visible plots
plot(close, title="__pane_lock__", display=display.none)

// === Inputs ===
sessionInput = input.session("0930-1600", "Session (exchange hours)")
useLong = input.bool(true, "Enable Longs")
useShort = input.bool(true, "Enable Shorts")
limitOffsetTicks = input.int(5, "Limit offset (ticks)", minval=1)
cancelAfterBars = input.int(3, "Cancel limit after (bars)", minval=1)
maxTradesPerDay = input.int(3, "Max trades per day", minval=1)

// === Session + signals ===
inSession = not na(time(timeframe.period, sessionInput, "America/New_York"))
maFast = ta.sma(close, 10)
maSlow = ta.sma(close, 30)
longSignal = inSession and ta.crossover(maFast, maSlow)
shortSignal = inSession and ta.crossunder(maFast, maSlow)

// === Trade counters ===
var int tradesToday = 0
var int lastDay = na
currentDay = dayofmonth(time("D"))
if barstate.isconfirmed and (na(lastDay) or currentDay != lastDay)
    tradesToday := 0
    lastDay := currentDay

// === Pending order tracking ===
var int longPlacedBar = na
var int shortPlacedBar = na
longLimitPrice = close - limitOffsetTicks * syminfo.mintick
shortLimitPrice = close + limitOffsetTicks * syminfo.mintick
canTrade = barstate.isconfirmed and tradesToday < maxTradesPerDay
canLong = canTrade and useLong and na(longPlacedBar)
canShort = canTrade and useShort and na(shortPlacedBar)

if canLong and longSignal and strategy.position_size <= 0
    strategy.entry("L", strategy.long, limit=longLimitPrice, comment="limit long")
    longPlacedBar := bar_index

if canShort and shortSignal and strategy.position_size >= 0
    strategy.entry("S", strategy.short, limit=shortLimitPrice, comment="limit short")
    shortPlacedBar := bar_index

// Cancel unfilled orders after the timeout window
longExpired = not na(longPlacedBar) and bar_index - longPlacedBar >= cancelAfterBars
shortExpired = not na(shortPlacedBar) and bar_index - shortPlacedBar >= cancelAfterBars
if longExpired and strategy.position_size <= 0
    strategy.cancel("L")
    longPlacedBar := na
if shortExpired and strategy.position_size >= 0
    strategy.cancel("S")
    shortPlacedBar := na

// Reset pending markers once a position is filled
if strategy.position_size != 0
    longPlacedBar := na
    shortPlacedBar := na

// Count fills to enforce the per-day limit
if barstate.isconfirmed and strategy.position_size != 0 and strategy.position_size[1] == 0
    tradesToday += 1

// === Visuals ===
plot(maFast, color=color.new(color.green, 0), title="MA Fast")
plot(maSlow, color=color.new(color.orange, 0), title="MA Slow")
'''


def manifest_template(name: str) -> Dict[str, Any]:
    return {
        "name": name,
        "version": "0.1.0",
        "description": f"{name} strategy scaffold",
        "symbols": ["ES1!"],
        "timeframes": ["5"],
        "timezone": "America/New_York",
        "session": "0930-1600",
        "orderPolicy": {
            "entryType": "limit",
            "marketableOffsetTicks": 5,
            "timeoutBars": 3,
        },
        "risk": {
            "qtyType": "contracts",
            "qtyValue": 1,
            "pyramiding": 0,
        },
        "backtestAssumptions": {
            "commissionPerContractCash": 2.5,
            "slippageTicks": 1,
        },
    }


def readme_template(name: str) -> str:
    return f"""# {pretty_name(name)}

Generated Pine Script v6 strategy scaffold. The file `strategy.pine` is copy/paste-ready for TradingView and includes limit-order-first logic with cancel/timeout guardrails.

## Staging checklist
- [ ] Confirm `manifest.json` values (symbols, timeframes, session, risk) match your test plan.
- [ ] Paper trade with the defaults and record screenshots of fills and cancels.
- [ ] Verify limit orders and timeout behavior in the TradingView strategy tester.
- [ ] Note any broker/session quirks discovered during staging.

## What to tweak first
- Update entry signals in `strategy.pine`.
- Adjust `orderPolicy` values in `manifest.json` to fit your instrument.
- Run `pinelint lint "strategies/**/*.pine"` and `pinelint manifests` before committing changes.
"""


def _write(target: Path, content: str, force: bool) -> None:
    if target.exists() and not force:
        raise ScaffoldError(f"Refusing to overwrite existing file: {target}")
    target.write_text(content, encoding="utf-8")


def create_strategy(name: str, root: Optional[Path] = None, force: bool = False) -> Path:
    """
    Create strategies/<name>/ under `root` (default: cwd).

    Raises:
        ScaffoldError: invalid name, or a target file exists and force is False.
    """
    if not NAME_RE.match(name or ""):
        raise ScaffoldError(
            "Invalid strategy name. Use lowercase letters, numbers, and hyphens only (e.g., es-orb-gap)."
        )

    root = Path(root) if root is not None else Path.cwd()
    strategy_dir = root / "strategies" / name
    strategy_dir.mkdir(parents=True, exist_ok=True)

    _write(strategy_dir / "strategy.pine", strategy_template(name), force)
    _write(strategy_dir / "manifest.json", json.dumps(manifest_template(name), indent=2) + "\n", force)
    _write(strategy_dir / "README.md", readme_template(name), force)

    logger.info(f"[Scaffold] Created {strategy_dir}")
    return strategy_dir

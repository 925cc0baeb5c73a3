from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    StringConstraints,
)
from pydantic.alias_generators import to_camel
from typing import Annotated, Any, Optional, Dict, List, Literal, Union
from enum import Enum


# ─── Service Protocol Models ─────────────────────────────────────────

class MCPRequest(BaseModel):
    request_id: str
    action: str
    payload: Dict[str, Any]


# ─── Lint Configuration ──────────────────────────────────────────────

class LintConfig(BaseModel):
    """Resolved rule-tunable values. Frozen: shared read-only across scans."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    version: int = Field(default=6, ge=1)
    disallow_lookahead: bool = True
    require_limit_orders: bool = True
    max_inputs: int = Field(default=40, ge=0)
    max_request_security: int = Field(default=20, ge=0)
    max_line_length: int = Field(default=120, ge=1)
    one_input_per_line: bool = True
    disallow_tabs: bool = True
    strict_indent: bool = False
    disallow_every_tick: bool = False
    indent_unit: int = Field(default=4, ge=1)
    entry_guard_window: int = Field(default=3, ge=0)

    @classmethod
    def option_names(cls) -> Dict[str, str]:
        """Map every accepted key (field name and camelCase alias) to its field name."""
        names: Dict[str, str] = {}
        for name, field in cls.model_fields.items():
            names[name] = name
            if field.alias:
                names[field.alias] = name
        return names

    def merged(self, overrides: Dict[str, Any]) -> "LintConfig":
        """Return a new config with overrides applied (aliases or field names)."""
        names = self.option_names()
        data = self.model_dump()
        for key, value in overrides.items():
            if key in names:
                data[names[key]] = value
        return LintConfig.model_validate(data)


# ─── Diagnostics ─────────────────────────────────────────────────────

class Severity(str, Enum):
    ERROR = "ERROR"
    WARN = "WARN"


class Diagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: int
    column: int = 1
    code: str
    message: str
    severity: Severity

    @classmethod
    def error(cls, code: str, message: str, line: int, column: int = 1) -> "Diagnostic":
        return cls(line=line, column=max(column, 1), code=code, message=message, severity=Severity.ERROR)

    @classmethod
    def warn(cls, code: str, message: str, line: int, column: int = 1) -> "Diagnostic":
        return cls(line=line, column=max(column, 1), code=code, message=message, severity=Severity.WARN)


class LintReport(BaseModel):
    path: str
    diagnostics: List[Diagnostic] = Field(default_factory=list)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARN]

    @property
    def passed(self) -> bool:
        return not self.errors

    def codes(self) -> List[str]:
        return [d.code for d in self.diagnostics]

    def to_records(self) -> List[Dict[str, Any]]:
        """Flat records with the file path attached, for JSON output."""
        return [
            {"file": self.path, **d.model_dump(mode="json")}
            for d in self.diagnostics
        ]


class RunReport(BaseModel):
    reports: List[LintReport] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.reports)

    @property
    def total_errors(self) -> int:
        return sum(len(r.errors) for r in self.reports)

    @property
    def total_warnings(self) -> int:
        return sum(len(r.warnings) for r in self.reports)


# ─── Service Request Models ──────────────────────────────────────────

class LintRequest(BaseModel):
    code: str
    path: str = "<request>"
    config: Optional[Dict[str, Any]] = Field(default_factory=dict)


class LintResponse(BaseModel):
    path: str
    passed: bool
    diagnostics: List[Diagnostic] = Field(default_factory=list)


# ─── Strategy Manifest (manifest.json) ───────────────────────────────

NonEmptyStr = Annotated[StrictStr, StringConstraints(strip_whitespace=True, min_length=1)]
Number = Union[StrictInt, StrictFloat]


def _integral(value: Any) -> int:
    """Accept ints and integral floats such as 3.0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be an integer")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError("must be an integer")
    return int(value)


Integral = Annotated[int, BeforeValidator(_integral)]


class OrderPolicy(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    entry_type: Literal["limit"]
    marketable_offset_ticks: Integral
    timeout_bars: Integral


class RiskPolicy(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    qty_type: NonEmptyStr
    qty_value: Number
    pyramiding: Integral


class BacktestAssumptions(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    commission_per_contract_cash: Number
    slippage_ticks: Integral


class StrategyManifest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: NonEmptyStr
    version: NonEmptyStr
    description: NonEmptyStr
    symbols: Annotated[List[NonEmptyStr], Field(min_length=1)]
    timeframes: Annotated[List[NonEmptyStr], Field(min_length=1)]
    timezone: NonEmptyStr
    session: NonEmptyStr
    order_policy: OrderPolicy
    risk: RiskPolicy
    backtest_assumptions: BacktestAssumptions

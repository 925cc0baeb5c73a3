import pytest

from pinelint.models import LintConfig
from pinelint.services.pine_lint import PineLinter

# Version line + declaration: lints clean on its own, so bodies start at line 3
HEADER = '//@version=6\nstrategy("Test", overlay=true)\n'


def _lint(body: str, header: str = HEADER, **overrides):
    config = LintConfig().merged(overrides) if overrides else LintConfig()
    return PineLinter(config).lint_text(header + body, "test.pine")


@pytest.fixture
def lint():
    """lint(body, **config_overrides) -> LintReport, with HEADER prepended."""
    return _lint


@pytest.fixture
def lint_raw():
    """lint_raw(source, **config_overrides) -> LintReport, source used as-is."""
    def run(source: str, **overrides):
        return _lint(source, header="", **overrides)
    return run

"""
Tests for the strategy scaffold generator
"""

import json

import pytest

from pinelint.services.pine_lint import PineLinter
from pinelint.services.scaffold import create_strategy, pretty_name
from pinelint.utils.errors import PineLintError, ScaffoldError


def test_creates_strategy_directory(tmp_path):
    strategy_dir = create_strategy("es-orb", tmp_path)

    assert strategy_dir == tmp_path / "strategies" / "es-orb"
    assert sorted(p.name for p in strategy_dir.iterdir()) == ["README.md", "manifest.json", "strategy.pine"]

    manifest = json.loads((strategy_dir / "manifest.json").read_text(encoding="utf-8"))
    assert manifest["name"] == "es-orb"
    assert manifest["orderPolicy"]["entryType"] == "limit"
    assert "# Es Orb" in (strategy_dir / "README.md").read_text(encoding="utf-8")


def test_generated_strategy_lints_clean(tmp_path):
    strategy_dir = create_strategy("nq-trend-2", tmp_path)

    report = PineLinter().lint_file(strategy_dir / "strategy.pine")

    assert report.diagnostics == [], report.codes()


@pytest.mark.parametrize("name", ["ES-ORB", "es_orb", "", "es orb"])
def test_invalid_names(tmp_path, name):
    with pytest.raises(ScaffoldError):
        create_strategy(name, tmp_path)


def test_refuses_overwrite_without_force(tmp_path):
    strategy_dir = create_strategy("es-orb", tmp_path)
    (strategy_dir / "strategy.pine").write_text("// edited\n", encoding="utf-8")

    with pytest.raises(PineLintError, match="Refusing to overwrite"):
        create_strategy("es-orb", tmp_path)
    assert (strategy_dir / "strategy.pine").read_text(encoding="utf-8") == "// edited\n"

    create_strategy("es-orb", tmp_path, force=True)
    assert (strategy_dir / "strategy.pine").read_text(encoding="utf-8").startswith("//@version=6\n")


def test_pretty_name():
    assert pretty_name("es-orb-gap") == "Es Orb Gap"

"""
Tests for strategy manifest validation
"""

import json

from pinelint.services.manifest import (
    validate_manifest,
    validate_manifest_data,
    validate_strategies,
)
from pinelint.services.scaffold import create_strategy, manifest_template


def test_template_manifest_is_valid():
    assert validate_manifest_data(manifest_template("es-orb")) == []


def test_entry_type_must_be_limit():
    data = manifest_template("es-orb")
    data["orderPolicy"]["entryType"] = "market"

    errors = validate_manifest_data(data)

    assert len(errors) == 1
    assert "entry" in errors[0].lower()


def test_required_fields():
    data = manifest_template("es-orb")
    del data["risk"]
    data["symbols"] = []
    data["name"] = "   "

    errors = validate_manifest_data(data)

    assert len(errors) == 3


def test_strict_types():
    data = manifest_template("es-orb")
    data["orderPolicy"]["timeoutBars"] = 2.5
    data["risk"]["qtyValue"] = 1.5

    errors = validate_manifest_data(data)

    assert len(errors) == 1
    assert "timeout" in errors[0].lower()


def test_integral_floats_are_integers():
    data = manifest_template("es-orb")
    data["orderPolicy"]["timeoutBars"] = 3.0
    data["risk"]["pyramiding"] = 1.0
    data["backtestAssumptions"]["slippageTicks"] = 0.0

    assert validate_manifest_data(data) == []


def test_integer_fields_reject_strings_and_bools():
    for bad in ("3", True):
        data = manifest_template("es-orb")
        data["orderPolicy"]["timeoutBars"] = bad

        errors = validate_manifest_data(data)

        assert len(errors) == 1, bad
        assert "timeout" in errors[0].lower()


def test_not_an_object():
    assert validate_manifest_data(["x"]) == ["manifest must be a JSON object"]


def test_invalid_json_file(tmp_path):
    path = tmp_path / "manifest.json"
    path.write_text("{broken", encoding="utf-8")

    errors = validate_manifest(path)

    assert len(errors) == 1
    assert errors[0].startswith("Invalid JSON")


def test_scaffolded_strategies_validate(tmp_path):
    create_strategy("alpha", tmp_path)
    create_strategy("beta", tmp_path)

    assert validate_strategies(tmp_path) == {}


def test_missing_files_and_bad_manifest_reported(tmp_path):
    alpha = create_strategy("alpha", tmp_path)
    beta = create_strategy("beta", tmp_path)
    (alpha / "README.md").unlink()
    manifest = json.loads((beta / "manifest.json").read_text(encoding="utf-8"))
    manifest["timeframes"] = []
    (beta / "manifest.json").write_text(json.dumps(manifest), encoding="utf-8")

    failures = validate_strategies(tmp_path)

    assert failures["alpha"] == ["Missing README.md"]
    assert len(failures["beta"]) == 1


def test_no_strategies_directory(tmp_path):
    assert validate_strategies(tmp_path) == {}

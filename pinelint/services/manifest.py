"""
Strategy Manifest Validator

Checks `strategies/<name>/` directories: each must ship a manifest.json that
matches StrategyManifest, a README.md, and the strategy.pine source.
Independent of the lint engine; it never reads the Pine source.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from pydantic import ValidationError

from pinelint.models import StrategyManifest

logger = logging.getLogger("pinelint.manifest")

REQUIRED_FILES = ("manifest.json", "README.md", "strategy.pine")


def _format_errors(exc: ValidationError) -> List[str]:
    """One readable line per schema violation, e.g. 'orderPolicy.timeoutBars: ...'."""
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "manifest"
        messages.append(f"{location}: {err['msg']}")
    return messages


def validate_manifest_data(data: Any) -> List[str]:
    if not isinstance(data, dict):
        return ["manifest must be a JSON object"]
    try:
        StrategyManifest.model_validate(data)
    except ValidationError as e:
        return _format_errors(e)
    return []


def validate_manifest(manifest_path: Path) -> List[str]:
    """Validate one manifest.json. Unreadable or invalid JSON is a single error."""
    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        return [f"Invalid JSON: {e}"]
    return validate_manifest_data(data)


def validate_strategy_dir(dir_path: Path) -> List[str]:
    errors: List[str] = []
    for filename in REQUIRED_FILES:
        if not (dir_path / filename).exists():
            errors.append(f"Missing {filename}")

    manifest_path = dir_path / "manifest.json"
    if manifest_path.exists():
        errors.extend(validate_manifest(manifest_path))
    return errors


def validate_strategies(root: Path) -> Dict[str, List[str]]:
    """
    Validate every directory under <root>/strategies.

    Returns:
        {strategy_name: [errors]} for failing strategies only; empty when all pass.
    """
    strategies_dir = Path(root) / "strategies"
    if not strategies_dir.is_dir():
        logger.warning(f"[Manifest] Strategies directory not found: {strategies_dir}")
        return {}

    failures: Dict[str, List[str]] = {}
    for entry in sorted(strategies_dir.iterdir()):
        if not entry.is_dir():
            continue
        errors = validate_strategy_dir(entry)
        if errors:
            failures[entry.name] = errors
            logger.warning(f"[Manifest] {entry.name}: {len(errors)} problem(s)")
        else:
            logger.info(f"[Manifest] {entry.name}: OK")
    return failures

"""
config.py — Lint configuration resolution.

Defaults are merged once with an optional project-local override before any
file is scanned. Override lookup order:

  1. explicit path (CLI --config / caller argument)
  2. $PINELINT_CONFIG (environment, .env honoured)
  3. .pinelintrc.json, .pinelintrc.yaml, .pinelintrc.yml in the working dir

A malformed override never aborts a run: defaults are used and a warning is
returned to the caller.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from pinelint.models import LintConfig

# Load environment variables explicitly
load_dotenv()

logger = logging.getLogger("pinelint.config")

DEFAULT_CONFIG = LintConfig()
RC_FILENAMES = (".pinelintrc.json", ".pinelintrc.yaml", ".pinelintrc.yml")


def find_override(cwd: Path, explicit: Optional[Path] = None) -> Optional[Path]:
    """Locate the override file, or None when the project has none."""
    if explicit is not None:
        return explicit
    env_path = os.getenv("PINELINT_CONFIG")
    if env_path:
        return Path(env_path)
    for name in RC_FILENAMES:
        candidate = cwd / name
        if candidate.exists():
            return candidate
    return None


def _read_override(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"expected a mapping, got {type(data).__name__}")
    return data


def resolve_config(
    cwd: Optional[Path] = None,
    path: Optional[Path] = None,
) -> Tuple[LintConfig, List[str]]:
    """
    Resolve the run configuration.

    Returns:
        (config, warnings): warnings lists override problems the caller
        should surface; config is DEFAULT_CONFIG when the override is unusable.
    """
    cwd = Path(cwd) if cwd is not None else Path.cwd()
    override_path = find_override(cwd, path)
    if override_path is None:
        return DEFAULT_CONFIG, []

    try:
        overrides = _read_override(override_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        msg = f"Failed to read {override_path.name}: {e}"
        logger.warning(f"[Config] {msg}; using defaults")
        return DEFAULT_CONFIG, [msg]

    warnings: List[str] = []
    known = LintConfig.option_names()
    unknown = sorted(k for k in overrides if k not in known)
    if unknown:
        msg = f"Unknown option(s) in {override_path.name} ignored: {', '.join(unknown)}"
        logger.warning(f"[Config] {msg}")
        warnings.append(msg)

    try:
        config = DEFAULT_CONFIG.merged(overrides)
    except ValidationError as e:
        msg = f"Invalid {override_path.name}: {e.error_count()} bad value(s)"
        logger.warning(f"[Config] {msg}; using defaults")
        return DEFAULT_CONFIG, warnings + [msg]

    logger.info(f"[Config] Loaded overrides from {override_path}")
    return config, warnings

"""
Lint Controller — Serves lint and manifest-validation requests.

Handles: lint, validate_manifest
The project configuration (defaults plus .pinelintrc / $PINELINT_CONFIG) is
resolved once when the controller starts; per-request `config` is layered on top.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from pinelint.models import LintResponse, MCPRequest
from pinelint.services.config import resolve_config
from pinelint.services.manifest import validate_manifest_data
from pinelint.services.pine_lint import PineLinter
from pinelint.utils.errors import error_response

logger = logging.getLogger("pinelint.controller")


class LintController:
    """Turns MCP requests into linter / manifest-validator calls."""

    def __init__(self, cwd: Optional[Path] = None) -> None:
        # resolve_config logs every override problem itself
        config, self.config_warnings = resolve_config(cwd)
        self.linter = PineLinter(config)
        logger.info(f"Lint controller ready ({len(self.config_warnings)} config warning(s))")

    def lint_source(
        self,
        code: str,
        path: str = "<request>",
        overrides: Optional[Dict[str, Any]] = None,
    ) -> LintResponse:
        """
        Lint an in-memory source.

        Raises:
            ValidationError: overrides hold a value of the wrong type or range.
        """
        linter = self.linter
        if overrides:
            linter = PineLinter(linter.config.merged(overrides))
        report = linter.lint_text(code, path)
        return LintResponse(path=report.path, passed=report.passed, diagnostics=report.diagnostics)

    async def lint(self, req: MCPRequest) -> Dict[str, Any]:
        code = req.payload.get("code")
        if not isinstance(code, str):
            return error_response(req.request_id, "MISSING_CODE", "payload.code must be a string")

        path = req.payload.get("path") or "<request>"
        overrides = req.payload.get("config") or {}
        if not isinstance(overrides, dict):
            return error_response(req.request_id, "INVALID_CONFIG", "payload.config must be an object")

        try:
            result = self.lint_source(code, str(path), overrides)
        except ValidationError as e:
            logger.warning(f"Rejected config overrides for {req.request_id}: {e.error_count()} error(s)")
            return error_response(req.request_id, "INVALID_CONFIG", str(e))

        logger.info(
            f"Linted {result.path} for {req.request_id}: "
            f"{'PASSED' if result.passed else 'FAILED'} ({len(result.diagnostics)} finding(s))"
        )
        return {
            "request_id": req.request_id,
            "type": "success",
            "data": result.model_dump(mode="json"),
        }

    async def validate_manifest(self, req: MCPRequest) -> Dict[str, Any]:
        manifest = req.payload.get("manifest")
        if manifest is None:
            return error_response(req.request_id, "MISSING_MANIFEST", "payload.manifest is required")

        errors = validate_manifest_data(manifest)
        return {
            "request_id": req.request_id,
            "type": "success",
            "data": {"valid": not errors, "errors": errors},
        }


# ─── Router entry points ──────────────────────────────────────────────

_controller_instance: LintController | None = None


def get_lint_controller() -> LintController:
    global _controller_instance
    if _controller_instance is None:
        _controller_instance = LintController()
    return _controller_instance


async def lint_code(req: MCPRequest) -> Dict[str, Any]:
    return await get_lint_controller().lint(req)


async def check_manifest(req: MCPRequest) -> Dict[str, Any]:
    return await get_lint_controller().validate_manifest(req)

from .models import MCPRequest
from .controllers.lint_controller import check_manifest, lint_code
from .utils.errors import error_response
import logging

logger = logging.getLogger("pinelint.router")

HANDLERS = {
    "lint": lint_code,
    "validate_manifest": check_manifest,
}


async def route_request(raw_msg: dict) -> dict:
    try:
        # Validate request structure
        req = MCPRequest(**raw_msg)

        logger.info(f"Routing request: {req.request_id} Action: {req.action}")

        handler = HANDLERS.get(req.action)
        if handler is not None:
            return await handler(req)

        return error_response(
            req.request_id,
            "UNKNOWN_ACTION",
            f"Unsupported action: {req.action}"
        )

    except Exception as e:
        logger.error(f"Routing error: {str(e)}")
        # The request_id may be missing when validation itself failed
        req_id = raw_msg.get("request_id", "unknown") if isinstance(raw_msg, dict) else "unknown"
        return error_response(
            req_id,
            "INTERNAL_ERROR",
            str(e)
        )

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from .controllers.lint_controller import get_lint_controller
from .models import LintRequest, LintResponse
from .router import route_request
import uvicorn
import os
import logging
import uuid

logger = logging.getLogger("pinelint.server")

app = FastAPI(title="pinelint")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def health_check():
    return {
        "status": "ok",
        "service": "pinelint",
        "version": "0.1.0",
        "config_warnings": get_lint_controller().config_warnings,
    }


@app.post("/lint", response_model=LintResponse)
async def lint(request: LintRequest) -> LintResponse:
    try:
        return get_lint_controller().lint_source(request.code, request.path, request.config)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid config: {e.error_count()} bad value(s)")


@app.websocket("/ws/lint")
async def lint_ws(ws: WebSocket):
    await ws.accept()
    logger.info("Client connected")

    try:
        while True:
            msg = await ws.receive_json()

            # Bare {"code": ...} messages are shorthand for the lint action
            if isinstance(msg, dict) and "action" not in msg and "code" in msg:
                msg = {
                    "request_id": str(uuid.uuid4())[:8],
                    "action": "lint",
                    "payload": {k: v for k, v in msg.items() if k in ("code", "path", "config")},
                }

            response = await route_request(msg)
            await ws.send_json(response)

    except WebSocketDisconnect:
        logger.info("Client disconnected")
    except Exception as e:
        logger.error(f"WebSocket fatal error: {e}")
        if ws.client_state == WebSocketState.CONNECTED:
            await ws.send_json({
                "type": "error",
                "error": {"code": "FATAL", "message": str(e)}
            })


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", 3000))
    uvicorn.run("pinelint.server:app", host="0.0.0.0", port=port)

# chatroom/main.py

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chatroom.core.config import Settings, settings as default_settings
from chatroom.core.logging import setup_logging, get_logger
from chatroom.core.state import build_state
from chatroom.api.routes import root, health
from chatroom.api import websocket as websocket_module

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, storage_dir: Optional[str] = None) -> FastAPI:
    """
    Build the FastAPI app with its own room registry.

    Args:
        settings: Defaults to the environment-driven module settings
        storage_dir: Overrides settings.STORAGE_DIR (tests use a temp dir)
    """
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Chatroom")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # REST routes
    app.include_router(root.router)
    app.include_router(health.router)

    # WebSocket routes
    app.include_router(websocket_module.router)

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.state.chat = build_state(storage_dir or settings.STORAGE_DIR)
    logger.info(
        "🚀 Chat server ready - %d rooms loaded from %s",
        len(app.state.chat.room_manager.rooms),
        storage_dir or settings.STORAGE_DIR,
    )
    return app


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def unhandled_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return PlainTextResponse("Something broke!", status_code=500)


def run() -> None:
    import uvicorn

    uvicorn.run("chatroom.main:create_app", factory=True, host=default_settings.HOST, port=default_settings.PORT)


if __name__ == "__main__":
    run()

# ============================================================================
# END OF FILE
# ============================================================================

# chatroom/api/routes/health.py

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter()

@router.get("/health", response_class=PlainTextResponse)
async def health():
    """
    Liveness probe.

    Returns the fixed text "OK" with status 200. The client calls it
    before opening its WebSocket.
    """
    return "OK"

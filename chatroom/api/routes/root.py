# chatroom/api/routes/root.py

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root():
    """Root endpoint - fixed banner so a browser hit shows the server is up."""
    return "Server is running"

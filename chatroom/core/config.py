# chatroom/core/config.py
import os
from typing import List
from dotenv import load_dotenv

class Settings:
    """
    Setup environment variables.
        - PORT / HOST the address the server binds to
        - STORAGE_DIR where rooms.json and the per-room message files live
        - CORS_ORIGINS comma separated list of allowed browser origins
        - BACKEND_URL the base URL the chat client connects to
        - RECONNECT_ATTEMPTS / RECONNECT_DELAY client reconnect policy
    """

    # Load environment variables from the .env file
    load_dotenv()

    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "5000"))

    STORAGE_DIR: str = os.getenv("STORAGE_DIR", "storage")

    CORS_ORIGINS: List[str] = [
        o.strip()
        for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
        if o.strip()
    ]

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    BACKEND_URL: str = os.getenv("BACKEND_URL", "http://localhost:5000")
    RECONNECT_ATTEMPTS: int = int(os.getenv("RECONNECT_ATTEMPTS", "5"))
    RECONNECT_DELAY: float = float(os.getenv("RECONNECT_DELAY", "1.0"))

settings = Settings()

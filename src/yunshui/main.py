"""Yunshui Materials - Main Entry Point."""

import os

from dotenv import load_dotenv

load_dotenv()

from yunshui.config.settings import settings  # noqa: E402
from yunshui.server.app import create_app  # noqa: E402

# Create FastAPI application
app = create_app()

if __name__ == "__main__":
    import uvicorn

    reload = os.getenv("RELOAD", "false").lower() == "true"

    uvicorn.run(
        "yunshui.main:app",
        host=settings.host,
        port=settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=30,
        access_log=False,  # Structured logging replaces uvicorn's access log
    )

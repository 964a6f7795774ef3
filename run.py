"""Entry point serving the Event Manager API with uvicorn.

Host and port are read from the environment variables ``HOST`` and
``PORT`` (defaults ``0.0.0.0`` and ``8000``).  All other configuration
is read by ``event_manager_api.app.core.config``.

Usage:
    python run.py
"""
import asyncio
import os

from uvicorn import Config, Server

from event_manager_api.app.core.config import settings
from event_manager_api.app.main import app


async def main() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    config = Config(app=app, host=host, port=port, reload=False, log_level=settings.log_level.lower())
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass

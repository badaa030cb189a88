"""
Listener entry point.

A desktop host runs this, waits for the "listening" log line and points its
web view at the printed address. Port 0 (the default) binds a free port.
"""

import asyncio

import uvicorn

from todo_api.config import get_settings
from todo_api.logging_config import get_logger, setup_logging
from todo_api.main import create_app

logger = get_logger(__name__)


async def serve() -> None:
    settings = get_settings()
    config = uvicorn.Config(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
    server = uvicorn.Server(config)

    serving = asyncio.create_task(server.serve())
    while not server.started and not serving.done():
        await asyncio.sleep(0.05)

    if server.started:
        for listener in server.servers:
            for sock in listener.sockets:
                host, port = sock.getsockname()[:2]
                logger.info(f"Server started on http://{host}:{port}")

    await serving


def run() -> None:
    setup_logging()
    asyncio.run(serve())


if __name__ == "__main__":
    run()

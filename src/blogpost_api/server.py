"""Start/stop the API on a real socket from inside a running event loop.

Used by scripts and harnesses that need a listening server rather than an
in-process ASGI transport.
"""

from __future__ import annotations

import asyncio

import structlog
import uvicorn

from blogpost_api.config import Settings
from blogpost_api.main import create_app

log = structlog.get_logger()

_STARTUP_POLL_INTERVAL = 0.01  # seconds


class BlogPostServer:
    """A uvicorn server bound to one app instance.

    ``start`` returns once the socket is listening and the lifespan (store
    setup) has completed; ``stop`` returns once the listener is closed and the
    store connection has been released.
    """

    def __init__(
        self, settings: Settings | None = None, host: str = "127.0.0.1", port: int = 0
    ) -> None:
        self._settings = settings or Settings()
        self._host = host
        self._port = port
        self._server: uvicorn.Server | None = None
        self._task: asyncio.Task[None] | None = None

    async def start(self, database_url: str | None = None) -> str:
        """Serve against ``database_url`` (default: the configured one). Returns the base URL."""
        if self._task is not None:
            raise RuntimeError("server already started")
        settings = self._settings
        if database_url:
            settings = settings.model_copy(update={"database_url": database_url})

        config = uvicorn.Config(
            create_app(settings), host=self._host, port=self._port, log_config=None
        )
        server = uvicorn.Server(config)
        self._server = server
        self._task = asyncio.create_task(server.serve())

        while not server.started:
            if self._task.done():
                self._task.result()
                self._reset()
                raise RuntimeError("server exited during startup")
            await asyncio.sleep(_STARTUP_POLL_INTERVAL)

        await log.ainfo("server_listening", url=self.base_url)
        return self.base_url

    @property
    def base_url(self) -> str:
        if self._server is None or not self._server.started:
            raise RuntimeError("server is not running")
        sock = self._server.servers[0].sockets[0]
        host, port = sock.getsockname()[:2]
        return f"http://{host}:{port}"

    async def stop(self) -> None:
        """Stop listening and wait for shutdown to finish. No-op if not started."""
        if self._server is None or self._task is None:
            return
        self._server.should_exit = True
        try:
            await self._task
        finally:
            self._reset()
        await log.ainfo("server_stopped")

    def _reset(self) -> None:
        self._server = None
        self._task = None

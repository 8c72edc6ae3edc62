"""
HTTP status server exposing cluster-state snapshots.

Each ``GET /cluster-state`` reads the current membership view, builds a
fresh snapshot and returns it as JSON. Nothing is cached between requests.
The server only starts for members whose port lies inside the configured
window; it then listens on the member port plus the configured offset.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

from aiohttp import web
from loguru import logger

from .core.config import ClusterViewSettings
from .core.membership import MembershipProvider
from .core.snapshot import build_snapshot
from .datastructures.type_aliases import EndpointPath, JsonDict, PortNumber
from .serialization import JsonSerializer

CLUSTER_STATE_PATH: EndpointPath = "/cluster-state"
INDEX_PATH: EndpointPath = "/"
SERVICE_NAME = "clusterview"


@dataclass(slots=True)
class ClusterStateServer:
    """aiohttp server publishing snapshots of a membership provider."""

    settings: ClusterViewSettings
    membership: MembershipProvider

    serializer: JsonSerializer = field(init=False)
    app: web.Application = field(init=False)
    runner: web.AppRunner | None = field(default=None, init=False)
    site: web.TCPSite | None = field(default=None, init=False)
    self_port: PortNumber | None = field(default=None, init=False)
    http_port: PortNumber | None = field(default=None, init=False)
    started_at: float = field(default=0.0, init=False)

    def __post_init__(self) -> None:
        self.serializer = JsonSerializer(indent=self.settings.pretty_json)
        self.app = web.Application()
        self._setup_routes()
        self._setup_middleware()

    def _setup_routes(self) -> None:
        self.app.router.add_get(INDEX_PATH, self._get_index)
        self.app.router.add_get(CLUSTER_STATE_PATH, self._get_cluster_state)

    def _setup_middleware(self) -> None:
        @web.middleware
        async def request_log_middleware(
            request: web.Request, handler
        ) -> web.StreamResponse:
            logger.info(f"HTTP request '{request.path}'")
            start_time = time.time()
            try:
                return await handler(request)
            except web.HTTPException:
                raise
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000.0
                logger.error(
                    f"Error processing {request.path}: {e} (took {duration_ms:.1f}ms)"
                )
                raise

        @web.middleware
        async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
            response = await handler(request)
            if self.settings.enable_cors:
                response.headers["Access-Control-Allow-Origin"] = "*"
            return response

        self.app.middlewares.append(request_log_middleware)
        self.app.middlewares.append(cors_middleware)

    @property
    def running(self) -> bool:
        return self.site is not None

    async def start(self) -> bool:
        """Start listening if the local member is inside the port window.

        Returns False, without binding anything, for members outside it.
        """
        self.self_port = self.membership.current_view().self_member.port
        port = self.settings.http_port_for(self.self_port)
        if port is None:
            logger.info(
                f"Member port {self.self_port} outside {self.settings.port_range}; "
                "status server not started"
            )
            return False

        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        self.site = web.TCPSite(self.runner, host=self.settings.host, port=port)
        try:
            await self.site.start()
        except OSError as e:
            logger.error(f"Status server failed to bind {self.settings.host}:{port}: {e}")
            await self.runner.cleanup()
            self.runner = None
            self.site = None
            raise

        if port == 0 and self.site._server and self.site._server.sockets:
            port = self.site._server.sockets[0].getsockname()[1]
        self.http_port = port
        self.started_at = time.time()
        logger.info(f"HTTP server started on port {port}")
        return True

    async def stop(self) -> None:
        if self.site:
            await self.site.stop()
            self.site = None
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
        logger.debug("Status server stopped")

    async def serve_forever(self) -> None:
        """Start and block until cancelled."""
        if not await self.start():
            return
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()

    async def _get_index(self, request: web.Request) -> web.Response:
        index: JsonDict = {
            "service": SERVICE_NAME,
            "self_port": self.self_port,
            "http_port": self.http_port,
            "port_range": {
                "min_port": self.settings.min_port,
                "max_port": self.settings.max_port,
            },
            "endpoints": [INDEX_PATH, CLUSTER_STATE_PATH],
            "uptime_seconds": time.time() - self.started_at if self.started_at else 0.0,
        }
        return web.json_response(index)

    async def _get_cluster_state(self, request: web.Request) -> web.Response:
        try:
            snapshot = build_snapshot(
                self.membership.current_view(), self.settings.port_range
            )
            return web.Response(
                body=self.serializer.serialize_snapshot(snapshot),
                content_type=self.serializer.content_type,
            )
        except Exception as e:
            logger.error(f"Error building cluster state: {e}")
            return web.json_response({"status": "error", "message": str(e)}, status=500)

"""
HTTP hook server for the forum bridge.

Exposes the two forum hooks and Kubernetes-compatible health checks:
- POST /hooks/post   - post created; 202 once Kafka acknowledges
- POST /hooks/upload - image uploaded; 200 with ``{url, path, name}``
- GET /health/live   - liveness probe
- GET /health/ready  - readiness probe (producer connected)

Runs on the bridge's own event loop so handlers share its clients.
"""

import uuid
from datetime import UTC, datetime

from aiohttp import web

from core.errors.exceptions import EventValidationError, PublishError
from core.logging import clear_log_context, get_logger, log_exception, set_log_context
from forum_bridge.plugin import ForumBridge

logger = get_logger(__name__)

BRIDGE_KEY = web.AppKey("bridge", ForumBridge)
STARTED_AT_KEY = web.AppKey("started_at", datetime)


def _error_response(status: int, error: str, **details) -> web.Response:
    return web.json_response({"status": "error", "error": error, **details}, status=status)


async def _read_json(request: web.Request):
    """Parsed JSON body, or None if the body is not valid JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


@web.middleware
async def trace_middleware(request: web.Request, handler):
    """Tag every log record emitted while handling a request with a trace id."""
    trace_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:16]
    set_log_context(trace_id=trace_id)
    try:
        response = await handler(request)
        response.headers["X-Request-ID"] = trace_id
        return response
    finally:
        clear_log_context()


async def handle_post_hook(request: web.Request) -> web.Response:
    """Handle POST /hooks/post - publish a post-created event."""
    bridge = request.app[BRIDGE_KEY]
    payload = await _read_json(request)
    if payload is None:
        return _error_response(400, "Request body is not valid JSON")

    try:
        result = await bridge.handle_post(payload)
    except EventValidationError as e:
        return _error_response(400, e.message, errors=e.errors)
    except PublishError as e:
        log_exception(
            logger,
            e,
            "Post event not published",
            topic=e.topic,
            key=e.key,
            http_status=502,
            http_method=request.method,
            http_path=request.path,
        )
        return _error_response(502, e.message, topic=e.topic)

    return web.json_response(
        {
            "status": "published",
            "topic": result.topic,
            "partition": result.partition,
            "offset": result.offset,
        },
        status=202,
    )


async def handle_upload_hook(request: web.Request) -> web.Response:
    """Handle POST /hooks/upload - relocate an image and return its URL."""
    bridge = request.app[BRIDGE_KEY]
    payload = await _read_json(request)
    if payload is None:
        return _error_response(400, "Request body is not valid JSON")

    try:
        outcome = await bridge.handle_upload(payload)
    except EventValidationError as e:
        return _error_response(400, e.message, errors=e.errors)

    return web.json_response(outcome.to_host(), status=200)


async def handle_liveness(request: web.Request) -> web.Response:
    """Handle GET /health/live - always 200 while the server runs."""
    uptime_seconds = (datetime.now(UTC) - request.app[STARTED_AT_KEY]).total_seconds()
    return web.json_response(
        {
            "status": "alive",
            "uptime_seconds": int(uptime_seconds),
            "timestamp": datetime.now(UTC).isoformat(),
        },
        status=200,
    )


async def handle_readiness(request: web.Request) -> web.Response:
    """
    Handle GET /health/ready - Readiness probe.

    Returns 200 when the producer is connected, 503 otherwise. The bucket
    state is reported but never blocks readiness, since uploads degrade to
    local files.
    """
    bridge = request.app[BRIDGE_KEY]
    checks = {
        "producer_connected": bridge.is_ready,
        "bucket_ready": bridge.bucket_ready,
    }
    if bridge.is_ready:
        return web.json_response(
            {
                "status": "ready",
                "checks": checks,
                "timestamp": datetime.now(UTC).isoformat(),
            },
            status=200,
        )
    return web.json_response(
        {
            "status": "not_ready",
            "reasons": ["producer_disconnected"],
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(),
        },
        status=503,
    )


def create_app(bridge: ForumBridge) -> web.Application:
    """Create aiohttp application with hook and health endpoints."""
    app = web.Application(middlewares=[trace_middleware])
    app[BRIDGE_KEY] = bridge
    app[STARTED_AT_KEY] = datetime.now(UTC)
    app.router.add_post("/hooks/post", handle_post_hook)
    app.router.add_post("/hooks/upload", handle_upload_hook)
    app.router.add_get("/health/live", handle_liveness)
    app.router.add_get("/health/ready", handle_readiness)
    return app


class HookServer:
    """
    Serves the hook app on the current event loop.

    Example:
        >>> server = HookServer(bridge, host="0.0.0.0", port=8080)
        >>> await server.start()
        >>> # Later...
        >>> await server.stop()
    """

    def __init__(self, bridge: ForumBridge, host: str = "0.0.0.0", port: int = 8080):
        self.bridge = bridge
        self.host = host
        self.port = port
        self._runner: web.AppRunner | None = None
        self._actual_port: int | None = None

    @property
    def actual_port(self) -> int | None:
        """Port the server is bound to (differs from port when port=0)."""
        return self._actual_port

    async def start(self) -> None:
        self._runner = web.AppRunner(create_app(self.bridge), access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()

        server = getattr(site, "_server", None)
        if server is not None and server.sockets:
            self._actual_port = server.sockets[0].getsockname()[1]
        else:
            self._actual_port = self.port

        logger.info(
            "Hook server started",
            extra={
                "endpoint": f"http://{self.host}:{self._actual_port}",
            },
        )

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        logger.info("Hook server stopped")


__all__ = ["HookServer", "create_app"]

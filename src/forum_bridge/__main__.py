"""Forum bridge hook server. Use --help for usage."""

import argparse
import asyncio
import logging
import os
import signal
import socket
import sys
from pathlib import Path

from dotenv import load_dotenv
from prometheus_client import start_http_server

from config.config import load_config
from core.errors.exceptions import InitializationError, wrap_exception
from core.logging.setup import setup_logging
from forum_bridge.plugin import ForumBridge
from forum_bridge.server import HookServer

# Project root directory (where .env file is located)
# __main__.py is at src/forum_bridge/__main__.py, so root is 3 levels up
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Placeholder logger until setup_logging() is called in main()
logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Forward forum events to Kafka and relocate uploads to object storage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run with settings from environment / .env
    python -m forum_bridge

    # Use a settings file and a custom port
    python -m forum_bridge --config config/config.yaml --port 8081

    # Container mode
    python -m forum_bridge --log-to-stdout --log-level DEBUG
        """,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to settings YAML file (default: src/config/config.yaml if present)",
    )

    parser.add_argument(
        "--host",
        default=os.getenv("BRIDGE_HOST", "0.0.0.0"),
        help="Interface for the hook server (default: 0.0.0.0)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("BRIDGE_PORT", "8080")),
        help="Port for the hook server (default: 8080)",
    )

    parser.add_argument(
        "--metrics-port",
        type=int,
        default=8000,
        help="Port for Prometheus metrics server (default: 8000, 0 to disable)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Log directory path (default: from LOG_DIR env var or ./logs)",
    )

    parser.add_argument(
        "--log-to-stdout",
        action="store_true",
        help="Send all log output to stdout only, skipping file handlers. "
        "Can also be set via LOG_TO_STDOUT environment variable.",
    )

    return parser.parse_args(argv)


def start_metrics_server(preferred_port: int) -> int:
    """Start Prometheus metrics server with automatic port fallback.
    Returns actual port number that the server is listening on."""
    try:
        start_http_server(preferred_port)
        return preferred_port
    except OSError as e:
        if e.errno != 98:
            raise
        logger.info(
            "Port already in use, finding available port",
            extra={"preferred_port": preferred_port},
        )

        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("", 0))
            s.listen(1)
            available_port = s.getsockname()[1]

        start_http_server(available_port)
        return available_port


def setup_signal_handlers(loop: asyncio.AbstractEventLoop, shutdown_event: asyncio.Event) -> None:
    """Set shutdown_event on SIGINT/SIGTERM.

    Note: Signal handlers not supported on Windows - KeyboardInterrupt used instead."""

    def handle_signal(sig):
        logger.info("Received signal, initiating graceful shutdown", extra={"signal": sig.name})
        shutdown_event.set()

    if sys.platform == "win32":
        logger.debug("Signal handlers not supported on Windows, using KeyboardInterrupt")
        return

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda s=sig: handle_signal(s))


async def run_bridge(
    bridge: ForumBridge,
    host: str,
    port: int,
    shutdown_event: asyncio.Event,
) -> None:
    """Start the bridge and hook server, serve until shutdown_event is set."""
    await bridge.start()
    server = HookServer(bridge, host=host, port=port)
    try:
        try:
            await server.start()
        except OSError as e:
            raise wrap_exception(
                e, InitializationError, context={"host": host, "port": port}
            ) from e
        await shutdown_event.wait()
    finally:
        await server.stop()
        await bridge.stop()


def _setup_logging(args: argparse.Namespace) -> None:
    log_to_stdout = args.log_to_stdout or os.getenv("LOG_TO_STDOUT", "false").lower() in _TRUTHY
    json_logs = os.getenv("JSON_LOGS", "true").lower() in _TRUTHY
    log_dir = Path(args.log_dir or os.getenv("LOG_DIR") or "logs")

    setup_logging(
        name="forum_bridge",
        stage="bridge",
        log_dir=log_dir,
        json_format=json_logs,
        console_level=getattr(logging, args.log_level),
        log_to_stdout=log_to_stdout,
    )


def main(argv: list[str] | None = None) -> int:
    load_dotenv(PROJECT_ROOT / ".env")

    args = parse_args(argv)
    _setup_logging(args)

    try:
        config = load_config(config_path=args.config)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Invalid configuration", extra={"error": str(e)})
        return 1

    if args.metrics_port:
        actual_port = start_metrics_server(args.metrics_port)
        logger.info("Metrics server started", extra={"endpoint": f"http://localhost:{actual_port}/metrics"})

    bridge = ForumBridge.from_config(config)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    shutdown_event = asyncio.Event()
    setup_signal_handlers(loop, shutdown_event)

    try:
        loop.run_until_complete(run_bridge(bridge, args.host, args.port, shutdown_event))
    except InitializationError as e:
        logger.error("Bridge failed to start", extra={"error": str(e)})
        return 1
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, shutting down...")
        loop.run_until_complete(bridge.stop())
    finally:
        loop.close()

    logger.info("Forum bridge shutdown complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())

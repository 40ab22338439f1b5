"""API server CLI"""

import argparse
import asyncio
import logging
import secrets
import signal
import sys

from ..api.server import APIServer
from ..logging_setup import setup_logging
from .diag import load_config

LOOPBACK = ('127.0.0.1', 'localhost', '::1')


async def main():
    """Main entry point for connect4-api"""
    logger = logging.getLogger(__name__)
    parser = argparse.ArgumentParser(description="Start the local Connect-4 solver API server")
    parser.add_argument('--host', default=None, help='Host to bind to (loopback only)')
    parser.add_argument('--port', type=int, default=None, help='Port to bind to (0 for a random free port)')
    parser.add_argument('--config', help='Configuration file path')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode (shows /docs endpoint)')
    parser.add_argument('--generate-token', action='store_true', help='Generate new API token and exit')
    args = parser.parse_args()

    if args.generate_token:
        new_token = secrets.token_urlsafe(32)
        print(f"Add this to your config.toml:\n[api]\ntoken = \"{new_token}\"")
        return

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        logger.error("Error loading config %s: %s", args.config, e)
        sys.exit(1)
    log_cfg = config.get("logging", {})
    setup_logging(overwrite=log_cfg.get("overwrite", False), level=log_cfg.get("level", "INFO"))

    api_cfg = config.get('api', {})
    host = args.host or api_cfg.get('host', '127.0.0.1')
    if host not in LOOPBACK:
        logger.warning("API server only supports loopback addresses; forcing host to 127.0.0.1")
        host = '127.0.0.1'
    port = args.port if args.port is not None else int(api_cfg.get('port', 0))
    config['debug'] = args.debug

    server = APIServer(config)
    print(f"API token: {server.token_auth.token}")

    shutdown_event = asyncio.Event()

    def signal_handler():
        logger.info("Received shutdown signal...")
        shutdown_event.set()

    if sys.platform != 'win32':
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, signal_handler)

    server_task = asyncio.create_task(server.start(host=host, port=port))
    done, pending = await asyncio.wait(
        [server_task, asyncio.create_task(shutdown_event.wait())],
        return_when=asyncio.FIRST_COMPLETED,
    )
    for task in pending:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
    for task in done:
        if task is server_task and task.exception() is not None:
            logger.error("API server failed: %s", task.exception())
            sys.exit(1)
    logger.info("API server stopped")


def main_sync():
    """Synchronous wrapper for async main"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == '__main__':
    main_sync()

#!/usr/bin/env python3
"""
Memecoin Observatory - service entry point

Loads settings, configures logging, wires the engine around one shared HTTP
session and serves the function-call endpoint with the background scheduler.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional

from aiohttp import web

from config.settings import Settings, load_settings
from core.engine import ObservatoryEngine
from core.operations import OperationDispatcher
from core.scheduler import Scheduler
from data.storage.database import DatabaseManager
from monitoring.logger import setup_logging
from monitoring.mcp_routes import MCPRoutes
from utils.errors import ConfigurationError

logger = logging.getLogger("Observatory")


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Memecoin Observatory - Solana memecoin analytics service"
    )

    parser.add_argument(
        '--config',
        default=None,
        help='Path to YAML configuration file'
    )

    parser.add_argument(
        '--host',
        default=None,
        help='Interface to bind (overrides configuration)'
    )

    parser.add_argument(
        '--port',
        type=int,
        default=None,
        help='Port to listen on (overrides configuration)'
    )

    parser.add_argument(
        '--no-scheduler',
        action='store_true',
        help='Disable background discovery and refresh jobs'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )

    return parser.parse_args(argv)


async def create_app(
    settings: Settings,
    engine: Optional[ObservatoryEngine] = None,
    db: Optional[DatabaseManager] = None,
    enable_scheduler: bool = True,
) -> web.Application:
    """Build the web application and hook collaborators into its lifecycle"""
    db = db or DatabaseManager(settings.database.model_dump())
    engine = engine or ObservatoryEngine.from_settings(settings, db)
    dispatcher = OperationDispatcher(engine)
    scheduler = Scheduler(engine, settings.scheduled_tasks) if enable_scheduler else None

    app = web.Application()
    app['settings'] = settings
    app['db'] = db
    app['engine'] = engine
    app['scheduler'] = scheduler

    MCPRoutes(dispatcher, settings.mcp, scheduler).setup_routes(app)

    async def on_startup(app: web.Application):
        await db.connect()
        if scheduler is not None:
            await scheduler.start()
        logger.info(f"{settings.mcp.name} v{settings.mcp.version} started")

    async def on_cleanup(app: web.Application):
        if scheduler is not None:
            await scheduler.stop()
        await engine.close()
        await db.disconnect()
        logger.info("Shutdown complete")

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return app


async def serve(settings: Settings, enable_scheduler: bool = True) -> None:
    app = await create_app(settings, enable_scheduler=enable_scheduler)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, settings.server.host, settings.server.port)
    await site.start()
    logger.info(f"MCP server running on http://{settings.server.host}:{settings.server.port}")
    logger.info(f"MCP schema available at {settings.mcp.base_url}")

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Signal handlers are unavailable on Windows event loops
            pass

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down...")
        await runner.cleanup()


def main(argv=None) -> int:
    """Main entry point"""
    args = parse_arguments(argv)

    try:
        settings = load_settings(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    if args.debug:
        settings.logging.level = 'DEBUG'
    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port

    setup_logging(settings.logging.model_dump())

    try:
        asyncio.run(serve(settings, enable_scheduler=not args.no_scheduler))
    except KeyboardInterrupt:
        logger.info("Goodbye!")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    if sys.version_info < (3, 9):
        print("Python 3.9+ required")
        sys.exit(1)

    sys.exit(main())

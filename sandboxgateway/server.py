# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/server.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

MCP stdio server exposing E2B code-execution sandboxes.

Usage:
    E2B_API_KEY=... sandboxgateway --log-level debug
"""

# Standard
import argparse
import asyncio
from contextlib import suppress
import logging
import signal
import sys
from typing import Any, Dict, List, Optional

# Third-Party
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

# First-Party
from sandboxgateway.config import get_settings, Settings
from sandboxgateway.models import LogLevel
from sandboxgateway.providers.e2b_provider import E2BSandboxProvider
from sandboxgateway.services.execution_gateway import ExecutionGateway
from sandboxgateway.services.logging_service import LoggingService
from sandboxgateway.services.sandbox_pool import SandboxPool

logger = logging.getLogger(__name__)


class ToolCallFailed(Exception):
    """Raised from the ``call_tool`` handler to report an MCP error result."""


def build_server(gateway: ExecutionGateway, config: Optional[Settings] = None, logging_service: Optional[LoggingService] = None) -> Server:
    """Create the MCP server and register its handlers.

    Args:
        gateway: Gateway that runs the tools
        config: Settings providing the server name
        logging_service: Service receiving ``logging/setLevel`` requests

    Returns:
        Server: Configured low-level MCP server
    """
    config = config or get_settings()
    server: Server = Server(config.app_name)

    @server.list_tools()
    async def list_tools() -> List[Tool]:
        return [Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema) for tool in gateway.tool_definitions()]

    @server.call_tool()
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
        result = await gateway.execute_tool(name, arguments or {})
        if result.is_error:
            raise ToolCallFailed(result.text)
        return [TextContent(type="text", text=result.text)]

    if logging_service is not None:

        @server.set_logging_level()
        async def set_logging_level(level: str) -> None:
            await logging_service.set_level(LogLevel(level))

    return server


def initialization_options(server: Server, config: Settings) -> InitializationOptions:
    """Build the options announced during the MCP handshake.

    Args:
        server: Server whose handlers define the capabilities
        config: Settings providing name and version

    Returns:
        InitializationOptions: Handshake options
    """
    return InitializationOptions(
        server_name=config.app_name,
        server_version=config.app_version,
        capabilities=server.get_capabilities(notification_options=NotificationOptions(), experimental_capabilities={}),
    )


async def serve(config: Settings) -> None:
    """Run the MCP server over stdio until the client leaves or a signal arrives.

    Args:
        config: Settings to run with
    """
    logging_service = LoggingService(LogLevel(config.log_level.lower()), config=config)
    await logging_service.initialize()

    provider = E2BSandboxProvider(api_key=config.e2b_api_key, lifetime_seconds=config.sandbox_lifetime_seconds)
    pool = SandboxPool(
        provider,
        idle_timeout=config.sandbox_idle_timeout_seconds,
        sweep_interval=config.sandbox_sweep_interval_seconds,
        creation_timeout=config.sandbox_creation_timeout_seconds,
        destroy_timeout=config.sandbox_destroy_timeout_seconds,
    )
    gateway = ExecutionGateway(
        pool,
        execution_timeout=config.execution_timeout_seconds,
        install_timeout=config.install_timeout_seconds,
        default_file_language=config.default_file_language,
    )
    server = build_server(gateway, config, logging_service)

    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_requested.set)
        except NotImplementedError:
            logger.debug(f"Signal handler for {sig.name} not supported on this platform")

    await pool.start()
    logger.info(f"Starting {config.app_name} {config.app_version} (stdio)")
    try:
        async with stdio_server() as (read_stream, write_stream):
            server_task = asyncio.create_task(server.run(read_stream, write_stream, initialization_options(server, config)))
            stop_task = asyncio.create_task(stop_requested.wait())
            done, pending = await asyncio.wait({server_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
            if server_task in done:
                server_task.result()
            else:
                logger.info("Shutdown signal received")
    finally:
        await pool.shutdown()
        await logging_service.shutdown()


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point.

    Args:
        argv: Arguments (defaults to ``sys.argv[1:]``)

    Returns:
        int: Process exit status
    """
    parser = argparse.ArgumentParser(prog="sandboxgateway", description="MCP server for E2B code-execution sandboxes")
    parser.add_argument("--log-level", choices=["debug", "info", "warning", "error", "critical"], help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    config = get_settings()
    if args.log_level:
        config = config.model_copy(update={"log_level": args.log_level.upper()})

    if not config.e2b_api_key:
        print("E2B_API_KEY environment variable is required", file=sys.stderr)
        return 1

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

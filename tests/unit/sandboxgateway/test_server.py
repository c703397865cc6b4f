# -*- coding: utf-8 -*-
"""Location: ./tests/unit/sandboxgateway/test_server.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Unit tests for the MCP server wiring and entry point.
"""

# Standard
import logging

# Third-Party
from mcp import types
import pytest

# First-Party
from sandboxgateway import server as server_mod
from sandboxgateway.config import Settings
from sandboxgateway.models import LogLevel
from sandboxgateway.server import build_server, initialization_options, main
from sandboxgateway.services.logging_service import LoggingService


def _call(name, arguments):
    return types.CallToolRequest(method="tools/call", params=types.CallToolRequestParams(name=name, arguments=arguments))


@pytest.fixture
def config():
    return Settings(_env_file=None, e2b_api_key="e2b_test")


class TestBuildServer:
    """Tests for the registered MCP handlers."""

    @pytest.mark.asyncio
    async def test_list_tools(self, gateway, config):
        server = build_server(gateway, config)
        handler = server.request_handlers[types.ListToolsRequest]

        result = await handler(types.ListToolsRequest(method="tools/list"))

        tools = result.root.tools
        assert [tool.name for tool in tools] == [tool.name for tool in gateway.tool_definitions()]
        assert tools[0].inputSchema["required"] == ["code"]

    @pytest.mark.asyncio
    async def test_call_tool_success(self, gateway, config):
        server = build_server(gateway, config)
        handler = server.request_handlers[types.CallToolRequest]

        result = await handler(_call("execute_python", {"code": "print('ok')"}))

        assert not result.root.isError
        assert "ok" in result.root.content[0].text
        assert "Sandbox ID: " in result.root.content[0].text

    @pytest.mark.asyncio
    async def test_call_tool_failure_is_error_result(self, gateway, config, fake_provider):
        server = build_server(gateway, config)
        handler = server.request_handlers[types.CallToolRequest]

        result = await handler(_call("read_file", {"path": "/etc/passwd"}))

        assert result.root.isError
        assert "Path validation failed" in result.root.content[0].text
        assert fake_provider.create_calls == 0

    @pytest.mark.asyncio
    async def test_set_logging_level(self, gateway, config):
        root = logging.getLogger()
        previous = root.level
        logging_service = LoggingService(LogLevel.INFO, config=config)
        server = build_server(gateway, config, logging_service)
        handler = server.request_handlers[types.SetLevelRequest]

        try:
            await handler(types.SetLevelRequest(method="logging/setLevel", params=types.SetLevelRequestParams(level="debug")))

            assert logging_service.level == LogLevel.DEBUG
            assert root.level == logging.DEBUG
        finally:
            root.setLevel(previous)

    def test_logging_handler_only_with_service(self, gateway, config):
        assert types.SetLevelRequest not in build_server(gateway, config).request_handlers

    def test_initialization_options(self, gateway, config):
        server = build_server(gateway, config)
        options = initialization_options(server, config)

        assert options.server_name == "e2b-mcp-server"
        assert options.server_version == config.app_version
        assert options.capabilities.tools is not None


class TestMain:
    """Tests for the command-line entry point."""

    def test_missing_api_key(self, monkeypatch, capsys):
        monkeypatch.setattr(server_mod, "get_settings", lambda: Settings(_env_file=None, e2b_api_key=None))

        assert main([]) == 1
        assert "E2B_API_KEY environment variable is required" in capsys.readouterr().err

    def test_runs_server_with_log_level_override(self, monkeypatch):
        seen = []

        async def fake_serve(config):
            seen.append(config)

        monkeypatch.setattr(server_mod, "get_settings", lambda: Settings(_env_file=None, e2b_api_key="e2b_test"))
        monkeypatch.setattr(server_mod, "serve", fake_serve)

        assert main(["--log-level", "debug"]) == 0
        assert seen[0].log_level == "DEBUG"
        assert seen[0].e2b_api_key == "e2b_test"

    def test_rejects_unknown_log_level(self):
        with pytest.raises(SystemExit):
            main(["--log-level", "loud"])

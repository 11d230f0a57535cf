"""Tests for the MCP server tool, resource and prompt definitions."""

from __future__ import annotations

import asyncio
import inspect

from project_context.dispatch import Dispatcher
from project_context.mcp.server import FILE_TEMPLATE, FileContentTemplate, create_mcp_server


class TestMcpServerCreation:
    def test_creates_server(self, dispatcher: Dispatcher) -> None:
        server = create_mcp_server(dispatcher)
        assert server is not None
        assert server.name == "project-context-mcp"

    def test_server_has_tools(self, dispatcher: Dispatcher) -> None:
        server = create_mcp_server(dispatcher)
        tool_names = set(asyncio.run(server.get_tools()))
        assert tool_names == {
            "health_check",
            "analyze_dependencies",
            "get_recent_changes",
            "navigate_structure",
            "search_project",
        }

    def test_server_has_resources(self, dispatcher: Dispatcher) -> None:
        server = create_mcp_server(dispatcher)
        resources = set(asyncio.run(server.get_resources()))
        templates = set(asyncio.run(server.get_resource_templates()))
        assert resources == {
            "context://server/info",
            "context://project/overview",
            "context://project/structure",
            "context://project/dependencies",
        }
        assert templates == {FILE_TEMPLATE}

    def test_file_resources_carry_file_mime_type(self, dispatcher: Dispatcher) -> None:
        server = create_mcp_server(dispatcher)
        template = asyncio.run(server.get_resource_templates())[FILE_TEMPLATE]
        assert isinstance(template, FileContentTemplate)
        resource = asyncio.run(template.create_resource("context://file/src/index.ts", {"path": "src/index.ts"}))
        assert resource.mime_type == "text/typescript"

    def test_server_has_prompts(self, dispatcher: Dispatcher) -> None:
        server = create_mcp_server(dispatcher)
        assert set(asyncio.run(server.get_prompts())) == {
            "server_status",
            "project_overview",
            "code_analysis",
            "debugging_assistance",
            "architecture_review",
        }

    def test_tool_parameters_use_wire_names(self, dispatcher: Dispatcher) -> None:
        server = create_mcp_server(dispatcher)
        tool = asyncio.run(server.get_tool("search_project"))
        sig = inspect.signature(tool.fn)  # type: ignore[attr-defined]
        assert list(sig.parameters) == ["query", "filePattern", "maxResults", "caseSensitive", "includeContent"]
        assert sig.parameters["maxResults"].default is None
        assert tool.parameters["required"] == ["query"]

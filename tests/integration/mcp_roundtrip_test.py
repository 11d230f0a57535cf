"""End-to-end MCP requests through an in-memory fastmcp client."""

from __future__ import annotations

import json

import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from project_context.dispatch import Dispatcher
from project_context.mcp.server import create_mcp_server


@pytest.fixture
def client(dispatcher: Dispatcher) -> Client:
    return Client(create_mcp_server(dispatcher))


@pytest.mark.asyncio
async def test_lists_everything(client: Client) -> None:
    async with client:
        tools = {tool.name for tool in await client.list_tools()}
        resources = {str(resource.uri) for resource in await client.list_resources()}
        templates = [template.uriTemplate for template in await client.list_resource_templates()]
        prompts = {prompt.name for prompt in await client.list_prompts()}

    assert "search_project" in tools
    assert "health_check" in tools
    assert "context://project/overview" in resources
    assert "context://server/info" in resources
    assert templates == ["context://file/{path*}"]
    assert "architecture_review" in prompts


@pytest.mark.asyncio
async def test_reads_overview(client: Client) -> None:
    async with client:
        contents = await client.read_resource("context://project/overview")

    overview = json.loads(contents[0].text)
    assert overview["name"] == "demo-app"
    assert overview["packageManager"] == "npm"


@pytest.mark.asyncio
async def test_reads_nested_file_through_template(client: Client) -> None:
    async with client:
        contents = await client.read_resource("context://file/src/util.js")

    assert contents[0].text == "module.exports = {};\n"
    assert contents[0].mimeType == "application/javascript"


@pytest.mark.asyncio
async def test_file_mime_type_follows_extension(client: Client) -> None:
    async with client:
        manifest = await client.read_resource("context://file/package.json")
        readme = await client.read_resource("context://file/README.md")

    assert manifest[0].mimeType == "application/json"
    assert readme[0].mimeType == "text/markdown"


@pytest.mark.asyncio
async def test_unknown_file_is_an_error(client: Client) -> None:
    async with client:
        with pytest.raises(Exception, match="not found"):
            await client.read_resource("context://file/missing.txt")


@pytest.mark.asyncio
async def test_calls_navigate_structure(client: Client) -> None:
    async with client:
        result = await client.call_tool("navigate_structure", {"path": "src", "depth": 1})

    text = result.content[0].text
    assert "render.ts" in text
    assert "util.js" in text


@pytest.mark.asyncio
async def test_calls_analyze_dependencies(client: Client) -> None:
    async with client:
        result = await client.call_tool("analyze_dependencies", {"includeDevDependencies": False})

    text = result.content[0].text
    assert "Package Manager: npm" in text
    assert "Total Dependencies: 2" in text


@pytest.mark.asyncio
async def test_invalid_arguments_raise_tool_error(client: Client) -> None:
    async with client:
        with pytest.raises(ToolError, match="Invalid value for field maxResults"):
            await client.call_tool("search_project", {"query": "x", "maxResults": 0})


@pytest.mark.asyncio
async def test_renders_prompt(client: Client) -> None:
    async with client:
        result = await client.get_prompt("debugging_assistance", {"error_message": "TypeError: x is undefined"})

    text = result.messages[0].content.text
    assert "TypeError: x is undefined" in text

"""Tests for the project-context CLI."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import typer
from typer.testing import CliRunner

from project_context.cli.app import app
from project_context.cli.context import parse_arguments

runner = CliRunner()


@pytest.mark.parametrize(
    "args",
    [
        [],
        ["serve"],
        ["serve", "mcp"],
        ["serve", "api"],
        ["context"],
        ["context", "call"],
    ],
    ids=["root", "serve", "serve-mcp", "serve-api", "context", "context-call"],
)
def test_short_help_flag(args: list[str]) -> None:
    result = runner.invoke(app, [*args, "-h"])
    assert result.exit_code == 0
    assert "Usage" in result.output


class TestParseArguments:
    def test_decodes_json_values(self) -> None:
        assert parse_arguments(["depth=3", "includeFiles=false", 'filterExtensions=[".ts"]']) == {
            "depth": 3,
            "includeFiles": False,
            "filterExtensions": [".ts"],
        }

    def test_keeps_plain_strings(self) -> None:
        assert parse_arguments(["query=render", "path=src/app"]) == {"query": "render", "path": "src/app"}

    def test_value_may_contain_equals(self) -> None:
        assert parse_arguments(["query=a=b"]) == {"query": "a=b"}

    def test_none_is_empty(self) -> None:
        assert parse_arguments(None) == {}

    @pytest.mark.parametrize("pair", ["query", "=value"])
    def test_rejects_malformed_pairs(self, pair: str) -> None:
        with pytest.raises(typer.BadParameter):
            parse_arguments([pair])


class TestContextCommands:
    def test_read_overview(self, project: Path) -> None:
        result = runner.invoke(app, ["context", "read", "context://project/overview", "-p", str(project)])
        assert result.exit_code == 0
        assert '"name": "demo-app"' in result.output

    def test_resources_table(self, project: Path) -> None:
        result = runner.invoke(app, ["context", "resources", "-p", str(project)])
        assert result.exit_code == 0
        assert "(5 rows)" in result.output

    def test_tools_table(self, project: Path) -> None:
        result = runner.invoke(app, ["context", "tools", "-p", str(project)])
        assert result.exit_code == 0
        assert "(5 rows)" in result.output

    def test_call_search(self, project: Path) -> None:
        args = ["context", "call", "search_project", "--arg", "query=render", "--arg", "maxResults=2"]
        result = runner.invoke(app, [*args, "-p", str(project)])
        assert result.exit_code == 0
        assert "Found 2 matches" in result.output

    def test_call_health_check(self, project: Path) -> None:
        result = runner.invoke(app, ["context", "call", "health_check", "-p", str(project)])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["status"] == "healthy"

    def test_prompt(self, project: Path) -> None:
        args = ["context", "prompt", "project_overview", "-a", "detail_level=brief"]
        result = runner.invoke(app, [*args, "-p", str(project)])
        assert result.exit_code == 0
        assert "demo-app" in result.output

    def test_unknown_uri_exits_nonzero(self, project: Path) -> None:
        result = runner.invoke(app, ["context", "read", "context://nope", "-p", str(project)])
        assert result.exit_code == 1

    def test_invalid_tool_arguments_exit_nonzero(self, project: Path) -> None:
        result = runner.invoke(app, ["context", "call", "navigate_structure", "-a", "depth=0", "-p", str(project)])
        assert result.exit_code == 1


def test_serve_mcp_runs_server_for_project(project: Path) -> None:
    server = MagicMock()
    with patch("project_context.mcp.server.create_mcp_server", return_value=server) as create:
        result = runner.invoke(app, ["serve", "mcp", "-p", str(project)])

    assert result.exit_code == 0
    dispatcher = create.call_args.args[0]
    assert dispatcher.config.project_path == project.resolve()
    server.run.assert_called_once_with(transport="stdio")

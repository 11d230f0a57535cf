"""Query a project directly from the shell, through the same dispatcher the servers use."""

import asyncio
import json
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from project_context.config import ServerConfig
from project_context.dispatch import Dispatcher
from project_context.errors import ProjectContextError

context_app = typer.Typer(help="Read resources, call tools and render prompts.")
console = Console()
err_console = Console(stderr=True)

ProjectOption = Annotated[
    Path | None, typer.Option("--project", "-p", help="Project root (default: $PROJECT_PATH or cwd).")
]
ArgOption = Annotated[
    list[str] | None, typer.Option("--arg", "-a", help="Argument as key=value; JSON values are decoded.")
]


def _render_table(headers: Sequence[str], rows: Sequence[tuple[Any, ...]]) -> None:
    table = Table(show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*(str(v) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")


def _get_dispatcher(project: Path | None) -> Dispatcher:
    from project_context.dispatch import build_dispatcher

    return build_dispatcher(ServerConfig.from_environment(project))


def parse_arguments(pairs: Sequence[str] | None) -> dict[str, Any]:
    arguments: dict[str, Any] = {}
    for pair in pairs or ():
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {pair!r}", param_hint="--arg")
        try:
            arguments[key] = json.loads(raw)
        except json.JSONDecodeError:
            arguments[key] = raw
    return arguments


def _run(operation: Callable[[], Awaitable[None]]) -> None:
    try:
        asyncio.run(operation())
    except ProjectContextError as exc:
        err_console.print(f"[red]{exc.message}[/red]")
        raise typer.Exit(code=1) from None


@context_app.command("resources")
def resources(project: ProjectOption = None) -> None:
    """List available resources."""
    dispatcher = _get_dispatcher(project)

    async def _list() -> None:
        rows = await dispatcher.list_resources()
        _render_table(["uri", "name", "mime_type"], [(r.uri, r.name, r.mime_type) for r in rows])

    _run(_list)


@context_app.command("read")
def read(
    uri: Annotated[str, typer.Argument(help="Resource URI, e.g. context://project/overview.")],
    project: ProjectOption = None,
) -> None:
    """Read a resource and print its text."""
    dispatcher = _get_dispatcher(project)

    async def _read() -> None:
        result = await dispatcher.read_resource(uri)
        for content in result.contents:
            console.print(content.text, markup=False, highlight=False, soft_wrap=True)

    _run(_read)


@context_app.command("tools")
def tools(project: ProjectOption = None) -> None:
    """List available tools."""
    dispatcher = _get_dispatcher(project)

    async def _list() -> None:
        rows = await dispatcher.list_tools()
        _render_table(
            ["name", "required", "description"],
            [(t.name, ", ".join(t.input_schema.get("required", [])), t.description) for t in rows],
        )

    _run(_list)


@context_app.command("call")
def call(
    name: Annotated[str, typer.Argument(help="Tool name.")],
    arg: ArgOption = None,
    project: ProjectOption = None,
) -> None:
    """Call a tool and print its text output."""
    dispatcher = _get_dispatcher(project)
    arguments = parse_arguments(arg)

    async def _call() -> None:
        result = await dispatcher.call_tool(name, arguments)
        for content in result.content:
            console.print(content.text, markup=False, highlight=False, soft_wrap=True)

    _run(_call)


@context_app.command("prompts")
def prompts(project: ProjectOption = None) -> None:
    """List available prompts."""
    dispatcher = _get_dispatcher(project)

    async def _list() -> None:
        rows = await dispatcher.list_prompts()
        _render_table(
            ["name", "arguments", "description"],
            [(p.name, ", ".join(a.name for a in p.arguments), p.description) for p in rows],
        )

    _run(_list)


@context_app.command("prompt")
def prompt(
    name: Annotated[str, typer.Argument(help="Prompt name.")],
    arg: ArgOption = None,
    project: ProjectOption = None,
) -> None:
    """Render a prompt and print its messages."""
    dispatcher = _get_dispatcher(project)
    arguments = parse_arguments(arg)

    async def _get() -> None:
        response = await dispatcher.get_prompt(name, arguments)
        console.print(f"[bold]{response.description}[/bold]")
        for message in response.messages:
            console.print(message.content.text, markup=False, highlight=False, soft_wrap=True)

    _run(_get)

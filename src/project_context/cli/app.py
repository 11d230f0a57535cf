import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from project_context.cli.context import context_app
from project_context.cli.serve import serve_app

app = typer.Typer(
    name="project-context",
    help="Project Context CLI: serve and query read-only project context.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(serve_app, name="serve")
app.add_typer(context_app, name="context")


def configure_logging(level: str) -> None:
    """Send log records to stderr; stdout carries the MCP stdio transport."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    log_level: Annotated[str, typer.Option(envvar="LOG_LEVEL", help="Logging level.")] = "INFO",
) -> None:
    configure_logging(log_level)


def main() -> None:
    app()

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from project_context.config import ServerConfig

serve_app = typer.Typer(help="Start servers.")
# stdout is reserved for the MCP stdio transport.
console = Console(stderr=True)

ProjectOption = Annotated[
    Path | None, typer.Option("--project", "-p", help="Project root (default: $PROJECT_PATH or cwd).")
]


@serve_app.command("mcp")
def mcp(
    project: ProjectOption = None,
    transport: str = "stdio",
) -> None:
    """Start the MCP server."""
    from project_context.dispatch import build_dispatcher
    from project_context.mcp.server import create_mcp_server

    config = ServerConfig.from_environment(project)
    server = create_mcp_server(build_dispatcher(config))
    console.print(
        f"[green]Starting MCP server {config.server_name} v{config.server_version} "
        f"for {config.project_path} (transport: {transport})[/green]"
    )
    server.run(transport=transport)  # type: ignore[arg-type]


@serve_app.command("api")
def api(
    project: ProjectOption = None,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> None:
    """Start the FastAPI HTTP server."""
    import uvicorn

    from project_context.api.app import create_app
    from project_context.api.dependencies import get_dispatcher
    from project_context.dispatch import build_dispatcher

    config = ServerConfig.from_environment(project)
    dispatcher = build_dispatcher(config)
    app = create_app()
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    console.print(f"[green]Starting API server on {host}:{port} for {config.project_path}[/green]")
    uvicorn.run(app, host=host, port=port)

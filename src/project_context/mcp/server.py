"""FastMCP server exposing project context resources, tools and prompts."""

from __future__ import annotations

from typing import Annotated, Any

from fastmcp import FastMCP
from fastmcp.exceptions import PromptError, ResourceError, ToolError
from fastmcp.resources import Resource
from fastmcp.resources.template import FunctionResourceTemplate
from pydantic import Field

from project_context.core.resources import FILE_URI_PREFIX, RESOURCE_CATALOG, mime_type_for
from project_context.dispatch import LOCAL_CALLER, Dispatcher
from project_context.dispatch.dispatcher import SERVER_INFO_RESOURCE
from project_context.errors import ProjectContextError

FILE_TEMPLATE = FILE_URI_PREFIX + "{path*}"


class FileContentTemplate(FunctionResourceTemplate):
    """File template whose resources report the MIME type of the file being read."""

    async def create_resource(self, uri: str, params: dict[str, Any]) -> Resource:
        resource = await super().create_resource(uri, params)
        return resource.model_copy(update={"mime_type": mime_type_for(str(params.get("path", "")))})


def _present(arguments: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in arguments.items() if value is not None}


def create_mcp_server(dispatcher: Dispatcher, caller: str = LOCAL_CALLER) -> FastMCP:
    """Create a FastMCP server routing every request through *dispatcher*."""

    mcp = FastMCP(
        dispatcher.config.server_name,
        instructions="Read-only context about a local software project: overview, structure, dependencies, files.",
    )

    async def call_tool(name: str, arguments: dict[str, Any]) -> str:
        try:
            result = await dispatcher.call_tool(name, _present(arguments), caller=caller)
        except ProjectContextError as exc:
            raise ToolError(exc.message) from None
        return "\n".join(item.text for item in result.content)

    async def read_resource(uri: str) -> str:
        try:
            result = await dispatcher.read_resource(uri, caller=caller)
        except ProjectContextError as exc:
            raise ResourceError(exc.message) from None
        return result.contents[0].text

    async def get_prompt(name: str, arguments: dict[str, Any]) -> str:
        try:
            response = await dispatcher.get_prompt(name, _present(arguments), caller=caller)
        except ProjectContextError as exc:
            raise PromptError(exc.message) from None
        return "\n\n".join(message.content.text for message in response.messages)

    # -- resources -------------------------------------------------------------

    def register_static(uri: str, name: str, description: str, mime_type: str) -> None:
        async def static_resource() -> str:
            return await read_resource(uri)

        mcp.resource(uri, name=name, description=description, mime_type=mime_type)(static_resource)

    for descriptor in (SERVER_INFO_RESOURCE, *RESOURCE_CATALOG):
        if descriptor.uri.startswith(FILE_URI_PREFIX):
            continue
        register_static(descriptor.uri, descriptor.name, descriptor.description, descriptor.mime_type)

    async def file_content(path: str) -> str:
        return await read_resource(FILE_URI_PREFIX + path)

    mcp.add_template(
        FileContentTemplate.from_function(
            file_content,
            FILE_TEMPLATE,
            name="File Content",
            description="Content of a specific file in the project (use context://file/path/to/file.ext)",
        )
    )

    # -- tools -----------------------------------------------------------------

    @mcp.tool()
    async def health_check() -> str:
        """Check server health and status."""
        return await call_tool("health_check", {})

    @mcp.tool()
    async def analyze_dependencies(
        includeDevDependencies: Annotated[  # noqa: N803
            bool | None, Field(description="Include development dependencies in analysis (default: true)")
        ] = None,
        checkSecurity: Annotated[  # noqa: N803
            bool | None, Field(description="Perform security vulnerability scanning (default: true)")
        ] = None,
        outputFormat: Annotated[  # noqa: N803
            str | None, Field(description="Output format: summary, detailed or json (default: summary)")
        ] = None,
    ) -> str:
        """Analyze project dependencies including versions, security vulnerabilities, and outdated packages."""
        return await call_tool(
            "analyze_dependencies",
            {
                "includeDevDependencies": includeDevDependencies,
                "checkSecurity": checkSecurity,
                "outputFormat": outputFormat,
            },
        )

    @mcp.tool()
    async def get_recent_changes(
        days: Annotated[int | None, Field(description="Number of days to look back (default: 7)")] = None,
        maxCommits: Annotated[  # noqa: N803
            int | None, Field(description="Maximum number of commits to return (default: 50)")
        ] = None,
        includeMerges: Annotated[  # noqa: N803
            bool | None, Field(description="Include merge commits (default: false)")
        ] = None,
        author: Annotated[str | None, Field(description="Filter by specific author")] = None,
    ) -> str:
        """Retrieve recent Git commits and changes with configurable time windows and filtering."""
        return await call_tool(
            "get_recent_changes",
            {"days": days, "maxCommits": maxCommits, "includeMerges": includeMerges, "author": author},
        )

    @mcp.tool()
    async def navigate_structure(
        path: Annotated[str | None, Field(description="Path to navigate to (default: project root)")] = None,
        depth: Annotated[int | None, Field(description="Maximum depth to traverse (default: 2)")] = None,
        includeFiles: Annotated[  # noqa: N803
            bool | None, Field(description="Include files in results (default: true)")
        ] = None,
        filterExtensions: Annotated[  # noqa: N803
            list[str] | None, Field(description='Filter by file extensions (e.g., [".ts", ".js"])')
        ] = None,
    ) -> str:
        """Navigate project structure with intelligent filtering and depth control."""
        return await call_tool(
            "navigate_structure",
            {"path": path, "depth": depth, "includeFiles": includeFiles, "filterExtensions": filterExtensions},
        )

    @mcp.tool()
    async def search_project(
        query: Annotated[str, Field(description="Search query (substring match)")],
        filePattern: Annotated[  # noqa: N803
            str | None, Field(description="Glob pattern restricting which files are searched")
        ] = None,
        maxResults: Annotated[  # noqa: N803
            int | None, Field(description="Maximum number of results to return (default: 100)")
        ] = None,
        caseSensitive: Annotated[  # noqa: N803
            bool | None, Field(description="Case sensitive search (default: false)")
        ] = None,
        includeContent: Annotated[  # noqa: N803
            bool | None, Field(description="Search file contents as well as names (default: true)")
        ] = None,
    ) -> str:
        """Search project files for content or filenames with pattern matching."""
        return await call_tool(
            "search_project",
            {
                "query": query,
                "filePattern": filePattern,
                "maxResults": maxResults,
                "caseSensitive": caseSensitive,
                "includeContent": includeContent,
            },
        )

    # -- prompts ---------------------------------------------------------------

    @mcp.prompt()
    async def server_status() -> str:
        """Get detailed server status and configuration."""
        return await get_prompt("server_status", {})

    @mcp.prompt()
    async def project_overview(focus_areas: str | None = None, detail_level: str | None = None) -> str:
        """Generate a comprehensive project overview including structure, dependencies, and key insights."""
        return await get_prompt("project_overview", {"focus_areas": focus_areas, "detail_level": detail_level})

    @mcp.prompt()
    async def code_analysis(
        file_path: str | None = None, analysis_type: str | None = None, include_suggestions: str | None = None
    ) -> str:
        """Analyze specific files or code patterns with project context integration."""
        return await get_prompt(
            "code_analysis",
            {"file_path": file_path, "analysis_type": analysis_type, "include_suggestions": include_suggestions},
        )

    @mcp.prompt()
    async def debugging_assistance(
        error_message: str | None = None, context_files: str | None = None, debug_level: str | None = None
    ) -> str:
        """Provide debugging guidance based on project context and error patterns."""
        return await get_prompt(
            "debugging_assistance",
            {"error_message": error_message, "context_files": context_files, "debug_level": debug_level},
        )

    @mcp.prompt()
    async def architecture_review(
        review_scope: str | None = None, target_changes: str | None = None, architecture_goals: str | None = None
    ) -> str:
        """Review project architecture and provide design guidance and recommendations."""
        return await get_prompt(
            "architecture_review",
            {"review_scope": review_scope, "target_changes": target_changes, "architecture_goals": architecture_goals},
        )

    return mcp

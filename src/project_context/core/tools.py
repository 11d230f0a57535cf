"""Parameterized project-analysis tools.

Each tool declares a pydantic parameter model; its JSON schema is what
``list_tools`` publishes and its validation is the tool's input check. Any
unexpected failure while a tool runs leaves the tool as a validation error
carrying the tool's generic failure message.
"""

from __future__ import annotations

import fnmatch
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import aclosing
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Literal

import pydantic
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from project_context.core.dependencies import DependencyReader
from project_context.core.ports.filesystem import DirEntry
from project_context.core.ports.integrations import ChangeHistorySource, SecurityScanner
from project_context.core.traversal import TraversalEngine, iso_timestamp, relative_posix, resolve_within
from project_context.errors import NotFoundError, ProjectContextError, ValidationError
from project_context.models import (
    Dependency,
    DependencySet,
    NodeKind,
    SecurityVulnerability,
    ToolResult,
    ToolSchema,
    WireModel,
)

logger = logging.getLogger(__name__)

_RULE = "=" * 50


# ---------------------------------------------------------------------------
# Parameter models
# ---------------------------------------------------------------------------


class ToolParams(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AnalyzeDependenciesParams(ToolParams):
    include_dev_dependencies: bool = Field(
        default=True, description="Include development dependencies in analysis (default: true)"
    )
    check_security: bool = Field(default=True, description="Perform security vulnerability scanning (default: true)")
    output_format: Literal["summary", "detailed", "json"] = Field(
        default="summary", description="Output format for results (default: summary)"
    )


class GetRecentChangesParams(ToolParams):
    days: int = Field(default=7, ge=1, le=365, description="Number of days to look back (default: 7)")
    max_commits: int = Field(default=50, ge=1, le=1000, description="Maximum number of commits to return (default: 50)")
    include_merges: bool = Field(default=False, description="Include merge commits (default: false)")
    author: str | None = Field(default=None, description="Filter by specific author")


class NavigateStructureParams(ToolParams):
    path: str = Field(default="", description="Path to navigate to (default: project root)")
    depth: int = Field(default=2, ge=1, le=10, description="Maximum depth to traverse (default: 2)")
    include_files: bool = Field(default=True, description="Include files in results (default: true)")
    filter_extensions: list[str] | None = Field(
        default=None, description='Filter by file extensions (e.g., [".ts", ".js"])'
    )


class SearchProjectParams(ToolParams):
    query: str = Field(min_length=1, description="Search query (substring match)")
    file_pattern: str | None = Field(default=None, description="Glob pattern restricting which files are searched")
    max_results: int = Field(
        default=100, ge=1, le=1000, description="Maximum number of results to return (default: 100)"
    )
    case_sensitive: bool = Field(default=False, description="Case sensitive search (default: false)")
    include_content: bool = Field(default=True, description="Search file contents as well as names (default: true)")


def input_schema(params: type[ToolParams]) -> dict[str, Any]:
    schema = params.model_json_schema(by_alias=True)
    schema.pop("title", None)
    schema.setdefault("required", [])
    return schema


def parse_params(params: type[ToolParams], arguments: dict[str, Any]) -> ToolParams:
    try:
        return params.model_validate(arguments)
    except pydantic.ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "parameters"
        if error["type"] == "missing":
            raise ValidationError(f"Missing required field: {field}") from None
        raise ValidationError(f"Invalid value for field {field}: {error['msg']}") from None


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


class DependencyAnalysis(WireModel):
    package_manager: str
    total_dependencies: int = 0
    production_dependencies: int = 0
    development_dependencies: int = 0
    optional_dependencies: int = 0
    peer_dependencies: int = 0
    outdated_packages: int = 0
    security_scan: Literal["completed", "not_configured", "skipped"] = "skipped"
    vulnerabilities: list[SecurityVulnerability] = Field(default_factory=list)
    summary: str = ""
    dependencies: list[Dependency] | None = None


class NavigationItem(WireModel):
    name: str
    type: NodeKind
    path: str
    depth: int
    size: int | None = None
    last_modified: str
    extension: str | None = None


class NavigationResult(WireModel):
    current_path: str
    type: NodeKind
    contents: list[NavigationItem] | None = None
    parent: str | None = None
    breadcrumb: list[str] = Field(default_factory=list)


class SearchMatch(WireModel):
    file: str
    type: Literal["filename", "content"]
    line: int | None = None
    column: int | None = None
    content: str | None = None


class SearchResult(WireModel):
    query: str
    total_results: int = 0
    results: list[SearchMatch] = Field(default_factory=list)
    search_time: float = 0.0


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    params: type[ToolParams]
    handler: Callable[[Any], Awaitable[str]]
    failure_message: str

    def schema(self) -> ToolSchema:
        return ToolSchema(name=self.name, description=self.description, input_schema=input_schema(self.params))


class ToolExecutor:
    def __init__(
        self,
        root: Path,
        engine: TraversalEngine,
        dependency_reader: DependencyReader,
        history: ChangeHistorySource,
        scanner: SecurityScanner,
    ) -> None:
        self.root = root
        self.engine = engine
        self.dependency_reader = dependency_reader
        self.history = history
        self.scanner = scanner
        self._tools: dict[str, ToolSpec] = {}
        self.register(
            ToolSpec(
                name="analyze_dependencies",
                description="Analyze project dependencies including versions, security vulnerabilities, "
                "and outdated packages",
                params=AnalyzeDependenciesParams,
                handler=self._analyze_dependencies,
                failure_message="Unable to analyze dependencies. Ensure package.json exists and is valid.",
            )
        )
        self.register(
            ToolSpec(
                name="get_recent_changes",
                description="Retrieve recent Git commits and changes with configurable time windows and filtering",
                params=GetRecentChangesParams,
                handler=self._get_recent_changes,
                failure_message="Unable to retrieve recent changes",
            )
        )
        self.register(
            ToolSpec(
                name="navigate_structure",
                description="Navigate project structure with intelligent filtering and depth control",
                params=NavigateStructureParams,
                handler=self._navigate_structure,
                failure_message="Navigation failed",
            )
        )
        self.register(
            ToolSpec(
                name="search_project",
                description="Search project files for content or filenames with pattern matching",
                params=SearchProjectParams,
                handler=self._search_project,
                failure_message="Search operation failed",
            )
        )

    def register(self, spec: ToolSpec) -> None:
        self._tools[spec.name] = spec

    def list_tools(self) -> list[ToolSchema]:
        return [spec.schema() for spec in self._tools.values()]

    async def execute(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        spec = self._tools.get(name)
        if spec is None:
            raise NotFoundError(f"Unknown tool: {name}")
        params = parse_params(spec.params, arguments or {})
        try:
            text = await spec.handler(params)
        except ProjectContextError:
            raise
        except Exception:
            logger.exception("Tool %s failed", name)
            raise ValidationError(spec.failure_message) from None
        return ToolResult.text(text)

    # -- analyze_dependencies --------------------------------------------------

    async def analyze(self, params: AnalyzeDependenciesParams) -> DependencyAnalysis:
        package_manager = await self.dependency_reader.lock_file_manager(self.root)
        deps = await self.dependency_reader.parse(self.root, package_manager)

        included = _included_dependencies(deps, params.include_dev_dependencies)
        development = len(deps.dev_dependencies) if params.include_dev_dependencies else 0
        result = DependencyAnalysis(
            package_manager=deps.package_manager,
            production_dependencies=len(deps.dependencies),
            development_dependencies=development,
            optional_dependencies=len(deps.optional_dependencies),
            peer_dependencies=len(deps.peer_dependencies),
            total_dependencies=len(deps.dependencies) + development,
            dependencies=included if params.output_format != "summary" else None,
        )

        if params.check_security:
            scan = await self.scanner.scan(self.root, included)
            result.security_scan = "completed" if scan.configured else "not_configured"
            result.vulnerabilities = list(scan.vulnerabilities)

        result.summary = format_dependency_summary(result)
        return result

    async def _analyze_dependencies(self, params: AnalyzeDependenciesParams) -> str:
        result = await self.analyze(params)
        if params.output_format == "json":
            return result.to_json()
        if params.output_format == "detailed":
            return format_detailed_dependency_report(result)
        return result.summary

    # -- get_recent_changes ----------------------------------------------------

    async def _get_recent_changes(self, params: GetRecentChangesParams) -> str:
        history = await self.history.recent_changes(
            self.root, params.days, params.max_commits, params.include_merges, params.author
        )
        lines = [f"Git Changes Analysis (Last {params.days} days)", ""]
        if not history.configured:
            lines.append("No Git history backend is wired in; commit history is not available.")
        elif not history.commits:
            lines.append("No commits found in the requested period.")
        else:
            lines.append(f"Total commits: {len(history.commits)}")
            authors = sorted({c.author for c in history.commits})
            lines.append(f"Authors: {', '.join(authors)}")
            lines.append("")
            for commit in history.commits[: params.max_commits]:
                lines.append(f"{commit.hash[:8]} {commit.date} {commit.author}: {commit.message}")
        lines += [
            "",
            "Parameters used:",
            f"- Days: {params.days}",
            f"- Max commits: {params.max_commits}",
            f"- Include merges: {str(params.include_merges).lower()}",
            f"- Author filter: {params.author or 'None'}",
        ]
        return "\n".join(lines)

    # -- navigate_structure ----------------------------------------------------

    async def navigate(self, params: NavigateStructureParams) -> NavigationResult:
        path = params.path.strip("/")
        target = resolve_within(self.root, path)
        if target is None:
            raise NotFoundError(f"Path not found or inaccessible: {params.path}")
        try:
            target_stat = await self.engine.fs.stat(target)
        except OSError:
            raise NotFoundError(f"Path not found or inaccessible: {params.path}") from None

        breadcrumb = [part for part in path.split("/") if part]
        result = NavigationResult(
            current_path=path or ".",
            type="directory" if target_stat.is_dir else "file",
            parent="/".join(breadcrumb[:-1]) if breadcrumb else None,
            breadcrumb=breadcrumb,
        )
        if not target_stat.is_dir:
            return result

        try:
            entries = await self.engine.list_entries(target)
        except OSError:
            raise NotFoundError(f"Path not found or inaccessible: {params.path}") from None

        extensions = _normalize_extensions(params.filter_extensions)
        result.contents = []
        await self._collect_items(entries, 1, params, extensions, result.contents)
        return result

    async def _collect_items(
        self,
        entries: list[DirEntry],
        depth: int,
        params: NavigateStructureParams,
        extensions: frozenset[str] | None,
        items: list[NavigationItem],
    ) -> None:
        for entry in entries:
            suffix = PurePosixPath(entry.name).suffix
            if entry.is_file and (not params.include_files or (extensions and suffix not in extensions)):
                continue
            items.append(
                NavigationItem(
                    name=entry.name,
                    type="directory" if entry.is_dir else "file",
                    path=relative_posix(self.root, entry.path),
                    depth=depth,
                    size=entry.stat.size if entry.is_file else None,
                    last_modified=iso_timestamp(entry.stat.mtime),
                    extension=(suffix or None) if entry.is_file else None,
                )
            )
            if entry.is_dir and depth < params.depth:
                try:
                    children = await self.engine.list_entries(entry.path)
                except OSError:
                    continue
                await self._collect_items(children, depth + 1, params, extensions, items)

    async def _navigate_structure(self, params: NavigateStructureParams) -> str:
        return format_navigation_result(await self.navigate(params))

    # -- search_project --------------------------------------------------------

    async def search(self, params: SearchProjectParams) -> SearchResult:
        started = time.perf_counter()
        result = SearchResult(query=params.query)
        needle = params.query if params.case_sensitive else params.query.casefold()

        def _contains(text: str) -> bool:
            return needle in (text if params.case_sensitive else text.casefold())

        async with aclosing(self.engine.walk_files(self.root)) as files:
            async for rel_path, entry in files:
                if len(result.results) >= params.max_results:
                    break
                if params.file_pattern and not _matches_pattern(params.file_pattern, entry.name, rel_path):
                    continue

                if _contains(entry.name):
                    result.results.append(SearchMatch(file=rel_path, type="filename"))

                if not params.include_content or len(result.results) >= params.max_results:
                    continue
                if self.engine.policy.is_too_large(entry.stat.size):
                    continue
                try:
                    content = await self.engine.fs.read_text(entry.path)
                except OSError:
                    continue
                if not _contains(content):
                    continue
                for number, line in enumerate(content.split("\n"), start=1):
                    if len(result.results) >= params.max_results:
                        break
                    if not line:
                        continue
                    column = find_column(line, needle, params.case_sensitive)
                    if column is not None:
                        result.results.append(
                            SearchMatch(file=rel_path, type="content", line=number, column=column, content=line)
                        )

        result.total_results = len(result.results)
        result.search_time = max(0.0, round((time.perf_counter() - started) * 1000, 2))
        return result

    async def _search_project(self, params: SearchProjectParams) -> str:
        return format_search_result(await self.search(params))


# ---------------------------------------------------------------------------
# Helpers and formatting
# ---------------------------------------------------------------------------


def _included_dependencies(deps: DependencySet, include_dev: bool) -> list[Dependency]:
    included = list(deps.dependencies)
    if include_dev:
        included += deps.dev_dependencies
    return included + deps.optional_dependencies + deps.peer_dependencies


def _normalize_extensions(extensions: list[str] | None) -> frozenset[str] | None:
    if not extensions:
        return None
    return frozenset(ext if ext.startswith(".") else f".{ext}" for ext in extensions)


def find_column(line: str, needle: str, case_sensitive: bool) -> int | None:
    """1-based column in *line* where *needle* first occurs.

    For case-insensitive searches *needle* must already be casefolded. Casefolding
    can expand a character (``"ß"`` becomes ``"ss"``), so positions in the folded
    text are mapped back to the character they came from.
    """
    if case_sensitive:
        index = line.find(needle)
        return index + 1 if index >= 0 else None
    folded: list[str] = []
    origins: list[int] = []
    for position, char in enumerate(line):
        piece = char.casefold()
        folded.append(piece)
        origins.extend([position] * len(piece))
    index = "".join(folded).find(needle)
    return origins[index] + 1 if index >= 0 else None


def _matches_pattern(pattern: str, name: str, rel_path: str) -> bool:
    return fnmatch.fnmatchcase(name, pattern) or fnmatch.fnmatchcase(rel_path, pattern)


def _security_status(result: DependencyAnalysis) -> str:
    if result.security_scan == "skipped":
        return "Security Status: not checked"
    if result.security_scan == "not_configured":
        return "Security Status: no vulnerability scanner configured"
    return f"Security Status: {len(result.vulnerabilities)} vulnerabilities found"


def format_dependency_summary(result: DependencyAnalysis) -> str:
    lines = [
        "Dependency Analysis Summary",
        "",
        f"Package Manager: {result.package_manager}",
        f"Total Dependencies: {result.total_dependencies}",
        f"- Production: {result.production_dependencies}",
        f"- Development: {result.development_dependencies}",
    ]
    if result.optional_dependencies:
        lines.append(f"- Optional: {result.optional_dependencies}")
    if result.peer_dependencies:
        lines.append(f"- Peer: {result.peer_dependencies}")
    lines += ["", _security_status(result), f"Outdated Packages: {result.outdated_packages}", ""]
    if result.vulnerabilities:
        lines.append("Security vulnerabilities detected. Consider running security updates.")
    elif result.security_scan == "completed":
        lines.append("No known security vulnerabilities detected.")
    else:
        lines.append("Vulnerability data unavailable.")
    return "\n".join(lines)


_SECTION_TITLES = {
    "production": "Production Dependencies",
    "development": "Development Dependencies",
    "optional": "Optional Dependencies",
    "peer": "Peer Dependencies",
}


def format_detailed_dependency_report(result: DependencyAnalysis) -> str:
    report = result.summary or format_dependency_summary(result)
    if not result.dependencies:
        return report

    lines = [report, "", "Detailed Dependency List:", _RULE]
    for dep_type, title in _SECTION_TITLES.items():
        section = [dep for dep in result.dependencies if dep.type == dep_type]
        if not section:
            continue
        lines += ["", f"{title}:", "-" * (len(title) + 1)]
        lines += [f"• {dep.name}@{dep.version}" for dep in section]
    if result.vulnerabilities:
        lines += ["", "Vulnerabilities:", "-" * 16]
        lines += [f"• [{v.severity}] {v.package}: {v.title}" for v in result.vulnerabilities]
    return "\n".join(lines)


def format_navigation_result(result: NavigationResult) -> str:
    lines = [f"Navigation: {result.current_path}", _RULE]
    if result.breadcrumb:
        lines += [f"Path: {' / '.join(result.breadcrumb)}", ""]

    if result.type == "file":
        lines.append("This is a file. Use the file content resource to read its contents.")
        return "\n".join(lines) + "\n"

    if not result.contents:
        lines.append("Directory is empty or no accessible items found.")
        return "\n".join(lines) + "\n"

    for item in result.contents:
        indent = "  " * (item.depth - 1)
        if item.type == "directory":
            lines.append(f"{indent}📁 {item.name}/")
        else:
            size = f" ({round(item.size / 1024)}KB)" if item.size else ""
            lines.append(f"{indent}📄 {item.name}{size}")
    return "\n".join(lines) + "\n"


def format_search_result(result: SearchResult) -> str:
    lines = [
        f'Search Results for "{result.query}"',
        _RULE,
        f"Found {result.total_results} matches in {result.search_time}ms",
        "",
    ]
    if not result.results:
        lines.append("No matches found.")
        return "\n".join(lines) + "\n"

    for index, match in enumerate(result.results, start=1):
        location = match.file
        if match.line:
            location += f":{match.line}"
            if match.column:
                location += f":{match.column}"
        lines.append(f"{index}. {location}")
        if match.content:
            lines.append(f"   {match.content.strip()}")
        lines.append("")
    return "\n".join(lines)

"""Natural-language prompt templates filled in with live project context."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from project_context.core.resources import ResourceProvider
from project_context.errors import NotFoundError
from project_context.models import (
    DependencySet,
    ProjectOverview,
    ProjectStructureNode,
    PromptArgument,
    PromptResponse,
    PromptSchema,
)

logger = logging.getLogger(__name__)

MAX_FILE_CHARS = 2000
MAX_CONTEXT_FILES = 3
MAX_CHILDREN_SHOWN = 10

CONTEXT_NOT_AVAILABLE = "*Project context not available - please provide project details.*"

_CODE_ANALYSIS_FOCUS = {
    "quality": (
        "Code structure and organization",
        "Naming conventions and clarity",
        "Function/method design",
        "Error handling patterns",
        "Code maintainability",
    ),
    "security": (
        "Security vulnerabilities",
        "Input validation",
        "Authentication/authorization patterns",
        "Data sanitization",
        "Secure coding practices",
    ),
    "performance": (
        "Performance bottlenecks",
        "Algorithm efficiency",
        "Memory usage patterns",
        "I/O operations optimization",
        "Caching opportunities",
    ),
    "patterns": (
        "Design patterns usage",
        "Architectural patterns",
        "Code patterns and anti-patterns",
        "Best practices adherence",
        "Refactoring opportunities",
    ),
}
_CODE_ANALYSIS_DEFAULT = (
    "Overall code quality",
    "Best practices adherence",
    "Improvement opportunities",
    "Design considerations",
)

_DEBUG_CLOSING = {
    "quick": "Please provide a quick diagnosis and the most likely solution.",
    "comprehensive": (
        "Please provide a comprehensive analysis including:\n"
        "- Multiple potential causes\n"
        "- Step-by-step debugging approach\n"
        "- Alternative solutions\n"
        "- Related code improvements"
    ),
}
_DEBUG_CLOSING_DEFAULT = "Please provide a thorough analysis with clear explanations and practical solutions."

_ARCHITECTURE_SECTIONS: dict[str, tuple[tuple[str, tuple[str, ...]], ...]] = {
    "overall": (
        (
            "Overall Architecture Assessment",
            ("Current architecture patterns and style", "Strengths and weaknesses", "Scalability considerations"),
        ),
        (
            "Design Principles Evaluation",
            ("Separation of concerns", "Modularity and cohesion", "Maintainability factors"),
        ),
        (
            "Recommendations",
            ("Architectural improvements", "Best practices alignment", "Future-proofing suggestions"),
        ),
    ),
    "module": (
        (
            "Module Structure Analysis",
            ("Module organization and boundaries", "Inter-module dependencies", "Coupling and cohesion assessment"),
        ),
        ("Module Design Quality", ("Single responsibility adherence", "Interface design", "Reusability factors")),
        (
            "Module Recommendations",
            ("Refactoring opportunities", "Better module boundaries", "Dependency optimization"),
        ),
    ),
    "performance": (
        (
            "Performance Architecture Review",
            ("Performance bottleneck identification", "Scalability assessment", "Resource utilization patterns"),
        ),
        ("Performance Design Patterns", ("Caching strategies", "Asynchronous processing", "Data flow optimization")),
        (
            "Performance Recommendations",
            (
                "Optimization opportunities",
                "Architectural changes for performance",
                "Monitoring and measurement strategies",
            ),
        ),
    ),
    "scalability": (
        (
            "Scalability Assessment",
            (
                "Current scalability limitations",
                "Horizontal vs vertical scaling considerations",
                "Load distribution patterns",
            ),
        ),
        ("Scalable Design Patterns", ("Microservices readiness", "State management for scale", "Database scalability")),
        (
            "Scalability Roadmap",
            ("Immediate improvements", "Long-term architectural evolution", "Technology stack considerations"),
        ),
    ),
}
_ARCHITECTURE_DEFAULT = (
    "Architecture Overview",
    "Design Quality Assessment",
    "Improvement Recommendations",
    "Implementation Guidance",
)

PROMPT_CATALOG: tuple[PromptSchema, ...] = (
    PromptSchema(
        name="project_overview",
        description="Generate a comprehensive project overview including structure, dependencies, and key insights",
        arguments=[
            PromptArgument(
                name="focus_areas",
                description="Specific areas to focus on (e.g., security, performance, architecture)",
            ),
            PromptArgument(name="detail_level", description="Level of detail: brief, standard, detailed"),
        ],
    ),
    PromptSchema(
        name="code_analysis",
        description="Analyze specific files or code patterns with project context integration",
        arguments=[
            PromptArgument(name="file_path", description="Path to specific file for analysis"),
            PromptArgument(
                name="analysis_type", description="Type of analysis: quality, security, performance, patterns"
            ),
            PromptArgument(name="include_suggestions", description="Include improvement suggestions"),
        ],
    ),
    PromptSchema(
        name="debugging_assistance",
        description="Provide debugging guidance based on project context and error patterns",
        arguments=[
            PromptArgument(name="error_message", description="Error message or stack trace to analyze"),
            PromptArgument(name="context_files", description="Comma-separated list of relevant files for context"),
            PromptArgument(name="debug_level", description="Debug detail level: quick, thorough, comprehensive"),
        ],
    ),
    PromptSchema(
        name="architecture_review",
        description="Review project architecture and provide design guidance and recommendations",
        arguments=[
            PromptArgument(
                name="review_scope", description="Scope of review: overall, module, performance, scalability"
            ),
            PromptArgument(name="target_changes", description="Specific changes or features being considered"),
            PromptArgument(
                name="architecture_goals", description="Architecture goals: maintainability, performance, scalability"
            ),
        ],
    ),
)


def _text_arg(args: Mapping[str, Any], name: str, default: str = "") -> str:
    value = args.get(name)
    if value is None or value == "":
        return default
    return str(value)


def _flag_arg(args: Mapping[str, Any], name: str, default: bool) -> bool:
    value = args.get(name)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in {"false", "0", "no", "off"}


def _megabytes(size_in_bytes: int) -> float:
    return round(size_in_bytes / 1024 / 1024, 2)


def truncate(content: str, limit: int = MAX_FILE_CHARS) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + "\n... (truncated)"


def format_structure(node: ProjectStructureNode, max_depth: int, depth: int = 0, indent: str = "") -> str:
    """Render *node* as an indented outline, at most ``MAX_CHILDREN_SHOWN`` entries per directory."""
    if depth >= max_depth:
        return ""
    lines = ""
    if depth > 0:
        icon = "📁" if node.type == "directory" else "📄"
        lines += f"{indent}{icon} {node.name}\n"
    if node.type == "directory" and node.children:
        child_indent = indent + "  "
        for child in node.children[:MAX_CHILDREN_SHOWN]:
            lines += format_structure(child, max_depth, depth + 1, child_indent)
        hidden = len(node.children) - MAX_CHILDREN_SHOWN
        if hidden > 0:
            lines += f"{child_indent}... ({hidden} more items)\n"
    return lines


def _dependency_summary(deps: DependencySet) -> str:
    return (
        f"- **Total Dependencies**: {deps.total_count}\n"
        f"- **Production**: {len(deps.dependencies)}\n"
        f"- **Development**: {len(deps.dev_dependencies)}\n"
        f"- **Package Manager**: {deps.package_manager}"
    )


@dataclass(frozen=True)
class _Snapshots:
    overview: ProjectOverview | None
    structure: ProjectStructureNode | None
    dependencies: DependencySet | None


class PromptComposer:
    def __init__(self, resources: ResourceProvider) -> None:
        self.resources = resources
        self._templates: dict[str, Callable[[Mapping[str, Any]], Awaitable[PromptResponse]]] = {
            "project_overview": self.project_overview,
            "code_analysis": self.code_analysis,
            "debugging_assistance": self.debugging_assistance,
            "architecture_review": self.architecture_review,
        }

    def list_prompts(self) -> list[PromptSchema]:
        return list(PROMPT_CATALOG)

    async def get_prompt(self, name: str, args: Mapping[str, Any] | None = None) -> PromptResponse:
        template = self._templates.get(name)
        if template is None:
            raise NotFoundError(f"Unknown prompt: {name}")
        return await template(args or {})

    # -- upstream context ------------------------------------------------------

    async def _load(self, label: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await loader()
        except Exception as exc:
            logger.debug("Could not load project %s: %s", label, exc)
            return None

    async def _snapshots(self) -> _Snapshots:
        return _Snapshots(
            overview=await self._load("overview", self.resources.overview),
            structure=await self._load("structure", self.resources.structure),
            dependencies=await self._load("dependencies", self.resources.dependencies),
        )

    async def _file(self, path: str) -> str | None:
        return await self._load(f"file {path}", lambda: self.resources.file_content(path))

    # -- templates -------------------------------------------------------------

    async def project_overview(self, args: Mapping[str, Any]) -> PromptResponse:
        focus_areas = _text_arg(args, "focus_areas", "general")
        detail_level = _text_arg(args, "detail_level", "standard")
        snap = await self._snapshots()

        language = snap.overview.language if snap.overview else "software"
        parts = [
            f"Please analyze this {language} project and provide a comprehensive overview. "
            "Here's the project information:",
            "",
            "## Project Details",
        ]
        if snap.overview:
            o = snap.overview
            parts += [
                f"- **Name**: {o.name}",
                f"- **Version**: {o.version}",
                f"- **Description**: {o.description}",
                f"- **Language**: {o.language}",
                f"- **Framework**: {o.framework or 'None detected'}",
                f"- **Package Manager**: {o.package_manager}",
                f"- **File Count**: {o.file_count}",
                f"- **Size**: {_megabytes(o.size_in_bytes)}MB",
            ]
        else:
            parts.append(CONTEXT_NOT_AVAILABLE)

        parts += ["", "## Dependencies Summary"]
        parts.append(_dependency_summary(snap.dependencies) if snap.dependencies else CONTEXT_NOT_AVAILABLE)

        parts += ["", "## Project Structure Overview", "The project has the following top-level structure:"]
        parts.append(format_structure(snap.structure, 2).rstrip("\n") if snap.structure else CONTEXT_NOT_AVAILABLE)

        parts += [
            "",
            "## Analysis Request",
            f"Focus Areas: {focus_areas}",
            f"Detail Level: {detail_level}",
            "",
            "Please provide insights on:",
            "1. Project architecture and organization",
            "2. Technology stack assessment",
            "3. Dependency health and recommendations",
            "4. Code quality observations",
            "5. Potential areas for improvement",
        ]
        text = "\n".join(parts)
        if focus_areas != "general":
            text += f"\n\nPay special attention to {focus_areas} aspects of the project."
        if detail_level == "detailed":
            text += "\n\nProvide detailed analysis with specific recommendations and examples."
        elif detail_level == "brief":
            text += "\n\nKeep the analysis concise and focus on key points only."

        return PromptResponse.single(f"Comprehensive project overview with focus on {focus_areas}", text)

    async def code_analysis(self, args: Mapping[str, Any]) -> PromptResponse:
        file_path = _text_arg(args, "file_path")
        analysis_type = _text_arg(args, "analysis_type", "quality")
        include_suggestions = _flag_arg(args, "include_suggestions", True)

        text = (
            "Please analyze this code with project context. Here's the analysis request:\n\n"
            "## Analysis Configuration\n"
            f"- **Analysis Type**: {analysis_type}\n"
            f"- **Include Suggestions**: {str(include_suggestions).lower()}\n"
            "- **Project Context**: Available\n\n"
            "## Project Context\n"
        )
        overview = await self._load("overview", self.resources.overview)
        if overview:
            text += (
                f"- **Language**: {overview.language}\n"
                f"- **Framework**: {overview.framework or 'None'}\n"
                f"- **Project Type**: {overview.description}\n\n"
            )
        else:
            text += f"{CONTEXT_NOT_AVAILABLE}\n\n"

        if file_path:
            content = await self._file(file_path)
            if content is None:
                text += (
                    f"**Note**: Could not load file content for {file_path}. Please provide the code to analyze.\n\n"
                )
            else:
                text += f"## File Content: {file_path}\n```\n{truncate(content)}\n```\n\n"
        else:
            text += "**Note**: No specific file provided. Please share the code you'd like me to analyze.\n\n"

        focus = _CODE_ANALYSIS_FOCUS.get(analysis_type, _CODE_ANALYSIS_DEFAULT)
        text += f"## Analysis Request\nPlease analyze the code focusing on {analysis_type} aspects:\n\n"
        text += "\n".join(f"- {item}" for item in focus)
        if include_suggestions:
            text += "\n\nPlease include specific improvement suggestions with examples where applicable."

        return PromptResponse.single(f"Code analysis focusing on {analysis_type} with project context", text)

    async def debugging_assistance(self, args: Mapping[str, Any]) -> PromptResponse:
        error_message = _text_arg(args, "error_message")
        context_files = _text_arg(args, "context_files")
        debug_level = _text_arg(args, "debug_level", "thorough")

        text = "I need help debugging an issue in my project. Here's the context:\n\n## Project Information\n"
        overview = await self._load("overview", self.resources.overview)
        if overview:
            text += (
                f"- **Language**: {overview.language}\n"
                f"- **Framework**: {overview.framework or 'None'}\n"
                f"- **Version**: {overview.version}\n"
                f"- **Package Manager**: {overview.package_manager}\n\n"
            )
        else:
            text += f"{CONTEXT_NOT_AVAILABLE}\n\n"

        if error_message:
            text += f"## Error Details\n```\n{error_message}\n```\n\n"

        if context_files:
            text += "## Relevant Files\n"
            files = [name.strip() for name in context_files.split(",") if name.strip()]
            for name in files[:MAX_CONTEXT_FILES]:
                content = await self._file(name)
                if content is None:
                    text += f"### {name}\n*Could not load file content*\n\n"
                else:
                    text += f"### {name}\n```\n{truncate(content)}\n```\n\n"

        text += (
            "## Debugging Request\n"
            f"Debug Level: {debug_level}\n\n"
            "Please help me debug this issue by:\n\n"
            "1. **Analyzing the error** - What is the root cause?\n"
            "2. **Identifying the problem area** - Where in the code is the issue occurring?\n"
            "3. **Providing solutions** - How can this be fixed?\n"
            "4. **Suggesting prevention** - How can similar issues be avoided?\n\n"
        )
        text += _DEBUG_CLOSING.get(debug_level, _DEBUG_CLOSING_DEFAULT)
        if not error_message and not context_files:
            text += "\n\n**Note**: Please share the error message and relevant code for more specific assistance."

        return PromptResponse.single(f"Debugging assistance with {debug_level} analysis", text)

    async def architecture_review(self, args: Mapping[str, Any]) -> PromptResponse:
        review_scope = _text_arg(args, "review_scope", "overall")
        target_changes = _text_arg(args, "target_changes")
        architecture_goals = _text_arg(args, "architecture_goals")
        snap = await self._snapshots()

        text = (
            "Please review the architecture of this project and provide design guidance. "
            "Here's the project information:\n\n## Project Context\n"
        )
        if snap.overview and snap.structure and snap.dependencies:
            o = snap.overview
            text += (
                "### Project Overview\n"
                f"- **Name**: {o.name}\n"
                f"- **Language**: {o.language}\n"
                f"- **Framework**: {o.framework or 'None detected'}\n"
                f"- **Size**: {o.file_count} files, {_megabytes(o.size_in_bytes)}MB\n\n"
                "### Architecture Structure\n"
                f"{format_structure(snap.structure, 3)}\n"
                "### Dependencies Analysis\n"
                f"{_dependency_summary(snap.dependencies)}\n\n"
            )
        else:
            text += f"{CONTEXT_NOT_AVAILABLE}\n\n"

        text += f"## Review Configuration\n- **Review Scope**: {review_scope}"
        if target_changes:
            text += f"\n- **Target Changes**: {target_changes}"
        if architecture_goals:
            text += f"\n- **Architecture Goals**: {architecture_goals}"

        text += (
            "\n\n## Architecture Review Request\n\n"
            f"Please provide an architectural analysis focusing on {review_scope} aspects:\n\n"
        )
        sections = _ARCHITECTURE_SECTIONS.get(review_scope)
        if sections is None:
            text += "\n".join(f"{n}. **{title}**" for n, title in enumerate(_ARCHITECTURE_DEFAULT, start=1))
        else:
            text += "\n\n".join(
                f"{n}. **{title}**\n" + "\n".join(f"   - {point}" for point in points)
                for n, (title, points) in enumerate(sections, start=1)
            )

        if target_changes:
            text += (
                "\n\n## Specific Change Analysis\n"
                f'Please also evaluate the proposed changes: "{target_changes}"\n'
                "- Impact on current architecture\n"
                "- Implementation approach\n"
                "- Potential risks and mitigations"
            )
        if architecture_goals:
            text += (
                "\n\n## Goal Alignment\n"
                f'Please ensure recommendations align with these architecture goals: "{architecture_goals}"'
            )

        return PromptResponse.single(f"Architecture review focusing on {review_scope} with design guidance", text)

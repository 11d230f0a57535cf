from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NodeKind = Literal["file", "directory"]
DependencyType = Literal["production", "development", "optional", "peer"]
Severity = Literal["low", "moderate", "high", "critical"]


class WireModel(BaseModel):
    """Base for values that leave the process: camelCase on the wire, ``None`` omitted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)


class ResourceDescriptor(WireModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    uri: str
    name: str
    description: str
    mime_type: str
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")


class ResourceContent(WireModel):
    uri: str
    mime_type: str
    text: str


class ProjectOverview(WireModel):
    name: str
    version: str
    description: str
    path: str
    language: str
    framework: str | None = None
    package_manager: str | None = None
    last_modified: str
    file_count: int
    size_in_bytes: int
    git_repository: str | None = None
    git_branch: str | None = None
    git_last_commit: str | None = None


class ProjectStructureNode(WireModel):
    path: str
    type: NodeKind
    name: str
    extension: str | None = None
    size: int | None = None
    last_modified: str | None = None
    children: list["ProjectStructureNode"] | None = None


ProjectStructureNode.model_rebuild()  # necessary for recursive types


class SecurityVulnerability(WireModel):
    package: str
    severity: Severity
    title: str
    description: str
    recommendation: str
    affected_versions: str = "*"


class Dependency(WireModel):
    name: str
    version: str
    requested_version: str
    type: DependencyType
    license: str | None = None
    homepage: str | None = None
    vulnerabilities: list[SecurityVulnerability] | None = None


class DependencySet(WireModel):
    package_manager: str
    dependencies: list[Dependency] = Field(default_factory=list)
    dev_dependencies: list[Dependency] = Field(default_factory=list)
    optional_dependencies: list[Dependency] = Field(default_factory=list)
    peer_dependencies: list[Dependency] = Field(default_factory=list)
    total_count: int = 0
    lock_file_exists: bool = False

    @classmethod
    def empty(cls, package_manager: str) -> "DependencySet":
        return cls(package_manager=package_manager)

    def all(self) -> list[Dependency]:
        return [*self.dependencies, *self.dev_dependencies, *self.optional_dependencies, *self.peer_dependencies]


class ToolSchema(WireModel):
    name: str
    description: str
    input_schema: dict[str, Any]


class PromptArgument(WireModel):
    name: str
    description: str
    required: bool = False


class PromptSchema(WireModel):
    name: str
    description: str
    arguments: list[PromptArgument] = Field(default_factory=list)


class TextContent(WireModel):
    type: Literal["text"] = "text"
    text: str


class PromptMessage(WireModel):
    role: Literal["user", "assistant"] = "user"
    content: TextContent


class PromptResponse(WireModel):
    description: str
    messages: list[PromptMessage]

    @classmethod
    def single(cls, description: str, text: str) -> "PromptResponse":
        return cls(description=description, messages=[PromptMessage(content=TextContent(text=text))])


class ToolResult(WireModel):
    content: list[TextContent]

    @classmethod
    def text(cls, text: str) -> "ToolResult":
        return cls(content=[TextContent(text=text)])


class ResourceResult(WireModel):
    contents: list[ResourceContent]

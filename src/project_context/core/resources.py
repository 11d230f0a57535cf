"""Read-only, URI-addressed snapshots of the project."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path, PurePosixPath

from project_context.core.classifier import detect_framework, detect_language
from project_context.core.dependencies import DependencyReader, JsonManifestReader
from project_context.core.ports.integrations import VersionControlProbe
from project_context.core.traversal import TraversalEngine
from project_context.errors import NotFoundError
from project_context.models import (
    DependencySet,
    ProjectOverview,
    ProjectStructureNode,
    ResourceContent,
    ResourceDescriptor,
    ResourceResult,
    WireModel,
)

logger = logging.getLogger(__name__)

OVERVIEW_URI = "context://project/overview"
STRUCTURE_URI = "context://project/structure"
DEPENDENCIES_URI = "context://project/dependencies"
FILE_URI_PREFIX = "context://file/"
FILE_URI_TEMPLATE = FILE_URI_PREFIX + "{path}"

JSON_MIME = "application/json"

_MIME_TYPES = {
    ".json": "application/json",
    ".js": "application/javascript",
    ".ts": "text/typescript",
    ".html": "text/html",
    ".css": "text/css",
    ".md": "text/markdown",
    ".txt": "text/plain",
    ".xml": "application/xml",
    ".yaml": "application/yaml",
    ".yml": "application/yaml",
    ".py": "text/x-python",
    ".java": "text/x-java-source",
    ".cpp": "text/x-c++src",
    ".c": "text/x-csrc",
    ".go": "text/x-go",
    ".rs": "text/x-rust",
    ".php": "text/x-php",
    ".rb": "text/x-ruby",
    ".swift": "text/x-swift",
    ".kt": "text/x-kotlin",
    ".cs": "text/x-csharp",
}

RESOURCE_CATALOG: tuple[ResourceDescriptor, ...] = (
    ResourceDescriptor(
        uri=OVERVIEW_URI,
        name="Project Overview",
        description="Comprehensive overview of the project including metadata, statistics, and Git information",
        mime_type=JSON_MIME,
        schema_={
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "version": {"type": "string"},
                "description": {"type": "string"},
                "path": {"type": "string"},
                "language": {"type": "string"},
                "framework": {"type": "string"},
                "packageManager": {"type": "string"},
                "lastModified": {"type": "string"},
                "fileCount": {"type": "number"},
                "sizeInBytes": {"type": "number"},
                "gitRepository": {"type": "string"},
                "gitBranch": {"type": "string"},
                "gitLastCommit": {"type": "string"},
            },
        },
    ),
    ResourceDescriptor(
        uri=STRUCTURE_URI,
        name="Project Structure",
        description="Complete file and directory structure of the project",
        mime_type=JSON_MIME,
        schema_={
            "type": "object",
            "properties": {
                "path": {"type": "string"},
                "type": {"type": "string", "enum": ["file", "directory"]},
                "name": {"type": "string"},
                "extension": {"type": "string"},
                "size": {"type": "number"},
                "children": {"type": "array"},
                "lastModified": {"type": "string"},
            },
        },
    ),
    ResourceDescriptor(
        uri=DEPENDENCIES_URI,
        name="Project Dependencies",
        description="Declared project dependencies split by type, with lock file detection",
        mime_type=JSON_MIME,
        schema_={
            "type": "object",
            "properties": {
                "packageManager": {"type": "string"},
                "dependencies": {"type": "array"},
                "devDependencies": {"type": "array"},
                "optionalDependencies": {"type": "array"},
                "peerDependencies": {"type": "array"},
                "totalCount": {"type": "number"},
                "lockFileExists": {"type": "boolean"},
            },
        },
    ),
    ResourceDescriptor(
        uri=FILE_URI_TEMPLATE,
        name="File Content",
        description="Content of a specific file in the project (use context://file/path/to/file.ext)",
        mime_type="text/plain",
        schema_={"type": "string"},
    ),
)


def mime_type_for(path: str) -> str:
    return _MIME_TYPES.get(PurePosixPath(path).suffix.lower(), "text/plain")


class ResourceProvider:
    def __init__(
        self,
        root: Path,
        engine: TraversalEngine,
        vcs: VersionControlProbe,
        dependency_reader: DependencyReader | None = None,
        manifests: JsonManifestReader | None = None,
    ) -> None:
        self.root = root
        self.engine = engine
        self.vcs = vcs
        self.manifests = manifests or JsonManifestReader(engine.fs)
        self.dependency_reader = dependency_reader or DependencyReader(engine.fs, self.manifests)
        self._snapshots: dict[str, Callable[[], Awaitable[WireModel]]] = {
            OVERVIEW_URI: self.overview,
            STRUCTURE_URI: self.structure,
            DEPENDENCIES_URI: self.dependencies,
        }

    def list_resources(self) -> list[ResourceDescriptor]:
        return list(RESOURCE_CATALOG)

    async def read_resource(self, uri: str) -> ResourceResult:
        snapshot = self._snapshots.get(uri)
        if snapshot is not None:
            value = await snapshot()
            return ResourceResult(contents=[ResourceContent(uri=uri, mime_type=JSON_MIME, text=value.to_json())])

        if uri.startswith(FILE_URI_PREFIX):
            relative = uri[len(FILE_URI_PREFIX) :]
            text = await self.file_content(relative)
            return ResourceResult(contents=[ResourceContent(uri=uri, mime_type=mime_type_for(relative), text=text)])

        raise NotFoundError(f"Unknown resource URI: {uri}")

    async def package_manager(self) -> str:
        return await self.dependency_reader.detect_package_manager(self.root)

    async def overview(self) -> ProjectOverview:
        logger.debug("Analyzing project at %s", self.root)
        manifest = await self.manifests.read_or_empty(self.root)
        stats = await self.engine.collect_stats(self.root)
        git = await self.vcs.probe(self.root)

        return ProjectOverview(
            name=str(manifest.get("name") or self.root.name or "Unknown Project"),
            version=str(manifest.get("version") or "0.0.0"),
            description=str(manifest.get("description") or "No description available"),
            path=str(self.root),
            language=detect_language(stats.extension_counts),
            framework=detect_framework(manifest),
            package_manager=await self.package_manager(),
            last_modified=stats.last_modified_iso,
            file_count=stats.file_count,
            size_in_bytes=stats.size_in_bytes,
            git_repository=git.repository if git else None,
            git_branch=git.branch if git else None,
            git_last_commit=git.last_commit if git else None,
        )

    async def structure(self) -> ProjectStructureNode:
        logger.debug("Building project structure for %s", self.root)
        return await self.engine.build_tree(self.root)

    async def dependencies(self) -> DependencySet:
        package_manager = await self.package_manager()
        if not self.dependency_reader.supports(package_manager):
            return DependencySet.empty(package_manager)
        return await self.dependency_reader.read(self.root, package_manager)

    async def file_content(self, relative: str) -> str:
        return await self.engine.read_file(self.root, relative)

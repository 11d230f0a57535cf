import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from project_context.core.classifier import UNKNOWN_PACKAGE_MANAGER, detect_package_manager
from project_context.core.ports.filesystem import FileSystem
from project_context.models import Dependency, DependencySet, DependencyType

logger = logging.getLogger(__name__)

MANIFEST_NAME = "package.json"
DEFAULT_PACKAGE_MANAGER = "npm"

# package.json managers this reader understands, keyed to their lock file.
LOCK_FILES = {
    "npm": "package-lock.json",
    "yarn": "yarn.lock",
    "pnpm": "pnpm-lock.yaml",
}

_SECTIONS: tuple[tuple[str, DependencyType], ...] = (
    ("dependencies", "production"),
    ("devDependencies", "development"),
    ("optionalDependencies", "optional"),
    ("peerDependencies", "peer"),
)


class ManifestError(Exception):
    pass


class ManifestReader(Protocol):
    async def read(self, root: Path) -> dict[str, Any]: ...


class JsonManifestReader:
    """Read and JSON-parse ``package.json`` at the project root."""

    def __init__(self, fs: FileSystem, file_name: str = MANIFEST_NAME) -> None:
        self._fs = fs
        self._file_name = file_name

    async def read(self, root: Path) -> dict[str, Any]:
        path = root / self._file_name
        try:
            raw = await self._fs.read_text(path)
        except OSError as exc:
            raise ManifestError(f"{self._file_name} not readable") from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ManifestError(f"{self._file_name} is not valid JSON: {exc.msg}") from exc
        if not isinstance(data, dict):
            raise ManifestError(f"{self._file_name} must contain a JSON object")
        return data

    async def read_or_empty(self, root: Path) -> dict[str, Any]:
        try:
            return await self.read(root)
        except ManifestError as exc:
            logger.debug("No usable manifest in %s: %s", root, exc)
            return {}


def _section(manifest: Mapping[str, Any], key: str, dep_type: DependencyType) -> list[Dependency]:
    declared = manifest.get(key)
    if not isinstance(declared, Mapping):
        return []
    return [
        Dependency(name=name, version=str(version), requested_version=str(version), type=dep_type)
        for name, version in declared.items()
    ]


def dependencies_from_manifest(
    manifest: Mapping[str, Any], package_manager: str, lock_file_exists: bool
) -> DependencySet:
    sections = {dep_type: _section(manifest, key, dep_type) for key, dep_type in _SECTIONS}
    dependency_set = DependencySet(
        package_manager=package_manager,
        dependencies=sections["production"],
        dev_dependencies=sections["development"],
        optional_dependencies=sections["optional"],
        peer_dependencies=sections["peer"],
        lock_file_exists=lock_file_exists,
    )
    dependency_set.total_count = len(dependency_set.all())
    return dependency_set


class DependencyReader:
    def __init__(self, fs: FileSystem, manifests: ManifestReader | None = None) -> None:
        self._fs = fs
        self._manifests = manifests or JsonManifestReader(fs)

    @staticmethod
    def supports(package_manager: str) -> bool:
        return package_manager in LOCK_FILES

    async def detect_package_manager(self, root: Path) -> str:
        try:
            names = [entry.name for entry in await self._fs.list_dir(root)]
        except OSError:
            return UNKNOWN_PACKAGE_MANAGER
        return detect_package_manager(names)

    async def lock_file_manager(self, root: Path) -> str:
        """The ``package.json`` manager named by its lock file, ``npm`` when there is none."""
        for manager, lock_file in LOCK_FILES.items():
            if await self._fs.exists(root / lock_file):
                return manager
        return DEFAULT_PACKAGE_MANAGER

    async def parse(self, root: Path, package_manager: str) -> DependencySet:
        """Parse the manifest, raising ``ManifestError`` if it is missing or malformed."""
        if not self.supports(package_manager):
            return DependencySet.empty(package_manager)
        manifest = await self._manifests.read(root)
        lock_file_exists = await self._fs.exists(root / LOCK_FILES[package_manager])
        return dependencies_from_manifest(manifest, package_manager, lock_file_exists)

    async def read(self, root: Path, package_manager: str) -> DependencySet:
        """Like ``parse`` but degrades to an empty set instead of raising."""
        try:
            return await self.parse(root, package_manager)
        except (ManifestError, OSError) as exc:
            logger.error("Error analyzing %s dependencies: %s", package_manager, exc)
            return DependencySet.empty(package_manager)

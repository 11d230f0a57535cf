"""Depth-first walks over the project tree.

Every walk applies the same ``TraversalPolicy``: dot-entries are hidden unless
they start with ``.git``, skip-set directories are never entered, and a
directory that cannot be listed counts as empty instead of failing the walk.
Siblings are always visited directories-first, then by case-sensitive name,
which keeps every result (including first-seen tallies) deterministic.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath

from project_context.config import TraversalPolicy
from project_context.core.ports.filesystem import DirEntry, FileSystem
from project_context.errors import NotFoundError
from project_context.models import ProjectStructureNode

logger = logging.getLogger(__name__)


def iso_timestamp(mtime: float) -> str:
    return datetime.fromtimestamp(mtime, tz=UTC).isoformat()


def entry_sort_key(entry: DirEntry) -> tuple[int, str]:
    return (0 if entry.is_dir else 1, entry.name)


def resolve_within(root: Path, relative: str) -> Path | None:
    """Join *relative* onto *root*; ``None`` if the result would leave the root."""
    joined = os.path.normpath(os.path.join(root, relative.lstrip("/")))
    base = os.path.normpath(root)
    if joined != base and not joined.startswith(base.rstrip(os.sep) + os.sep):
        return None
    return Path(joined)


def relative_posix(root: Path, path: Path) -> str:
    rel = path.relative_to(root).as_posix()
    return "" if rel == "." else rel


@dataclass
class TraversalStats:
    file_count: int = 0
    size_in_bytes: int = 0
    last_modified: float = 0.0
    extension_counts: dict[str, int] = field(default_factory=dict)

    @property
    def last_modified_iso(self) -> str:
        return iso_timestamp(self.last_modified)


class TraversalEngine:
    def __init__(self, fs: FileSystem, policy: TraversalPolicy | None = None) -> None:
        self.fs = fs
        self.policy = policy or TraversalPolicy()

    async def list_entries(self, directory: Path) -> list[DirEntry]:
        """List *directory* with the ignore rules applied, in visiting order.

        Raises ``OSError`` if the directory cannot be listed; callers decide how
        to degrade.
        """
        entries = await self.fs.list_dir(directory)
        visible = [
            e
            for e in entries
            if (e.is_dir or e.is_file)
            and not self.policy.is_ignored(e.name)
            and not (e.is_dir and not self.policy.should_descend(e.name))
        ]
        return sorted(visible, key=entry_sort_key)

    async def _safe_entries(self, directory: Path) -> list[DirEntry]:
        try:
            return await self.list_entries(directory)
        except OSError as exc:
            logger.debug("Skipping unreadable directory %s: %s", directory, exc)
            return []

    async def collect_stats(self, root: Path) -> TraversalStats:
        stats = TraversalStats()

        async def _visit(directory: Path) -> None:
            for entry in await self._safe_entries(directory):
                if entry.is_dir:
                    await _visit(entry.path)
                    continue
                stats.file_count += 1
                stats.size_in_bytes += entry.stat.size
                stats.last_modified = max(stats.last_modified, entry.stat.mtime)
                suffix = PurePosixPath(entry.name).suffix
                if suffix:
                    stats.extension_counts[suffix] = stats.extension_counts.get(suffix, 0) + 1

        await _visit(root)
        return stats

    async def build_tree(
        self,
        root: Path,
        max_depth: int | None = None,
        extensions: frozenset[str] | None = None,
    ) -> ProjectStructureNode:
        try:
            root_stat = await self.fs.stat(root)
        except OSError as exc:
            raise NotFoundError("Project root is not accessible") from exc
        node = ProjectStructureNode(
            path="",
            type="directory" if root_stat.is_dir else "file",
            name=root.name or str(root),
            last_modified=iso_timestamp(root_stat.mtime),
        )
        if root_stat.is_dir:
            node.children = await self._children(root, root, 1, max_depth, extensions)
        return node

    async def _children(
        self,
        root: Path,
        directory: Path,
        depth: int,
        max_depth: int | None,
        extensions: frozenset[str] | None,
    ) -> list[ProjectStructureNode] | None:
        try:
            entries = await self.list_entries(directory)
        except OSError as exc:
            logger.debug("Error reading directory %s: %s", directory, exc)
            return None

        children: list[ProjectStructureNode] = []
        for entry in entries:
            suffix = PurePosixPath(entry.name).suffix
            if entry.is_file and extensions and suffix not in extensions:
                continue
            child = ProjectStructureNode(
                path=relative_posix(root, entry.path),
                type="directory" if entry.is_dir else "file",
                name=entry.name,
                last_modified=iso_timestamp(entry.stat.mtime),
            )
            if entry.is_file:
                child.extension = suffix or None
                child.size = entry.stat.size
            elif max_depth is not None and depth >= max_depth:
                child.children = []
            else:
                child.children = await self._children(root, entry.path, depth + 1, max_depth, extensions)
            children.append(child)
        return children

    async def walk_files(self, root: Path) -> AsyncIterator[tuple[str, DirEntry]]:
        """Yield ``(relative_path, entry)`` for every visible file, depth-first."""

        async def _walk(directory: Path) -> AsyncIterator[tuple[str, DirEntry]]:
            for entry in await self._safe_entries(directory):
                if entry.is_dir:
                    async for item in _walk(entry.path):
                        yield item
                else:
                    yield relative_posix(root, entry.path), entry

        async for item in _walk(root):
            yield item

    async def read_file(self, root: Path, relative: str) -> str:
        """Read a project file as text, refusing paths outside *root* and oversized files."""
        target = resolve_within(root, relative)
        if target is None:
            raise NotFoundError(f"Cannot read file: {relative}")
        try:
            file_stat = await self.fs.stat(target)
        except OSError as exc:
            raise NotFoundError(f"Cannot read file: {relative}") from exc
        if not file_stat.is_file:
            raise NotFoundError(f"Cannot read file: {relative}")
        if self.policy.is_too_large(file_stat.size):
            raise NotFoundError(f"File too large to read (>{self.policy.max_file_size} bytes): {relative}")
        try:
            content = await self.fs.read_text(target)
        except OSError as exc:
            raise NotFoundError(f"Cannot read file: {relative}") from exc
        logger.debug("File content read: %s (%d bytes)", relative, file_stat.size)
        return content

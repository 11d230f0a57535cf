"""Tests for the traversal engine: ordering, ignore rules, bounds and reads."""

from __future__ import annotations

from pathlib import Path

import pytest

from project_context.config import TraversalPolicy
from project_context.core.traversal import TraversalEngine, resolve_within
from project_context.errors import NotFoundError
from project_context.fs.local import LocalFileSystem
from project_context.models import ProjectStructureNode
from tests.conftest import FlakyFileSystem, write_files


def _engine(**policy: int) -> TraversalEngine:
    return TraversalEngine(LocalFileSystem(), TraversalPolicy(**policy))


def _names(node: ProjectStructureNode) -> list[str]:
    return [child.name for child in node.children or []]


def _assert_sorted(node: ProjectStructureNode) -> None:
    children = node.children or []
    keys = [(0 if c.type == "directory" else 1, c.name) for c in children]
    assert keys == sorted(keys)
    for child in children:
        if child.type == "directory":
            _assert_sorted(child)


class TestBuildTree:
    @pytest.mark.asyncio
    async def test_directories_first_then_case_sensitive_names(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"b.txt": "", "A.txt": "", "a.txt": "", "zeta/x.py": "", "Alpha/y.py": ""})
        tree = await _engine().build_tree(tmp_path)
        assert _names(tree) == ["Alpha", "zeta", "A.txt", "a.txt", "b.txt"]

    @pytest.mark.asyncio
    async def test_ordering_holds_at_every_level(self, project: Path) -> None:
        _assert_sorted(await _engine().build_tree(project))

    @pytest.mark.asyncio
    async def test_hidden_and_skipped_entries(self, project: Path) -> None:
        write_files(project, {".git/HEAD": "ref: refs/heads/main\n", "build/out.o": "", "coverage/lcov.info": ""})
        tree = await _engine().build_tree(project)
        names = _names(tree)
        assert ".git" in names
        assert ".env" not in names
        for skipped in ("node_modules", "dist", "build", "coverage"):
            assert skipped not in names

    @pytest.mark.asyncio
    async def test_skip_set_only_applies_to_directories(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"build": "a file named build"})
        tree = await _engine().build_tree(tmp_path)
        assert _names(tree) == ["build"]

    @pytest.mark.asyncio
    async def test_file_nodes_carry_metadata_and_no_children(self, project: Path) -> None:
        tree = await _engine().build_tree(project)
        src = next(c for c in tree.children or [] if c.name == "src")
        index = next(c for c in src.children or [] if c.name == "index.ts")
        assert index.path == "src/index.ts"
        assert index.extension == ".ts"
        assert index.size == (project / "src/index.ts").stat().st_size
        assert index.children is None
        assert index.last_modified

    @pytest.mark.asyncio
    async def test_depth_bound_leaves_empty_children(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"a/b/c/deep.txt": ""})
        tree = await _engine().build_tree(tmp_path, max_depth=2)
        a = tree.children[0]  # type: ignore[index]
        b = a.children[0]  # type: ignore[index]
        assert b.name == "b"
        assert b.children == []

    @pytest.mark.asyncio
    async def test_extension_filter_keeps_directories(self, project: Path) -> None:
        tree = await _engine().build_tree(project, extensions=frozenset({".ts"}))
        assert _names(tree) == ["src"]
        assert _names(tree.children[0]) == ["index.ts", "render.ts"]  # type: ignore[index]

    @pytest.mark.asyncio
    async def test_unreadable_directory_has_absent_children(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"locked/secret.txt": "", "open/file.txt": ""})
        engine = TraversalEngine(FlakyFileSystem({tmp_path / "locked"}))
        tree = await engine.build_tree(tmp_path)
        locked, opened = tree.children  # type: ignore[misc]
        assert locked.name == "locked"
        assert locked.children is None
        assert _names(opened) == ["file.txt"]

    @pytest.mark.asyncio
    async def test_empty_directory(self, tmp_path: Path) -> None:
        tree = await _engine().build_tree(tmp_path)
        assert tree.type == "directory"
        assert tree.path == ""
        assert tree.children == []

    @pytest.mark.asyncio
    async def test_missing_root_is_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(NotFoundError):
            await _engine().build_tree(tmp_path / "missing")


class TestCollectStats:
    @pytest.mark.asyncio
    async def test_counts_visible_files_only(self, project: Path) -> None:
        stats = await _engine().collect_stats(project)
        visible = ["package.json", "package-lock.json", "README.md", "src/index.ts", "src/render.ts", "src/util.js"]
        assert stats.file_count == len(visible)
        assert stats.size_in_bytes == sum((project / rel).stat().st_size for rel in visible)
        assert stats.extension_counts == {".ts": 2, ".js": 1, ".json": 2, ".md": 1}

    @pytest.mark.asyncio
    async def test_unreadable_directory_counts_as_empty(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"locked/a.txt": "aaa", "b.txt": "bb"})
        stats = await TraversalEngine(FlakyFileSystem({tmp_path / "locked"})).collect_stats(tmp_path)
        assert stats.file_count == 1
        assert stats.size_in_bytes == 2

    @pytest.mark.asyncio
    async def test_empty_project(self, tmp_path: Path) -> None:
        stats = await _engine().collect_stats(tmp_path)
        assert stats.file_count == 0
        assert stats.size_in_bytes == 0
        assert stats.last_modified_iso.startswith("1970-01-01")


class TestWalkFiles:
    @pytest.mark.asyncio
    async def test_depth_first_relative_paths(self, project: Path) -> None:
        paths = [rel async for rel, _ in _engine().walk_files(project)]
        assert paths == [
            "src/index.ts",
            "src/render.ts",
            "src/util.js",
            "README.md",
            "package-lock.json",
            "package.json",
        ]


class TestReadFile:
    @pytest.mark.asyncio
    async def test_reads_text(self, project: Path) -> None:
        content = await _engine().read_file(project, "src/util.js")
        assert content == "module.exports = {};\n"

    @pytest.mark.asyncio
    async def test_leading_slash_is_relative_to_root(self, project: Path) -> None:
        assert await _engine().read_file(project, "/src/util.js") == "module.exports = {};\n"

    @pytest.mark.asyncio
    async def test_oversized_file_is_not_found(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"big.txt": "x" * 11})
        with pytest.raises(NotFoundError, match="File too large"):
            await _engine(max_file_size=10).read_file(tmp_path, "big.txt")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("relative", ["missing.txt", "src", "../outside.txt"])
    async def test_unreadable_targets_are_not_found(self, project: Path, relative: str) -> None:
        (project.parent / "outside.txt").write_text("secret")
        with pytest.raises(NotFoundError):
            await _engine().read_file(project, relative)


def test_resolve_within_rejects_escapes(tmp_path: Path) -> None:
    assert resolve_within(tmp_path, "a/../b") == tmp_path / "b"
    assert resolve_within(tmp_path, "") == tmp_path
    assert resolve_within(tmp_path, "../x") is None
    assert resolve_within(tmp_path, "a/../../x") is None

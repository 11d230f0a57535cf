"""Tests for the resource provider's catalog and URI dispatch."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from project_context.config import TraversalPolicy
from project_context.core.resources import (
    DEPENDENCIES_URI,
    FILE_URI_TEMPLATE,
    OVERVIEW_URI,
    STRUCTURE_URI,
    ResourceProvider,
    mime_type_for,
)
from project_context.core.traversal import TraversalEngine
from project_context.errors import NotFoundError
from project_context.fs.local import LocalFileSystem
from project_context.vcs.git import GitDirectoryProbe
from tests.conftest import package_json, write_files


def _provider(root: Path, **policy: int) -> ResourceProvider:
    fs = LocalFileSystem()
    return ResourceProvider(root, TraversalEngine(fs, TraversalPolicy(**policy)), GitDirectoryProbe(fs))


async def _read_json(provider: ResourceProvider, uri: str) -> dict:
    result = await provider.read_resource(uri)
    (content,) = result.contents
    assert content.uri == uri
    assert content.mime_type == "application/json"
    return json.loads(content.text)


class TestCatalog:
    def test_fixed_order(self, tmp_path: Path) -> None:
        uris = [r.uri for r in _provider(tmp_path).list_resources()]
        assert uris == [OVERVIEW_URI, STRUCTURE_URI, DEPENDENCIES_URI, FILE_URI_TEMPLATE]

    def test_descriptors_serialize_with_schema(self, tmp_path: Path) -> None:
        overview = _provider(tmp_path).list_resources()[0].model_dump(by_alias=True, exclude_none=True)
        assert overview["mimeType"] == "application/json"
        assert "packageManager" in overview["schema"]["properties"]


class TestOverview:
    @pytest.mark.asyncio
    async def test_project_overview(self, project: Path) -> None:
        data = await _read_json(_provider(project), OVERVIEW_URI)
        assert data["name"] == "demo-app"
        assert data["version"] == "1.2.3"
        assert data["description"] == "A demo application"
        assert data["path"] == str(project)
        assert data["language"] == "TypeScript"
        assert data["framework"] == "React"
        assert data["packageManager"] == "npm"
        assert data["fileCount"] == 6
        assert "gitRepository" not in data

    @pytest.mark.asyncio
    async def test_empty_project(self, tmp_path: Path) -> None:
        data = await _read_json(_provider(tmp_path), OVERVIEW_URI)
        assert data["fileCount"] == 0
        assert data["sizeInBytes"] == 0
        assert data["language"] == "Unknown"
        assert data["name"] == tmp_path.name
        assert data["version"] == "0.0.0"
        assert data["description"] == "No description available"
        assert data["packageManager"] == "unknown"
        assert "framework" not in data

    @pytest.mark.asyncio
    async def test_git_fields(self, tmp_path: Path) -> None:
        commit = "a" * 40
        write_files(tmp_path, {".git/HEAD": "ref: refs/heads/main\n", ".git/refs/heads/main": commit + "\n"})
        data = await _read_json(_provider(tmp_path), OVERVIEW_URI)
        assert data["gitRepository"] == "Local Git Repository"
        assert data["gitBranch"] == "main"
        assert data["gitLastCommit"] == commit


class TestStructureAndDependencies:
    @pytest.mark.asyncio
    async def test_structure(self, project: Path) -> None:
        data = await _read_json(_provider(project), STRUCTURE_URI)
        assert data["type"] == "directory"
        assert [c["name"] for c in data["children"]] == [
            "src",
            "README.md",
            "package-lock.json",
            "package.json",
        ]

    @pytest.mark.asyncio
    async def test_empty_project_structure(self, tmp_path: Path) -> None:
        data = await _read_json(_provider(tmp_path), STRUCTURE_URI)
        assert data["children"] == []

    @pytest.mark.asyncio
    async def test_dependencies(self, project: Path) -> None:
        data = await _read_json(_provider(project), DEPENDENCIES_URI)
        assert data["packageManager"] == "npm"
        assert data["totalCount"] == 3
        assert data["lockFileExists"] is True
        assert [d["name"] for d in data["devDependencies"]] == ["jest"]

    @pytest.mark.asyncio
    async def test_single_dependency_without_lock_file(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"package.json": package_json(dependencies={"lodash": "^4.0.0"})})
        data = await _read_json(_provider(tmp_path), DEPENDENCIES_URI)
        assert data["totalCount"] == 1
        assert data["packageManager"] == "npm"
        assert data["lockFileExists"] is False

    @pytest.mark.asyncio
    async def test_unsupported_manager(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"go.mod": "module x\n"})
        data = await _read_json(_provider(tmp_path), DEPENDENCIES_URI)
        assert data == {
            "packageManager": "go mod",
            "dependencies": [],
            "devDependencies": [],
            "optionalDependencies": [],
            "peerDependencies": [],
            "totalCount": 0,
            "lockFileExists": False,
        }


class TestFileContent:
    @pytest.mark.asyncio
    async def test_reads_file_with_mime_type(self, project: Path) -> None:
        result = await _provider(project).read_resource("context://file/src/index.ts")
        (content,) = result.contents
        assert content.mime_type == "text/typescript"
        assert content.text.startswith("import { render }")

    @pytest.mark.asyncio
    async def test_oversized_file(self, tmp_path: Path) -> None:
        write_files(tmp_path, {"big.txt": "y" * 100})
        with pytest.raises(NotFoundError, match="File too large"):
            await _provider(tmp_path, max_file_size=50).read_resource("context://file/big.txt")

    @pytest.mark.asyncio
    async def test_path_escape(self, project: Path) -> None:
        (project.parent / "secret.txt").write_text("top secret")
        with pytest.raises(NotFoundError):
            await _provider(project).read_resource("context://file/../secret.txt")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("uri", ["context://project/unknown", "file:///etc/passwd", ""])
    async def test_unknown_uri_is_not_found(self, tmp_path: Path, uri: str) -> None:
        with pytest.raises(NotFoundError, match="Unknown resource URI"):
            await _provider(tmp_path).read_resource(uri)


@pytest.mark.parametrize(
    ("path", "mime"),
    [
        ("a.json", "application/json"),
        ("b.PY", "text/x-python"),
        ("c.unknown", "text/plain"),
        ("Makefile", "text/plain"),
    ],
)
def test_mime_type_for(path: str, mime: str) -> None:
    assert mime_type_for(path) == mime

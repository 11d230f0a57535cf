"""Shared fixtures and helpers for tests."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from project_context.config import ServerConfig, TraversalPolicy
from project_context.core.ports.filesystem import DirEntry
from project_context.dispatch import Dispatcher, RateLimiter, build_dispatcher
from project_context.fs.local import LocalFileSystem

_TESTS_ROOT = Path(__file__).parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_TESTS_ROOT)
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Project fixtures
# ---------------------------------------------------------------------------


def write_files(root: Path, files: dict[str, str | bytes]) -> Path:
    """Create *files* (relative path -> content) under *root* and return *root*."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


def package_json(**fields: Any) -> str:
    return json.dumps(fields, indent=2)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small npm project with sources, docs and ignored directories."""
    root = tmp_path / "demo-app"
    root.mkdir()
    return write_files(
        root,
        {
            "package.json": package_json(
                name="demo-app",
                version="1.2.3",
                description="A demo application",
                dependencies={"react": "^18.2.0", "lodash": "^4.17.21"},
                devDependencies={"jest": "^29.0.0"},
            ),
            "package-lock.json": "{}",
            "README.md": "# Demo\n\nA demo application.\n",
            "src/index.ts": "import { render } from './render';\n\nrender();\n",
            "src/render.ts": "export function render(): void {\n  console.log('hello');\n}\n",
            "src/util.js": "module.exports = {};\n",
            "node_modules/lodash/index.js": "module.exports = {};\n",
            "dist/bundle.js": "console.log('bundle');\n",
            ".env": "SECRET=1\n",
        },
    )


@pytest.fixture
def make_config() -> Callable[..., ServerConfig]:
    def _make(root: Path, **policy: Any) -> ServerConfig:
        return ServerConfig(project_path=root, traversal=TraversalPolicy(**policy))

    return _make


@pytest.fixture
def dispatcher(project: Path) -> Dispatcher:
    return build_dispatcher(ServerConfig(project_path=project), rate_limiter=RateLimiter(max_requests=1000))


# ---------------------------------------------------------------------------
# File system doubles
# ---------------------------------------------------------------------------


class FlakyFileSystem(LocalFileSystem):
    """Local file system that refuses to list the given directories."""

    def __init__(self, unreadable: set[Path]) -> None:
        self.unreadable = unreadable

    async def list_dir(self, path: Path) -> list[DirEntry]:
        if path in self.unreadable:
            raise PermissionError(f"cannot list {path}")
        return await super().list_dir(path)

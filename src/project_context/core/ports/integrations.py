from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from project_context.models import Dependency, SecurityVulnerability


@dataclass(frozen=True)
class GitInfo:
    repository: str
    branch: str | None = None
    last_commit: str | None = None


@dataclass(frozen=True)
class CommitRecord:
    hash: str
    author: str
    date: str
    message: str
    files_changed: tuple[str, ...] = ()
    additions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class ChangeHistory:
    """Result of a history query. ``configured`` is False when no backend answered."""

    configured: bool
    commits: list[CommitRecord] = field(default_factory=list)


@dataclass(frozen=True)
class SecurityScan:
    configured: bool
    vulnerabilities: list[SecurityVulnerability] = field(default_factory=list)


class VersionControlProbe(Protocol):
    async def probe(self, root: Path) -> GitInfo | None: ...


class ChangeHistorySource(Protocol):
    async def recent_changes(
        self,
        root: Path,
        days: int,
        max_commits: int,
        include_merges: bool,
        author: str | None,
    ) -> ChangeHistory: ...


class SecurityScanner(Protocol):
    async def scan(self, root: Path, dependencies: list[Dependency]) -> SecurityScan: ...

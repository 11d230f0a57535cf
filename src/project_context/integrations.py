"""Default capability ports for integrations this server does not ship.

Each answers with ``configured=False`` so callers can tell "no backend" apart
from "queried and found nothing".
"""

from pathlib import Path

from project_context.core.ports.integrations import ChangeHistory, SecurityScan
from project_context.models import Dependency


class UnconfiguredChangeHistory:
    """``ChangeHistorySource`` used when no Git history backend is wired in."""

    async def recent_changes(
        self,
        root: Path,
        days: int,
        max_commits: int,
        include_merges: bool,
        author: str | None,
    ) -> ChangeHistory:
        return ChangeHistory(configured=False)


class UnconfiguredSecurityScanner:
    """``SecurityScanner`` used when no vulnerability database is wired in."""

    async def scan(self, root: Path, dependencies: list[Dependency]) -> SecurityScan:
        return SecurityScan(configured=False)

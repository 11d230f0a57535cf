import logging
import re
from pathlib import Path

from project_context.core.ports.filesystem import FileSystem
from project_context.core.ports.integrations import GitInfo

logger = logging.getLogger(__name__)

_HEAD_REF = re.compile(r"ref: refs/heads/(.+)")
_COMMIT_HASH = re.compile(r"^[0-9a-f]{40}$")
LOCAL_REPOSITORY = "Local Git Repository"


class GitDirectoryProbe:
    """Detect a Git checkout by reading ``.git`` metadata directly.

    Implements the ``VersionControlProbe`` protocol. Never raises: missing or
    unreadable metadata yields ``None`` or a partially filled ``GitInfo``.
    """

    def __init__(self, fs: FileSystem) -> None:
        self._fs = fs

    async def probe(self, root: Path) -> GitInfo | None:
        git_dir = root / ".git"
        if not await self._fs.exists(git_dir):
            return None
        try:
            head = (await self._fs.read_text(git_dir / "HEAD")).strip()
        except OSError:
            logger.debug("Unreadable HEAD in %s", git_dir)
            return GitInfo(repository=LOCAL_REPOSITORY)

        match = _HEAD_REF.match(head)
        if match is None:
            detached = head if _COMMIT_HASH.match(head) else None
            return GitInfo(repository=LOCAL_REPOSITORY, last_commit=detached)

        branch = match.group(1).strip()
        return GitInfo(
            repository=LOCAL_REPOSITORY,
            branch=branch,
            last_commit=await self._resolve_ref(git_dir, f"refs/heads/{branch}"),
        )

    async def _resolve_ref(self, git_dir: Path, ref: str) -> str | None:
        try:
            value = (await self._fs.read_text(git_dir / ref)).strip()
            return value if _COMMIT_HASH.match(value) else None
        except OSError:
            pass
        try:
            packed = await self._fs.read_text(git_dir / "packed-refs")
        except OSError:
            return None
        for line in packed.splitlines():
            parts = line.split(" ", 1)
            if len(parts) == 2 and parts[1].strip() == ref and _COMMIT_HASH.match(parts[0]):
                return parts[0]
        return None

import asyncio
import os
import stat as stat_module
from pathlib import Path

from project_context.core.ports.filesystem import DirEntry, FileStat


def _to_file_stat(result: os.stat_result) -> FileStat:
    if stat_module.S_ISDIR(result.st_mode):
        kind = "directory"
    elif stat_module.S_ISREG(result.st_mode):
        kind = "file"
    else:
        kind = "other"
    return FileStat(kind=kind, size=result.st_size, mtime=result.st_mtime)


def _scan(path: Path) -> list[DirEntry]:
    entries: list[DirEntry] = []
    with os.scandir(path) as it:
        for entry in it:
            try:
                info = entry.stat()
            except OSError:
                # Broken symlinks and entries removed mid-scan are not listed.
                continue
            entries.append(DirEntry(name=entry.name, path=Path(entry.path), stat=_to_file_stat(info)))
    return entries


class LocalFileSystem:
    """Read-only access to the local disk.

    Implements the ``FileSystem`` protocol; blocking calls run in a worker thread
    so the event loop only suspends at I/O boundaries.
    """

    async def stat(self, path: Path) -> FileStat:
        result = await asyncio.to_thread(os.stat, path)
        return _to_file_stat(result)

    async def list_dir(self, path: Path) -> list[DirEntry]:
        return await asyncio.to_thread(_scan, path)

    async def read_text(self, path: Path) -> str:
        return await asyncio.to_thread(path.read_text, encoding="utf-8", errors="replace")

    async def exists(self, path: Path) -> bool:
        return await asyncio.to_thread(path.exists)

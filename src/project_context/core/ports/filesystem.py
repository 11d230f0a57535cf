from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol


@dataclass(frozen=True)
class FileStat:
    kind: Literal["file", "directory", "other"]
    size: int
    mtime: float

    @property
    def is_dir(self) -> bool:
        return self.kind == "directory"

    @property
    def is_file(self) -> bool:
        return self.kind == "file"


@dataclass(frozen=True)
class DirEntry:
    name: str
    path: Path
    stat: FileStat

    @property
    def is_dir(self) -> bool:
        return self.stat.is_dir

    @property
    def is_file(self) -> bool:
        return self.stat.is_file


class FileSystem(Protocol):
    async def stat(self, path: Path) -> FileStat: ...

    async def list_dir(self, path: Path) -> list[DirEntry]: ...

    async def read_text(self, path: Path) -> str: ...

    async def exists(self, path: Path) -> bool: ...

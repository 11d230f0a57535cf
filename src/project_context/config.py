import os
from dataclasses import dataclass, field
from datetime import UTC, datetime
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION_NAME = "project-context-mcp"
DEFAULT_MAX_FILE_SIZE = 1024 * 1024


def package_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "0.0.0"


@dataclass(frozen=True)
class TraversalPolicy:
    """Ignore rules and read limits shared by every walk over the project tree."""

    skip_dirs: frozenset[str] = frozenset({"node_modules", "dist", "build", "coverage"})
    hidden_prefix: str = "."
    hidden_exemption: str = ".git"
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    def is_ignored(self, name: str) -> bool:
        return name.startswith(self.hidden_prefix) and not name.startswith(self.hidden_exemption)

    def should_descend(self, name: str) -> bool:
        return name not in self.skip_dirs

    def is_too_large(self, size: int) -> bool:
        return size > self.max_file_size


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int = 100
    window_seconds: float = 60.0


@dataclass(frozen=True)
class ServerConfig:
    project_path: Path = field(default_factory=Path.cwd)
    server_name: str = "project-context-mcp"
    server_version: str = field(default_factory=package_version)
    log_level: str = "INFO"
    start_time: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    traversal: TraversalPolicy = field(default_factory=TraversalPolicy)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    @classmethod
    def from_environment(cls, project_path: str | Path | None = None) -> "ServerConfig":
        path = project_path or os.getenv("PROJECT_PATH") or Path.cwd()
        return cls(
            project_path=Path(path).resolve(),
            server_name=os.getenv("SERVER_NAME", "project-context-mcp"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            traversal=TraversalPolicy(
                max_file_size=int(os.getenv("MAX_FILE_SIZE_BYTES", str(DEFAULT_MAX_FILE_SIZE))),
            ),
            rate_limit=RateLimitConfig(
                max_requests=int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100")),
                window_seconds=float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60")),
            ),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "serverName": self.server_name,
            "serverVersion": self.server_version,
            "logLevel": self.log_level,
            "projectPath": str(self.project_path),
            "startTime": self.start_time,
            "rateLimit": {
                "maxRequests": self.rate_limit.max_requests,
                "windowSeconds": self.rate_limit.window_seconds,
            },
        }

"""Routes protocol requests to the resource provider, tool executor and prompt composer.

Every public method runs under ``run_with_middleware`` after the caller has
passed the rate limiter, so a binding only ever sees normalized errors.
"""

from __future__ import annotations

import json
import platform
import time
from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from project_context.config import ServerConfig
from project_context.core.dependencies import DependencyReader
from project_context.core.prompts import PromptComposer
from project_context.core.resources import JSON_MIME, ResourceProvider
from project_context.core.tools import ToolExecutor
from project_context.core.traversal import TraversalEngine
from project_context.dispatch.middleware import MiddlewareContext, RateLimiter, run_with_middleware
from project_context.fs.local import LocalFileSystem
from project_context.integrations import UnconfiguredChangeHistory, UnconfiguredSecurityScanner
from project_context.models import (
    PromptResponse,
    PromptSchema,
    ResourceContent,
    ResourceDescriptor,
    ResourceResult,
    ToolResult,
    ToolSchema,
)
from project_context.vcs.git import GitDirectoryProbe

LOCAL_CALLER = "local"
SERVER_INFO_URI = "context://server/info"
CAPABILITIES = ("resources", "tools", "prompts")

SERVER_INFO_RESOURCE = ResourceDescriptor(
    uri=SERVER_INFO_URI,
    name="Server Information",
    description="Basic server information and configuration",
    mime_type=JSON_MIME,
)
HEALTH_CHECK_TOOL = ToolSchema(
    name="health_check",
    description="Check server health and status",
    input_schema={"type": "object", "properties": {}, "required": []},
)
SERVER_STATUS_PROMPT = PromptSchema(name="server_status", description="Get detailed server status and configuration")


class Dispatcher:
    def __init__(
        self,
        config: ServerConfig,
        resources: ResourceProvider,
        tools: ToolExecutor,
        prompts: PromptComposer,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.config = config
        self.resources = resources
        self.tools = tools
        self.prompts = prompts
        self.rate_limiter = rate_limiter or RateLimiter.from_config(config.rate_limit)
        self._started = time.monotonic()

        self._builtin_resources: dict[str, Callable[[MiddlewareContext], ResourceResult]] = {
            SERVER_INFO_URI: self._server_info,
        }
        self._builtin_tools: dict[str, Callable[[MiddlewareContext], ToolResult]] = {
            HEALTH_CHECK_TOOL.name: self._health_check,
        }
        self._builtin_prompts: dict[str, Callable[[], PromptResponse]] = {
            SERVER_STATUS_PROMPT.name: self._server_status,
        }

    @property
    def uptime(self) -> float:
        return round(time.monotonic() - self._started, 3)

    async def _run(
        self,
        method: str,
        caller: str,
        operation: Callable[[MiddlewareContext], Awaitable[Any]],
        params: Any = None,
    ) -> Any:
        context = MiddlewareContext(method=method, params=params)

        async def _guarded() -> Any:
            self.rate_limiter.enforce(caller)
            return await operation(context)

        return await run_with_middleware(_guarded, context)

    # -- resources -------------------------------------------------------------

    async def list_resources(self, caller: str = LOCAL_CALLER) -> list[ResourceDescriptor]:
        async def _list(_: MiddlewareContext) -> list[ResourceDescriptor]:
            return [SERVER_INFO_RESOURCE, *self.resources.list_resources()]

        return await self._run("list_resources", caller, _list)

    async def read_resource(self, uri: str, caller: str = LOCAL_CALLER) -> ResourceResult:
        async def _read(context: MiddlewareContext) -> ResourceResult:
            builtin = self._builtin_resources.get(uri)
            if builtin is not None:
                return builtin(context)
            return await self.resources.read_resource(uri)

        return await self._run("read_resource", caller, _read, {"uri": uri})

    # -- tools -----------------------------------------------------------------

    async def list_tools(self, caller: str = LOCAL_CALLER) -> list[ToolSchema]:
        async def _list(_: MiddlewareContext) -> list[ToolSchema]:
            return [HEALTH_CHECK_TOOL, *self.tools.list_tools()]

        return await self._run("list_tools", caller, _list)

    async def call_tool(
        self, name: str, params: Mapping[str, Any] | None = None, caller: str = LOCAL_CALLER
    ) -> ToolResult:
        arguments = dict(params or {})

        async def _call(context: MiddlewareContext) -> ToolResult:
            builtin = self._builtin_tools.get(name)
            if builtin is not None:
                return builtin(context)
            return await self.tools.execute(name, arguments)

        return await self._run("call_tool", caller, _call, {"name": name, "arguments": arguments})

    # -- prompts ---------------------------------------------------------------

    async def list_prompts(self, caller: str = LOCAL_CALLER) -> list[PromptSchema]:
        async def _list(_: MiddlewareContext) -> list[PromptSchema]:
            return [SERVER_STATUS_PROMPT, *self.prompts.list_prompts()]

        return await self._run("list_prompts", caller, _list)

    async def get_prompt(
        self, name: str, args: Mapping[str, Any] | None = None, caller: str = LOCAL_CALLER
    ) -> PromptResponse:
        arguments = dict(args or {})

        async def _get(_: MiddlewareContext) -> PromptResponse:
            builtin = self._builtin_prompts.get(name)
            if builtin is not None:
                return builtin()
            return await self.prompts.get_prompt(name, arguments)

        return await self._run("get_prompt", caller, _get, {"name": name, "arguments": arguments})

    # -- built-ins -------------------------------------------------------------

    def _server_info(self, context: MiddlewareContext) -> ResourceResult:
        info = {
            "serverName": self.config.server_name,
            "version": self.config.server_version,
            "capabilities": list(CAPABILITIES),
            "status": "running",
            "startTime": self.config.start_time,
            "uptime": self.uptime,
            "requestId": context.request_id,
        }
        content = ResourceContent(uri=SERVER_INFO_URI, mime_type=JSON_MIME, text=json.dumps(info, indent=2))
        return ResourceResult(contents=[content])

    def _health_check(self, context: MiddlewareContext) -> ToolResult:
        status = {
            "status": "healthy",
            "serverName": self.config.server_name,
            "version": self.config.server_version,
            "uptime": self.uptime,
            "timestamp": datetime.now(UTC).isoformat(),
            "requestId": context.request_id,
        }
        return ToolResult.text(json.dumps(status, indent=2))

    def _server_status(self) -> PromptResponse:
        text = "\n".join(
            [
                "Server Status Report:",
                f"- Name: {self.config.server_name}",
                f"- Version: {self.config.server_version}",
                "- Status: Running",
                f"- Uptime: {int(self.uptime)}s",
                f"- Project Path: {self.config.project_path}",
                f"- Python Version: {platform.python_version()}",
                f"- Start Time: {self.config.start_time}",
            ]
        )
        return PromptResponse.single("Current server status and configuration", text)


def build_dispatcher(config: ServerConfig, rate_limiter: RateLimiter | None = None) -> Dispatcher:
    """Wire the local file system, Git probe and unconfigured integrations into a dispatcher."""
    fs = LocalFileSystem()
    engine = TraversalEngine(fs, config.traversal)
    dependency_reader = DependencyReader(fs)
    root = config.project_path
    resources = ResourceProvider(root, engine, GitDirectoryProbe(fs), dependency_reader=dependency_reader)
    tools = ToolExecutor(
        root,
        engine,
        dependency_reader,
        history=UnconfiguredChangeHistory(),
        scanner=UnconfiguredSecurityScanner(),
    )
    return Dispatcher(config, resources, tools, PromptComposer(resources), rate_limiter=rate_limiter)

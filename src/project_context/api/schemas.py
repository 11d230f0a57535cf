from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"


class ToolCallRequest(BaseModel):
    """POST /tools/{name} body."""

    arguments: dict[str, Any] = Field(default_factory=dict)


class PromptRequest(BaseModel):
    """POST /prompts/{name} body."""

    arguments: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: str
    message: str

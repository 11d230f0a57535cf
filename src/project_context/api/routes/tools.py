from fastapi import APIRouter, Depends

from project_context.api.dependencies import get_caller, get_dispatcher
from project_context.api.schemas import ToolCallRequest
from project_context.dispatch import Dispatcher
from project_context.models import ToolResult, ToolSchema

router = APIRouter(prefix="/tools", tags=["tools"])


@router.get("", response_model=list[ToolSchema])
async def list_tools(
    dispatcher: Dispatcher = Depends(get_dispatcher),
    caller: str = Depends(get_caller),
) -> list[ToolSchema]:
    return await dispatcher.list_tools(caller=caller)


@router.post("/{name}", response_model=ToolResult)
async def call_tool(
    name: str,
    body: ToolCallRequest | None = None,
    dispatcher: Dispatcher = Depends(get_dispatcher),
    caller: str = Depends(get_caller),
) -> ToolResult:
    return await dispatcher.call_tool(name, body.arguments if body else {}, caller=caller)

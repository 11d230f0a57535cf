from fastapi import APIRouter, Depends

from project_context.api.dependencies import get_caller, get_dispatcher
from project_context.api.schemas import PromptRequest
from project_context.dispatch import Dispatcher
from project_context.models import PromptResponse, PromptSchema

router = APIRouter(prefix="/prompts", tags=["prompts"])


@router.get("", response_model=list[PromptSchema])
async def list_prompts(
    dispatcher: Dispatcher = Depends(get_dispatcher),
    caller: str = Depends(get_caller),
) -> list[PromptSchema]:
    return await dispatcher.list_prompts(caller=caller)


@router.post("/{name}", response_model=PromptResponse)
async def get_prompt(
    name: str,
    body: PromptRequest | None = None,
    dispatcher: Dispatcher = Depends(get_dispatcher),
    caller: str = Depends(get_caller),
) -> PromptResponse:
    return await dispatcher.get_prompt(name, body.arguments if body else {}, caller=caller)

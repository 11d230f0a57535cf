from fastapi import APIRouter, Depends, Query

from project_context.api.dependencies import get_caller, get_dispatcher
from project_context.dispatch import Dispatcher
from project_context.models import ResourceDescriptor, ResourceResult

router = APIRouter(prefix="/resources", tags=["resources"])


@router.get("", response_model=list[ResourceDescriptor], response_model_exclude_none=True)
async def list_resources(
    dispatcher: Dispatcher = Depends(get_dispatcher),
    caller: str = Depends(get_caller),
) -> list[ResourceDescriptor]:
    return await dispatcher.list_resources(caller=caller)


@router.get("/read", response_model=ResourceResult)
async def read_resource(
    uri: str = Query(..., min_length=1),
    dispatcher: Dispatcher = Depends(get_dispatcher),
    caller: str = Depends(get_caller),
) -> ResourceResult:
    return await dispatcher.read_resource(uri, caller=caller)

from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from sheetsbridge.dispatcher import Dispatcher, get_dispatcher
from sheetsbridge.models.common import ToolDescriptor, ToolResult

router = APIRouter(prefix="/api/tools", tags=["tools"])

STATUS_CODES = {
    "unknown_tool": 404,
    "invalid_arguments": 422,
    "configuration_error": 503,
    "not_found": 404,
    "permission_denied": 403,
    "invalid_request": 400,
    "sheets_api_error": 502,
    "internal_error": 500,
}


@router.get("")
def list_tools(dispatcher: Dispatcher = Depends(get_dispatcher)) -> list[ToolDescriptor]:
    return dispatcher.list_tools()


@router.post("/{name}", response_model=ToolResult)
async def call_tool(
    name: str,
    arguments: dict[str, Any] | None = Body(default=None),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    result = await dispatcher.dispatch(name, arguments or {})
    status = 200 if result.ok else STATUS_CODES.get(result.error_code, 500)
    return JSONResponse(status_code=status, content=result.model_dump())

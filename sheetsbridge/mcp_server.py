from typing import Annotated

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.dependencies import get_context
from pydantic import Field

from sheetsbridge.dispatcher import get_dispatcher
from sheetsbridge.logger import mcp_handler
from sheetsbridge.models.sheets import CellFormatPatch, CellValue
from sheetsbridge.models.tools import RANGE_HELP, SPREADSHEET_ID_HELP, RangeValues
from sheetsbridge.tools import TOOLS

mcp = FastMCP(
    "sheetsbridge",
    instructions="Read and edit Google Sheets spreadsheets shared with the configured service account. "
    "Ranges use A1 notation; results are Markdown.",
)

SpreadsheetId = Annotated[str, Field(description=SPREADSHEET_ID_HELP)]
Range = Annotated[str, Field(description=RANGE_HELP)]
Values = Annotated[list[list[CellValue]], Field(description='2D array of values. Strings starting with "=" are formulas.')]


def _current_session():
    """The MCP session of the request being served, or None outside one."""
    try:
        return get_context().session
    except (RuntimeError, ValueError):
        return None


async def _run(name: str, **arguments) -> str:
    with mcp_handler.bind(_current_session()):
        result = await get_dispatcher().dispatch(name, {k: v for k, v in arguments.items() if v is not None})
    if not result.ok:
        raise ToolError(result.text)
    return result.text


def _describe(name: str) -> str:
    return TOOLS[name].description


@mcp.tool(name="get-spreadsheet-info", description=_describe("get-spreadsheet-info"))
async def get_spreadsheet_info(spreadsheetId: SpreadsheetId) -> str:
    return await _run("get-spreadsheet-info", spreadsheetId=spreadsheetId)


@mcp.tool(name="read-values", description=_describe("read-values"))
async def read_values(spreadsheetId: SpreadsheetId, range: Range) -> str:
    return await _run("read-values", spreadsheetId=spreadsheetId, range=range)


@mcp.tool(name="read-formulas", description=_describe("read-formulas"))
async def read_formulas(spreadsheetId: SpreadsheetId, range: Range) -> str:
    return await _run("read-formulas", spreadsheetId=spreadsheetId, range=range)


@mcp.tool(name="read-all", description=_describe("read-all"))
async def read_all(spreadsheetId: SpreadsheetId, range: Range) -> str:
    return await _run("read-all", spreadsheetId=spreadsheetId, range=range)


@mcp.tool(name="update-cells", description=_describe("update-cells"))
async def update_cells(spreadsheetId: SpreadsheetId, range: Range, values: Values) -> str:
    return await _run("update-cells", spreadsheetId=spreadsheetId, range=range, values=values)


@mcp.tool(name="batch-update-cells", description=_describe("batch-update-cells"))
async def batch_update_cells(
    spreadsheetId: SpreadsheetId,
    data: Annotated[list[RangeValues], Field(description="Array of {range, values} objects")],
) -> str:
    return await _run(
        "batch-update-cells",
        spreadsheetId=spreadsheetId,
        data=[d.model_dump() if isinstance(d, RangeValues) else d for d in data],
    )


@mcp.tool(name="append-rows", description=_describe("append-rows"))
async def append_rows(
    spreadsheetId: SpreadsheetId,
    range: Annotated[str, Field(description='A1 notation range indicating sheet and columns (e.g. "Sheet1!A:D")')],
    values: Values,
) -> str:
    return await _run("append-rows", spreadsheetId=spreadsheetId, range=range, values=values)


@mcp.tool(name="add-sheet", description=_describe("add-sheet"))
async def add_sheet(
    spreadsheetId: SpreadsheetId,
    title: Annotated[str, Field(description="Name for the new sheet tab")],
    rowCount: Annotated[int | None, Field(description="Number of rows (default: 1000)")] = None,
    columnCount: Annotated[int | None, Field(description="Number of columns (default: 26)")] = None,
) -> str:
    return await _run(
        "add-sheet", spreadsheetId=spreadsheetId, title=title, rowCount=rowCount, columnCount=columnCount
    )


@mcp.tool(name="delete-sheet", description=_describe("delete-sheet"))
async def delete_sheet(
    spreadsheetId: SpreadsheetId,
    sheetTitle: Annotated[str, Field(description="Name of the sheet tab to delete")],
) -> str:
    return await _run("delete-sheet", spreadsheetId=spreadsheetId, sheetTitle=sheetTitle)


@mcp.tool(name="get-formatting", description=_describe("get-formatting"))
async def get_formatting(spreadsheetId: SpreadsheetId, range: Range) -> str:
    return await _run("get-formatting", spreadsheetId=spreadsheetId, range=range)


@mcp.tool(name="update-formatting", description=_describe("update-formatting"))
async def update_formatting(
    spreadsheetId: SpreadsheetId,
    sheetTitle: Annotated[str, Field(description="Name of the sheet tab")],
    startRowIndex: Annotated[int, Field(description="Start row index (0-based, inclusive)")],
    endRowIndex: Annotated[int, Field(description="End row index (0-based, exclusive)")],
    startColumnIndex: Annotated[int, Field(description="Start column index (0-based, inclusive)")],
    endColumnIndex: Annotated[int, Field(description="End column index (0-based, exclusive)")],
    format: Annotated[CellFormatPatch, Field(description="Formatting properties to apply")],
) -> str:
    return await _run(
        "update-formatting",
        spreadsheetId=spreadsheetId,
        sheetTitle=sheetTitle,
        startRowIndex=startRowIndex,
        endRowIndex=endRowIndex,
        startColumnIndex=startColumnIndex,
        endColumnIndex=endColumnIndex,
        format=format.model_dump(by_alias=True, exclude_unset=True) if isinstance(format, CellFormatPatch) else format,
    )

"""Tool registry: name -> (argument model, description, handler).

Handlers receive a SheetsClient and validated arguments and return Markdown.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Awaitable, Callable

from pydantic import BaseModel

from sheetsbridge import render
from sheetsbridge.exceptions import SheetsBridgeError
from sheetsbridge.logger import get_logger
from sheetsbridge.models.sheets import CellValue, GridRange, ValueRange
from sheetsbridge.models.tools import (
    AddSheetArgs,
    AppendRowsArgs,
    BatchUpdateCellsArgs,
    DeleteSheetArgs,
    RangeArgs,
    SpreadsheetArgs,
    UpdateCellsArgs,
    UpdateFormattingArgs,
)
from sheetsbridge.services.sheets import SheetsClient, build_format_request

# Snapshot bound read before a sheet is deleted. Data right of column ZZ is not captured.
SNAPSHOT_COLUMNS = "A:ZZ"

logger = get_logger(__name__)

Handler = Callable[[SheetsClient, BaseModel], Awaitable[str]]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    arguments: type[BaseModel]
    handler: Handler
    error_prefix: str

    def input_schema(self) -> dict:
        return self.arguments.model_json_schema(by_alias=True)


@dataclass(frozen=True)
class Snapshot:
    """Outcome of a best-effort read. ``values`` is None when the read failed."""

    values: list[list[CellValue]] | None
    error: str | None = None

    @property
    def captured(self) -> bool:
        return bool(self.values)


def quote_sheet_title(title: str) -> str:
    return "'" + title.replace("'", "''") + "'"


async def take_snapshot(client: SheetsClient, spreadsheet_id: str, sheet_title: str) -> Snapshot:
    """Read a sheet's used range. Never raises; a failure is recorded on the result."""
    range = f"{quote_sheet_title(sheet_title)}!{SNAPSHOT_COLUMNS}"
    try:
        values = await client.get_values(spreadsheet_id, range)
    except SheetsBridgeError as e:
        logger.debug(f"Could not read sheet data before deletion: {e}")
        return Snapshot(values=None, error=str(e))
    return Snapshot(values=values)


# --- Handlers ---

async def get_spreadsheet_info(client: SheetsClient, args: SpreadsheetArgs) -> str:
    info = await client.get_spreadsheet_info(args.spreadsheet_id)
    return render.render_spreadsheet_info(info)


async def read_values(client: SheetsClient, args: RangeArgs) -> str:
    values = await client.get_values(args.spreadsheet_id, args.range)
    return render.render_values(values, args.range)


async def read_formulas(client: SheetsClient, args: RangeArgs) -> str:
    formulas = await client.get_formulas(args.spreadsheet_id, args.range)
    return render.render_formulas(formulas, args.range)


async def read_all(client: SheetsClient, args: RangeArgs) -> str:
    values, formulas = await client.get_values_and_formulas(args.spreadsheet_id, args.range)
    return render.render_values_and_formulas(values, formulas, args.range)


async def update_cells(client: SheetsClient, args: UpdateCellsArgs) -> str:
    result = await client.update_values(args.spreadsheet_id, args.range, args.values)
    updated = await client.get_values(args.spreadsheet_id, result.updated_range)
    return render.render_update(result, updated)


async def batch_update_cells(client: SheetsClient, args: BatchUpdateCellsArgs) -> str:
    data = [ValueRange(range=d.range, values=d.values) for d in args.data]
    result = await client.batch_update_values(args.spreadsheet_id, data)
    ranges = await client.batch_get_values(args.spreadsheet_id, [d.range for d in data])
    return render.render_batch_update(result, len(data), ranges)


async def append_rows(client: SheetsClient, args: AppendRowsArgs) -> str:
    result = await client.append_rows(args.spreadsheet_id, args.range, args.values)
    appended = await client.get_values(args.spreadsheet_id, result.updated_range)
    return render.render_append(result, appended)


async def add_sheet(client: SheetsClient, args: AddSheetArgs) -> str:
    sheet = await client.add_sheet(args.spreadsheet_id, args.title, args.row_count, args.column_count)
    return render.render_added_sheet(sheet)


async def delete_sheet(client: SheetsClient, args: DeleteSheetArgs) -> str:
    sheet_id = await client.resolve_sheet_id(args.spreadsheet_id, args.sheet_title)
    snapshot = await take_snapshot(client, args.spreadsheet_id, args.sheet_title)
    await client.delete_sheet(args.spreadsheet_id, sheet_id)
    return render.render_deleted_sheet(
        args.sheet_title, sheet_id, snapshot.values if snapshot.captured else None, snapshot.error
    )


async def get_formatting(client: SheetsClient, args: RangeArgs) -> str:
    row_data = await client.get_formatting(args.spreadsheet_id, args.range)
    return render.render_cell_formatting(row_data, args.range)


async def update_formatting(client: SheetsClient, args: UpdateFormattingArgs) -> str:
    sheet_id = await client.resolve_sheet_id(args.spreadsheet_id, args.sheet_title)
    cell_format, fields = build_format_request(args.format)
    grid_range = GridRange(
        sheet_id=sheet_id,
        start_row_index=args.start_row_index,
        end_row_index=args.end_row_index,
        start_column_index=args.start_column_index,
        end_column_index=args.end_column_index,
    )
    await client.update_formatting(args.spreadsheet_id, grid_range, cell_format, fields)
    return render.render_formatting_applied(
        args.sheet_title,
        args.start_row_index,
        args.end_row_index,
        args.start_column_index,
        args.end_column_index,
        fields,
    )


# --- Registry ---

_SPECS = [
    ToolSpec(
        "get-spreadsheet-info",
        "Get spreadsheet metadata including title, locale, timezone, and list of all sheets with their sizes",
        SpreadsheetArgs,
        get_spreadsheet_info,
        "Failed to get spreadsheet info",
    ),
    ToolSpec(
        "read-values",
        "Read cell display values from a spreadsheet range. Returns a Markdown table of formatted values.",
        RangeArgs,
        read_values,
        "Failed to read values",
    ),
    ToolSpec(
        "read-formulas",
        "Read cell formulas from a spreadsheet range. "
        "Shows raw formulas like =SUM(A1:A10) instead of computed values.",
        RangeArgs,
        read_formulas,
        "Failed to read formulas",
    ),
    ToolSpec(
        "read-all",
        "Read both display values and formulas from a range simultaneously. "
        "Returns two Markdown tables for comparison.",
        RangeArgs,
        read_all,
        "Failed to read values and formulas",
    ),
    ToolSpec(
        "update-cells",
        "Update cell values in a range. Supports formulas (strings starting with =). "
        "Returns updated values after write.",
        UpdateCellsArgs,
        update_cells,
        "Failed to update cells",
    ),
    ToolSpec(
        "batch-update-cells",
        "Update multiple ranges at once. More efficient than multiple update-cells calls. "
        "Returns updated values.",
        BatchUpdateCellsArgs,
        batch_update_cells,
        "Failed to batch update cells",
    ),
    ToolSpec(
        "append-rows",
        "Append rows to the end of data in a sheet. New rows are inserted after the last row with data.",
        AppendRowsArgs,
        append_rows,
        "Failed to append rows",
    ),
    ToolSpec(
        "add-sheet",
        "Add a new sheet (tab) to the spreadsheet",
        AddSheetArgs,
        add_sheet,
        "Failed to add sheet",
    ),
    ToolSpec(
        "delete-sheet",
        "Delete a sheet (tab) from the spreadsheet. Returns the sheet data before deletion as backup.",
        DeleteSheetArgs,
        delete_sheet,
        "Failed to delete sheet",
    ),
    ToolSpec(
        "get-formatting",
        "Get cell formatting information (background color, font, number format, alignment, etc.)",
        RangeArgs,
        get_formatting,
        "Failed to get formatting",
    ),
    ToolSpec(
        "update-formatting",
        "Update cell formatting (bold, italic, colors, number format, alignment, etc.). "
        "Uses 0-based row/column indices.",
        UpdateFormattingArgs,
        update_formatting,
        "Failed to update formatting",
    ),
]

TOOLS: MappingProxyType[str, ToolSpec] = MappingProxyType({spec.name: spec for spec in _SPECS})

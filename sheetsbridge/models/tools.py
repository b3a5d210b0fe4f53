"""Argument models for each tool. Field aliases are the names used on the wire."""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sheetsbridge.models.sheets import CellFormatPatch, CellValue

SPREADSHEET_ID_HELP = "The spreadsheet ID (from the URL: https://docs.google.com/spreadsheets/d/{spreadsheetId}/...)"
RANGE_HELP = 'A1 notation range (e.g. "Sheet1!A1:D10", "Sheet1!A:D")'


class ToolArguments(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    spreadsheet_id: str = Field(alias="spreadsheetId", min_length=1, description=SPREADSHEET_ID_HELP)


class SpreadsheetArgs(ToolArguments):
    pass


class RangeArgs(ToolArguments):
    range: str = Field(min_length=1, description=RANGE_HELP)


class UpdateCellsArgs(RangeArgs):
    values: list[list[CellValue]] = Field(
        min_length=1,
        description='2D array of values. Use strings starting with "=" for formulas (e.g. "=SUM(A1:A10)").',
    )


class RangeValues(BaseModel):
    model_config = ConfigDict(extra="forbid")

    range: str = Field(min_length=1, description="A1 notation range")
    values: list[list[CellValue]] = Field(min_length=1)


class BatchUpdateCellsArgs(ToolArguments):
    data: list[RangeValues] = Field(min_length=1, description="Array of {range, values} objects")


class AppendRowsArgs(ToolArguments):
    range: str = Field(
        min_length=1, description='A1 notation range indicating sheet and columns (e.g. "Sheet1!A:D")'
    )
    values: list[list[CellValue]] = Field(min_length=1, description="2D array of rows to append")


class AddSheetArgs(ToolArguments):
    title: str = Field(min_length=1, description="Name for the new sheet tab")
    row_count: int | None = Field(default=None, gt=0, alias="rowCount", description="Number of rows (default: 1000)")
    column_count: int | None = Field(
        default=None, gt=0, alias="columnCount", description="Number of columns (default: 26)"
    )


class DeleteSheetArgs(ToolArguments):
    sheet_title: str = Field(min_length=1, alias="sheetTitle", description="Name of the sheet tab to delete")


class UpdateFormattingArgs(ToolArguments):
    sheet_title: str = Field(min_length=1, alias="sheetTitle", description="Name of the sheet tab")
    start_row_index: int = Field(ge=0, alias="startRowIndex", description="Start row index (0-based, inclusive)")
    end_row_index: int = Field(gt=0, alias="endRowIndex", description="End row index (0-based, exclusive)")
    start_column_index: int = Field(
        ge=0, alias="startColumnIndex", description="Start column index (0-based, inclusive)"
    )
    end_column_index: int = Field(gt=0, alias="endColumnIndex", description="End column index (0-based, exclusive)")
    format: CellFormatPatch = Field(description="Formatting properties to apply")

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.end_row_index <= self.start_row_index:
            raise ValueError("endRowIndex must be greater than startRowIndex")
        if self.end_column_index <= self.start_column_index:
            raise ValueError("endColumnIndex must be greater than startColumnIndex")
        return self

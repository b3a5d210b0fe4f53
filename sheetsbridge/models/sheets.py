from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr, model_validator

# Ordered so pydantic never coerces between kinds (True stays a bool, "1" stays a str).
CellValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr, None]


class SheetInfo(BaseModel):
    sheet_id: int
    title: str
    row_count: int = 0
    column_count: int = 0


class SpreadsheetInfo(BaseModel):
    spreadsheet_id: str
    title: str
    locale: str = ""
    time_zone: str = ""
    sheets: list[SheetInfo] = []


class ValueRange(BaseModel):
    range: str
    values: list[list[CellValue]] = []


class UpdateResult(BaseModel):
    updated_range: str
    updated_rows: int = 0
    updated_columns: int = 0
    updated_cells: int = 0


class BatchUpdateResult(BaseModel):
    total_updated_cells: int = 0
    total_updated_rows: int = 0


class GridRange(BaseModel):
    sheet_id: int
    start_row_index: int
    end_row_index: int
    start_column_index: int
    end_column_index: int

    def to_api(self) -> dict:
        return {
            "sheetId": self.sheet_id,
            "startRowIndex": self.start_row_index,
            "endRowIndex": self.end_row_index,
            "startColumnIndex": self.start_column_index,
            "endColumnIndex": self.end_column_index,
        }


# --- Formatting ---

class Color(BaseModel):
    """RGB color with channels in 0..1, as the Sheets API expects."""

    model_config = ConfigDict(extra="forbid")

    red: float | None = Field(default=None, ge=0, le=1)
    green: float | None = Field(default=None, ge=0, le=1)
    blue: float | None = Field(default=None, ge=0, le=1)


NumberFormatType = Literal["TEXT", "NUMBER", "PERCENT", "CURRENCY", "DATE", "TIME", "DATE_TIME", "SCIENTIFIC"]
HorizontalAlignment = Literal["LEFT", "CENTER", "RIGHT"]


class NumberFormat(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: NumberFormatType
    pattern: str | None = None


# API names of patch attributes that live under CellFormat.textFormat
TEXT_FORMAT_FIELDS = ("bold", "italic", "strikethrough", "fontSize", "fontFamily", "foregroundColor")


class CellFormatPatch(BaseModel):
    """Sparse set of visual attributes. Only fields the caller sets are applied."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    bold: bool | None = None
    italic: bool | None = None
    strikethrough: bool | None = None
    font_size: int | None = Field(default=None, gt=0, alias="fontSize")
    font_family: str | None = Field(default=None, alias="fontFamily")
    foreground_color: Color | None = Field(
        default=None, alias="foregroundColor", description="Text color (RGB values 0-1)"
    )
    background_color: Color | None = Field(
        default=None, alias="backgroundColor", description="Background color (RGB values 0-1)"
    )
    horizontal_alignment: HorizontalAlignment | None = Field(default=None, alias="horizontalAlignment")
    number_format: NumberFormat | None = Field(default=None, alias="numberFormat")

    @model_validator(mode="after")
    def _require_attribute(self):
        if not self.provided():
            raise ValueError("No formatting properties specified")
        return self

    def provided(self) -> dict:
        """The attributes the caller actually supplied, in API shape."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)

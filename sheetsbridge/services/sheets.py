import asyncio
from typing import Any, Callable

import google_auth_httplib2
import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from sheetsbridge.auth import load_credentials
from sheetsbridge.config import Settings
from sheetsbridge.exceptions import (
    InvalidRequestError,
    PermissionDeniedError,
    SheetNotFoundError,
    SheetsAPIError,
    SpreadsheetNotFoundError,
)
from sheetsbridge.logger import get_logger
from sheetsbridge.models.sheets import (
    TEXT_FORMAT_FIELDS,
    BatchUpdateResult,
    CellFormatPatch,
    CellValue,
    GridRange,
    SheetInfo,
    SpreadsheetInfo,
    UpdateResult,
    ValueRange,
)

DEFAULT_ROW_COUNT = 1000
DEFAULT_COLUMN_COUNT = 26
INFO_FIELDS = "spreadsheetId,properties.title,properties.locale,properties.timeZone,sheets.properties"
FORMAT_FIELDS = "sheets.data.rowData.values(effectiveFormat,formattedValue)"

logger = get_logger(__name__)


def _handle_api_error(e: Exception, context: str):
    logger.error(f"{context}: {e}")
    if not isinstance(e, HttpError):
        raise SheetsAPIError(f"{context}: {e}") from e
    status = e.resp.status
    detail = getattr(e, "reason", None) or str(e)
    if status == 404:
        raise SpreadsheetNotFoundError(
            f"{context}: Spreadsheet not found. Check the ID and share the spreadsheet with the service account.",
            status,
        ) from e
    if status == 403:
        raise PermissionDeniedError(
            f"{context}: Permission denied. Share the spreadsheet with the service account's email address.",
            status,
        ) from e
    if status == 400:
        raise InvalidRequestError(
            f"{context}: Invalid request. Use A1 notation for ranges (e.g. Sheet1!A1:D10). Detail: {detail}",
            status,
        ) from e
    raise SheetsAPIError(f"{context} ({status}): {detail or 'Unknown error'}", status) from e


def build_format_request(patch: CellFormatPatch) -> tuple[dict, list[str]]:
    """Split a format patch into a CellFormat body and its field mask.

    Only attributes present in the patch appear in either result.
    """
    cell_format: dict[str, Any] = {}
    fields: list[str] = []
    for name, value in patch.provided().items():
        if name in TEXT_FORMAT_FIELDS:
            cell_format.setdefault("textFormat", {})[name] = value
            fields.append(f"textFormat.{name}")
        else:
            cell_format[name] = value
            fields.append(name)
    return cell_format, fields


def _sheet_from_properties(props: dict) -> SheetInfo:
    grid = props.get("gridProperties", {})
    return SheetInfo(
        sheet_id=props.get("sheetId", 0),
        title=props.get("title", ""),
        row_count=grid.get("rowCount", 0),
        column_count=grid.get("columnCount", 0),
    )


class SheetsClient:
    """Async facade over the Sheets v4 API. One method per remote operation.

    Requests run in worker threads. httplib2 is not thread safe, so when an
    ``http_factory`` is given every request gets its own transport.
    """

    def __init__(self, service, http_factory: Callable[[], Any] | None = None):
        self._service = service
        self._http_factory = http_factory

    async def _execute(self, request) -> dict:
        if self._http_factory is None:
            return await asyncio.to_thread(request.execute)
        return await asyncio.to_thread(request.execute, http=self._http_factory())

    async def get_spreadsheet_info(self, spreadsheet_id: str) -> SpreadsheetInfo:
        """Get spreadsheet metadata: title, locale, time zone and sheet sizes."""
        try:
            result = await self._execute(
                self._service.spreadsheets().get(spreadsheetId=spreadsheet_id, fields=INFO_FIELDS)
            )
        except Exception as e:
            _handle_api_error(e, "Failed to get spreadsheet info")
        props = result.get("properties", {})
        return SpreadsheetInfo(
            spreadsheet_id=result.get("spreadsheetId", spreadsheet_id),
            title=props.get("title", ""),
            locale=props.get("locale", ""),
            time_zone=props.get("timeZone", ""),
            sheets=[_sheet_from_properties(s.get("properties", {})) for s in result.get("sheets", [])],
        )

    async def _get_rendered(self, spreadsheet_id: str, range: str, render_option: str, context: str):
        try:
            result = await self._execute(
                self._service.spreadsheets().values().get(
                    spreadsheetId=spreadsheet_id, range=range, valueRenderOption=render_option
                )
            )
        except Exception as e:
            _handle_api_error(e, context)
        return result.get("values", [])

    async def get_values(self, spreadsheet_id: str, range: str) -> list[list[CellValue]]:
        """Read formatted display values."""
        return await self._get_rendered(
            spreadsheet_id, range, "FORMATTED_VALUE", f"Failed to read values from {range}"
        )

    async def get_formulas(self, spreadsheet_id: str, range: str) -> list[list[CellValue]]:
        """Read raw formula source (plain values for non-formula cells)."""
        return await self._get_rendered(spreadsheet_id, range, "FORMULA", f"Failed to read formulas from {range}")

    async def get_values_and_formulas(
        self, spreadsheet_id: str, range: str
    ) -> tuple[list[list[CellValue]], list[list[CellValue]]]:
        values, formulas = await asyncio.gather(
            self.get_values(spreadsheet_id, range),
            self.get_formulas(spreadsheet_id, range),
        )
        return values, formulas

    async def update_values(self, spreadsheet_id: str, range: str, values: list[list[CellValue]]) -> UpdateResult:
        """Write values as if typed by a user, so "=..." strings become formulas."""
        try:
            result = await self._execute(
                self._service.spreadsheets().values().update(
                    spreadsheetId=spreadsheet_id,
                    range=range,
                    valueInputOption="USER_ENTERED",
                    body={"values": values},
                )
            )
        except Exception as e:
            _handle_api_error(e, f"Failed to update values in {range}")
        return UpdateResult(
            updated_range=result.get("updatedRange", range),
            updated_rows=result.get("updatedRows", 0),
            updated_columns=result.get("updatedColumns", 0),
            updated_cells=result.get("updatedCells", 0),
        )

    async def batch_update_values(self, spreadsheet_id: str, data: list[ValueRange]) -> BatchUpdateResult:
        try:
            result = await self._execute(
                self._service.spreadsheets().values().batchUpdate(
                    spreadsheetId=spreadsheet_id,
                    body={
                        "valueInputOption": "USER_ENTERED",
                        "data": [{"range": d.range, "values": d.values} for d in data],
                    },
                )
            )
        except Exception as e:
            _handle_api_error(e, "Failed to batch update values")
        return BatchUpdateResult(
            total_updated_cells=result.get("totalUpdatedCells", 0),
            total_updated_rows=result.get("totalUpdatedRows", 0),
        )

    async def batch_get_values(self, spreadsheet_id: str, ranges: list[str]) -> list[ValueRange]:
        try:
            result = await self._execute(
                self._service.spreadsheets().values().batchGet(
                    spreadsheetId=spreadsheet_id, ranges=ranges, valueRenderOption="FORMATTED_VALUE"
                )
            )
        except Exception as e:
            _handle_api_error(e, "Failed to batch get values")
        return [
            ValueRange(range=vr.get("range", ""), values=vr.get("values", []))
            for vr in result.get("valueRanges", [])
        ]

    async def append_rows(self, spreadsheet_id: str, range: str, values: list[list[CellValue]]) -> UpdateResult:
        """Insert rows after the last row with data in the range."""
        try:
            result = await self._execute(
                self._service.spreadsheets().values().append(
                    spreadsheetId=spreadsheet_id,
                    range=range,
                    valueInputOption="USER_ENTERED",
                    insertDataOption="INSERT_ROWS",
                    body={"values": values},
                )
            )
        except Exception as e:
            _handle_api_error(e, f"Failed to append rows to {range}")
        updates = result.get("updates", {})
        return UpdateResult(
            updated_range=updates.get("updatedRange", range),
            updated_rows=updates.get("updatedRows", 0),
            updated_columns=updates.get("updatedColumns", 0),
            updated_cells=updates.get("updatedCells", 0),
        )

    async def _batch_update(self, spreadsheet_id: str, requests: list[dict], context: str) -> dict:
        try:
            return await self._execute(
                self._service.spreadsheets().batchUpdate(
                    spreadsheetId=spreadsheet_id, body={"requests": requests}
                )
            )
        except Exception as e:
            _handle_api_error(e, context)

    async def add_sheet(
        self,
        spreadsheet_id: str,
        title: str,
        row_count: int | None = None,
        column_count: int | None = None,
    ) -> SheetInfo:
        row_count = row_count or DEFAULT_ROW_COUNT
        column_count = column_count or DEFAULT_COLUMN_COUNT
        result = await self._batch_update(
            spreadsheet_id,
            [{
                "addSheet": {
                    "properties": {
                        "title": title,
                        "gridProperties": {"rowCount": row_count, "columnCount": column_count},
                    }
                }
            }],
            f'Failed to add sheet "{title}"',
        )
        replies = result.get("replies") or [{}]
        props = replies[0].get("addSheet", {}).get("properties", {})
        grid = props.get("gridProperties", {})
        return SheetInfo(
            sheet_id=props.get("sheetId", 0),
            title=props.get("title", title),
            row_count=grid.get("rowCount", row_count),
            column_count=grid.get("columnCount", column_count),
        )

    async def delete_sheet(self, spreadsheet_id: str, sheet_id: int) -> None:
        await self._batch_update(
            spreadsheet_id,
            [{"deleteSheet": {"sheetId": sheet_id}}],
            f"Failed to delete sheet {sheet_id}",
        )

    async def get_formatting(self, spreadsheet_id: str, range: str) -> list[dict]:
        """Return raw rowData entries carrying effectiveFormat and formattedValue."""
        try:
            result = await self._execute(
                self._service.spreadsheets().get(
                    spreadsheetId=spreadsheet_id,
                    ranges=[range],
                    includeGridData=True,
                    fields=FORMAT_FIELDS,
                )
            )
        except Exception as e:
            _handle_api_error(e, f"Failed to get formatting for {range}")
        sheets = result.get("sheets") or [{}]
        data = sheets[0].get("data") or [{}]
        return data[0].get("rowData", [])

    async def update_formatting(
        self, spreadsheet_id: str, grid_range: GridRange, cell_format: dict, fields: list[str]
    ) -> None:
        await self._batch_update(
            spreadsheet_id,
            [{
                "repeatCell": {
                    "range": grid_range.to_api(),
                    "cell": {"userEnteredFormat": cell_format},
                    "fields": f"userEnteredFormat({','.join(fields)})",
                }
            }],
            "Failed to update formatting",
        )

    async def resolve_sheet_id(self, spreadsheet_id: str, sheet_title: str) -> int:
        """Case-insensitive exact match of a sheet title to its numeric ID."""
        info = await self.get_spreadsheet_info(spreadsheet_id)
        wanted = sheet_title.lower()
        for sheet in info.sheets:
            if sheet.title.lower() == wanted:
                return sheet.sheet_id
        available = ", ".join(s.title for s in info.sheets)
        raise SheetNotFoundError(f'Sheet "{sheet_title}" not found. Available sheets: {available}', 404)


def build_sheets_client(settings: Settings) -> SheetsClient:
    creds = load_credentials(settings)
    service = build("sheets", "v4", credentials=creds, cache_discovery=False)
    return SheetsClient(
        service,
        http_factory=lambda: google_auth_httplib2.AuthorizedHttp(creds, http=httplib2.Http()),
    )

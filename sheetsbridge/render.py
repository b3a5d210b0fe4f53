"""Markdown rendering for tool output. Every function here is pure."""

from sheetsbridge.models.sheets import BatchUpdateResult, CellValue, SheetInfo, SpreadsheetInfo, UpdateResult, ValueRange

MAX_DISPLAY_ROWS = 500
EMPTY = "(empty)"


def column_label(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA (bijective base-26)."""
    if index < 0:
        raise ValueError(f"column index must be >= 0, got {index}")
    label = ""
    n = index
    while n >= 0:
        n, rem = divmod(n, 26)
        label = chr(ord("A") + rem) + label
        n -= 1
    return label


def escape_cell(text: str) -> str:
    """Keep cell text on one table row and inside one column."""
    text = text.replace("\\", "\\\\").replace("|", "\\|")
    return text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")


def cell_text(value: CellValue) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


def _table_row(cells: list[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def markdown_table(rows: list[list[CellValue]], has_header: bool = False) -> str:
    """Render a block of cells as a Markdown table.

    The table is as wide as the widest row; shorter rows are padded with
    empty cells. Without ``has_header`` the columns are labelled A, B, C...
    Data rows beyond MAX_DISPLAY_ROWS are dropped and a notice is appended.
    """
    if not rows:
        return EMPTY
    width = max(len(row) for row in rows)
    if width == 0:
        return EMPTY

    if has_header:
        header = [escape_cell(cell_text(v)) for v in rows[0]]
        header += [column_label(i) for i in range(len(header), width)]
        data = rows[1:]
    else:
        header = [column_label(i) for i in range(width)]
        data = rows

    total = len(data)
    shown = data[:MAX_DISPLAY_ROWS]

    lines = [_table_row(header), _table_row(["---"] * width)]
    for row in shown:
        cells = [escape_cell(cell_text(v)) for v in row]
        cells += [""] * (width - len(cells))
        lines.append(_table_row(cells))

    out = "\n".join(lines)
    if total > len(shown):
        hidden = total - len(shown)
        out += f"\n\n⚠️ Showing the first {len(shown)} of {total} rows ({hidden} rows hidden)."
    return out


def render_values(values: list[list[CellValue]], range: str) -> str:
    return f"## Values ({range})\n\n{markdown_table(values)}"


def render_formulas(formulas: list[list[CellValue]], range: str) -> str:
    return f"## Formulas ({range})\n\n{markdown_table(formulas)}"


def render_values_and_formulas(values: list[list[CellValue]], formulas: list[list[CellValue]], range: str) -> str:
    return "\n".join([
        f"## Values ({range})",
        markdown_table(values),
        "",
        f"## Formulas ({range})",
        markdown_table(formulas),
    ])


def render_spreadsheet_info(info: SpreadsheetInfo) -> str:
    lines = [
        f"# {info.title}",
        "",
        f"- **Spreadsheet ID**: {info.spreadsheet_id}",
        f"- **Locale**: {info.locale}",
        f"- **Time Zone**: {info.time_zone}",
        "",
        "## Sheets",
        "",
        "| Sheet Name | Sheet ID | Rows | Columns |",
        "| --- | --- | --- | --- |",
    ]
    for sheet in info.sheets:
        lines.append(f"| {escape_cell(sheet.title)} | {sheet.sheet_id} | {sheet.row_count} | {sheet.column_count} |")
    return "\n".join(lines)


def format_color(color: dict) -> str:
    """{red, green, blue} in 0..1 -> #rrggbb. Missing channels count as 0."""
    r, g, b = (round((color.get(c) or 0) * 255) for c in ("red", "green", "blue"))
    return f"#{r:02x}{g:02x}{b:02x}"


def describe_format(fmt: dict) -> list[str]:
    props = []
    text = fmt.get("textFormat") or {}
    if text.get("bold"):
        props.append("bold")
    if text.get("italic"):
        props.append("italic")
    if text.get("strikethrough"):
        props.append("strikethrough")
    if text.get("fontSize"):
        props.append(f"fontSize: {text['fontSize']}")
    rgb = (text.get("foregroundColorStyle") or {}).get("rgbColor")
    if rgb:
        props.append(f"color: {format_color(rgb)}")
    if fmt.get("backgroundColor"):
        props.append(f"bg: {format_color(fmt['backgroundColor'])}")
    number_format = fmt.get("numberFormat")
    if number_format:
        props.append(f"format: {number_format.get('type')} ({number_format.get('pattern') or 'default'})")
    if fmt.get("horizontalAlignment"):
        props.append(f"align: {fmt['horizontalAlignment']}")
    return props


def render_cell_formatting(row_data: list[dict], range: str) -> str:
    lines = [f"## Cell Formatting ({range})", ""]
    found = False
    for row in row_data:
        for cell in row.get("values") or []:
            fmt = cell.get("effectiveFormat")
            if not fmt:
                continue
            props = describe_format(fmt)
            if not props:
                continue
            label = cell.get("formattedValue")
            label = EMPTY if label is None else escape_cell(str(label))
            lines.append(f"- **{label}**: {', '.join(props)}")
            found = True
    if not found:
        lines.append("No formatting data found.")
    return "\n".join(lines)


# --- Write results ---

def render_update(result: UpdateResult, updated: list[list[CellValue]]) -> str:
    return (
        f"Updated {result.updated_cells} cells in {result.updated_range}\n\n"
        f"## Updated Values\n\n{markdown_table(updated)}"
    )


def render_batch_update(result: BatchUpdateResult, range_count: int, ranges: list[ValueRange]) -> str:
    parts = [f"Batch updated {result.total_updated_cells} cells across {range_count} ranges", ""]
    for item in ranges:
        parts.append(f"## {item.range}")
        parts.append(markdown_table(item.values))
        parts.append("")
    return "\n".join(parts).rstrip("\n")


def render_append(result: UpdateResult, appended: list[list[CellValue]]) -> str:
    return (
        f"Appended {result.updated_rows} rows ({result.updated_cells} cells) at {result.updated_range}\n\n"
        f"## Appended Data\n\n{markdown_table(appended)}"
    )


def render_added_sheet(sheet: SheetInfo) -> str:
    return (
        f'Sheet "{sheet.title}" created successfully\n\n'
        f"- **Sheet ID**: {sheet.sheet_id}\n"
        f"- **Rows**: {sheet.row_count}\n"
        f"- **Columns**: {sheet.column_count}"
    )


def render_deleted_sheet(
    title: str, sheet_id: int, snapshot: list[list[CellValue]] | None, backup_error: str | None = None
) -> str:
    out = f'Sheet "{title}" (ID: {sheet_id}) deleted successfully.'
    if snapshot:
        out += f"\n\n## Deleted Sheet Data (backup)\n\n{markdown_table(snapshot)}"
    elif backup_error:
        out += f"\n\n⚠️ Backup unavailable: {backup_error}"
    return out


def render_formatting_applied(
    sheet_title: str, start_row: int, end_row: int, start_col: int, end_col: int, fields: list[str]
) -> str:
    return (
        f"Formatting updated for {sheet_title} "
        f"[rows {start_row}-{end_row}, cols {start_col}-{end_col}]\n\n"
        f"Applied: {', '.join(fields)}"
    )

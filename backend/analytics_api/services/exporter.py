"""
CSV and JSON export of analytics data.

Export input is whatever an analytics endpoint returned: a list of rows, a
mapping of named row lists (one "sheet" per key), a flat record, or a bare
value. The shape is resolved once by classify() and the CSV writer works on
the resulting tagged union.

CSV Output Semantics:
- Header comes from the first row's keys in insertion order
- Later rows are read against that header, missing keys become empty cells
- A cell is quoted iff it contains a comma, a double quote or a newline
- Sheets are written as "--- name ---", the sheet table, then a blank line
- When a mapping has sheets, its scalar siblings are dropped
- A flat record becomes a single-row table whose cells are NOT quoted
  (legacy output; quote_record_cells=True writes them like row cells),
  except nested mappings, whose JSON text is always quoted
"""
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union
import json
import logging
from urllib.parse import quote

from fastapi import Response

from analytics_api.services.date_range import to_iso_string

logger = logging.getLogger(__name__)


class UnsupportedExportFormat(ValueError):
    """Raised when an export format other than csv or json is requested."""


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"

    @property
    def mime_type(self) -> str:
        return MIME_TYPES[self]

    @property
    def label(self) -> str:
        return f"Export as {self.name}"


MIME_TYPES: Dict[ExportFormat, str] = {
    ExportFormat.CSV: "text/csv;charset=utf-8;",
    ExportFormat.JSON: "application/json",
}


@dataclass(frozen=True)
class Rows:
    """Uniform records; the first record defines the columns."""
    rows: Sequence[Mapping[str, Any]]


@dataclass(frozen=True)
class SheetMap:
    """Named sub-tables of a multi-table export, in key order."""
    sheets: Dict[str, Rows]


@dataclass(frozen=True)
class Record:
    """Flat mapping exported as a single-row table."""
    fields: Mapping[str, Any]


@dataclass(frozen=True)
class Scalar:
    """Anything else; exported through plain stringification."""
    value: Any


ExportShape = Union[Rows, SheetMap, Record, Scalar]


def _is_rows(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and (not value or isinstance(value[0], Mapping))


def classify(value: Any) -> ExportShape:
    """Resolve an arbitrary export value into one of the export shapes."""
    if isinstance(value, Mapping):
        sheets = {
            str(key): Rows(sub)
            for key, sub in value.items()
            if _is_rows(sub) and sub
        }
        if sheets:
            return SheetMap(sheets)
        return Record(value)
    if _is_rows(value):
        return Rows(value)
    return Scalar(value)


def stringify(value: Any) -> str:
    """Plain text form of a cell value; None becomes an empty string."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return to_iso_string(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(item) for item in value)
    if isinstance(value, Mapping):
        return json.dumps(value, separators=(",", ":"), default=_json_default)
    return str(value)


def escape_cell(value: Any) -> str:
    text = stringify(value)
    if "," in text or '"' in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def _rows_to_csv(table: Rows) -> str:
    if not table.rows:
        return ""
    keys = list(table.rows[0].keys())
    lines = [",".join(str(key) for key in keys)]
    for row in table.rows:
        if not isinstance(row, Mapping):
            row = {}
        lines.append(",".join(escape_cell(row.get(key)) for key in keys))
    return "\n".join(lines)


def shape_to_csv(shape: ExportShape, quote_record_cells: bool = False) -> str:
    if isinstance(shape, Rows):
        return _rows_to_csv(shape)
    if isinstance(shape, SheetMap):
        blocks: List[str] = []
        for name, table in shape.sheets.items():
            blocks.extend([f"--- {name} ---", _rows_to_csv(table), ""])
        return "\n".join(blocks)
    if isinstance(shape, Record):
        headers = [str(key) for key in shape.fields]
        # Nested mappings are always quoted so their JSON stays in one column
        values = [
            escape_cell(v) if quote_record_cells or isinstance(v, Mapping) else stringify(v)
            for v in shape.fields.values()
        ]
        return "\n".join([",".join(headers), ",".join(values)])
    if not shape.value:
        return ""
    return stringify(shape.value)


def to_csv(value: Any, quote_record_cells: bool = False) -> str:
    """
    Convert analytics data to CSV text.

    Examples:
        >>> to_csv([{"a": 1, "b": 2}, {"a": 3, "b": 4}])
        'a,b\\n1,2\\n3,4'
        >>> to_csv({"overview": {"visits": 10}, "pages": [{"url": "/a", "hits": 5}]})
        '--- pages ---\\nurl,hits\\n/a,5\\n'
    """
    return shape_to_csv(classify(value), quote_record_cells=quote_record_cells)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_iso_string(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(value: Any) -> str:
    """Pretty-printed (2-space indent) JSON document of the value."""
    return json.dumps(value, indent=2, ensure_ascii=False, default=_json_default)


def parse_format(fmt: Union[str, ExportFormat]) -> ExportFormat:
    if isinstance(fmt, ExportFormat):
        return fmt
    try:
        return ExportFormat(str(fmt).lower())
    except ValueError:
        raise UnsupportedExportFormat(f"Unsupported export format '{fmt}'. Must be one of: csv, json") from None


def serialize(value: Any, fmt: Union[str, ExportFormat], quote_record_cells: bool = False) -> str:
    """Serialize export data to file content in the requested format."""
    fmt = parse_format(fmt)
    if fmt is ExportFormat.CSV:
        return to_csv(value, quote_record_cells=quote_record_cells)
    return to_json(value)


def export_filename(base: str, fmt: Union[str, ExportFormat]) -> str:
    """File name for a download; the base name is used as given."""
    return f"{base}.{parse_format(fmt).value}"


class FileSink(Protocol):
    """Destination that saves one exported file."""

    def __call__(self, content: str, filename: str, mime_type: str) -> None:
        ...


class DirectorySink:
    """Writes exported files into a directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def __call__(self, content: str, filename: str, mime_type: str) -> None:
        path = self.directory / filename
        with open(path, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        logger.info(f"Saved export {path} ({mime_type})")


def content_disposition(filename: str) -> str:
    """Attachment header value; non-ASCII names use the RFC 5987 form."""
    try:
        filename.encode("ascii")
    except UnicodeEncodeError:
        return f"attachment; filename*=utf-8''{quote(filename)}"
    return f'attachment; filename="{filename}"'


class ResponseSink:
    """Captures one export as an attachment HTTP response."""

    def __init__(self):
        self.response: Optional[Response] = None

    def __call__(self, content: str, filename: str, mime_type: str) -> None:
        self.response = Response(
            content=content.encode("utf-8"),
            media_type=mime_type,
            headers={"Content-Disposition": content_disposition(filename)},
        )


def export(
    value: Any,
    fmt: Union[str, ExportFormat],
    filename: str,
    sink: FileSink,
    quote_record_cells: bool = False,
) -> None:
    """
    Serialize value and hand it to the sink as <filename>.<fmt>.

    Sink failures are not handled here and propagate to the caller.
    """
    fmt = parse_format(fmt)
    content = serialize(value, fmt, quote_record_cells=quote_record_cells)
    name = export_filename(filename, fmt)
    logger.debug(f"Exporting {name} ({len(content)} chars)")
    sink(content, name, fmt.mime_type)


def export_menu(disabled: bool = False) -> List[Dict[str, Any]]:
    """The two export choices offered next to a report."""
    return [
        {"format": fmt.value, "label": fmt.label, "disabled": disabled}
        for fmt in ExportFormat
    ]

"""
Tests for CSV/JSON export of analytics data.
"""
import csv
import io
import json
import pytest
from datetime import datetime, timezone
from decimal import Decimal

from analytics_api.services.exporter import (
    DirectorySink,
    ExportFormat,
    Record,
    ResponseSink,
    Rows,
    Scalar,
    SheetMap,
    UnsupportedExportFormat,
    classify,
    content_disposition,
    export,
    export_filename,
    export_menu,
    serialize,
    stringify,
)


class RecordingSink:
    """Collects every file handed to it."""

    def __init__(self):
        self.files = []

    def __call__(self, content, filename, mime_type):
        self.files.append((content, filename, mime_type))


class TestClassify:
    """Test shape dispatch of export values."""

    def test_list_of_records_is_rows(self):
        assert isinstance(classify([{"a": 1}]), Rows)

    def test_empty_list_is_rows(self):
        assert classify([]) == Rows([])

    def test_mapping_with_record_lists_is_sheet_map(self):
        shape = classify({"total": 3, "pages": [{"url": "/"}], "empty": []})
        assert isinstance(shape, SheetMap)
        assert list(shape.sheets) == ["pages"]

    def test_flat_mapping_is_record(self):
        assert isinstance(classify({"visits": 10, "tags": [1, 2]}), Record)

    def test_list_of_scalars_is_scalar(self):
        assert isinstance(classify([1, 2, 3]), Scalar)

    @pytest.mark.parametrize("value", [None, 42, "text", True])
    def test_other_values_are_scalar(self, value):
        assert classify(value) == Scalar(value)


class TestCsvRows:
    """Test CSV output for lists of records."""

    def test_basic_table(self):
        assert serialize([{"a": 1, "b": 2}, {"a": 3, "b": 4}], "csv") == "a,b\n1,2\n3,4"

    def test_comma_cell_is_quoted(self):
        assert serialize([{"a": "x,y"}], "csv") == 'a\n"x,y"'

    def test_quote_cell_is_escaped(self):
        assert serialize([{"a": 'say "hi"'}], "csv") == 'a\n"say ""hi"""'

    def test_newline_cell_is_quoted(self):
        assert serialize([{"a": "line1\nline2"}], "csv") == 'a\n"line1\nline2"'

    def test_empty_list(self):
        assert serialize([], "csv") == ""

    def test_none(self):
        assert serialize(None, "csv") == ""

    def test_header_keeps_first_row_key_order(self):
        rows = [{"zeta": 1, "alpha": 2}, {"alpha": 3, "zeta": 4}]
        assert serialize(rows, "csv") == "zeta,alpha\n1,2\n4,3"

    def test_ragged_rows_become_empty_cells(self):
        rows = [{"a": 1, "b": 2}, {"a": 3}, {"c": 9}]
        assert serialize(rows, "csv") == "a,b\n1,2\n3,\n,"

    def test_non_record_row_is_empty(self):
        rows = [{"a": 1, "b": 2}, "oops"]
        assert serialize(rows, "csv") == "a,b\n1,2\n,"

    def test_cell_stringification(self):
        rows = [{"v": 1.0, "w": 2.5, "ok": True, "off": False, "n": None}]
        assert serialize(rows, "csv") == "v,w,ok,off,n\n1,2.5,true,false,"

    def test_quoting_survives_csv_parser(self):
        """Test a standard CSV reader recovers the original cell text."""
        tricky = 'He said "hi", then\nleft'
        output = serialize([{"note": tricky, "n": 1}], "csv")
        parsed = list(csv.reader(io.StringIO(output)))
        assert parsed == [["note", "n"], [tricky, "1"]]

    def test_non_string_keys(self):
        """Test integer keys are written as header text."""
        assert serialize([{1: "a", 2: "b"}, {1: "c"}], "csv") == "1,2\na,b\nc,"


class TestCsvSheets:
    """Test CSV output for mappings of named tables."""

    def test_scalar_siblings_are_dropped(self):
        data = {"overview": {"visits": 10}, "pages": [{"url": "/a", "hits": 5}]}
        assert serialize(data, "csv") == "--- pages ---\nurl,hits\n/a,5\n"

    def test_sheets_in_key_order(self):
        data = {"a": [{"x": 1}], "meta": "m", "b": [{"y": 2}, {"y": 3}]}
        assert serialize(data, "csv") == "--- a ---\nx\n1\n\n--- b ---\ny\n2\n3\n"

    def test_sheet_cells_are_quoted(self):
        data = {"cities": [{"name": "Paris, FR", "users": 3}]}
        assert serialize(data, "csv") == '--- cities ---\nname,users\n"Paris, FR",3\n'


class TestCsvRecord:
    """Test CSV output for a flat record."""

    def test_single_row_table(self):
        assert serialize({"visits": 10, "bounce": 0.5}, "csv") == "visits,bounce\n10,0.5"

    def test_nullish_becomes_empty(self):
        assert serialize({"visits": 10, "note": None}, "csv") == "visits,note\n10,"

    def test_record_cells_are_not_quoted(self):
        """Test the legacy single-record path leaves separators unescaped."""
        assert serialize({"name": "a,b", "n": 1}, "csv") == "name,n\na,b,1"

    def test_record_cells_quoted_when_requested(self):
        output = serialize({"name": "a,b", "n": 1}, "csv", quote_record_cells=True)
        assert output == 'name,n\n"a,b",1'

    def test_list_values_are_joined(self):
        assert serialize({"tags": ["x", "y"]}, "csv") == "tags\nx,y"

    def test_nested_mapping_stays_in_one_column(self):
        """Test nested JSON is quoted even on the unquoted record path."""
        output = serialize({"overview": {"visits": 10, "users": 3}, "n": 1}, "csv")
        assert output == 'overview,n\n"{""visits"":10,""users"":3}",1'
        parsed = list(csv.reader(io.StringIO(output)))
        assert parsed == [["overview", "n"], ['{"visits":10,"users":3}', "1"]]


class TestCsvScalar:
    """Test CSV output for values that are not tables."""

    @pytest.mark.parametrize("value,expected", [
        (42, "42"),
        ("hello", "hello"),
        ([1, 2], "1,2"),
        (0, ""),
        ("", ""),
    ])
    def test_stringified(self, value, expected):
        assert serialize(value, "csv") == expected


class TestJson:
    """Test JSON output."""

    def test_pretty_printed(self):
        assert serialize({"a": [1, 2]}, "json") == '{\n  "a": [\n    1,\n    2\n  ]\n}'

    @pytest.mark.parametrize("value", [
        [{"a": 1, "b": "x,y"}, {"a": None}],
        {"overview": {"visits": 10}, "pages": [{"url": "/a", "hits": 5}]},
        {"unicode": "café", "nested": {"deep": [True, False, None]}},
        [],
        "plain",
        None,
    ])
    def test_round_trip(self, value):
        assert json.loads(serialize(value, "json")) == value

    def test_datetime_and_decimal(self):
        data = {"at": datetime(2024, 1, 1, tzinfo=timezone.utc), "revenue": Decimal("12.50")}
        assert json.loads(serialize(data, "json")) == {
            "at": "2024-01-01T00:00:00.000Z",
            "revenue": 12.5,
        }

    def test_unserializable_raises(self):
        with pytest.raises(TypeError):
            serialize({"obj": object()}, "json")


class TestFormats:
    """Test format parsing, file names and MIME types."""

    def test_unsupported_format(self):
        with pytest.raises(UnsupportedExportFormat):
            serialize([], "xml")

    def test_format_is_case_insensitive(self):
        assert serialize([{"a": 1}], "CSV") == "a\n1"

    def test_filenames(self):
        assert export_filename("traffic", "csv") == "traffic.csv"
        assert export_filename("my report", ExportFormat.JSON) == "my report.json"

    def test_mime_types(self):
        assert ExportFormat.CSV.mime_type == "text/csv;charset=utf-8;"
        assert ExportFormat.JSON.mime_type == "application/json"

    def test_export_menu(self):
        assert export_menu() == [
            {"format": "csv", "label": "Export as CSV", "disabled": False},
            {"format": "json", "label": "Export as JSON", "disabled": False},
        ]
        assert all(item["disabled"] for item in export_menu(disabled=True))

    def test_stringify_datetime(self):
        assert stringify(datetime(2024, 1, 1, tzinfo=timezone.utc)) == "2024-01-01T00:00:00.000Z"


class TestExport:
    """Test the export action and file sinks."""

    def test_csv_reaches_sink_once(self):
        sink = RecordingSink()
        export([{"a": 1}], "csv", "pages", sink)
        assert sink.files == [("a\n1", "pages.csv", "text/csv;charset=utf-8;")]

    def test_json_reaches_sink(self):
        sink = RecordingSink()
        export({"a": 1}, ExportFormat.JSON, "summary", sink)
        content, filename, mime_type = sink.files[0]
        assert json.loads(content) == {"a": 1}
        assert filename == "summary.json"
        assert mime_type == "application/json"

    def test_sink_failure_propagates(self):
        def broken_sink(content, filename, mime_type):
            raise PermissionError("download blocked")

        with pytest.raises(PermissionError):
            export([{"a": 1}], "csv", "pages", broken_sink)

    def test_unsupported_format_never_reaches_sink(self):
        sink = RecordingSink()
        with pytest.raises(UnsupportedExportFormat):
            export([{"a": 1}], "pdf", "pages", sink)
        assert sink.files == []

    def test_directory_sink_writes_file(self, tmp_path):
        export([{"url": "/a", "hits": 5}], "csv", "pages", DirectorySink(tmp_path))
        assert (tmp_path / "pages.csv").read_text(encoding="utf-8") == "url,hits\n/a,5"

    def test_response_sink_builds_attachment(self):
        sink = ResponseSink()
        export([{"a": 1}], "csv", "pages", sink)
        assert sink.response.body == b"a\n1"
        assert sink.response.headers["content-disposition"] == 'attachment; filename="pages.csv"'
        assert sink.response.media_type == "text/csv;charset=utf-8;"

    @pytest.mark.parametrize("filename,expected", [
        ("pages.csv", 'attachment; filename="pages.csv"'),
        ("données.csv", "attachment; filename*=utf-8''donn%C3%A9es.csv"),
        ("報告.json", "attachment; filename*=utf-8''%E5%A0%B1%E5%91%8A.json"),
    ])
    def test_content_disposition(self, filename, expected):
        assert content_disposition(filename) == expected

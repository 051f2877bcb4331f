from __future__ import annotations

import pytest

from adaptdash.app.errors import ImporterError
from adaptdash.ingest.models import COLUMNS, EXPECTED_COLUMNS
from adaptdash.ingest.parser import (
    locate_columns,
    normalize_row,
    parse_csv_text,
    parse_sheet_rows,
    project_row,
    split_csv_line,
    split_lines,
)


def test_split_csv_line_handles_quotes():
    assert split_csv_line('a,"b,c","d""e"') == ["a", "b,c", 'd"e']


def test_split_csv_line_keeps_empty_cells():
    assert split_csv_line("a,,c,") == ["a", "", "c", ""]


@pytest.mark.parametrize("n", [0, 10, 34, 100])
def test_normalize_row_always_has_expected_width(n):
    row = normalize_row([f" v{i} " for i in range(n)])
    assert len(row) == EXPECTED_COLUMNS
    if n:
        assert row[0] == "v0"
    if n < EXPECTED_COLUMNS:
        assert row[-1] == ""
    else:
        assert row[-1] == f"v{EXPECTED_COLUMNS - 1}"


def test_normalize_row_none():
    assert normalize_row(None) == [""] * EXPECTED_COLUMNS


def test_split_lines_drops_blank_lines():
    assert split_lines("h\n\n  \nrow1\nrow2\n") == ["h", "row1", "row2"]


@pytest.mark.parametrize("text", ["", "\n\n", "only,a,header\n"])
def test_parse_csv_text_needs_header_and_one_row(text):
    with pytest.raises(ImporterError, match="empty or invalid"):
        parse_csv_text(text)


def test_parse_csv_text_splits_header_and_rows():
    table = parse_csv_text("a, b\n1,2\n\n3\n")
    assert table.header == ["a", "b"]
    assert table.rows == [["1", "2"], ["3"]]


def test_parse_sheet_rows_converts_cells():
    table = parse_sheet_rows([["h1", "h2"], [None, None], [4.0, float("nan")], [2.5, "x"]])
    assert table.rows == [["4", ""], ["2.5", "x"]]


def test_parse_sheet_rows_rejects_header_only():
    with pytest.raises(ImporterError):
        parse_sheet_rows([["h1", "h2"], [None, None]])


def test_locate_columns_finds_drifted_columns():
    header = ["School type", "Timestamp", "Group size"]
    mapping, warnings = locate_columns(header)

    assert mapping["school_type"] == 0
    assert mapping["timestamp"] == 1
    assert mapping["group_size"] == 2
    assert mapping["consent"] is None
    assert "Column not found: Consent" in warnings
    assert len(warnings) == len(COLUMNS) - 3


def test_project_row_reorders_into_positional_layout():
    mapping, _ = locate_columns(["School type", "Timestamp", "Group size"])
    row = project_row(["Public", "2024/1/1 1:00:00 fm CET", "22"], mapping)

    assert len(row) == EXPECTED_COLUMNS
    assert row[0] == "2024/1/1 1:00:00 fm CET"
    assert row[30] == "Public"
    assert row[31] == "22"

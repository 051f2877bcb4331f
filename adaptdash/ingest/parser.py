from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from adaptdash.app.errors import ImporterError
from adaptdash.ingest.models import COLUMNS, EXPECTED_COLUMNS, ColumnSpec


@dataclass(frozen=True)
class ParsedTable:
    header: List[str]
    rows: List[List[str]]


def split_lines(text: str) -> List[str]:
    # Newline-separated; blank lines are dropped before row splitting.
    return [line for line in text.split("\n") if line.strip()]


def split_csv_line(line: str) -> List[str]:
    """
    Split one delimited line into cells.

    Comma is the delimiter; quoting toggles on every unescaped quote and a
    doubled quote inside a quoted field yields a literal quote.
    """
    cells: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    n = len(line)

    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            cells.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    cells.append("".join(current))
    return cells


def _cell_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def normalize_row(cells: Optional[Iterable[Any]], width: int = EXPECTED_COLUMNS) -> List[str]:
    # Trim, pad with "" or truncate so that every row has exactly `width` cells.
    row = [_cell_to_str(c).strip() for c in (cells or [])]
    if len(row) < width:
        row.extend([""] * (width - len(row)))
    return row[:width]


def _is_blank_row(cells: Sequence[Any]) -> bool:
    return all(_cell_to_str(c).strip() == "" for c in cells)


def parse_csv_text(text: str) -> ParsedTable:
    lines = split_lines(text)
    if len(lines) < 2:
        raise ImporterError("CSV file appears to be empty or invalid")

    header = [c.strip() for c in split_csv_line(lines[0])]
    rows = [split_csv_line(line) for line in lines[1:]]
    return ParsedTable(header=header, rows=rows)


def parse_sheet_rows(rows: Sequence[Sequence[Any]]) -> ParsedTable:
    # Pre-tokenized spreadsheet rows (cells may be numbers, dates, NaN or None).
    usable = [list(r) for r in rows if r is not None and not _is_blank_row(r)]
    if len(usable) < 2:
        raise ImporterError("Spreadsheet appears to be empty or invalid")

    header = [_cell_to_str(c).strip() for c in usable[0]]
    body = [[_cell_to_str(c) for c in r] for r in usable[1:]]
    return ParsedTable(header=header, rows=body)


def locate_columns(
    header: Sequence[str],
    columns: Sequence[ColumnSpec] = COLUMNS,
) -> Tuple[Dict[str, Optional[int]], List[str]]:
    """
    Name-based column location for exports whose positions have drifted.

    Each schema column takes the first still-unused header cell that contains
    one of its hints (case-insensitive). Columns that cannot be found map to
    None and produce a warning; the load continues with that field empty.
    """
    lowered = [str(h).strip().lower() for h in header]
    used: set = set()
    mapping: Dict[str, Optional[int]] = {}
    warnings: List[str] = []

    for col in columns:
        found: Optional[int] = None
        for idx, text in enumerate(lowered):
            if idx in used or not text:
                continue
            if any(hint.lower() in text for hint in col.header_hints):
                found = idx
                break
        if found is None:
            warnings.append(f"Column not found: {col.label}")
        else:
            used.add(found)
        mapping[col.name] = found

    return mapping, warnings


def project_row(
    cells: Sequence[str],
    mapping: Dict[str, Optional[int]],
    columns: Sequence[ColumnSpec] = COLUMNS,
) -> List[str]:
    # Reorder a raw row into the positional layout using a located mapping.
    out: List[str] = []
    for col in columns:
        idx = mapping.get(col.name)
        out.append(cells[idx] if idx is not None and idx < len(cells) else "")
    return normalize_row(out, width=len(columns))

# importer.py
from __future__ import annotations

import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union
from uuid import uuid4

import pandas as pd

from adaptdash.app.config import COLUMN_MODES
from adaptdash.app.errors import ConfigError, ImporterError
from adaptdash.app.logging import get_logger, set_load_id
from adaptdash.ingest.lexicon import ENGLISH, Lexicon
from adaptdash.ingest.models import SurveyRecord
from adaptdash.ingest.normalizer import RecordNormalizer
from adaptdash.ingest.parser import ParsedTable, locate_columns, parse_csv_text, parse_sheet_rows, project_row


logger = get_logger(__name__)

_TEXT_SUFFIXES = {".csv", ".txt"}
_SHEET_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
_FALLBACK_ENCODING = "cp1252"


@dataclass(frozen=True)
class ImportResult:
    load_id: str
    source: str
    records: List[SurveyRecord]
    warnings: List[str] = field(default_factory=list)
    column_mode: str = "position"

    @property
    def n_rows(self) -> int:
        return len(self.records)


class SurveyImporter:
    def __init__(self, lexicon: Lexicon = ENGLISH, column_mode: str = "position"):
        if column_mode not in COLUMN_MODES:
            raise ConfigError(f"column_mode must be one of {COLUMN_MODES}, got {column_mode!r}")
        self.lexicon = lexicon
        self.column_mode = column_mode
        self.normalizer = RecordNormalizer(lexicon)

    def import_csv(self, file_path: Union[str, Path], encoding: Optional[str] = None) -> ImportResult:
        try:
            data = Path(file_path).read_bytes()
        except OSError as e:
            raise ImporterError(f"Failed to read CSV: {e}") from e
        text, notes = self._decode(data, encoding)
        return self.load_text(text, source=str(file_path), warnings=notes)

    def import_excel(
        self,
        file_path: Union[str, Path, io.BytesIO],
        sheet_name: Union[int, str] = 0,
        source: Optional[str] = None,
    ) -> ImportResult:
        try:
            df = pd.read_excel(file_path, sheet_name=sheet_name, header=None, dtype=object)
        except Exception as e:
            raise ImporterError(f"Failed to read Excel: {e}") from e

        # NaN/NaT become None so the parser sees empty cells.
        rows = df.astype(object).where(pd.notnull(df), None).values.tolist()
        if source is None:
            source = f"{file_path}#{sheet_name}"
        return self.load_sheet(rows, source=source)

    def import_bytes(self, data: bytes, filename: str, encoding: Optional[str] = None) -> ImportResult:
        # Uploads arrive as one complete buffer; dispatch on the file extension.
        suffix = Path(filename).suffix.lower()
        if suffix in _SHEET_SUFFIXES:
            return self.import_excel(io.BytesIO(data), source=filename)
        if suffix in _TEXT_SUFFIXES or not suffix:
            text, notes = self._decode(data, encoding)
            return self.load_text(text, source=filename, warnings=notes)
        raise ImporterError(f"Unsupported file type: {suffix}")

    def load_text(self, text: str, source: str = "text", warnings: Sequence[str] = ()) -> ImportResult:
        return self._build(parse_csv_text, text, source, warnings)

    def load_sheet(self, rows: Sequence[Sequence[Any]], source: str = "sheet") -> ImportResult:
        return self._build(parse_sheet_rows, rows, source)

    def _build(self, parse, payload, source: str, notes: Sequence[str] = ()) -> ImportResult:
        load_id = uuid4().hex[:12]
        set_load_id(load_id)

        table: ParsedTable = parse(payload)
        warnings: List[str] = list(notes)
        rows = table.rows

        if self.column_mode == "header":
            mapping, missing = locate_columns(table.header)
            rows = [project_row(r, mapping) for r in rows]
            warnings.extend(missing)
            for w in missing:
                logger.warning(w, extra={"source": source})

        records = [self.normalizer.normalize(r) for r in rows]
        logger.info(
            "Survey file loaded",
            extra={
                "source": source,
                "rows": len(records),
                "warnings": len(warnings),
                "column_mode": self.column_mode,
                "lexicon": self.lexicon.name,
            },
        )
        return ImportResult(
            load_id=load_id,
            source=source,
            records=records,
            warnings=warnings,
            column_mode=self.column_mode,
        )

    def _decode(self, data: bytes, encoding: Optional[str]) -> Tuple[str, List[str]]:
        """
        Decode an uploaded text file. Undecodable bytes never abort the load:
        UTF-8 falls back to Windows-1252 (common for spreadsheet exports) and
        any byte that still does not map is replaced; both produce a warning.
        """
        primary = encoding or "utf-8-sig"
        try:
            return data.decode(primary), []
        except LookupError as e:
            raise ImporterError(f"Unknown encoding: {e}") from e
        except UnicodeDecodeError as e:
            logger.warning("File is not valid %s", primary, extra={"error": str(e)})

        if encoding is None:
            text = data.decode(_FALLBACK_ENCODING, errors="replace")
            return text, [f"File is not valid UTF-8; read as {_FALLBACK_ENCODING}"]

        text = data.decode(primary, errors="replace")
        return text, [f"File is not valid {primary}; undecodable bytes were replaced"]

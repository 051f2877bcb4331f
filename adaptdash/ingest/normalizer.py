from __future__ import annotations

import re
from typing import Any, Dict, Optional, Sequence

from adaptdash.ingest.lexicon import ENGLISH, Lexicon
from adaptdash.ingest.models import COLUMNS, ColumnSpec, SurveyRecord
from adaptdash.ingest.parser import normalize_row


_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER_RE = re.compile(r"-?(\d+\.?\d*|\.\d+)")
_TIMESTAMP_RE = re.compile(
    r"(\d{4})/(\d{1,2})/(\d{1,2})\s+(\d{1,2}):(\d{1,2}):(\d{1,2})\s+(em|fm|am|pm)\s+(\w+)",
    re.IGNORECASE,
)


def parse_number(value: Optional[str]) -> Optional[float]:
    """
    Lenient numeric parse: keep only digits, '.' and '-', then read the
    leading decimal. Anything unparseable is missing (None), never 0.
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    m = _LEADING_NUMBER_RE.match(_NON_NUMERIC_RE.sub("", s))
    if not m:
        return None
    return float(m.group(0))


def parse_timestamp(value: Optional[str]) -> str:
    # "2024/3/5 2:07:09 em CET" -> "2024-03-05 14:07:09 CET"; anything else passes through.
    s = (value or "").strip()
    if not s:
        return ""

    m = _TIMESTAMP_RE.search(s)
    if not m:
        return s

    year, month, day, hour, minute, second, meridiem, tz = m.groups()
    hour24 = int(hour)
    meridiem = meridiem.lower()
    if meridiem in {"em", "pm"}:
        if hour24 != 12:
            hour24 += 12
    elif hour24 == 12:
        hour24 = 0

    return (
        f"{year}-{int(month):02d}-{int(day):02d} "
        f"{hour24:02d}:{int(minute):02d}:{int(second):02d} {tz}"
    )


class RecordNormalizer:
    """Maps one positional row onto a SurveyRecord using the column schema."""

    def __init__(self, lexicon: Lexicon = ENGLISH, columns: Sequence[ColumnSpec] = COLUMNS):
        self.lexicon = lexicon
        self.columns = tuple(columns)

    def normalize(self, cells: Sequence[Any]) -> SurveyRecord:
        values = normalize_row(cells, width=len(self.columns))

        kwargs: Dict[str, Any] = {}
        for col in self.columns:
            raw = values[col.index]
            if col.kind == "number":
                kwargs[col.name] = parse_number(raw)
            elif col.kind == "timestamp":
                kwargs[col.name] = parse_timestamp(raw)
            else:
                kwargs[col.name] = raw

        kwargs["years_teaching_category"] = self.lexicon.years_category(kwargs.get("years_teaching"))
        return SurveyRecord(**kwargs)

from __future__ import annotations

import math
from typing import Any, Sequence

import pandas as pd

from adaptdash.ingest.models import EXPORT_KEYS, SurveyRecord


def format_value(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _quote(text: str) -> str:
    # Quote only when the value contains the delimiter or a quote.
    if "," in text or '"' in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def records_frame(records: Sequence[SurveyRecord]) -> pd.DataFrame:
    # Denormalized view of the records with the export header as columns.
    return pd.DataFrame([r.to_export_dict() for r in records], columns=list(EXPORT_KEYS))


def export_csv(records: Sequence[SurveyRecord]) -> str:
    if not records:
        return ""

    lines = [",".join(EXPORT_KEYS)]
    for record in records:
        row = record.to_export_dict()
        lines.append(",".join(_quote(format_value(row[k])) for k in EXPORT_KEYS))
    return "\n".join(lines)

from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from adaptdash.analysis.fields import AGREEMENT_LEVELS, get_field
from adaptdash.app.errors import UnknownFieldError
from adaptdash.ingest.lexicon import ENGLISH, Lexicon
from adaptdash.ingest.models import AGREEMENT_ITEMS, INDEX_FIELDS, LIKERT_QUESTIONS, SurveyRecord


MetricKind = Literal["numeric", "agreement", "encoded", "categorical"]

# Numeric stand-ins for banded answers (range midpoints).
YEARS_MIDPOINTS: Dict[str, float] = {"0-5": 2.5, "6-10": 8, "6-11": 8, "11-20": 15.5, "21-30": 25.5, "20-30": 25.5, "30+": 35}
SHARE_MIDPOINTS: Dict[str, float] = {"0-10%": 5, "11-25%": 18, "26-40%": 33, "41-60%": 50.5, ">61%": 70, "61%+": 70}


@dataclass(frozen=True)
class Metric:
    key: str
    label: str
    kind: MetricKind


@dataclass(frozen=True)
class PlaygroundPoint:
    key: str
    name: str
    value: Optional[float]
    count: int
    categorical: bool = False


@dataclass(frozen=True)
class PlaygroundGroup:
    name: str
    count: int
    values: Dict[str, Optional[float]] = field(default_factory=dict)


METRICS: Dict[str, Metric] = {
    **{q.key: Metric(q.key, f"{q.family.title()}: {q.label}", "numeric") for q in LIKERT_QUESTIONS},
    INDEX_FIELDS["support"]: Metric(INDEX_FIELDS["support"], "Support Index", "numeric"),
    INDEX_FIELDS["challenge"]: Metric(INDEX_FIELDS["challenge"], "Challenge Index", "numeric"),
    **{i.key: Metric(i.key, i.label, "agreement") for i in AGREEMENT_ITEMS},
    "group_size": Metric("group_size", "Group Size", "numeric"),
    "years_teaching_category": Metric("years_teaching_category", "Years Teaching", "encoded"),
    "share_support_students": Metric("share_support_students", "Share Support Students", "encoded"),
    "share_challenge_students": Metric("share_challenge_students", "Share Challenge Students", "encoded"),
    "has_certification": Metric("has_certification", "Certification", "encoded"),
    "school_type": Metric("school_type", "School Type", "categorical"),
    "levels_teaching": Metric("levels_teaching", "Levels Teaching", "categorical"),
}


def get_metric(key: str) -> Metric:
    try:
        return METRICS[key]
    except KeyError:
        raise UnknownFieldError(f"{key!r} is not a playground metric") from None


def _encode(key: str, raw: str) -> Optional[float]:
    s = (raw or "").strip()
    if not s:
        return None
    if key == "years_teaching_category":
        return YEARS_MIDPOINTS.get(s)
    if key in ("share_support_students", "share_challenge_students"):
        return SHARE_MIDPOINTS.get(s)
    if key == "has_certification":
        return 1.0 if s.lower() == "yes" else 0.0
    return None


def metric_value(record: SurveyRecord, key: str, lexicon: Lexicon = ENGLISH) -> Optional[float]:
    metric = get_metric(key)
    raw = getattr(record, key)
    if metric.kind == "numeric":
        return raw
    if metric.kind == "agreement":
        return lexicon.agreement_score(raw)
    if metric.kind == "encoded":
        return _encode(key, raw)
    # Purely categorical answers have no numeric reading.
    return None


def _aggregate(records: Sequence[SurveyRecord], metric: Metric, lexicon: Lexicon) -> Tuple[Optional[float], int]:
    if metric.kind == "categorical":
        answered = sum(1 for r in records if str(getattr(r, metric.key) or "").strip())
        return float(answered), answered

    values = [v for v in (metric_value(r, metric.key, lexicon) for r in records) if v is not None]
    return (statistics.fmean(values) if values else None), len(values)


def available_groups(
    records: Sequence[SurveyRecord],
    group_by: str,
    lexicon: Lexicon = ENGLISH,
) -> List[Tuple[str, int]]:
    """
    Groups a field can split the data into, with respondent counts.
    Agreement items always offer the five score levels, even when empty.
    """
    breakdown = get_field(group_by, lexicon)
    counts: Dict[str, int] = {}
    for r in records:
        category = breakdown.extract(r)
        if category is not None:
            counts[category] = counts.get(category, 0) + 1

    if breakdown.order == AGREEMENT_LEVELS:
        return [(level, counts.get(level, 0)) for level in AGREEMENT_LEVELS]

    names = sorted(counts, key=breakdown.position) if breakdown.is_ordinal else sorted(counts)
    return [(name, counts[name]) for name in names]


def playground_data(
    records: Sequence[SurveyRecord],
    metrics: Sequence[str],
    group_by: Optional[str] = None,
    groups: Sequence[str] = (),
    lexicon: Lexicon = ENGLISH,
):
    """
    Aggregates for an ad-hoc chart.

    Without `group_by`: one PlaygroundPoint per metric (mean of the numeric
    readings; categorical metrics report how many answered). With `group_by`:
    one PlaygroundGroup per selected group (all groups when none selected),
    holding each metric's mean within the group.
    """
    selected = [get_metric(k) for k in metrics]
    if not selected:
        return []

    if group_by is None:
        points: List[PlaygroundPoint] = []
        for metric in selected:
            value, count = _aggregate(records, metric, lexicon)
            points.append(
                PlaygroundPoint(
                    key=metric.key,
                    name=metric.label,
                    value=value,
                    count=count,
                    categorical=metric.kind == "categorical",
                )
            )
        return points

    breakdown = get_field(group_by, lexicon)
    names = list(groups) or [name for name, _ in available_groups(records, group_by, lexicon)]

    out: List[PlaygroundGroup] = []
    for name in names:
        rows = [r for r in records if breakdown.extract(r) == name]
        values = {m.key: _aggregate(rows, m, lexicon)[0] for m in selected}
        out.append(PlaygroundGroup(name=name, count=len(rows), values=values))
    return out

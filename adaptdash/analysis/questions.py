from __future__ import annotations

import statistics
from collections import Counter
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from adaptdash.analysis.fields import get_field, question_value
from adaptdash.ingest.lexicon import ENGLISH, Lexicon
from adaptdash.ingest.models import LIKERT_QUESTIONS, UNKNOWN, QuestionDef, SurveyRecord


HIGH_USE_MIN = 4


@dataclass(frozen=True)
class QuestionStats:
    key: str
    label: str
    family: str
    count: int
    mean: Optional[float] = None
    median: Optional[float] = None
    std_dev: Optional[float] = None
    percent_high_use: Optional[float] = None  # 0..100


@dataclass(frozen=True)
class GroupMean:
    mean: float
    count: int


def _summarize(question: QuestionDef, values: List[float]) -> QuestionStats:
    if not values:
        return QuestionStats(key=question.key, label=question.label, family=question.family, count=0)

    nums_sorted = sorted(values)
    n = len(nums_sorted)
    return QuestionStats(
        key=question.key,
        label=question.label,
        family=question.family,
        count=n,
        mean=statistics.fmean(nums_sorted),
        # Element at index n // 2 of the sorted values; no interpolation.
        median=nums_sorted[n // 2],
        std_dev=statistics.pstdev(nums_sorted),
        percent_high_use=100.0 * sum(1 for v in nums_sorted if v >= HIGH_USE_MIN) / n,
    )


def question_stats(
    records: Sequence[SurveyRecord],
    questions: Sequence[QuestionDef] = LIKERT_QUESTIONS,
) -> List[QuestionStats]:
    """
    Mean, median, population standard deviation and percent scoring 4-5 for
    each frequency question, each over its own answered values. A question
    nobody answered reports count=0 and no statistics.
    """
    out: List[QuestionStats] = []
    for q in questions:
        values = [v for v in (question_value(r, q.key) for r in records) if v is not None]
        out.append(_summarize(q, values))
    return out


def stats_table(stats: Iterable[QuestionStats]) -> List[Dict[str, Any]]:
    # JSON-friendly rows for tables/exports.
    return [asdict(s) for s in stats]


def unique_values(records: Iterable[SurveyRecord], field: str, lexicon: Lexicon = ENGLISH) -> List[str]:
    breakdown = get_field(field, lexicon)
    values = {v for v in (breakdown.extract(r) for r in records) if v is not None}
    return sorted(values)


def question_distribution(records: Iterable[SurveyRecord], key: str) -> Dict[float, int]:
    # Answer value -> number of respondents, ascending by value.
    counts = Counter(v for v in (question_value(r, key) for r in records) if v is not None)
    return dict(sorted(counts.items()))


def question_breakdown(
    records: Iterable[SurveyRecord],
    key: str,
    field: str,
    ordered: bool = False,
    lexicon: Lexicon = ENGLISH,
) -> Dict[str, GroupMean]:
    """
    Mean answer to one question per category of `field`.

    Respondents without a category are reported under "Unknown". With
    `ordered=True` an ordinal field keeps only its known categories, in order.
    """
    breakdown = get_field(field, lexicon)
    groups: Dict[str, List[float]] = {}
    for r in records:
        value = question_value(r, key)
        if value is None:
            continue
        category = breakdown.extract(r) or UNKNOWN
        if ordered and breakdown.is_ordinal and category not in breakdown.order:
            continue
        groups.setdefault(category, []).append(value)

    categories = list(groups)
    if breakdown.is_ordinal:
        categories.sort(key=breakdown.position)

    return {c: GroupMean(mean=statistics.fmean(groups[c]), count=len(groups[c])) for c in categories}

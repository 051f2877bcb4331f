from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from adaptdash.analysis.fields import BreakdownField, get_field
from adaptdash.app.logging import get_logger
from adaptdash.ingest.lexicon import ENGLISH, Lexicon
from adaptdash.ingest.models import AGREEMENT_ITEMS, INDEX_FIELDS, SurveyRecord


logger = get_logger(__name__)

DEFAULT_THRESHOLD = 4.0
LOW_CONFIDENCE_COUNT = 5

SUPPORT_FACTORS: Tuple[str, ...] = (
    "years_teaching_category", "school_type", "has_certification", "share_support_students", "group_size",
)
CHALLENGE_FACTORS: Tuple[str, ...] = (
    "years_teaching_category", "school_type", "has_certification", "share_challenge_students", "group_size",
)
DUAL_FACTORS: Tuple[str, ...] = (
    "years_teaching_category", "school_type", "has_certification", "levels_teaching",
    "share_support_students", "share_challenge_students", "group_size",
) + tuple(item.key for item in AGREEMENT_ITEMS)


@dataclass(frozen=True)
class FactorImpact:
    variable: str
    label: str
    category: str
    mean_index: float
    diff_from_overall: float
    count: int
    probability: float

    @property
    def low_confidence(self) -> bool:
        return self.is_low_confidence()

    def is_low_confidence(self, limit: int = LOW_CONFIDENCE_COUNT) -> bool:
        return self.count < limit


@dataclass(frozen=True)
class DualFactorImpact:
    variable: str
    label: str
    category: str
    mean_support: float
    mean_challenge: float
    diff_support_from_overall: float
    diff_challenge_from_overall: float
    count: int
    probability_support: float
    probability_challenge: float
    probability_both: float
    combined_impact: float

    @property
    def low_confidence(self) -> bool:
        return self.is_low_confidence()

    def is_low_confidence(self, limit: int = LOW_CONFIDENCE_COUNT) -> bool:
        return self.count < limit


@dataclass(frozen=True)
class BaseRate:
    index_kind: str
    valid_count: int
    high_count: int
    rate: Optional[float]
    means: Dict[str, float] = field(default_factory=dict)  # per index kind


def _check_kind(index_kind: str) -> None:
    if index_kind not in INDEX_FIELDS:
        raise ValueError(f"index_kind must be one of {tuple(INDEX_FIELDS)}, got {index_kind!r}")


def _grouped(
    records: Iterable[SurveyRecord],
    breakdown: BreakdownField,
    kinds: Sequence[str],
    ordered: bool,
) -> Tuple[List[SurveyRecord], Dict[str, List[SurveyRecord]]]:
    """
    Restrict to records with a usable category and non-null indices, then
    group them. The restricted list is the baseline denominator.
    """
    valid: List[SurveyRecord] = []
    groups: Dict[str, List[SurveyRecord]] = {}
    for r in records:
        if any(r.index(k) is None for k in kinds):
            continue
        category = breakdown.extract(r)
        if category is None:
            continue
        if ordered and breakdown.is_ordinal and category not in breakdown.order:
            continue
        valid.append(r)
        groups.setdefault(category, []).append(r)
    return valid, groups


T = TypeVar("T", FactorImpact, DualFactorImpact)


def _sort(breakdown: BreakdownField, items: List[T], key: Callable[[T], float]) -> List[T]:
    if breakdown.is_ordinal:
        return sorted(items, key=lambda i: breakdown.position(i.category))
    return sorted(items, key=key, reverse=True)


def factor_impact(
    records: Iterable[SurveyRecord],
    variable: str,
    index_kind: str,
    threshold: float = DEFAULT_THRESHOLD,
    ordered: bool = False,
    lexicon: Lexicon = ENGLISH,
) -> List[FactorImpact]:
    """
    Per-category mean of one adaptation index, its deviation from the
    overall mean and the share of respondents at or above `threshold`.

    The overall mean is computed over the same restricted set the groups are
    built from. Ordinal fields come back in their natural order; other fields
    are sorted by deviation, largest first.
    """
    _check_kind(index_kind)
    breakdown = get_field(variable, lexicon)
    valid, groups = _grouped(records, breakdown, (index_kind,), ordered)
    if not valid:
        return []

    overall = statistics.fmean(r.index(index_kind) for r in valid)

    results: List[FactorImpact] = []
    for category, rows in groups.items():
        values = [r.index(index_kind) for r in rows]
        mean = statistics.fmean(values)
        high = sum(1 for v in values if v >= threshold)
        results.append(
            FactorImpact(
                variable=breakdown.key,
                label=breakdown.label,
                category=category,
                mean_index=mean,
                diff_from_overall=mean - overall,
                count=len(values),
                probability=high / len(values),
            )
        )

    logger.debug("factor impact", extra={"variable": variable, "index_kind": index_kind, "groups": len(results)})
    return _sort(breakdown, results, key=lambda i: i.diff_from_overall)


def dual_factor_impact(
    records: Iterable[SurveyRecord],
    variable: str,
    threshold: float = DEFAULT_THRESHOLD,
    ordered: bool = False,
    lexicon: Lexicon = ENGLISH,
) -> List[DualFactorImpact]:
    """Both indices at once; only respondents with both indices present count."""
    breakdown = get_field(variable, lexicon)
    valid, groups = _grouped(records, breakdown, ("support", "challenge"), ordered)
    if not valid:
        return []

    overall_support = statistics.fmean(r.support_adaptation_index for r in valid)
    overall_challenge = statistics.fmean(r.challenge_adaptation_index for r in valid)

    results: List[DualFactorImpact] = []
    for category, rows in groups.items():
        n = len(rows)
        support = [r.support_adaptation_index for r in rows]
        challenge = [r.challenge_adaptation_index for r in rows]
        mean_support = statistics.fmean(support)
        mean_challenge = statistics.fmean(challenge)
        diff_support = mean_support - overall_support
        diff_challenge = mean_challenge - overall_challenge

        results.append(
            DualFactorImpact(
                variable=breakdown.key,
                label=breakdown.label,
                category=category,
                mean_support=mean_support,
                mean_challenge=mean_challenge,
                diff_support_from_overall=diff_support,
                diff_challenge_from_overall=diff_challenge,
                count=n,
                probability_support=sum(1 for v in support if v >= threshold) / n,
                probability_challenge=sum(1 for v in challenge if v >= threshold) / n,
                probability_both=sum(1 for s, c in zip(support, challenge) if s >= threshold and c >= threshold) / n,
                combined_impact=abs(diff_support) + abs(diff_challenge),
            )
        )

    return _sort(breakdown, results, key=lambda i: i.combined_impact)


def group_size_impact(
    records: Iterable[SurveyRecord],
    index_kind: str,
    threshold: float = DEFAULT_THRESHOLD,
) -> List[FactorImpact]:
    # Buckets: <=15, 16-20, 21-25, 26+; empty buckets are dropped.
    return factor_impact(records, "group_size", index_kind, threshold)


def dual_group_size_impact(records: Iterable[SurveyRecord], threshold: float = DEFAULT_THRESHOLD) -> List[DualFactorImpact]:
    return dual_factor_impact(records, "group_size", threshold)


def analyze_factor(
    records: Iterable[SurveyRecord],
    variable: str,
    index_kind: str,
    threshold: float = DEFAULT_THRESHOLD,
    ordered: bool = False,
    lexicon: Lexicon = ENGLISH,
) -> Union[List[FactorImpact], List[DualFactorImpact]]:
    if index_kind == "both":
        return dual_factor_impact(records, variable, threshold, ordered, lexicon)
    return factor_impact(records, variable, index_kind, threshold, ordered, lexicon)


def factor_impacts(
    records: Sequence[SurveyRecord],
    variables: Iterable[str],
    index_kind: str,
    threshold: float = DEFAULT_THRESHOLD,
    lexicon: Lexicon = ENGLISH,
) -> list:
    # Concatenated results for several grouping variables (one factor tab).
    out: list = []
    for variable in variables:
        out.extend(analyze_factor(records, variable, index_kind, threshold, lexicon=lexicon))
    return out


def base_rate(
    records: Iterable[SurveyRecord],
    index_kind: str,
    threshold: float = DEFAULT_THRESHOLD,
) -> BaseRate:
    """
    Share of valid respondents at or above `threshold`. For "both" a
    respondent needs both indices present and both at or above it; the
    reported means cover both indices over that set.
    """
    kinds = ("support", "challenge") if index_kind == "both" else (index_kind,)
    for k in kinds:
        _check_kind(k)

    valid = [r for r in records if all(r.index(k) is not None for k in kinds)]
    if not valid:
        return BaseRate(index_kind=index_kind, valid_count=0, high_count=0, rate=None)

    high = sum(1 for r in valid if all(r.index(k) >= threshold for k in kinds))
    return BaseRate(
        index_kind=index_kind,
        valid_count=len(valid),
        high_count=high,
        rate=high / len(valid),
        means={k: statistics.fmean(r.index(k) for r in valid) for k in kinds},
    )


def rank_impacts(
    impacts: Iterable[T],
    key: Callable[[T], float],
    limit: int = 15,
    min_count: int = 3,
) -> List[T]:
    # Strongest entries by `key`; groups smaller than `min_count` are left out of the ranking.
    eligible = [i for i in impacts if i.count >= min_count]
    return sorted(eligible, key=key, reverse=True)[:limit]

from __future__ import annotations

import statistics
from dataclasses import dataclass
from typing import List, Literal, Optional, Sequence, Tuple

from adaptdash.ingest.lexicon import ENGLISH, Lexicon
from adaptdash.ingest.models import AGREEMENT_ITEMS, SurveyRecord


Frequency = Literal["often", "sometimes", "rarely"]
FREQUENCIES: Tuple[str, ...] = ("often", "sometimes", "rarely")

# At least this share of a respondent's answered sub-questions must fall in the band.
MAJORITY = 0.5


@dataclass(frozen=True)
class ContextComparison:
    key: str
    label: str
    full_text: Optional[str]
    support_mean: Optional[float]
    challenge_mean: Optional[float]
    support_count: int
    challenge_count: int


def _answers(record: SurveyRecord, index_kind: str) -> List[float]:
    if index_kind == "support":
        values = record.support_values
    elif index_kind == "challenge":
        values = record.challenge_values
    else:
        raise ValueError(f"index_kind must be 'support' or 'challenge', got {index_kind!r}")
    return [v for v in values if v is not None]


def adaptor_frequency(record: SurveyRecord, index_kind: str, frequency: str) -> bool:
    """
    Whether a respondent answers one strategy family mostly with
    Often/Always (>= 4), Sometimes (3) or Rarely/Never (<= 2).
    """
    if frequency not in FREQUENCIES:
        raise ValueError(f"frequency must be one of {FREQUENCIES}, got {frequency!r}")

    values = _answers(record, index_kind)
    if not values:
        return False

    n = len(values)
    often_ratio = sum(1 for v in values if v >= 4) / n
    if frequency == "often":
        return often_ratio >= MAJORITY
    if frequency == "sometimes":
        return sum(1 for v in values if v == 3) / n >= MAJORITY
    return often_ratio < MAJORITY and sum(1 for v in values if v <= 2) / n >= MAJORITY


def classify_adaptors(records: Sequence[SurveyRecord], index_kind: str, frequency: str) -> List[SurveyRecord]:
    return [r for r in records if adaptor_frequency(r, index_kind, frequency)]


def _agreement_mean(records: Sequence[SurveyRecord], key: str, lexicon: Lexicon) -> Tuple[Optional[float], int]:
    scores = [s for s in (lexicon.agreement_score(getattr(r, key)) for r in records) if s is not None]
    return (statistics.fmean(scores) if scores else None), len(scores)


def context_comparison(
    records: Sequence[SurveyRecord],
    frequency: str,
    lexicon: Lexicon = ENGLISH,
) -> List[ContextComparison]:
    # Agreement with each context statement: support adaptors vs challenge adaptors of one frequency band.
    support_group = classify_adaptors(records, "support", frequency)
    challenge_group = classify_adaptors(records, "challenge", frequency)

    out: List[ContextComparison] = []
    for item in AGREEMENT_ITEMS:
        support_mean, support_count = _agreement_mean(support_group, item.key, lexicon)
        challenge_mean, challenge_count = _agreement_mean(challenge_group, item.key, lexicon)
        out.append(
            ContextComparison(
                key=item.key,
                label=item.label,
                full_text=item.full_text,
                support_mean=support_mean,
                challenge_mean=challenge_mean,
                support_count=support_count,
                challenge_count=challenge_count,
            )
        )
    return out

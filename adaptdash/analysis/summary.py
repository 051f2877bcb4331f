from __future__ import annotations

import statistics
from dataclasses import dataclass
from typing import Optional, Sequence

from adaptdash.ingest.models import SurveyRecord


@dataclass(frozen=True)
class SummaryStats:
    total_responses: int
    support_count: int
    challenge_count: int
    avg_support: Optional[float]
    avg_challenge: Optional[float]
    difference: Optional[float]  # challenge minus support


def _mean(values: Sequence[float]) -> Optional[float]:
    return statistics.fmean(values) if values else None


def summary_stats(records: Sequence[SurveyRecord]) -> SummaryStats:
    support = [r.support_adaptation_index for r in records if r.support_adaptation_index is not None]
    challenge = [r.challenge_adaptation_index for r in records if r.challenge_adaptation_index is not None]
    avg_support = _mean(support)
    avg_challenge = _mean(challenge)

    difference = None
    if avg_support is not None and avg_challenge is not None:
        difference = avg_challenge - avg_support

    return SummaryStats(
        total_responses=len(records),
        support_count=len(support),
        challenge_count=len(challenge),
        avg_support=avg_support,
        avg_challenge=avg_challenge,
        difference=difference,
    )

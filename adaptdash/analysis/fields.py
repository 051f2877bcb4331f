from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, Optional, Tuple

from adaptdash.app.errors import UnknownFieldError
from adaptdash.ingest.lexicon import ENGLISH, Lexicon
from adaptdash.ingest.models import (
    AGREEMENT_ITEMS,
    COLUMNS_BY_NAME,
    GROUP_SIZE_BUCKETS,
    INDEX_FIELDS,
    LIKERT_QUESTIONS,
    YEARS_BUCKETS,
    SurveyRecord,
)


AGREEMENT_LEVELS: Tuple[str, ...] = ("1", "2", "3", "4", "5")

NUMERIC_KEYS: Tuple[str, ...] = tuple(q.key for q in LIKERT_QUESTIONS) + tuple(INDEX_FIELDS.values())


@dataclass(frozen=True)
class BreakdownField:
    key: str
    label: str
    extract: Callable[[SurveyRecord], Optional[str]]
    order: Optional[Tuple[str, ...]] = None  # set for ordinal fields

    @property
    def is_ordinal(self) -> bool:
        return self.order is not None

    def position(self, category: str) -> Tuple[int, int]:
        # Ordinal categories first, in field order; anything else after them.
        if self.order and category in self.order:
            return 0, self.order.index(category)
        return 1, 0


def _text(attr: str) -> Callable[[SurveyRecord], Optional[str]]:
    def extract(record: SurveyRecord) -> Optional[str]:
        value = getattr(record, attr)
        if value is None:
            return None
        s = str(value).strip()
        return s or None
    return extract


def group_size_bucket(record: SurveyRecord) -> Optional[str]:
    if record.group_size is None:
        return None
    for bucket in GROUP_SIZE_BUCKETS:
        if bucket.contains(record.group_size):
            return bucket.name
    return None


def _agreement(attr: str, lexicon: Lexicon) -> Callable[[SurveyRecord], Optional[str]]:
    def extract(record: SurveyRecord) -> Optional[str]:
        score = lexicon.agreement_score(getattr(record, attr))
        if score is None:
            return None
        return str(int(score)) if float(score).is_integer() else str(score)
    return extract


@lru_cache(maxsize=None)
def breakdown_fields(lexicon: Lexicon = ENGLISH) -> Dict[str, BreakdownField]:
    """
    Whitelist of fields that records can be grouped by.

    Agreement items are grouped by their 1..5 score under `lexicon`, so the
    mapping is built per lexicon.
    """
    out: Dict[str, BreakdownField] = {}

    for attr in (
        "currently_teaching",
        "school_type",
        "levels_teaching",
        "has_certification",
        "share_support_students",
        "share_challenge_students",
    ):
        out[attr] = BreakdownField(attr, COLUMNS_BY_NAME[attr].label, _text(attr))

    out["years_teaching_category"] = BreakdownField(
        "years_teaching_category", "Years Teaching", _text("years_teaching_category"), order=YEARS_BUCKETS,
    )
    out["group_size"] = BreakdownField(
        "group_size", "Group Size", group_size_bucket, order=tuple(b.name for b in GROUP_SIZE_BUCKETS),
    )

    for item in AGREEMENT_ITEMS:
        out[item.key] = BreakdownField(item.key, item.label, _agreement(item.key, lexicon), order=AGREEMENT_LEVELS)

    return out


def get_field(key: str, lexicon: Lexicon = ENGLISH) -> BreakdownField:
    try:
        return breakdown_fields(lexicon)[key]
    except KeyError:
        raise UnknownFieldError(f"{key!r} is not a breakdown field") from None


def question_value(record: SurveyRecord, key: str) -> Optional[float]:
    # Numeric accessor for the 12 frequency questions and the two indices.
    if key not in NUMERIC_KEYS:
        raise UnknownFieldError(f"{key!r} is not a numeric question")
    return getattr(record, key)

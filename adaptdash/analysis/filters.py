from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from adaptdash.ingest.models import SurveyRecord


# Exact-match inclusion filters: record attribute == one of the selected values.
_EXACT_FIELDS: Tuple[str, ...] = (
    "currently_teaching",
    "school_type",
    "years_teaching_category",
    "share_support_students",
    "share_challenge_students",
)


@dataclass(frozen=True)
class Filters:
    """
    Declarative record filter.

    An empty selection places no constraint on that dimension. Group size
    bounds are inclusive and None means unbounded; records without a group
    size pass every size filter.
    """

    currently_teaching: Tuple[str, ...] = ()
    school_type: Tuple[str, ...] = ()
    years_teaching_category: Tuple[str, ...] = ()
    levels_teaching: Tuple[str, ...] = ()
    share_support_students: Tuple[str, ...] = ()
    share_challenge_students: Tuple[str, ...] = ()
    group_size_min: Optional[float] = None
    group_size_max: Optional[float] = None

    @staticmethod
    def empty() -> "Filters":
        return Filters()

    @staticmethod
    def default(group_size_max: float = 50) -> "Filters":
        # Initial dashboard state: only respondents who currently teach.
        return Filters(currently_teaching=("Yes",), group_size_min=0, group_size_max=group_size_max)

    def matches(self, record: SurveyRecord) -> bool:
        for name in _EXACT_FIELDS:
            selected = getattr(self, name)
            if selected and getattr(record, name) not in selected:
                return False

        if self.levels_teaching:
            levels = (record.levels_teaching or "").lower()
            if not any(label.lower() in levels for label in self.levels_teaching):
                return False

        if record.group_size is not None:
            if self.group_size_min is not None and record.group_size < self.group_size_min:
                return False
            if self.group_size_max is not None and record.group_size > self.group_size_max:
                return False

        return True


def apply_filters(records: Iterable[SurveyRecord], filters: Filters) -> List[SurveyRecord]:
    # Pure and order-preserving; never mutates the input records.
    return [r for r in records if filters.matches(r)]


def make_filters(
    currently_teaching: Sequence[str] = (),
    school_type: Sequence[str] = (),
    years_teaching_category: Sequence[str] = (),
    levels_teaching: Sequence[str] = (),
    share_support_students: Sequence[str] = (),
    share_challenge_students: Sequence[str] = (),
    group_size_range: Optional[Tuple[float, float]] = None,
) -> Filters:
    # Convenience builder for UI widgets that hand back lists.
    lo, hi = group_size_range if group_size_range is not None else (None, None)
    return Filters(
        currently_teaching=tuple(currently_teaching),
        school_type=tuple(school_type),
        years_teaching_category=tuple(years_teaching_category),
        levels_teaching=tuple(levels_teaching),
        share_support_students=tuple(share_support_students),
        share_challenge_students=tuple(share_challenge_students),
        group_size_min=lo,
        group_size_max=hi,
    )

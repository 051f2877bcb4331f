from __future__ import annotations

from typing import Any, List

import pytest

from adaptdash.ingest.models import COLUMNS, COLUMNS_BY_NAME, SurveyRecord


def build_cells(**values: Any) -> List[str]:
    # One positional row with the named columns filled in.
    cells = [""] * len(COLUMNS)
    for name, value in values.items():
        cells[COLUMNS_BY_NAME[name].index] = str(value)
    return cells


def build_record(support=(), challenge=(), **values: Any) -> SurveyRecord:
    kwargs = dict(values)
    for i, v in enumerate(support, start=1):
        kwargs[f"support_q{i}"] = v
    for i, v in enumerate(challenge, start=1):
        kwargs[f"challenge_q{i}"] = v
    return SurveyRecord(**kwargs)


@pytest.fixture
def make_cells():
    return build_cells


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def sample_records():
    return [
        build_record(support=(5, 5, 4), challenge=(2, 2), currently_teaching="Yes", school_type="Public",
                     years_teaching="21-30 years", years_teaching_category="21-30", group_size=18,
                     levels_teaching="Grade 7-9, Upper secondary", has_certification="Yes",
                     item_confident_support="Strongly agree"),
        build_record(support=(3, 3), challenge=(4, 5), currently_teaching="Yes", school_type="Independent",
                     years_teaching_category="0-5", group_size=28, levels_teaching="Grade 4-6",
                     has_certification="No", item_confident_support="Disagree"),
        build_record(support=(2,), currently_teaching="No", school_type="Public",
                     years_teaching_category="6-10", group_size=12),
        build_record(challenge=(4, 4), currently_teaching="Yes", school_type="Public"),
    ]

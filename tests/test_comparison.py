from __future__ import annotations

import pytest

from adaptdash.analysis.comparison import adaptor_frequency, classify_adaptors, context_comparison
from adaptdash.ingest.models import AGREEMENT_ITEMS


@pytest.mark.parametrize(
    "values, expected",
    [
        ((4, 4, 5, 2), "often"),
        ((3, 3, 4), "sometimes"),
        ((1, 2, 3), "rarely"),
    ],
)
def test_adaptor_frequency(make_record, values, expected):
    record = make_record(support=values)
    assert [f for f in ("often", "sometimes", "rarely") if adaptor_frequency(record, "support", f)] == [expected]


def test_no_answers_matches_nothing(make_record):
    record = make_record()
    assert not any(adaptor_frequency(record, "challenge", f) for f in ("often", "sometimes", "rarely"))


def test_invalid_arguments(make_record):
    with pytest.raises(ValueError):
        adaptor_frequency(make_record(), "support", "always")
    with pytest.raises(ValueError):
        adaptor_frequency(make_record(), "both", "often")


def test_context_comparison(make_record):
    records = [
        make_record(support=(5, 5), challenge=(1, 1), item_class_size_ok="Agree"),
        make_record(support=(1, 1), challenge=(4, 5), item_class_size_ok="Strongly disagree"),
        make_record(support=(4, 4), challenge=(4, 4), item_class_size_ok="5"),
    ]
    assert len(classify_adaptors(records, "support", "often")) == 2

    comparison = {c.key: c for c in context_comparison(records, "often")}
    assert set(comparison) == {i.key for i in AGREEMENT_ITEMS}

    class_size = comparison["item_class_size_ok"]
    assert class_size.support_mean == 4.5
    assert class_size.support_count == 2
    assert class_size.challenge_mean == 3.0
    assert class_size.full_text.startswith("My typical class size")

    empty = comparison["item_digital_tools"]
    assert empty.support_mean is None
    assert empty.support_count == 0

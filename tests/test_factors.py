from __future__ import annotations

import pytest

from adaptdash.analysis.factors import (
    analyze_factor,
    base_rate,
    dual_factor_impact,
    dual_group_size_impact,
    factor_impact,
    factor_impacts,
    group_size_impact,
    rank_impacts,
)
from adaptdash.app.errors import UnknownFieldError


def test_probability_counts_values_at_threshold(make_record):
    records = [make_record(support=(v,), school_type="Public") for v in (4.0, 3.9, 5.0, 4.0)]
    [impact] = factor_impact(records, "school_type", "support")

    assert impact.category == "Public"
    assert impact.count == 4
    assert impact.probability == 0.75
    assert impact.diff_from_overall == pytest.approx(0.0)


def test_weighted_group_means_equal_overall_mean(make_record):
    records = [
        make_record(support=(4,), school_type="A"),
        make_record(support=(2,), school_type="A"),
        make_record(support=(5,), school_type="B"),
    ]
    impacts = factor_impact(records, "school_type", "support")
    overall = 11 / 3

    assert [i.category for i in impacts] == ["B", "A"]
    assert impacts[0].diff_from_overall == pytest.approx(5 - overall)
    weighted = sum(i.mean_index * i.count for i in impacts) / sum(i.count for i in impacts)
    assert weighted == pytest.approx(overall)
    assert sum(i.diff_from_overall * i.count for i in impacts) == pytest.approx(0.0)


def test_records_without_index_or_category_are_skipped(make_record):
    records = [
        make_record(support=(4,), school_type="A"),
        make_record(school_type="A"),
        make_record(support=(2,), school_type="  "),
    ]
    [impact] = factor_impact(records, "school_type", "support")
    assert impact.count == 1
    assert impact.diff_from_overall == 0.0


def test_group_size_buckets_drop_empty_and_keep_order(make_record):
    records = [
        make_record(support=(5,), group_size=30),
        make_record(support=(3,), group_size=10),
        make_record(support=(4,), group_size=15),
        make_record(support=(4,), group_size=None),
    ]
    impacts = group_size_impact(records, "support")

    assert [i.category for i in impacts] == ["≤15", "26+"]
    assert impacts[0].count == 2
    assert impacts[0].mean_index == 3.5


def test_ordered_breakdown_excludes_unknown(make_record):
    records = [
        make_record(support=(5,), years_teaching_category="0-5"),
        make_record(support=(3,), years_teaching_category="30+"),
        make_record(support=(1,), years_teaching_category="Unknown"),
    ]
    unordered = factor_impact(records, "years_teaching_category", "support")
    ordered = factor_impact(records, "years_teaching_category", "support", ordered=True)

    assert [i.category for i in unordered] == ["0-5", "30+", "Unknown"]
    assert [i.category for i in ordered] == ["0-5", "30+"]
    # Baseline is recomputed over the included respondents only.
    assert ordered[0].diff_from_overall == pytest.approx(1.0)


def test_agreement_items_grouped_by_score(make_record):
    records = [
        make_record(support=(5,), challenge=(5,), item_digital_tools="Strongly agree"),
        make_record(support=(4,), challenge=(3,), item_digital_tools="5"),
        make_record(support=(2,), challenge=(2,), item_digital_tools="Disagree"),
    ]
    impacts = dual_factor_impact(records, "item_digital_tools")
    assert [i.category for i in impacts] == ["2", "5"]
    assert impacts[1].count == 2


def test_dual_factor_impact(make_record):
    records = [
        make_record(support=(5,), challenge=(4,), school_type="A"),
        make_record(support=(3,), challenge=(4,), school_type="A"),
        make_record(support=(2,), challenge=(2,), school_type="B"),
        make_record(support=(5,), school_type="B"),  # no challenge index -> excluded
    ]
    impacts = dual_factor_impact(records, "school_type")
    by_cat = {i.category: i for i in impacts}

    a = by_cat["A"]
    assert a.count == 2
    assert a.mean_support == 4.0
    assert a.mean_challenge == 4.0
    assert a.diff_support_from_overall == pytest.approx(4 - 10 / 3)
    assert a.diff_challenge_from_overall == pytest.approx(4 - 10 / 3)
    assert a.probability_support == 0.5
    assert a.probability_challenge == 1.0
    assert a.probability_both == 0.5
    assert a.combined_impact == pytest.approx(abs(a.diff_support_from_overall) + abs(a.diff_challenge_from_overall))
    assert impacts[0].combined_impact >= impacts[1].combined_impact


def test_analyze_factor_dispatches_on_both(make_record):
    records = [make_record(support=(4,), challenge=(4,), school_type="A")]
    assert hasattr(analyze_factor(records, "school_type", "both")[0], "probability_both")
    assert hasattr(analyze_factor(records, "school_type", "challenge")[0], "probability")


def test_factor_impacts_concatenates_variables(sample_records):
    impacts = factor_impacts(sample_records, ["school_type", "group_size"], "support")
    assert {i.variable for i in impacts} == {"school_type", "group_size"}


def test_low_confidence(make_record):
    records = [make_record(support=(4,), school_type="A") for _ in range(4)]
    [impact] = factor_impact(records, "school_type", "support")
    assert impact.low_confidence

    records.append(make_record(support=(4,), school_type="A"))
    [impact] = factor_impact(records, "school_type", "support")
    assert not impact.low_confidence


def test_empty_input_returns_empty():
    assert factor_impact([], "school_type", "support") == []
    assert dual_factor_impact([], "school_type") == []


def test_invalid_arguments(sample_records):
    with pytest.raises(UnknownFieldError):
        factor_impact(sample_records, "consent", "support")
    with pytest.raises(ValueError):
        factor_impact(sample_records, "school_type", "sideways")


def test_base_rate(make_record):
    records = [
        make_record(support=(4,), challenge=(5,)),
        make_record(support=(3,), challenge=(4,)),
        make_record(support=(5,)),
        make_record(),
    ]
    support = base_rate(records, "support")
    assert support.valid_count == 3
    assert support.high_count == 2
    assert support.rate == pytest.approx(2 / 3)
    assert support.means["support"] == pytest.approx(4.0)

    both = base_rate(records, "both")
    assert both.valid_count == 2
    assert both.high_count == 1
    assert both.rate == 0.5
    assert set(both.means) == {"support", "challenge"}

    assert base_rate([], "challenge").rate is None


def test_rank_impacts_drops_small_groups(make_record):
    records = (
        [make_record(support=(5,), school_type="A")] * 3
        + [make_record(support=(1,), school_type="B")] * 2
        + [make_record(support=(3,), school_type="C")] * 4
    )
    impacts = factor_impact(records, "school_type", "support")
    ranked = rank_impacts(impacts, key=lambda i: abs(i.diff_from_overall), limit=1)

    assert len(ranked) == 1
    assert ranked[0].category == "A"
    assert "B" not in {i.category for i in rank_impacts(impacts, key=lambda i: i.probability)}


def test_dual_group_size_impact(make_record):
    records = [
        make_record(support=(5,), challenge=(2,), group_size=14),
        make_record(support=(3,), challenge=(4,), group_size=22),
        make_record(support=(4,), challenge=(4,), group_size=23),
        make_record(support=(4,), challenge=(4,)),
    ]
    impacts = dual_group_size_impact(records)

    assert [i.category for i in impacts] == ["≤15", "21-25"]
    assert impacts[1].count == 2
    assert impacts[1].mean_support == 3.5
    assert impacts[1].probability_both == 0.5
    assert impacts[0].diff_challenge_from_overall == pytest.approx(2 - 10 / 3)

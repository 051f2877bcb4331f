from __future__ import annotations

from datetime import datetime

import matplotlib.pyplot as plt

from adaptdash.analysis.factors import factor_impact
from adaptdash.tools import viz


def _impacts(make_record):
    records = (
        [make_record(support=(5,), school_type="Small")] * 3
        + [make_record(support=(3,), school_type="Large")] * 6
    )
    return factor_impact(records, "school_type", "support")


def _hatches(fig):
    return {p.get_y(): p.get_hatch() for p in fig.axes[0].patches}


def test_diff_chart_hatches_below_configured_limit(make_record):
    impacts = _impacts(make_record)

    default = viz.plot_diff_from_mean(impacts)
    assert sorted(h or "" for h in _hatches(default).values()) == ["", "//"]

    strict = viz.plot_diff_from_mean(impacts, low_confidence_count=10)
    assert all(h == "//" for h in _hatches(strict).values())

    lenient = viz.plot_diff_from_mean(impacts, low_confidence_count=2)
    assert not any(_hatches(lenient).values())
    plt.close("all")


def test_is_low_confidence_limit(make_record):
    small = next(i for i in _impacts(make_record) if i.category == "Small")
    assert small.low_confidence
    assert small.is_low_confidence(5)
    assert not small.is_low_confidence(3)


def test_empty_chart_and_png_export():
    fig = viz.plot_diff_from_mean([])
    png = viz.figure_to_png(fig, dpi=50)
    plt.close(fig)
    assert png.startswith(b"\x89PNG")


def test_chart_filename():
    assert viz.chart_filename("support_diff", datetime(2024, 3, 5, 14, 7, 9)) == "support_diff_2024-03-05T14-07-09.png"

from __future__ import annotations

import io
from dataclasses import asdict
from datetime import datetime
from typing import Any, List, Optional, Sequence

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.figure import Figure

from adaptdash.analysis.factors import LOW_CONFIDENCE_COUNT

matplotlib.use("Agg")

SUPPORT_COLOR = "#3b5bdb"
CHALLENGE_COLOR = "#f2a93b"


def to_frame(items: Sequence[Any]) -> pd.DataFrame:
    # Dataclass results -> DataFrame (one row per item).
    return pd.DataFrame([asdict(i) for i in items])


def plot_diff_from_mean(
    impacts: Sequence[Any],
    value_attr: str = "diff_from_overall",
    title: str = "Difference from overall mean",
    color: str = SUPPORT_COLOR,
    low_confidence_count: int = LOW_CONFIDENCE_COUNT,
) -> Figure:
    """
    Horizontal bars of each category's deviation from the overall mean,
    with a zero baseline. Groups with fewer than `low_confidence_count`
    respondents are hatched.
    """
    fig, ax = plt.subplots(figsize=(10, max(3, 0.4 * len(impacts) + 1)))
    if not impacts:
        ax.text(0.5, 0.5, "No data", ha="center", va="center")
        ax.set_axis_off()
        return fig

    labels = [f"{i.label}: {i.category} (n={i.count})" for i in impacts]
    values = [getattr(i, value_attr) for i in impacts]
    bars = ax.barh(labels, values, color=color)
    for bar, item in zip(bars, impacts):
        if item.is_low_confidence(low_confidence_count):
            bar.set_hatch("//")
            bar.set_alpha(0.6)

    ax.axvline(0, color="black", linewidth=1)
    ax.invert_yaxis()
    ax.set_title(title)
    ax.grid(True, axis="x", linestyle="--", alpha=0.7)
    fig.tight_layout()
    return fig


def plot_probability(
    impacts: Sequence[Any],
    value_attr: str = "probability",
    base_rate: Optional[float] = None,
    title: str = "P(high | context)",
    color: str = SUPPORT_COLOR,
) -> Figure:
    fig, ax = plt.subplots(figsize=(10, max(3, 0.4 * len(impacts) + 1)))
    if not impacts:
        ax.text(0.5, 0.5, "No data", ha="center", va="center")
        ax.set_axis_off()
        return fig

    labels = [f"{i.label}: {i.category}" for i in impacts]
    values = [100 * getattr(i, value_attr) for i in impacts]
    ax.barh(labels, values, color=color)
    if base_rate is not None:
        ax.axvline(100 * base_rate, color="black", linestyle="--", linewidth=1, label="Base rate")
        ax.legend(loc="lower right")

    ax.set_xlim(0, 100)
    ax.set_xlabel("Percentage (%)")
    ax.invert_yaxis()
    ax.set_title(title)
    fig.tight_layout()
    return fig


def plot_distribution(distribution: dict, title: str, color: str = SUPPORT_COLOR) -> Figure:
    # Bar per answer value (1..5) with respondent counts.
    fig, ax = plt.subplots(figsize=(8, 4))
    labels = [str(int(k)) if float(k).is_integer() else str(k) for k in distribution]
    ax.bar(labels, list(distribution.values()), color=color)
    ax.set_xlabel("Answer")
    ax.set_ylabel("Respondents")
    ax.set_title(title)
    fig.tight_layout()
    return fig


def plot_grouped_bar(
    df: pd.DataFrame,
    category_col: str,
    value_cols: List[str],
    title: str,
    stacked: bool = False,
    show_labels: bool = False,
    ylim: Optional[tuple] = None,
) -> Figure:
    """Grouped (or stacked) bars: one bar cluster per category, one bar per value column."""
    fig, ax = plt.subplots(figsize=(11, 5))
    if df.empty:
        ax.text(0.5, 0.5, "No data", ha="center", va="center")
        ax.set_axis_off()
        return fig

    plot_df = df.set_index(category_col)[value_cols].astype(float)
    plot_df.plot(kind="bar", stacked=stacked, ax=ax, colormap="viridis" if len(value_cols) > 2 else None,
                 color=None if len(value_cols) > 2 else [SUPPORT_COLOR, CHALLENGE_COLOR][: len(value_cols)])
    if ylim is not None:
        ax.set_ylim(*ylim)
    if show_labels:
        for c in ax.containers:
            ax.bar_label(c, fmt="%.2f", fontsize=7)

    ax.set_title(title)
    ax.set_xlabel("")
    plt.setp(ax.get_xticklabels(), rotation=30, ha="right")
    ax.legend(bbox_to_anchor=(1.02, 1), loc="upper left")
    fig.tight_layout()
    return fig


def plot_scatter(df: pd.DataFrame, x_col: str, y_col: str, title: str, hue: Optional[str] = None) -> Figure:
    fig, ax = plt.subplots(figsize=(7, 6))
    clean = df.dropna(subset=[x_col, y_col])
    if clean.empty:
        ax.text(0.5, 0.5, "No data", ha="center", va="center")
        ax.set_axis_off()
        return fig

    # Small jitter so identical Likert means do not overlap completely.
    rng = np.random.default_rng(0)
    jittered = clean.assign(
        **{x_col: clean[x_col] + rng.uniform(-0.05, 0.05, len(clean)),
           y_col: clean[y_col] + rng.uniform(-0.05, 0.05, len(clean))}
    )
    sns.scatterplot(data=jittered, x=x_col, y=y_col, hue=hue, alpha=0.7, ax=ax)
    ax.set_title(title)
    ax.grid(True, linestyle="--", alpha=0.5)
    fig.tight_layout()
    return fig


def plot_value_distribution(df: pd.DataFrame, metric_col: str, group_col: Optional[str], title: str) -> Figure:
    # Box plot with the individual answers on top.
    fig, ax = plt.subplots(figsize=(10, 5))
    clean = df.dropna(subset=[metric_col])
    if clean.empty:
        ax.text(0.5, 0.5, "No data", ha="center", va="center")
        ax.set_axis_off()
        return fig

    sns.boxplot(data=clean, x=group_col, y=metric_col, color=".85", ax=ax)
    sns.stripplot(data=clean, x=group_col, y=metric_col, alpha=0.5, jitter=True, ax=ax)
    ax.set_title(title)
    ax.grid(True, axis="y", linestyle="--", alpha=0.7)
    fig.tight_layout()
    return fig


def figure_to_png(fig: Figure, dpi: int = 200) -> bytes:
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=dpi, facecolor="white", bbox_inches="tight")
    return buf.getvalue()


def chart_filename(prefix: str, now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    return f"{prefix}_{stamp}.png"

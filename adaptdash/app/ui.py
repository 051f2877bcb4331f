import sys
import os

# Make the project root importable when launched with `streamlit run adaptdash/app/ui.py`.
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

import streamlit as st
import pandas as pd
import matplotlib.pyplot as plt
from dotenv import load_dotenv

from adaptdash.app.config import Settings
from adaptdash.app.errors import AppError
from adaptdash.app.logging import get_logger, setup_logging
from adaptdash.analysis.comparison import FREQUENCIES, context_comparison, classify_adaptors
from adaptdash.analysis.factors import (
    CHALLENGE_FACTORS,
    DUAL_FACTORS,
    SUPPORT_FACTORS,
    base_rate,
    factor_impacts,
    rank_impacts,
)
from adaptdash.analysis.filters import make_filters
from adaptdash.analysis.fields import get_field
from adaptdash.analysis.playground import METRICS, available_groups, metric_value, playground_data
from adaptdash.analysis.questions import question_breakdown, question_distribution, question_stats, stats_table, unique_values
from adaptdash.analysis.summary import summary_stats
from adaptdash.ingest.export import export_csv, records_frame
from adaptdash.ingest.importer import SurveyImporter
from adaptdash.ingest.lexicon import get_lexicon
from adaptdash.ingest.models import LIKERT_QUESTIONS, YEARS_BUCKETS
from adaptdash.tools import viz
from adaptdash.workflows.state import DashboardState, upload_key


load_dotenv()

st.set_page_config(
    page_title="Classroom Adaptation Dashboard",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def get_settings():
    settings = Settings.from_env()
    setup_logging(settings.log_level, settings.log_json)
    return settings


settings = get_settings()
lexicon = get_lexicon(settings.lexicon)
logger = get_logger("adaptdash.ui")

if "dashboard" not in st.session_state:
    st.session_state.dashboard = DashboardState(group_size_max=settings.group_size_max)

state: DashboardState = st.session_state.dashboard


def show_chart(fig, name: str) -> None:
    st.pyplot(fig)
    st.download_button(
        "Download PNG",
        data=viz.figure_to_png(fig),
        file_name=viz.chart_filename(name),
        mime="image/png",
        key=f"png_{name}",
    )
    plt.close(fig)


def fmt(value, digits: int = 2) -> str:
    return "–" if value is None else f"{value:.{digits}f}"


# --- Sidebar: upload + filters ---
with st.sidebar:
    st.header("📂 Survey data")
    uploaded_file = st.file_uploader("Upload CSV / Excel export", type=["csv", "xlsx", "xls"])

    upload_bytes = uploaded_file.getvalue() if uploaded_file is not None else None
    key = upload_key(upload_bytes) if upload_bytes is not None else None
    if key is not None and state.needs_load(key):
        try:
            importer = SurveyImporter(lexicon=lexicon, column_mode=settings.column_mode)
            result = importer.import_bytes(upload_bytes, uploaded_file.name)
            state.replace(result, key=key)
            st.success(f"Loaded {result.n_rows} responses.")
        except AppError as e:
            logger.exception("Upload failed")
            st.error(f"Error: {e}")

    if state.has_data:
        st.divider()
        st.subheader("Filters")
        records = state.records

        teaching_options = unique_values(records, "currently_teaching", lexicon)
        teaching = st.multiselect(
            "Currently teaching", teaching_options,
            default=[v for v in state.filters.currently_teaching if v in teaching_options],
        )
        school = st.multiselect("School type", unique_values(records, "school_type", lexicon))
        years_options = [y for y in YEARS_BUCKETS if y in unique_values(records, "years_teaching_category", lexicon)]
        years = st.multiselect("Years teaching", years_options + ["Unknown"])
        levels = st.multiselect("Levels teaching", unique_values(records, "levels_teaching", lexicon))
        share_support = st.multiselect("Share of support students", unique_values(records, "share_support_students", lexicon))
        share_challenge = st.multiselect("Share of challenge students", unique_values(records, "share_challenge_students", lexicon))
        size_range = st.slider("Group size", 0, int(settings.group_size_max), (0, int(settings.group_size_max)))

        state.set_filters(
            make_filters(
                currently_teaching=teaching,
                school_type=school,
                years_teaching_category=years,
                levels_teaching=levels,
                share_support_students=share_support,
                share_challenge_students=share_challenge,
                group_size_range=size_range,
            )
        )

        if st.button("Clear data"):
            state.clear()
            st.rerun()


st.title("📊 Classroom Adaptation Dashboard")
st.markdown("How teachers adapt lessons for students needing **support** and students ready for **challenge**.")

if not state.has_data:
    st.info("Upload a survey export to get started.")
    st.stop()

if state.warnings:
    st.warning("Data warnings:\n" + "\n".join(f"- {w}" for w in state.warnings))

data = state.filtered()
threshold = settings.high_threshold

summary = summary_stats(data)
c1, c2, c3, c4 = st.columns(4)
c1.metric("Total responses", summary.total_responses)
c2.metric("Avg support index", fmt(summary.avg_support))
c3.metric("Avg challenge index", fmt(summary.avg_challenge))
c4.metric("Challenge − support", fmt(summary.difference))

if not data:
    st.info("No data matches the current filters.")
    st.stop()

tabs = st.tabs([
    "Overview", "Support Factors", "Challenge Factors", "Both Factors",
    "Per Question", "Group Comparison", "Playground", "Raw Data",
])

# --- Overview ---
with tabs[0]:
    stats = question_stats(data)
    st.dataframe(pd.DataFrame(stats_table(stats)), use_container_width=True)
    df = viz.to_frame(stats).rename(columns={"label": "question"})
    show_chart(viz.plot_grouped_bar(df, "question", ["mean"], "Mean frequency per strategy (1-5)", ylim=(0, 5)), "overview")


def factor_tab(kind: str, variables, color: str) -> None:
    rate = base_rate(data, kind, threshold)
    if rate.rate is None:
        st.info(f"No respondents with a {kind} index.")
        return
    st.metric(f"High {kind} adaptation (index ≥ {threshold})", f"{100 * rate.rate:.1f}%",
              help=f"{rate.high_count} of {rate.valid_count} teachers; mean {fmt(rate.means[kind])}")

    impacts = factor_impacts(data, variables, kind, threshold, lexicon)
    top_diff = rank_impacts(impacts, key=lambda i: abs(i.diff_from_overall),
                            limit=settings.top_impacts, min_count=settings.min_impact_count)
    top_prob = rank_impacts(impacts, key=lambda i: i.probability,
                            limit=settings.top_impacts, min_count=settings.min_impact_count)
    show_chart(viz.plot_diff_from_mean(top_diff, title=f"Factor impact on {kind} index", color=color,
                                       low_confidence_count=settings.low_confidence_count), f"{kind}_diff")
    show_chart(viz.plot_probability(top_prob, base_rate=rate.rate, title=f"P(high {kind} | context)", color=color),
               f"{kind}_probability")
    st.caption(f"Hatched bars: fewer than {settings.low_confidence_count} respondents.")


with tabs[1]:
    factor_tab("support", SUPPORT_FACTORS, viz.SUPPORT_COLOR)

with tabs[2]:
    factor_tab("challenge", CHALLENGE_FACTORS, viz.CHALLENGE_COLOR)

# --- Both factors ---
with tabs[3]:
    rate = base_rate(data, "both", threshold)
    if rate.rate is None:
        st.info("No respondents with both indices.")
    else:
        st.metric("High on both indices", f"{100 * rate.rate:.1f}%",
                  help=f"{rate.high_count} of {rate.valid_count} teachers")
        dual = factor_impacts(data, DUAL_FACTORS, "both", threshold, lexicon)
        top_both = rank_impacts(dual, key=lambda i: i.probability_both,
                                limit=settings.top_impacts, min_count=settings.min_impact_count)
        show_chart(viz.plot_probability(top_both, value_attr="probability_both", base_rate=rate.rate,
                                        title="P(high support AND high challenge | context)"), "both_probability")
        top_combined = rank_impacts(dual, key=lambda i: i.combined_impact,
                                    limit=settings.top_impacts, min_count=settings.min_impact_count)
        df = viz.to_frame(top_combined)
        if not df.empty:
            df["group"] = df["label"] + ": " + df["category"]
            show_chart(viz.plot_grouped_bar(df, "group", ["diff_support_from_overall", "diff_challenge_from_overall"],
                                            "Strongest combined impact"), "both_combined")

# --- Per question ---
with tabs[4]:
    labels = {q.key: f"{q.family.title()}: {q.label}" for q in LIKERT_QUESTIONS}
    key = st.selectbox("Question", list(labels), format_func=labels.get)
    family = key.split("_")[0]
    color = viz.SUPPORT_COLOR if family == "support" else viz.CHALLENGE_COLOR
    show_chart(viz.plot_distribution(question_distribution(data, key), labels[key], color), f"{key}_distribution")

    for field, title, ordered in (
        ("years_teaching_category", "By years teaching", True),
        ("school_type", "By school type", False),
    ):
        breakdown = question_breakdown(data, key, field, ordered=ordered, lexicon=lexicon)
        df = pd.DataFrame([{"category": c, "mean": g.mean, "count": g.count} for c, g in breakdown.items()])
        show_chart(viz.plot_grouped_bar(df, "category", ["mean"], title, ylim=(0, 5)), f"{key}_{field}")

# --- Group comparison ---
with tabs[5]:
    for frequency in FREQUENCIES:
        comparison = context_comparison(data, frequency, lexicon)
        st.subheader(f"{frequency.title()} adaptors")
        st.caption(
            f"Support teachers: {len(classify_adaptors(data, 'support', frequency))} | "
            f"Challenge teachers: {len(classify_adaptors(data, 'challenge', frequency))}"
        )
        df = viz.to_frame(comparison)
        show_chart(viz.plot_grouped_bar(df, "label", ["support_mean", "challenge_mean"],
                                        "Agreement with context statements (1-5)", ylim=(0, 5)), f"compare_{frequency}")

# --- Playground ---
with tabs[6]:
    metric_keys = st.multiselect(
        "Metrics", list(METRICS), default=["support_adaptation_index", "challenge_adaptation_index"],
        format_func=lambda k: METRICS[k].label,
    )
    group_options = [None, "school_type", "years_teaching_category", "levels_teaching", "has_certification",
                     "group_size", "share_support_students", "share_challenge_students"]
    group_by = st.selectbox("Group by", group_options, format_func=lambda k: "(none)" if k is None else k)
    chart_type = st.radio("Chart type", ["grouped-bar", "stacked-bar", "scatter", "distribution"], horizontal=True)
    show_labels = st.checkbox("Show data labels")

    selected_groups = []
    if group_by:
        options = available_groups(data, group_by, lexicon)
        selected_groups = st.multiselect("Groups", [g for g, _ in options],
                                         format_func=lambda g: f"{g} ({dict(options)[g]})")

    if metric_keys:
        result = playground_data(data, metric_keys, group_by, selected_groups, lexicon)
        if chart_type == "scatter" and len(metric_keys) >= 2:
            x_key, y_key = metric_keys[:2]
            df = pd.DataFrame({
                x_key: [metric_value(r, x_key, lexicon) for r in data],
                y_key: [metric_value(r, y_key, lexicon) for r in data],
            }, dtype=float)
            show_chart(viz.plot_scatter(df, x_key, y_key, f"{METRICS[x_key].label} vs {METRICS[y_key].label}"),
                       "playground_scatter")
        elif chart_type == "distribution":
            key = metric_keys[0]
            df = pd.DataFrame({"value": [metric_value(r, key, lexicon) for r in data]}, dtype=float)
            if group_by:
                df["group"] = [get_field(group_by, lexicon).extract(r) for r in data]
            show_chart(viz.plot_value_distribution(df, "value", "group" if group_by else None, METRICS[key].label),
                       "playground_distribution")
        elif group_by:
            df = pd.DataFrame([{"group": g.name, **g.values} for g in result])
            show_chart(viz.plot_grouped_bar(df, "group", metric_keys, "Playground",
                                            stacked=chart_type == "stacked-bar", show_labels=show_labels),
                       "playground")
        else:
            df = pd.DataFrame([{"metric": p.name, "value": p.value} for p in result])
            show_chart(viz.plot_grouped_bar(df, "metric", ["value"], "Playground", show_labels=show_labels),
                       "playground")

# --- Raw data ---
with tabs[7]:
    st.dataframe(records_frame(data), use_container_width=True)
    st.download_button("Export CSV", data=export_csv(data), file_name="survey_filtered.csv", mime="text/csv")

import logging
from contextlib import contextmanager
from typing import Optional

import altair as alt
import pandas as pd
import streamlit as st

from discipline_metrics.data import DEFAULT_FILE_NAME, ParseError, load_dataset
from discipline_metrics.metrics import baseline_percent, disparity_table, latest_year_ranking, trend_table
from discipline_metrics.settings import DEFAULT_TREND_GROUPS, normalize_settings
from presenter import charts
from presenter.narrative import build_summary

alt.data_transformers.disable_max_rows()
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("discipline_dashboard")

VIEW_LABELS = {
    "Overview": "overview",
    "Trends Over Time": "trends",
    "Disparities": "disparities",
}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.1rem;color: #111827;margin-bottom: 8px;}
        .card-note {font-size: 0.9rem;color: #4b5563;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, note: Optional[str] = None):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        if note:
            st.markdown(f"<div class='card-note'>{note}</div>", unsafe_allow_html=True)
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def export_button(df: pd.DataFrame, file_name: str):
    if df.empty:
        return
    st.download_button(
        "Export CSV",
        data=df.to_csv(index=False).encode("utf-8"),
        file_name=file_name,
        mime="text/csv",
    )


# ---------- UI setup ----------
st.set_page_config(page_title="Student Discipline Data Analysis", layout="wide")
inject_base_styles()
st.title("Student Discipline Data Analysis")
st.caption("Analysis of discipline percentages across student groups and years")

try:
    with st.spinner("Loading data..."):
        data_ctx = load_dataset()
except ParseError as exc:
    logger.error("Could not load discipline data: %s", exc)
    st.error(f"Could not read {DEFAULT_FILE_NAME}: {exc}")
    st.stop()

rows = data_ctx.get("rows", ())
years = data_ctx.get("years", [])
if not data_ctx.get("file"):
    st.info(f"Loading data... Place {DEFAULT_FILE_NAME} in the data/ folder.")
    st.stop()
if not rows:
    st.warning("The discipline file has no data rows.")
    st.stop()

# ----- Sidebar: navigation + settings -----
groups = data_ctx.get("groups", [])
with st.sidebar:
    st.markdown("### Navigate")
    view_label = st.radio("View", list(VIEW_LABELS), index=0)

    st.markdown("---")
    st.markdown("### Settings")
    target_year = st.selectbox("Year", options=years, index=len(years) - 1)
    default_trend_years = years[-3:]
    trend_years = st.multiselect("Trend years", options=years, default=default_trend_years)
    default_groups = [g for g in DEFAULT_TREND_GROUPS if g in groups]
    trend_groups = st.multiselect("Trend groups", options=groups, default=default_groups)

settings = normalize_settings(
    {
        "target_year": target_year,
        # Keep chronological order no matter the click order.
        "trend_years": [y for y in years if y in trend_years],
        "trend_groups": trend_groups,
    },
    available_years=years,
)
view = VIEW_LABELS[view_label]

if view == "overview":
    ranking = latest_year_ranking(rows, settings.target_year)
    with card(f"{settings.target_year} Discipline Rates by Student Group"):
        if not ranking:
            st.info("No data for the selected year.")
        else:
            st.altair_chart(charts.ranking_chart(ranking, settings.target_year), use_container_width=True)
            export_button(pd.DataFrame([e.to_dict() for e in ranking]), "ranking.csv")

elif view == "trends":
    points = trend_table(rows, settings.trend_years, settings.trend_groups)
    with card("Discipline Rate Trends"):
        if not any(p.values_by_group for p in points):
            st.info("No data for the selected years and groups.")
        else:
            st.altair_chart(
                charts.trend_chart(points, settings.trend_groups, settings.baseline_group),
                use_container_width=True,
            )
            export_button(pd.DataFrame([p.to_record() for p in points]), "trends.csv")

else:
    baseline = baseline_percent(rows, settings.target_year, settings.baseline_group)
    entries = disparity_table(rows, settings.target_year, settings.baseline_group)
    with card(
        f"Disparities from {settings.baseline_group} Average ({settings.target_year})",
        note=f"{settings.baseline_group} baseline: {baseline:.2f}%",
    ):
        if not entries:
            st.info("No data for the selected year.")
        else:
            st.altair_chart(
                charts.disparity_chart(entries, settings.target_year, baseline, settings.baseline_group),
                use_container_width=True,
            )
            export_button(pd.DataFrame([e.to_dict() for e in entries]), "disparities.csv")

sections = build_summary(rows, settings)
if sections:
    with card("Summary of Key Findings"):
        for section in sections:
            st.markdown(f"#### {section['title']}")
            st.markdown("\n".join(f"- {bullet}" for bullet in section["bullets"]))

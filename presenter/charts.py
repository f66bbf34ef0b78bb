from __future__ import annotations

from typing import Any, Dict, List, Sequence

import altair as alt
import pandas as pd

from discipline_metrics.models import DisparityEntry, RankedGroup, TrendPoint
from discipline_metrics.settings import BASELINE_GROUP
from presenter import theme

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _group_axis() -> alt.X:
    return alt.X(
        "group:N",
        title=None,
        sort=None,
        axis=alt.Axis(labelAngle=-45, labelFontSize=12),
    )


def ranking_chart(ranking: Sequence[RankedGroup], year: str) -> alt.LayerChart:
    df = pd.DataFrame([e.to_dict() for e in ranking], columns=["group", "percent"])
    base = alt.Chart(df).encode(
        x=_group_axis(),
        y=alt.Y("percent:Q", title="Percent Disciplined", scale=alt.Scale(domainMin=0, nice=True)),
    )
    bars = base.mark_bar(color=theme.RANKING_BAR_COLOR).encode(
        tooltip=[
            alt.Tooltip("group:N", title="Student Group"),
            alt.Tooltip("percent:Q", title="Percent", format=".2f"),
        ]
    )
    labels = base.mark_text(dy=-6, fontSize=10).encode(text=alt.Text("percent:Q", format=".1f"))
    return (bars + labels).properties(
        title=f"{year} Discipline Rates by Student Group", height=theme.CHART_HEIGHT
    )


def trend_chart(
    points: Sequence[TrendPoint], groups: Sequence[str], baseline_group: str = BASELINE_GROUP
) -> alt.Chart:
    long_rows: List[Dict[str, Any]] = []
    for point in points:
        for group in groups:
            if group in point.values_by_group:
                long_rows.append({"year": point.year, "group": group, "percent": point.values_by_group[group]})
    long_df = pd.DataFrame(long_rows, columns=["year", "group", "percent"])

    years = [p.year for p in points]
    colors = [theme.TREND_LINE_COLORS.get(g, theme.FALLBACK_LINE_COLOR) for g in groups]
    hover = alt.selection_point(fields=["group"], on="mouseover")
    title = f"Discipline Rate Trends ({years[0]} to {years[-1]})" if years else "Discipline Rate Trends"
    return (
        alt.Chart(long_df)
        .mark_line(point={"filled": True})
        .encode(
            x=alt.X("year:O", title="Year", sort=years),
            y=alt.Y("percent:Q", title="Percent Disciplined", scale=alt.Scale(domain=list(theme.TREND_Y_DOMAIN))),
            color=alt.Color("group:N", title="Student Group", scale=alt.Scale(domain=list(groups), range=colors)),
            strokeWidth=alt.condition(
                alt.datum.group == baseline_group,
                alt.value(theme.BASELINE_STROKE_WIDTH),
                alt.value(theme.GROUP_STROKE_WIDTH),
            ),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.2)),
            tooltip=[
                alt.Tooltip("year:N", title="Year"),
                alt.Tooltip("group:N", title="Student Group"),
                alt.Tooltip("percent:Q", title="Percent", format=".2f"),
            ],
        )
        .add_params(hover)
        .properties(title=title, height=theme.CHART_HEIGHT)
    )


def disparity_chart(
    entries: Sequence[DisparityEntry], year: str, baseline: float, baseline_group: str = BASELINE_GROUP
) -> alt.LayerChart:
    df = pd.DataFrame([e.to_dict() for e in entries], columns=["group", "percent", "disparity"])
    base = alt.Chart(df).encode(
        x=_group_axis(),
        y=alt.Y(
            "disparity:Q",
            title="Percentage Point Difference",
            scale=alt.Scale(domain=list(theme.DISPARITY_Y_DOMAIN), clamp=True),
        ),
    )
    bars = base.mark_bar().encode(
        color=alt.condition(
            alt.datum.disparity > 0,
            alt.value(theme.DISPARITY_ABOVE_COLOR),
            alt.value(theme.DISPARITY_BELOW_COLOR),
        ),
        tooltip=[
            alt.Tooltip("group:N", title="Student Group"),
            alt.Tooltip("percent:Q", title="Percent", format=".2f"),
            alt.Tooltip("disparity:Q", title="Difference (pp)", format="+.2f"),
        ],
    )
    labels = base.mark_text(dy=-6, fontSize=10).encode(text=alt.Text("disparity:Q", format="+.1f"))
    return (bars + labels).properties(
        title=f"Disparities from {baseline_group} Average ({year}) - baseline {baseline:.2f}%",
        height=theme.CHART_HEIGHT,
    )


def charts_for_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Build Vega-Lite specs for a payload produced by ``compute_view``."""
    view = payload.get("view")
    baseline_group = payload.get("settings", {}).get("baseline_group", BASELINE_GROUP)
    if view == "overview":
        ranking = [RankedGroup(**e) for e in payload.get("ranking", [])]
        return {"ranking": to_vega_spec(ranking_chart(ranking, payload["year"]))}
    if view == "trends":
        points = [TrendPoint(year=p["year"], values_by_group=p["values_by_group"]) for p in payload.get("points", [])]
        return {"trend": to_vega_spec(trend_chart(points, payload.get("groups", []), baseline_group))}
    if view == "disparities":
        entries = [DisparityEntry(**e) for e in payload.get("disparities", [])]
        baseline = float(payload.get("baseline", {}).get("percent", 0.0))
        return {"disparity": to_vega_spec(disparity_chart(entries, payload["year"], baseline, baseline_group))}
    return {}

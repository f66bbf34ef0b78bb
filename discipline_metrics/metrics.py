from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Sequence

import pandas as pd

from discipline_metrics.models import DisparityEntry, RankedGroup, Row, TrendPoint
from discipline_metrics.settings import BASELINE_GROUP, VIEWS, ViewSettings

FRAME_COLUMNS = ["year", "group", "percent"]


def rows_to_frame(rows: Sequence[Row]) -> pd.DataFrame:
    """Return rows as a frame in file order.

    Repeated (year, group) pairs keep only their first occurrence, so every
    derivation resolves duplicates the same way.
    """
    frame = pd.DataFrame(
        [(r.year, r.student_group, r.percent_disciplined) for r in rows],
        columns=FRAME_COLUMNS,
    )
    frame["percent"] = frame["percent"].astype(float)
    return frame.drop_duplicates(subset=["year", "group"], keep="first").reset_index(drop=True)


def latest_year_ranking(rows: Sequence[Row], target_year: str) -> List[RankedGroup]:
    frame = rows_to_frame(rows)
    latest = frame[frame["year"] == target_year]
    # Stable sort: equal percents stay in file order.
    latest = latest.sort_values("percent", ascending=False, kind="stable")
    return [RankedGroup(group=g, percent=float(p)) for g, p in zip(latest["group"], latest["percent"])]


def trend_table(rows: Sequence[Row], years: Sequence[str], groups: Sequence[str]) -> List[TrendPoint]:
    frame = rows_to_frame(rows)
    lookup = {(y, g): float(p) for y, g, p in zip(frame["year"], frame["group"], frame["percent"])}
    points: List[TrendPoint] = []
    for year in years:
        values = {group: lookup[(year, group)] for group in groups if (year, group) in lookup}
        points.append(TrendPoint(year=year, values_by_group=values))
    return points


def baseline_percent(rows: Sequence[Row], target_year: str, baseline_group: str = BASELINE_GROUP) -> float:
    """Return the baseline group's percent for the year, or 0 when it is missing."""
    for entry in latest_year_ranking(rows, target_year):
        if entry.group == baseline_group:
            return entry.percent
    return 0.0


def disparity_table(
    rows: Sequence[Row], target_year: str, baseline_group: str = BASELINE_GROUP
) -> List[DisparityEntry]:
    ranking = latest_year_ranking(rows, target_year)
    baseline = next((e.percent for e in ranking if e.group == baseline_group), 0.0)
    frame = pd.DataFrame([e.to_dict() for e in ranking], columns=["group", "percent"])
    frame = frame[frame["group"] != baseline_group].copy()
    frame["disparity"] = frame["percent"].astype(float) - baseline
    frame = frame.sort_values("disparity", ascending=False, kind="stable")
    return [
        DisparityEntry(group=g, percent=float(p), disparity=float(d))
        for g, p, d in zip(frame["group"], frame["percent"], frame["disparity"])
    ]


def compute_overview(settings: ViewSettings, rows: Sequence[Row]) -> Dict[str, Any]:
    ranking = latest_year_ranking(rows, settings.target_year)
    return {
        "settings": asdict(settings),
        "year": settings.target_year,
        "ranking": [e.to_dict() for e in ranking],
    }


def compute_trends(settings: ViewSettings, rows: Sequence[Row]) -> Dict[str, Any]:
    points = trend_table(rows, settings.trend_years, settings.trend_groups)
    return {
        "settings": asdict(settings),
        "years": list(settings.trend_years),
        "groups": list(settings.trend_groups),
        "points": [p.to_dict() for p in points],
        "records": [p.to_record() for p in points],
    }


def compute_disparities(settings: ViewSettings, rows: Sequence[Row]) -> Dict[str, Any]:
    baseline = baseline_percent(rows, settings.target_year, settings.baseline_group)
    entries = disparity_table(rows, settings.target_year, settings.baseline_group)
    return {
        "settings": asdict(settings),
        "year": settings.target_year,
        "baseline": {"group": settings.baseline_group, "percent": baseline},
        "disparities": [e.to_dict() for e in entries],
    }


_VIEW_BUILDERS = {
    "overview": compute_overview,
    "trends": compute_trends,
    "disparities": compute_disparities,
}


def compute_view(view: str, settings: ViewSettings, rows: Sequence[Row]) -> Dict[str, Any]:
    if view not in _VIEW_BUILDERS:
        raise ValueError(f"Unknown view {view!r}; expected one of {', '.join(VIEWS)}")
    payload = _VIEW_BUILDERS[view](settings, rows)
    payload["view"] = view
    return payload

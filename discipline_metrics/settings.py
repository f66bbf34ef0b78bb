from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

BASELINE_GROUP = "All Students"
DEFAULT_TARGET_YEAR = "2023-24"
DEFAULT_TREND_YEARS = ["2021-22", "2022-23", "2023-24"]
DEFAULT_TREND_GROUPS = [
    "All Students",
    "Afr. Amer./Black",
    "Hispanic/Latino",
    "White",
    "Asian",
    "Students w/disabilities",
]
VIEWS = ("overview", "trends", "disparities")


@dataclass(frozen=True)
class ViewSettings:
    target_year: str = DEFAULT_TARGET_YEAR
    trend_years: List[str] = field(default_factory=lambda: list(DEFAULT_TREND_YEARS))
    trend_groups: List[str] = field(default_factory=lambda: list(DEFAULT_TREND_GROUPS))
    baseline_group: str = BASELINE_GROUP
    include_charts: bool = True


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values or isinstance(values, str):
        return []
    # Keys are matched verbatim against the file, so no stripping here.
    return [str(v) for v in values if v is not None and str(v) != ""]


def normalize_settings(raw: Optional[dict], *, available_years: Optional[List[str]] = None) -> ViewSettings:
    raw = raw or {}
    available_years = list(available_years or [])

    target_year = raw.get("target_year")
    if not isinstance(target_year, str) or not target_year:
        target_year = available_years[-1] if available_years else DEFAULT_TARGET_YEAR

    trend_years = _as_str_list(raw.get("trend_years"))
    if not trend_years:
        trend_years = available_years[-3:] if available_years else list(DEFAULT_TREND_YEARS)

    trend_groups = _as_str_list(raw.get("trend_groups")) or list(DEFAULT_TREND_GROUPS)

    baseline_group = raw.get("baseline_group")
    if not isinstance(baseline_group, str) or not baseline_group:
        baseline_group = BASELINE_GROUP

    include_charts = bool(raw.get("include_charts", True))
    return ViewSettings(
        target_year=target_year,
        trend_years=trend_years,
        trend_groups=trend_groups,
        baseline_group=baseline_group,
        include_charts=include_charts,
    )

"""Summary of key findings for the dashboard footer.

Every figure in the text is read from the loaded rows so the narrative cannot
drift from the charts when the source file is refreshed. A bullet whose inputs
are missing from the data is left out rather than rendered with placeholders.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from discipline_metrics.metrics import disparity_table, latest_year_ranking, trend_table
from discipline_metrics.models import DisparityEntry, RankedGroup, Row
from discipline_metrics.settings import ViewSettings
from presenter import theme


def format_percent(value: float) -> str:
    return f"{value:.2f}%"


def format_points(value: float) -> str:
    return f"{value:+.2f} pp"


def _direction(delta: float) -> str:
    if delta < 0:
        return "dropped"
    if delta > 0:
        return "rose"
    return "held steady"


def _changes(rows: Sequence[Row], first_year: str, last_year: str, groups: Sequence[str]) -> Dict[str, float]:
    """Return last-minus-first percent for groups present in both years."""
    first, last = trend_table(rows, [first_year, last_year], groups)
    return {
        group: last.values_by_group[group] - first.values_by_group[group]
        for group in groups
        if group in first.values_by_group and group in last.values_by_group
    }


def overall_trend_bullets(rows: Sequence[Row], settings: ViewSettings) -> List[str]:
    if len(settings.trend_years) < 2:
        return []
    first_year, last_year = settings.trend_years[0], settings.trend_years[-1]
    groups = list(dict.fromkeys(r.student_group for r in rows))
    changes = _changes(rows, first_year, last_year, groups)
    if not changes:
        return []

    bullets: List[str] = []
    declined = [g for g, delta in changes.items() if delta < 0]
    if len(declined) == len(changes):
        bullets.append(f"Discipline rates decreased across all student groups from {first_year} to {last_year}")
    else:
        bullets.append(
            f"Discipline rates decreased for {len(declined)} of {len(changes)} student groups "
            f"from {first_year} to {last_year}"
        )

    baseline = settings.baseline_group
    if baseline in changes:
        first, last = trend_table(rows, [first_year, last_year], [baseline])
        start, end = first.values_by_group[baseline], last.values_by_group[baseline]
        bullets.append(
            f"Overall rate for {baseline.lower()} {_direction(changes[baseline])} from "
            f"{format_percent(start)} to {format_percent(end)} ({format_points(changes[baseline])})"
        )

    improvements = sorted(
        ((g, d) for g, d in changes.items() if g != baseline and d < 0),
        key=lambda item: item[1],
    )[: theme.IMPROVEMENT_COUNT]
    if improvements:
        listed = " and ".join(f"{g} ({format_points(d)})" for g, d in improvements)
        bullets.append(f"The largest improvements were seen in {listed}")
    return bullets


def _lowest(ranking: Sequence[RankedGroup], baseline_group: str) -> Optional[RankedGroup]:
    others = [e for e in ranking if e.group != baseline_group]
    return others[-1] if others else None


def disparity_bullets(rows: Sequence[Row], settings: ViewSettings) -> List[str]:
    year = settings.target_year
    ranking = latest_year_ranking(rows, year)
    baseline_entry = next((e for e in ranking if e.group == settings.baseline_group), None)
    entries = disparity_table(rows, year, settings.baseline_group)
    above = [e for e in entries if e.disparity > 0]

    bullets: List[str] = []
    if above:
        bullets.append(f"Significant disparities remain in {year}")
    if baseline_entry is not None and baseline_entry.percent > 0:
        for entry in above[: theme.RATIO_CALLOUT_COUNT]:
            ratio = entry.percent / baseline_entry.percent
            bullets.append(
                f"{entry.group} are disciplined at {ratio:.1f}x the overall rate "
                f"({format_percent(entry.percent)} vs {format_percent(baseline_entry.percent)})"
            )
    lowest = _lowest(ranking, settings.baseline_group)
    if lowest is not None:
        bullets.append(f"{lowest.group} has the lowest discipline rate at {format_percent(lowest.percent)}")
    return bullets


def highest_disparities(entries: Sequence[DisparityEntry], count: int = theme.HIGHLIGHT_COUNT) -> List[str]:
    return [f"{e.group}: {format_points(e.disparity)}" for e in entries[:count] if e.disparity > 0]


def gender_bullets(rows: Sequence[Row], settings: ViewSettings) -> List[str]:
    male_label, female_label = theme.GENDER_GROUPS
    by_group = {e.group: e.percent for e in latest_year_ranking(rows, settings.target_year)}
    if male_label not in by_group or female_label not in by_group:
        return []
    male, female = by_group[male_label], by_group[female_label]
    if male == female:
        return [f"{male_label} and {female_label} students are disciplined at the same rate ({format_percent(male)})"]
    higher, lower = (male_label, female_label) if male > female else (female_label, male_label)
    high_value, low_value = max(male, female), min(male, female)
    bullets = [
        f"{higher} students are disciplined at higher rates than {lower.lower()} students "
        f"({format_percent(high_value)} vs {format_percent(low_value)} in {settings.target_year})"
    ]
    if low_value > 0:
        bullets.append(f"This represents a {high_value / low_value:.1f}:1 ratio in discipline rates by gender")
    return bullets


def build_summary(rows: Sequence[Row], settings: ViewSettings) -> List[Dict[str, Any]]:
    """Return ``[{"title": ..., "bullets": [...]}, ...]`` with empty sections dropped."""
    entries = disparity_table(rows, settings.target_year, settings.baseline_group)
    sections = [
        {"title": "Overall Trends", "bullets": overall_trend_bullets(rows, settings)},
        {"title": "Persistent Disparities", "bullets": disparity_bullets(rows, settings)},
        {"title": "Groups with Highest Disparities", "bullets": highest_disparities(entries)},
        {"title": "Gender Differences", "bullets": gender_bullets(rows, settings)},
    ]
    return [s for s in sections if s["bullets"]]

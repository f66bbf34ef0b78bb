from __future__ import annotations

import pytest

from discipline_metrics.metrics import (
    baseline_percent,
    compute_disparities,
    compute_overview,
    compute_trends,
    compute_view,
    disparity_table,
    latest_year_ranking,
    trend_table,
)
from discipline_metrics.models import DisparityEntry, RankedGroup, Row, TrendPoint
from discipline_metrics.settings import ViewSettings

SCENARIO = [
    Row("2023-24", "All Students", 3.45),
    Row("2023-24", "Asian", 0.85),
    Row("2023-24", "Afr. Amer./Black", 5.14),
]


def test_latest_year_ranking_scenario():
    assert latest_year_ranking(SCENARIO, "2023-24") == [
        RankedGroup("Afr. Amer./Black", 5.14),
        RankedGroup("All Students", 3.45),
        RankedGroup("Asian", 0.85),
    ]


def test_disparity_table_scenario():
    entries = disparity_table(SCENARIO, "2023-24")
    assert [e.group for e in entries] == ["Afr. Amer./Black", "Asian"]
    assert entries[0].percent == 5.14
    assert entries[0].disparity == pytest.approx(1.69)
    assert entries[1].percent == 0.85
    assert entries[1].disparity == pytest.approx(-2.60)


def test_missing_year_yields_empty_results():
    assert latest_year_ranking(SCENARIO, "2020-21") == []
    assert disparity_table(SCENARIO, "2020-21") == []
    assert baseline_percent(SCENARIO, "2020-21") == 0.0


def test_empty_rows_yield_empty_results():
    assert latest_year_ranking([], "2023-24") == []
    assert disparity_table([], "2023-24") == []
    assert trend_table([], [], []) == []
    assert trend_table([], ["2023-24"], ["Asian"]) == [TrendPoint("2023-24", {})]


def test_ranking_filters_year_and_sorts_non_increasing(sample_rows):
    ranking = latest_year_ranking(sample_rows, "2022-23")
    percents = [e.percent for e in ranking]
    assert len(ranking) == 8
    assert percents == sorted(percents, reverse=True)
    assert ranking[0] == RankedGroup("Students w/disabilities", 6.80)


def test_ranking_ties_keep_file_order():
    rows = [
        Row("2023-24", "C", 2.0),
        Row("2023-24", "A", 3.0),
        Row("2023-24", "B", 2.0),
        Row("2023-24", "D", 2.0),
    ]
    assert [e.group for e in latest_year_ranking(rows, "2023-24")] == ["A", "C", "B", "D"]


def test_ranking_keeps_first_of_duplicate_groups():
    rows = [Row("2023-24", "Asian", 0.85), Row("2023-24", "Asian", 9.0)]
    assert latest_year_ranking(rows, "2023-24") == [RankedGroup("Asian", 0.85)]


def test_keys_are_matched_verbatim():
    rows = [Row("2023-24", " Asian", 0.85), Row("2023-24 ", "White", 3.2)]
    assert latest_year_ranking(rows, "2023-24") == [RankedGroup(" Asian", 0.85)]
    assert trend_table(rows, ["2023-24"], ["Asian"]) == [TrendPoint("2023-24", {})]


def test_trend_table_follows_requested_year_order(sample_rows):
    years = ["2023-24", "2021-22", "2022-23"]
    points = trend_table(list(reversed(sample_rows)), years, ["All Students", "Asian"])
    assert [p.year for p in points] == years
    assert points[0].values_by_group == {"All Students": 3.45, "Asian": 0.85}
    assert points[1].values_by_group == {"All Students": 4.20, "Asian": 1.20}


def test_trend_table_omits_missing_groups_but_keeps_zero():
    rows = [Row("2022-23", "Asian", 0.0), Row("2023-24", "White", 3.2)]
    points = trend_table(rows, ["2022-23", "2023-24"], ["Asian", "White"])
    assert points[0].values_by_group == {"Asian": 0.0}
    assert "White" not in points[0].values_by_group
    assert points[1].values_by_group == {"White": 3.2}
    assert points[1].to_record() == {"year": "2023-24", "White": 3.2}


def test_trend_table_first_duplicate_wins():
    rows = [Row("2023-24", "Asian", 0.85), Row("2023-24", "Asian", 1.5)]
    assert trend_table(rows, ["2023-24"], ["Asian"])[0].values_by_group == {"Asian": 0.85}


def test_trend_table_unknown_year_has_no_values(sample_rows):
    assert trend_table(sample_rows, ["2019-20"], ["All Students"]) == [TrendPoint("2019-20", {})]


def test_disparity_without_baseline_equals_percent():
    rows = [Row("2023-24", "Asian", 0.85), Row("2023-24", "White", 3.2)]
    entries = disparity_table(rows, "2023-24")
    assert entries == [DisparityEntry("White", 3.2, 3.2), DisparityEntry("Asian", 0.85, 0.85)]


def test_disparity_excludes_baseline_group(sample_rows):
    entries = disparity_table(sample_rows, "2023-24")
    groups = [e.group for e in entries]
    assert "All Students" not in groups
    assert groups[0] == "Students w/disabilities"
    assert entries[0].disparity == pytest.approx(2.74)
    disparities = [e.disparity for e in entries]
    assert disparities == sorted(disparities, reverse=True)


def test_disparity_custom_baseline_group(sample_rows):
    entries = disparity_table(sample_rows, "2023-24", baseline_group="White")
    assert "White" not in [e.group for e in entries]
    assert baseline_percent(sample_rows, "2023-24", "White") == 3.20
    asian = next(e for e in entries if e.group == "Asian")
    assert asian.disparity == pytest.approx(0.85 - 3.20)


def test_derivations_are_idempotent(sample_rows):
    years = ["2021-22", "2022-23", "2023-24"]
    groups = ["All Students", "Asian", "White"]
    assert latest_year_ranking(sample_rows, "2023-24") == latest_year_ranking(sample_rows, "2023-24")
    assert trend_table(sample_rows, years, groups) == trend_table(sample_rows, years, groups)
    assert disparity_table(sample_rows, "2023-24") == disparity_table(sample_rows, "2023-24")


def test_compute_overview_payload(sample_rows):
    payload = compute_overview(ViewSettings(), sample_rows)
    assert payload["year"] == "2023-24"
    assert payload["settings"]["baseline_group"] == "All Students"
    assert payload["ranking"][0] == {"group": "Students w/disabilities", "percent": 6.19}


def test_compute_trends_payload(sample_rows):
    settings = ViewSettings(trend_years=["2021-22", "2023-24"], trend_groups=["All Students", "Missing"])
    payload = compute_trends(settings, sample_rows)
    assert payload["years"] == ["2021-22", "2023-24"]
    assert payload["records"] == [
        {"year": "2021-22", "All Students": 4.20},
        {"year": "2023-24", "All Students": 3.45},
    ]
    assert payload["points"][0] == {"year": "2021-22", "values_by_group": {"All Students": 4.20}}


def test_compute_disparities_payload(sample_rows):
    payload = compute_disparities(ViewSettings(), sample_rows)
    assert payload["baseline"] == {"group": "All Students", "percent": 3.45}
    assert len(payload["disparities"]) == 7


def test_compute_view_dispatches_and_tags_view(sample_rows):
    payload = compute_view("trends", ViewSettings(), sample_rows)
    assert payload["view"] == "trends"
    assert "records" in payload


def test_compute_view_rejects_unknown_view(sample_rows):
    with pytest.raises(ValueError, match="Unknown view"):
        compute_view("heatmap", ViewSettings(), sample_rows)

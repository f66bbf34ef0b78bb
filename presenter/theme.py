"""Colours, axis ranges and narrative thresholds for the dashboard."""

RANKING_BAR_COLOR = "#3B82F6"
DISPARITY_ABOVE_COLOR = "#DC2626"
DISPARITY_BELOW_COLOR = "#10B981"
FALLBACK_LINE_COLOR = "#9CA3AF"

TREND_LINE_COLORS = {
    "All Students": "#3B82F6",
    "Afr. Amer./Black": "#DC2626",
    "Hispanic/Latino": "#F59E0B",
    "Students w/disabilities": "#8B5CF6",
    "White": "#10B981",
    "Asian": "#6366F1",
}
# Baseline line is drawn heavier than the others.
BASELINE_STROKE_WIDTH = 3
GROUP_STROKE_WIDTH = 2

TREND_Y_DOMAIN = (0, 8)
DISPARITY_Y_DOMAIN = (-3, 3)
CHART_HEIGHT = 500

HIGHLIGHT_COUNT = 3
IMPROVEMENT_COUNT = 2
RATIO_CALLOUT_COUNT = 2
GENDER_GROUPS = ("Male", "Female")

"""Presentation helpers for the discipline dashboard.

Charts (Altair -> Vega-Lite spec dict) and the narrative summary. Colours and
thresholds live in ``presenter.theme``; the ``discipline_metrics`` core knows
nothing about them.
"""

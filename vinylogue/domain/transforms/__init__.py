"""Functional transformations over chart entries."""

from .core import (
    apply_chart_filters,
    create_pipeline,
    filter_by_min_play_count,
    filter_by_predicate,
    sort_by_rank,
)

__all__ = [
    "apply_chart_filters",
    "create_pipeline",
    "filter_by_min_play_count",
    "filter_by_predicate",
    "sort_by_rank",
]

"""Chart period selection and calendar helpers."""

from .period_selector import select_period, target_instant
from .weeks import WeekInfo, available_year_range, can_navigate, week_info

__all__ = [
    "WeekInfo",
    "available_year_range",
    "can_navigate",
    "select_period",
    "target_instant",
    "week_info",
]

"""Core domain entities representing listening-chart concepts."""

from .chart import ChartEntry, ChartPeriod, FetchStage, PartialFailure, PeriodKey
from .music import Album, Artist, User
from .preferences import Preferences
from .shared import ensure_utc, from_timestamp, parse_release_date, to_timestamp

__all__ = [
    "Album",
    "Artist",
    "ChartEntry",
    "ChartPeriod",
    "FetchStage",
    "PartialFailure",
    "PeriodKey",
    "Preferences",
    "User",
    "ensure_utc",
    "from_timestamp",
    "parse_release_date",
    "to_timestamp",
]

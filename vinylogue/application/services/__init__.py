"""Stateful application services.

The precache coordinator depends on the chart use case and is imported from
its own module.
"""

from .chart_cache import CachedChart, CachedPeriodList, ChartCache
from .favorites_store import FavoritesStore
from .preferences_store import PreferencesStore

__all__ = [
    "CachedChart",
    "CachedPeriodList",
    "ChartCache",
    "FavoritesStore",
    "PreferencesStore",
]

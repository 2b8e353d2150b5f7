"""Application use cases."""

from .get_weekly_chart import (
    ChartCancelled,
    ChartEmpty,
    ChartFailed,
    ChartResult,
    ChartSuccess,
    EmptyReason,
    GetWeeklyChartCommand,
    GetWeeklyChartUseCase,
)
from .import_friends import (
    FriendsImportResult,
    ImportFriendsCommand,
    ImportFriendsUseCase,
)
from .load_album_detail import (
    AlbumDetailResult,
    LoadAlbumDetailCommand,
    LoadAlbumDetailUseCase,
)

__all__ = [
    "AlbumDetailResult",
    "ChartCancelled",
    "ChartEmpty",
    "ChartFailed",
    "ChartResult",
    "ChartSuccess",
    "EmptyReason",
    "FriendsImportResult",
    "GetWeeklyChartCommand",
    "GetWeeklyChartUseCase",
    "ImportFriendsCommand",
    "ImportFriendsUseCase",
    "LoadAlbumDetailCommand",
    "LoadAlbumDetailUseCase",
]

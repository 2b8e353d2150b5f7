"""Wiring of connector, storage and services for CLI commands."""

from pathlib import Path

from attrs import define

from vinylogue.application.services import ChartCache, FavoritesStore, PreferencesStore
from vinylogue.application.use_cases import (
    GetWeeklyChartUseCase,
    ImportFriendsUseCase,
    LoadAlbumDetailUseCase,
)
from vinylogue.config import get_config
from vinylogue.infrastructure.connectors import LastFMConnector
from vinylogue.infrastructure.persistence import JsonFileStore


@define(slots=True)
class AppContext:
    store: JsonFileStore
    connector: LastFMConnector
    cache: ChartCache
    favorites: FavoritesStore
    preferences: PreferencesStore
    charts: GetWeeklyChartUseCase
    album_detail: LoadAlbumDetailUseCase
    friends: ImportFriendsUseCase

    def resolve_user_name(self, user_name: str | None) -> str | None:
        """Explicit name, else the saved current user, else LASTFM_USERNAME."""
        return (
            user_name
            or self.preferences.current.current_user_name
            or get_config("LASTFM_USERNAME")
            or None
        )


def build_app_context(data_dir: Path | None = None) -> AppContext:
    store = JsonFileStore(data_dir) if data_dir else JsonFileStore()
    connector = LastFMConnector()
    cache = ChartCache()
    favorites = FavoritesStore(store, on_user_removed=cache.invalidate)

    return AppContext(
        store=store,
        connector=connector,
        cache=cache,
        favorites=favorites,
        preferences=PreferencesStore(store),
        charts=GetWeeklyChartUseCase(connector, cache),
        album_detail=LoadAlbumDetailUseCase(connector),
        friends=ImportFriendsUseCase(connector, favorites),
    )

"""Builders and in-memory fakes for chart pipeline tests."""

import asyncio
from collections import Counter
from datetime import UTC, datetime, timedelta
from typing import Any

from vinylogue.domain.entities import Album, Artist, ChartEntry, ChartPeriod, User

USER = "rj"


def make_period(start: datetime, days: int = 7) -> ChartPeriod:
    """Chart period starting at ``start`` lasting ``days`` days."""
    start = start if start.tzinfo else start.replace(tzinfo=UTC)
    return ChartPeriod(from_=start, to=start + timedelta(days=days))


def make_weekly_periods(first: datetime, weeks: int) -> list[ChartPeriod]:
    """Contiguous weekly periods, oldest first."""
    return [make_period(first + timedelta(weeks=i)) for i in range(weeks)]


def make_entries(
    user_name: str,
    period: ChartPeriod,
    count: int,
    play_counts: list[int] | None = None,
    with_images: bool = False,
) -> list[ChartEntry]:
    """Ranked entries 1..count; play counts default to descending values."""
    play_counts = play_counts or [count - i + 1 for i in range(count)]
    return [
        ChartEntry(
            rank=i + 1,
            play_count=play_counts[i],
            album=Album(
                name=f"Album {i + 1}",
                artist=Artist(name=f"Artist {i + 1}"),
                image_url=f"https://img.example/{i + 1}.jpg" if with_images else None,
            ),
            period_key=period.key,
            user_name=user_name,
        )
        for i in range(count)
    ]


class FakeChartGateway:
    """In-memory ChartGatewayProtocol with call counting and failure injection.

    Attributes:
        image_gate: When set, image lookups block until the event fires
        max_in_flight_images: Highest number of concurrent image lookups seen
    """

    def __init__(
        self,
        periods: list[ChartPeriod] | None = None,
        charts: dict[tuple[int, int], list[ChartEntry]] | None = None,
    ) -> None:
        self.periods = list(periods or [])
        self.charts = dict(charts or {})
        self.images: dict[str, str | None] = {}
        self.image_errors: dict[str, Exception] = {}
        self.period_list_error: Exception | None = None
        self.chart_error: Exception | None = None
        self.users: dict[str, User] = {}
        self.friends: dict[str, list[User]] = {}
        self.album_details: dict[str, Album] = {}
        self.album_detail_error: Exception | None = None

        self.calls: Counter[str] = Counter()
        self.image_gate: asyncio.Event | None = None
        self.chart_gate: asyncio.Event | None = None
        self.in_flight_images = 0
        self.max_in_flight_images = 0

    async def fetch_period_list(self, user_name: str) -> list[ChartPeriod]:
        self.calls["fetch_period_list"] += 1
        await asyncio.sleep(0)
        if self.period_list_error is not None:
            raise self.period_list_error
        return list(self.periods)

    async def fetch_chart(self, user_name: str, period: ChartPeriod) -> list[ChartEntry]:
        self.calls["fetch_chart"] += 1
        if self.chart_gate is not None:
            await self.chart_gate.wait()
        else:
            await asyncio.sleep(0)
        if self.chart_error is not None:
            raise self.chart_error
        return list(self.charts.get(period.key, []))

    async def resolve_album_image(self, artist_name: str, album_name: str) -> str | None:
        self.calls["resolve_album_image"] += 1
        self.in_flight_images += 1
        self.max_in_flight_images = max(self.max_in_flight_images, self.in_flight_images)
        try:
            if self.image_gate is not None:
                await self.image_gate.wait()
            else:
                await asyncio.sleep(0)
            if album_name in self.image_errors:
                raise self.image_errors[album_name]
            return self.images.get(album_name, f"https://img.example/{album_name}.jpg")
        finally:
            self.in_flight_images -= 1

    async def fetch_user(self, user_name: str) -> User:
        self.calls["fetch_user"] += 1
        return self.users[user_name]

    async def fetch_album_detail(self, album: Album, user_name: str | None = None) -> Album:
        self.calls["fetch_album_detail"] += 1
        if self.album_detail_error is not None:
            raise self.album_detail_error
        return self.album_details[album.name]

    async def fetch_friends(self, user_name: str, limit: int | None = None) -> list[User]:
        self.calls["fetch_friends"] += 1
        return list(self.friends.get(user_name, []))


class InMemoryPersistence:
    """PersistenceProtocol backed by plain attributes; records every save."""

    def __init__(
        self,
        favorites: list[dict[str, Any]] | None = None,
        preferences: dict[str, Any] | None = None,
    ) -> None:
        self.favorites = list(favorites or [])
        self.preferences = dict(preferences or {})
        self.favorites_saves: list[list[dict[str, Any]]] = []
        self.preferences_saves: list[dict[str, Any]] = []

    def load_favorites(self) -> list[dict[str, Any]]:
        return list(self.favorites)

    def save_favorites(self, users: list[dict[str, Any]]) -> None:
        self.favorites = list(users)
        self.favorites_saves.append(list(users))

    def load_preferences(self) -> dict[str, Any]:
        return dict(self.preferences)

    def save_preferences(self, preferences: dict[str, Any]) -> None:
        self.preferences = dict(preferences)
        self.preferences_saves.append(dict(preferences))

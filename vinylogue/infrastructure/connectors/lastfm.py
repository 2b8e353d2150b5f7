"""Last.fm API integration for weekly album charts.

Thin gateway over the pylast library (https://github.com/pylast/pylast).
Blocking pylast calls run in worker threads, pass through a shared rate
limiter, and carry a bounded timeout. Responses are converted into domain
entities here; nothing pylast-specific crosses this module's boundary.

Error mapping:
- timeouts and pylast.NetworkError -> TransportError
- pylast.WSError status 6 -> ServiceError(NOT_FOUND)
- pylast.WSError status 29 -> ServiceError(RATE_LIMITED)
- other WSError and malformed responses -> ServiceError(OTHER)

Nothing is retried here; retry policy belongs to callers.
"""

import asyncio
from collections.abc import Callable
from typing import Any, ClassVar, TypeVar

from aiolimiter import AsyncLimiter
from attrs import define, evolve, field
import pylast

from vinylogue import __version__
from vinylogue.config import get_config, get_logger, resilient_operation
from vinylogue.domain.entities import (
    Album,
    Artist,
    ChartEntry,
    ChartPeriod,
    User,
    from_timestamp,
    parse_release_date,
)
from vinylogue.domain.errors import ServiceError, ServiceErrorKind, TransportError

R = TypeVar("R")

# Get contextual logger with service binding
logger = get_logger(__name__).bind(service="lastfm")

# Last.fm error codes
# https://www.last.fm/api/errorcodes
STATUS_NOT_FOUND = 6
STATUS_INVALID_API_KEY = 10
STATUS_SERVICE_OFFLINE = 11
STATUS_TEMPORARY_ERROR = 16
STATUS_SUSPENDED_API_KEY = 26
STATUS_RATE_LIMIT_EXCEEDED = 29


def map_ws_error(error: pylast.WSError) -> ServiceError:
    """Translate a Last.fm web service error into the domain taxonomy."""
    try:
        code = int(error.get_id())
    except (TypeError, ValueError):
        code = None

    details = str(error.details) if getattr(error, "details", None) else str(error)

    if code == STATUS_NOT_FOUND:
        kind = ServiceErrorKind.NOT_FOUND
    elif code == STATUS_RATE_LIMIT_EXCEEDED:
        kind = ServiceErrorKind.RATE_LIMITED
    else:
        kind = ServiceErrorKind.OTHER

    if code in (STATUS_SERVICE_OFFLINE, STATUS_TEMPORARY_ERROR):
        details = f"Last.fm is temporarily unavailable: {details}"
    elif code in (STATUS_INVALID_API_KEY, STATUS_SUSPENDED_API_KEY):
        details = f"Last.fm rejected the API key: {details}"

    return ServiceError(kind, details, code=code)


@define(frozen=True, slots=True)
class LastFMAlbumInfo:
    """Album metadata read from album.getInfo.

    None means "not provided by Last.fm".
    """

    lastfm_summary: str | None = field(default=None)
    lastfm_published: str | None = field(default=None)
    lastfm_playcount: int | None = field(default=None)
    lastfm_user_playcount: int | None = field(default=None)
    lastfm_image_url: str | None = field(default=None)
    lastfm_mbid: str | None = field(default=None)

    # Field extraction mapping for pylast Album objects
    EXTRACTORS: ClassVar[dict[str, Callable[[pylast.Album], Any]]] = {
        "lastfm_summary": lambda a: a.get_wiki_summary(),
        "lastfm_published": lambda a: a.get_wiki_published_date(),
        "lastfm_playcount": lambda a: int(a.get_playcount() or 0),
        "lastfm_user_playcount": lambda a: int(a.get_userplaycount() or 0)
        if a.username
        else None,
        "lastfm_image_url": lambda a: _cover_image(a),
        "lastfm_mbid": lambda a: a.get_mbid() or None,
    }

    def apply_to(self, album: Album) -> Album:
        """Return a detail-loaded copy of ``album`` carrying this metadata."""
        detailed = album.with_detail(
            about=self.lastfm_summary or None,
            release_date=parse_release_date(self.lastfm_published),
            total_play_count=self.lastfm_playcount,
            user_play_count=self.lastfm_user_playcount,
        )
        if self.lastfm_image_url:
            detailed = detailed.with_image(self.lastfm_image_url)
        if self.lastfm_mbid and not detailed.mbid:
            detailed = evolve(detailed, mbid=self.lastfm_mbid)
        return detailed


def _cover_image(item: Any) -> str | None:
    """Largest available cover image for a pylast Album, or None."""
    try:
        url = item.get_cover_image(size=pylast.SIZE_EXTRA_LARGE)
    except IndexError:
        return None
    return url or None


@define(slots=True)
class LastFMConnector:
    """Last.fm gateway producing domain entities.

    Implements ChartGatewayProtocol. Stateless apart from the pylast client
    and the shared rate limiter, so one instance serves concurrent callers.
    """

    api_key: str | None = field(default=None)
    api_secret: str | None = field(default=None)
    timeout_seconds: float | None = field(default=None)
    client: pylast.LastFMNetwork | None = field(default=None, repr=False)
    _api_rate_limiter: AsyncLimiter = field(init=False, repr=False)
    connector_name: str = "lastfm"

    # Constants for API communication
    USER_AGENT: ClassVar[str] = f"Vinylogue/{__version__} (Weekly Album Charts)"

    def __attrs_post_init__(self) -> None:
        """Initialize Last.fm client with API credentials."""
        self.api_key = self.api_key or get_config("LASTFM_KEY")
        self.api_secret = self.api_secret or get_config("LASTFM_SECRET")
        self.timeout_seconds = self.timeout_seconds or get_config(
            "LASTFM_API_TIMEOUT", 15.0
        )

        # Shared across all operations on this connector
        self._api_rate_limiter = AsyncLimiter(get_config("LASTFM_API_RATE_LIMIT", 5.0), 1)

        if self.client is not None or not self.api_key:
            return

        # Read-only client; chart data needs no user session
        self.client = pylast.LastFMNetwork(
            api_key=str(self.api_key),
            api_secret=str(self.api_secret or ""),
        )
        pylast.HEADERS["User-Agent"] = self.USER_AGENT

    # -------------------------------------------------------------------------
    # Request plumbing
    # -------------------------------------------------------------------------

    def _require_client(self) -> pylast.LastFMNetwork:
        if self.client is None:
            raise ServiceError(
                ServiceErrorKind.OTHER,
                "Last.fm client not initialized - set LASTFM_KEY",
            )
        return self.client

    async def _call(self, operation: str, func: Callable[..., R], *args: Any) -> R:
        """Run a blocking pylast call under the rate limiter and timeout."""
        self._require_client()

        async with self._api_rate_limiter:
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(func, *args),
                    timeout=self.timeout_seconds,
                )
            except TimeoutError as e:
                raise TransportError(
                    f"Last.fm {operation} timed out after {self.timeout_seconds}s"
                ) from e
            except pylast.WSError as e:
                raise map_ws_error(e) from e
            except pylast.MalformedResponseError as e:
                raise ServiceError(
                    ServiceErrorKind.OTHER,
                    f"Malformed Last.fm response: {e.underlying_error}",
                ) from e
            except pylast.NetworkError as e:
                raise TransportError(f"Last.fm {operation} failed: {e}") from e
            except Exception as e:
                # Parse slips inside read callbacks surface as service errors
                raise ServiceError(
                    ServiceErrorKind.OTHER,
                    f"Unexpected Last.fm {operation} response: {e}",
                ) from e

    # -------------------------------------------------------------------------
    # Chart periods and charts
    # -------------------------------------------------------------------------

    @resilient_operation("lastfm_weekly_chart_list")
    async def fetch_period_list(self, user_name: str) -> list[ChartPeriod]:
        """Available weekly chart periods for ``user_name``, oldest first."""

        def read() -> list[tuple[str, str]]:
            return list(self.client.get_user(user_name).get_weekly_chart_dates())

        raw_dates = await self._call("user.getWeeklyChartList", read)

        periods = []
        for raw_from, raw_to in raw_dates:
            try:
                periods.append(
                    ChartPeriod(from_=from_timestamp(raw_from), to=from_timestamp(raw_to))
                )
            except ValueError:
                logger.debug("Skipping invalid chart period", start=raw_from, end=raw_to)

        logger.debug("Fetched chart list", user_name=user_name, periods=len(periods))
        return periods

    @resilient_operation("lastfm_weekly_album_chart")
    async def fetch_chart(self, user_name: str, period: ChartPeriod) -> list[ChartEntry]:
        """Weekly album chart for one period, ranked in delivered order."""
        start, end = period.key

        def read() -> list[tuple[str, str, str | None, int]]:
            charts = self.client.get_user(user_name).get_weekly_album_charts(
                from_date=str(start), to_date=str(end)
            )
            return [
                (
                    item.item.get_artist().get_name(),
                    item.item.get_name(),
                    item.item.get_url(),
                    int(item.weight or 0),
                )
                for item in charts
            ]

        rows = await self._call("user.getWeeklyAlbumChart", read)

        entries = [
            ChartEntry(
                rank=position,
                play_count=max(play_count, 0),
                album=Album(name=album_name, artist=Artist(name=artist_name), url=url),
                period_key=period.key,
                user_name=user_name,
            )
            for position, (artist_name, album_name, url, play_count) in enumerate(
                rows, start=1
            )
        ]
        logger.debug("Fetched weekly album chart", user_name=user_name, entries=len(entries))
        return entries

    # -------------------------------------------------------------------------
    # Albums
    # -------------------------------------------------------------------------

    @resilient_operation("lastfm_album_image")
    async def resolve_album_image(self, artist_name: str, album_name: str) -> str | None:
        """Largest artwork URL for an album; None when Last.fm has none."""

        def read() -> str | None:
            return _cover_image(self.client.get_album(artist_name, album_name))

        try:
            return await self._call("album.getInfo", read)
        except ServiceError as e:
            if e.kind is ServiceErrorKind.NOT_FOUND:
                return None
            raise

    @resilient_operation("lastfm_album_detail")
    async def fetch_album_detail(
        self, album: Album, user_name: str | None = None
    ) -> Album:
        """Detail-loaded copy of ``album`` with description and play counts.

        pylast issues one album.getInfo request per getter, so each field
        takes its own rate limiter slot.
        """
        lastfm_album = self._require_client().get_album(album.artist.name, album.name)
        lastfm_album.username = user_name

        values = {}
        for name, extractor in LastFMAlbumInfo.EXTRACTORS.items():
            values[name] = await self._call("album.getInfo", extractor, lastfm_album)
        return LastFMAlbumInfo(**values).apply_to(album)

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @resilient_operation("lastfm_user_info")
    async def fetch_user(self, user_name: str) -> User:
        """Profile for ``user_name`` using Last.fm's canonical spelling."""

        def read() -> User:
            lastfm_user = self.client.get_user(user_name)
            canonical = lastfm_user.get_name(properly_capitalized=True)
            return User(
                user_name=canonical or user_name,
                image_url=lastfm_user.get_image(size=pylast.SIZE_EXTRA_LARGE) or None,
                url=lastfm_user.get_url(),
                total_play_count=int(lastfm_user.get_playcount() or 0),
            )

        return await self._call("user.getInfo", read)

    @resilient_operation("lastfm_user_friends")
    async def fetch_friends(self, user_name: str, limit: int | None = None) -> list[User]:
        """Users followed by ``user_name`` in the order Last.fm returns them."""
        limit = limit or get_config("LASTFM_FRIENDS_LIMIT", 500)

        def read() -> list[User]:
            friends = self.client.get_user(user_name).get_friends(limit=limit)
            return [
                User(user_name=friend.get_name(), url=friend.get_url())
                for friend in friends
            ]

        friends = await self._call("user.getFriends", read)
        logger.debug("Fetched friends", user_name=user_name, friends=len(friends))
        return friends

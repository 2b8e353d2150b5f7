"""Domain interfaces for the remote chart service and local persistence.

These define the contracts the application layer depends on, without
depending on infrastructure implementations.
"""

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from vinylogue.domain.entities import Album, ChartEntry, ChartPeriod, User


class ChartGatewayProtocol(Protocol):
    """Remote chart service operations.

    Implementations hold no cache, are safe to share across concurrent
    callers, and raise ``TransportError`` or ``ServiceError`` on failure.
    """

    def fetch_period_list(self, user_name: str) -> Awaitable[list["ChartPeriod"]]:
        """Available weekly chart periods for a user, in chronological order."""
        ...

    def fetch_chart(
        self, user_name: str, period: "ChartPeriod"
    ) -> Awaitable[list["ChartEntry"]]:
        """Ranked album chart for one period, in delivered rank order."""
        ...

    def resolve_album_image(
        self, artist_name: str, album_name: str
    ) -> Awaitable[str | None]:
        """Artwork URL for an album, or None when upstream has none."""
        ...

    def fetch_user(self, user_name: str) -> Awaitable["User"]:
        """Profile for a user name; ServiceError(NOT_FOUND) if it does not resolve."""
        ...

    def fetch_album_detail(
        self, album: "Album", user_name: str | None = None
    ) -> Awaitable["Album"]:
        """Detail-loaded copy of ``album``."""
        ...

    def fetch_friends(
        self, user_name: str, limit: int | None = None
    ) -> Awaitable[list["User"]]:
        """Users the given user follows."""
        ...


class PersistenceProtocol(Protocol):
    """Key-value storage for favorites and preferences.

    Values are plain serializable structures; the storage medium is up to
    the implementation.
    """

    def load_favorites(self) -> list[dict[str, Any]]: ...

    def save_favorites(self, users: list[dict[str, Any]]) -> None: ...

    def load_preferences(self) -> dict[str, Any]: ...

    def save_preferences(self, preferences: dict[str, Any]) -> None: ...

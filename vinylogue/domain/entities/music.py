"""User, artist and album entities.

Immutable value snapshots created fresh from each remote response.
"""

from datetime import datetime
from typing import Any

import attrs
from attrs import define, field, validators


def _non_empty(instance, attribute, value) -> None:
    if not value.strip():
        raise ValueError(f"{attribute.name} must not be empty")


@define(frozen=True, slots=True)
class User:
    """A Last.fm user.

    Identity is ``user_name`` exactly as the remote service assigns it
    (case-sensitive). Every other field is a refreshable projection;
    ``total_play_count`` is derived and never persisted.
    """

    user_name: str = field(validator=[validators.instance_of(str), _non_empty])
    real_name: str | None = field(default=None)
    image_url: str | None = field(default=None)
    url: str | None = field(default=None)
    total_play_count: int | None = field(default=None, eq=False)

    def to_dict(self) -> dict[str, Any]:
        """Serialize persisted fields for storage."""
        return {
            "user_name": self.user_name,
            "real_name": self.real_name,
            "image_url": self.image_url,
            "url": self.url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        """Rebuild a user from its stored form."""
        return cls(
            user_name=data["user_name"],
            real_name=data.get("real_name"),
            image_url=data.get("image_url"),
            url=data.get("url"),
        )


@define(frozen=True, slots=True)
class Artist:
    """Artist reference; ``detail_loaded`` separates stubs from complete records."""

    name: str = field(validator=validators.instance_of(str))
    mbid: str | None = field(default=None)
    url: str | None = field(default=None)
    detail_loaded: bool = field(default=False)


@define(frozen=True, slots=True)
class Album:
    """Album snapshot owned by a single fetch result."""

    name: str = field(validator=validators.instance_of(str))
    artist: Artist = field(validator=validators.instance_of(Artist))
    url: str | None = field(default=None)
    image_url: str | None = field(default=None)
    image_thumb_url: str | None = field(default=None)
    mbid: str | None = field(default=None)
    release_date: datetime | None = field(default=None)
    total_play_count: int | None = field(default=None)
    user_play_count: int | None = field(default=None)
    about: str | None = field(default=None)
    detail_loaded: bool = field(default=False)

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)

    def with_image(self, url: str | None) -> "Album":
        """Return a copy pointing both image fields at ``url``."""
        return attrs.evolve(self, image_url=url, image_thumb_url=url)

    def with_detail(
        self,
        *,
        about: str | None,
        release_date: datetime | None,
        total_play_count: int | None = None,
        user_play_count: int | None = None,
    ) -> "Album":
        """Return a detail-loaded copy with extended information filled in."""
        return attrs.evolve(
            self,
            about=about,
            release_date=release_date,
            total_play_count=total_play_count,
            user_play_count=user_play_count,
            detail_loaded=True,
        )

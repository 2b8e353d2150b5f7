"""Local user preferences."""

from typing import Any

import attrs
from attrs import define, field, validators


@define(frozen=True, slots=True)
class Preferences:
    """Selected local user and the minimum play count filter."""

    current_user_name: str | None = field(default=None)
    min_play_count: int = field(
        default=1,
        validator=[validators.instance_of(int), validators.ge(0)],
    )

    def with_user(self, user_name: str | None) -> "Preferences":
        return attrs.evolve(self, current_user_name=user_name)

    def with_min_play_count(self, min_play_count: int) -> "Preferences":
        return attrs.evolve(self, min_play_count=min_play_count)

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_user_name": self.current_user_name,
            "min_play_count": self.min_play_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_min_play_count: int = 1) -> "Preferences":
        return cls(
            current_user_name=data.get("current_user_name"),
            min_play_count=int(data.get("min_play_count", default_min_play_count)),
        )

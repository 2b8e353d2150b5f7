"""Weekly chart entities."""

from datetime import datetime
from enum import Enum
from typing import TypeAlias

from attrs import define, field, validators

from .music import Album
from .shared import ensure_utc, to_timestamp

PeriodKey: TypeAlias = tuple[int, int]


@define(frozen=True, slots=True)
class ChartPeriod:
    """A reporting week as defined by the remote service.

    Bounds are UTC instants and ``from_`` is always strictly before ``to``.
    """

    from_: datetime = field(converter=ensure_utc)
    to: datetime = field(converter=ensure_utc)

    def __attrs_post_init__(self) -> None:
        if self.from_ >= self.to:
            raise ValueError(
                f"Chart period start {self.from_.isoformat()} must precede end {self.to.isoformat()}"
            )

    @property
    def key(self) -> PeriodKey:
        return (to_timestamp(self.from_), to_timestamp(self.to))

    def contains(self, instant: datetime) -> bool:
        """True when ``instant`` falls in the half-open window [from_, to)."""
        return self.from_ <= instant < self.to


@define(frozen=True, slots=True)
class ChartEntry:
    """One ranked album within a user's chart for a period.

    ``period_key`` and ``user_name`` are plain references; many entries share
    one period and one user.
    """

    rank: int = field(validator=[validators.instance_of(int), validators.ge(1)])
    play_count: int = field(validator=[validators.instance_of(int), validators.ge(0)])
    album: Album = field(validator=validators.instance_of(Album))
    period_key: PeriodKey
    user_name: str

    def with_album(self, album: Album) -> "ChartEntry":
        return ChartEntry(
            rank=self.rank,
            play_count=self.play_count,
            album=album,
            period_key=self.period_key,
            user_name=self.user_name,
        )


class FetchStage(Enum):
    """Pipeline stages a failure can be attributed to."""

    PERIOD_LIST = "period_list"
    CHART = "chart"
    IMAGE_LOOKUP = "image_lookup"
    ALBUM_DETAIL = "album_detail"

    @property
    def is_fatal(self) -> bool:
        return self in (FetchStage.PERIOD_LIST, FetchStage.CHART)


@define(frozen=True, slots=True)
class PartialFailure:
    """A non-fatal per-entry enrichment failure."""

    rank: int
    stage: FetchStage
    error: Exception = field(eq=False)

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__

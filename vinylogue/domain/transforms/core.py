"""
Pure functional transformations for chart entry sequences.

Immutable, side-effect free functions over tuples of ChartEntry. They are
curried so they can be partially applied and composed into pipelines.
"""

from collections.abc import Callable, Sequence

from toolz import compose_left, curry

from vinylogue.domain.entities import ChartEntry

Entries = tuple[ChartEntry, ...]
Transform = Callable[[Sequence[ChartEntry]], Entries]


# === Core Pipeline Functions ===


def create_pipeline(*operations: Transform) -> Transform:
    """Compose multiple transformations into a single left-to-right operation."""
    return compose_left(*operations)


# === Entry Filtering ===


@curry
def filter_by_predicate(
    predicate: Callable[[ChartEntry], bool],
    entries: Sequence[ChartEntry] | None = None,
) -> Transform | Entries:
    """
    Keep entries for which ``predicate`` is true, preserving order.

    Args:
        predicate: Function returning True for entries to keep
        entries: Optional entries to transform immediately

    Returns:
        Transformation function or transformed entries if provided
    """

    def transform(items: Sequence[ChartEntry]) -> Entries:
        return tuple(entry for entry in items if predicate(entry))

    if entries is not None:
        return transform(entries)
    return transform


@curry
def filter_by_min_play_count(
    min_play_count: int,
    entries: Sequence[ChartEntry] | None = None,
) -> Transform | Entries:
    """Drop entries played fewer than ``min_play_count`` times."""

    def enough_plays(entry: ChartEntry) -> bool:
        return entry.play_count >= min_play_count

    return filter_by_predicate(enough_plays, entries)


def sort_by_rank(entries: Sequence[ChartEntry]) -> Entries:
    """Order entries by ascending rank; stable for equal ranks."""
    return tuple(sorted(entries, key=lambda entry: entry.rank))


def apply_chart_filters(entries: Sequence[ChartEntry], min_play_count: int) -> Entries:
    """Filter by play count and return entries in rank order."""
    pipeline = create_pipeline(filter_by_min_play_count(min_play_count), sort_by_rank)
    return pipeline(entries)

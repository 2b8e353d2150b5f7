"""Ordered, user-arranged list of followed Last.fm users.

Positions are controlled by the user, identity is ``user_name``, and a name
appears at most once. Every mutation persists the full list and notifies
observers with the new snapshot.
"""

from collections.abc import Callable

from attrs import define, field

from vinylogue.config import get_logger
from vinylogue.domain.entities import User
from vinylogue.domain.errors import DuplicateUserError, PersistenceError
from vinylogue.domain.repositories import PersistenceProtocol

logger = get_logger(__name__).bind(service="favorites")

FavoritesObserver = Callable[[tuple[User, ...]], None]


@define(slots=True)
class FavoritesStore:
    """Position-addressable favorites backed by a persistence collaborator.

    Args:
        persistence: Storage that receives the full list on every mutation
        on_user_removed: Optional hook called with the user name of any user
            dropped by ``remove_at`` or ``replace_at``
    """

    persistence: PersistenceProtocol
    on_user_removed: Callable[[str], object] | None = field(default=None)
    _users: list[User] = field(factory=list, init=False)
    _observers: list[FavoritesObserver] = field(factory=list, init=False)

    def __attrs_post_init__(self) -> None:
        self._users = self._load()

    def _load(self) -> list[User]:
        users: list[User] = []
        seen: set[str] = set()
        for position, raw in enumerate(self.persistence.load_favorites()):
            try:
                user = User.from_dict(raw)
            except (KeyError, TypeError, ValueError) as e:
                raise PersistenceError(
                    f"Invalid stored favorite at position {position}: {raw!r}"
                ) from e
            if user.user_name in seen:
                logger.warning("Dropping duplicate stored favorite", user_name=user.user_name)
                continue
            seen.add(user.user_name)
            users.append(user)
        logger.debug("Loaded favorites", count=len(users))
        return users

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def count(self) -> int:
        return len(self._users)

    def at(self, index: int) -> User:
        self._check_index(index)
        return self._users[index]

    def users(self) -> tuple[User, ...]:
        return tuple(self._users)

    def index_of(self, user_name: str) -> int | None:
        for i, user in enumerate(self._users):
            if user.user_name == user_name:
                return i
        return None

    def contains(self, user_name: str) -> bool:
        return self.index_of(user_name) is not None

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add(self, user: User) -> None:
        """Append ``user``; raises DuplicateUserError if the name is present."""
        if self.contains(user.user_name):
            raise DuplicateUserError(user.user_name)
        self._commit([*self._users, user], "add", user_name=user.user_name)

    def remove_at(self, index: int) -> User:
        self._check_index(index)
        removed = self._users[index]
        updated = self._users[:index] + self._users[index + 1 :]
        self._commit(updated, "remove", user_name=removed.user_name)
        self._notify_removed(removed.user_name)
        return removed

    def replace_at(self, index: int, user: User) -> User:
        """Swap the user at ``index``; the new name must not appear elsewhere."""
        self._check_index(index)
        existing = self.index_of(user.user_name)
        if existing is not None and existing != index:
            raise DuplicateUserError(user.user_name)

        replaced = self._users[index]
        updated = list(self._users)
        updated[index] = user
        self._commit(updated, "replace", user_name=user.user_name)
        if replaced.user_name != user.user_name:
            self._notify_removed(replaced.user_name)
        return replaced

    def move_at(self, from_index: int, to_index: int) -> None:
        """Relocate one user; everything between shifts by one position."""
        self._check_index(from_index)
        self._check_index(to_index)
        if from_index == to_index:
            return

        updated = list(self._users)
        user = updated.pop(from_index)
        updated.insert(to_index, user)
        self._commit(updated, "move", user_name=user.user_name, to_index=to_index)

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def subscribe(self, observer: FavoritesObserver) -> Callable[[], None]:
        """Register ``observer``; returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._users):
            raise IndexError(
                f"Favorites index {index} out of range for {len(self._users)} users"
            )

    def _commit(self, users: list[User], operation: str, **context) -> None:
        self.persistence.save_favorites([user.to_dict() for user in users])
        self._users = users
        logger.info(f"Favorites {operation}", count=len(users), **context)

        snapshot = tuple(users)
        for observer in list(self._observers):
            observer(snapshot)

    def _notify_removed(self, user_name: str) -> None:
        if self.on_user_removed is not None:
            self.on_user_removed(user_name)

"""Import the users a Last.fm user follows as favorites."""

from attrs import define, field, validators

from vinylogue.application.services.favorites_store import FavoritesStore
from vinylogue.config import get_config, get_logger
from vinylogue.domain.entities import User
from vinylogue.domain.repositories import ChartGatewayProtocol

logger = get_logger(__name__).bind(service="friends")


@define(frozen=True, slots=True)
class ImportFriendsCommand:
    """Fetch ``user_name``'s friends; ``apply`` appends the new ones to favorites."""

    user_name: str = field(validator=validators.min_len(1))
    apply: bool = False
    limit: int | None = None


@define(frozen=True, slots=True)
class FriendsImportResult:
    """All fetched friends, and the subset not yet in favorites.

    Both lists are sorted case-insensitively by user name.
    """

    imported: tuple[User, ...]
    new_friends: tuple[User, ...]
    added: int = 0


def sort_users(users: list[User] | tuple[User, ...]) -> tuple[User, ...]:
    return tuple(sorted(users, key=lambda user: user.user_name.lower()))


def new_friends(
    friends: tuple[User, ...], existing: tuple[User, ...], owner: str
) -> tuple[User, ...]:
    """Friends not already present, compared case-insensitively, owner excluded."""
    known = {user.user_name.lower() for user in existing}
    known.add(owner.lower())

    fresh: list[User] = []
    for friend in friends:
        name = friend.user_name.lower()
        if name in known:
            continue
        known.add(name)
        fresh.append(friend)
    return tuple(fresh)


@define(slots=True)
class ImportFriendsUseCase:
    gateway: ChartGatewayProtocol
    favorites: FavoritesStore

    async def execute(self, command: ImportFriendsCommand) -> FriendsImportResult:
        limit = command.limit or get_config("LASTFM_FRIENDS_LIMIT", 500)

        with logger.contextualize(user_name=command.user_name):
            friends = sort_users(
                await self.gateway.fetch_friends(command.user_name, limit=limit)
            )
            fresh = new_friends(friends, self.favorites.users(), command.user_name)

            added = 0
            if command.apply:
                for friend in fresh:
                    self.favorites.add(friend)
                    added += 1

            logger.info(
                "Friends imported",
                fetched=len(friends),
                new=len(fresh),
                added=added,
            )
            return FriendsImportResult(imported=friends, new_friends=fresh, added=added)

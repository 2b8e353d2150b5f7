"""Selected local user and play-count filter, persisted on every change."""

from attrs import define, field

from vinylogue.config import get_config, get_logger
from vinylogue.domain.entities import Preferences
from vinylogue.domain.repositories import PersistenceProtocol

logger = get_logger(__name__).bind(service="preferences")


@define(slots=True)
class PreferencesStore:
    persistence: PersistenceProtocol
    _preferences: Preferences = field(init=False)

    def __attrs_post_init__(self) -> None:
        default_min = get_config("DEFAULT_MIN_PLAY_COUNT", 1)
        self._preferences = Preferences.from_dict(
            self.persistence.load_preferences(),
            default_min_play_count=default_min,
        )

    @property
    def current(self) -> Preferences:
        return self._preferences

    def set_current_user(self, user_name: str | None) -> Preferences:
        return self._save(self._preferences.with_user(user_name))

    def set_min_play_count(self, min_play_count: int) -> Preferences:
        if min_play_count < 0:
            raise ValueError("Minimum play count must be zero or greater")
        return self._save(self._preferences.with_min_play_count(min_play_count))

    def _save(self, preferences: Preferences) -> Preferences:
        self.persistence.save_preferences(preferences.to_dict())
        self._preferences = preferences
        logger.debug("Saved preferences", **preferences.to_dict())
        return preferences

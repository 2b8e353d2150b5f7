"""JSON file storage for favorites and preferences.

Each value lives in its own file under the data directory. Writes go to a
temporary file first and are moved into place, so a crash never leaves a
half-written file behind.
"""

import json
import os
from pathlib import Path
import tempfile
from typing import Any

from attrs import define, field

from vinylogue.config import get_config, get_logger
from vinylogue.domain.errors import PersistenceError

logger = get_logger(__name__).bind(service="storage")

FAVORITES_FILE = "favorites.json"
PREFERENCES_FILE = "preferences.json"


@define(slots=True)
class JsonFileStore:
    """Implements PersistenceProtocol on top of two JSON files."""

    data_dir: Path = field(factory=lambda: Path(get_config("DATA_DIR", "data")), converter=Path)

    @property
    def favorites_path(self) -> Path:
        return self.data_dir / FAVORITES_FILE

    @property
    def preferences_path(self) -> Path:
        return self.data_dir / PREFERENCES_FILE

    # -------------------------------------------------------------------------
    # PersistenceProtocol
    # -------------------------------------------------------------------------

    def load_favorites(self) -> list[dict[str, Any]]:
        data = self._read(self.favorites_path, default=[])
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise PersistenceError(f"{self.favorites_path} does not contain a list of users")
        return data

    def save_favorites(self, users: list[dict[str, Any]]) -> None:
        self._write(self.favorites_path, users)

    def load_preferences(self) -> dict[str, Any]:
        data = self._read(self.preferences_path, default={})
        if not isinstance(data, dict):
            raise PersistenceError(f"{self.preferences_path} does not contain an object")
        return data

    def save_preferences(self, preferences: dict[str, Any]) -> None:
        self._write(self.preferences_path, preferences)

    # -------------------------------------------------------------------------
    # File helpers
    # -------------------------------------------------------------------------

    def _read(self, path: Path, default: Any) -> Any:
        if not path.exists():
            return default
        try:
            with path.open(encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Corrupt data in {path}: {e}") from e
        except OSError as e:
            raise PersistenceError(f"Cannot read {path}: {e}") from e

    def _write(self, path: Path, payload: Any) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write {path}: {e}") from e

        logger.debug("Wrote {}", path.name, path=str(path))

"""JSON file persistence for the event state."""

import json
import logging
import os
from datetime import datetime
from pathlib import Path

from .config import get_settings
from .models import WarikanState

logger = logging.getLogger(__name__)

STORAGE_VERSION = "1.0.0"


class StorageError(Exception):
    """Error writing or removing the state file."""

    pass


class StateStorage:
    """
    Loads and saves a WarikanState snapshot.

    The file holds ``{"version", "timestamp", "data"}``. A snapshot that is
    missing, unreadable or breaks the data model invariants loads as an empty
    state, so invalid data never reaches the calculator.
    """

    def __init__(self, path: str | Path | None = None):
        """
        Initialize StateStorage.

        Args:
            path: State file (default: settings.state_file)
        """
        if path is None:
            path = get_settings().state_file
        self.path = Path(path)

    def load(self) -> WarikanState:
        """Load state from disk, falling back to an empty state."""
        if not self.path.exists():
            return WarikanState()

        try:
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s, starting empty: %s", self.path, e)
            self._discard()
            return WarikanState()

        try:
            return self._restore(raw)
        except ValueError as e:
            logger.warning("Corrupt state in %s, starting empty: %s", self.path, e)
            self._discard()
            return WarikanState()

    @staticmethod
    def _restore(raw: object) -> WarikanState:
        if not isinstance(raw, dict):
            raise ValueError("snapshot is not an object")
        data = raw.get("data")
        if not isinstance(data, dict):
            raise ValueError("snapshot has no app data")
        # pydantic.ValidationError is a ValueError
        return WarikanState.model_validate(data)

    def save(self, state: WarikanState) -> None:
        """Write state to disk atomically."""
        payload = {
            "version": STORAGE_VERSION,
            "timestamp": datetime.now().isoformat(),
            "data": state.model_dump(mode="json"),
        }
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False, default=str)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Failed to save state to {self.path}: {e}") from e
        logger.debug("Saved state to %s", self.path)

    def clear(self) -> None:
        """Remove the state file."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {self.path}: {e}") from e

    def _discard(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove corrupt state file %s: %s", self.path, e)

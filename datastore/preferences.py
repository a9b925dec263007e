from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import FrozenSet, Iterable, Optional

from pydantic import ValidationError

from app.schemas import PreferencesRecord
from models.filters import FilterSelection, SpeedTier
from settings import get_settings

logger = logging.getLogger(__name__)


class PreferencesStore:
    """JSON-file key-value store for the filter selection and favorites."""

    def __init__(self, persistence_path: Optional[Path] = None) -> None:
        self.persistence_path = persistence_path
        self._record = PreferencesRecord()
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def load_filter(self) -> FilterSelection:
        with self._lock:
            record = self._record
            return FilterSelection(
                speed_tier=SpeedTier.parse(record.selected_speed),
                plug_types=frozenset(record.selected_plugs),
                require_parking_sensor=record.selected_parking_sensor,
            )

    def save_filter(self, selection: FilterSelection) -> None:
        self._update(
            selected_speed=selection.speed_tier.value,
            selected_plugs=sorted(selection.plug_types),
            selected_parking_sensor=selection.require_parking_sensor,
        )

    def save_speed(self, speed: SpeedTier) -> None:
        self._update(selected_speed=SpeedTier(speed).value)

    def save_plugs(self, plugs: Iterable[str]) -> None:
        self._update(selected_plugs=sorted(set(plugs)))

    def save_parking_sensor(self, required: bool) -> None:
        self._update(selected_parking_sensor=bool(required))

    def load_favorites(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._record.favorites)

    def save_favorites(self, favorites: Iterable[str]) -> None:
        self._update(favorites=sorted(set(favorites)))

    def is_favorite(self, station_id: str) -> bool:
        return station_id in self.load_favorites()

    def toggle_favorite(self, station_id: str) -> FrozenSet[str]:
        """Add or remove ``station_id`` and persist the result immediately."""
        with self._lock:
            updated = set(self._record.favorites)
            if station_id in updated:
                updated.remove(station_id)
            else:
                updated.add(station_id)
            self._write(favorites=sorted(updated))
            return frozenset(updated)

    def remove_favorite(self, station_id: str) -> FrozenSet[str]:
        with self._lock:
            updated = set(self._record.favorites)
            updated.discard(station_id)
            self._write(favorites=sorted(updated))
            return frozenset(updated)

    def _update(self, **changes: object) -> None:
        with self._lock:
            self._write(**changes)

    def _write(self, **changes: object) -> None:
        self._record = self._record.model_copy(update=changes)
        self._persist()

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = self._record.model_dump(mode="json")
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            self._record = PreferencesRecord.model_validate(json.loads(raw))
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.warning(
                "Ignoring unreadable preferences file",
                extra={"reason": str(exc)},
            )
            self._record = PreferencesRecord()


@lru_cache
def build_default_preferences(path: Optional[str] = None) -> PreferencesStore:
    settings = get_settings()
    store_path = settings.preferences_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return PreferencesStore(persistence_path=persistence)

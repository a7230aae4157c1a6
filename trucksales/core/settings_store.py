"""Display settings shared by every screen (business names printed on receipts).

The store is process wide: it loads from a JSON file on first use, writes the
file back on every change and notifies subscribers with the new values.
"""

import json
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from trucksales.core.config import settings
from trucksales.core.errors import StorageError, ValidationError
from trucksales.core.observability import log_event

Listener = Callable[["DisplaySettings"], None]


class DisplaySettings(BaseModel):
    app_name: str = "BIFA"
    distribution_name: str = "SARL distribution alahbab"

    @field_validator("app_name", "distribution_name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("name cannot be empty")
        return cleaned

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class SettingsStore:
    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.settings_file)
        self._listeners: list[Listener] = []
        self._values = self._load()

    def _load(self) -> DisplaySettings:
        if not self.path.exists():
            return DisplaySettings()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Cannot read settings file {self.path}: {exc}") from exc
        try:
            return DisplaySettings.model_validate(raw)
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc) from exc

    def _persist(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self._values.model_dump_json(indent=2), encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot write settings file {self.path}: {exc}") from exc

    @property
    def values(self) -> DisplaySettings:
        return self._values.model_copy()

    def get(self, key: str) -> Any:
        if key not in DisplaySettings.model_fields:
            raise ValidationError(f"Unknown setting: {key}")
        return getattr(self._values, key)

    def set(self, key: str, value: Any) -> DisplaySettings:
        return self.update({key: value})

    def update(self, changes: dict[str, Any]) -> DisplaySettings:
        unknown = set(changes) - set(DisplaySettings.model_fields)
        if unknown:
            raise ValidationError(f"Unknown setting: {', '.join(sorted(unknown))}")
        try:
            updated = DisplaySettings.model_validate({**self._values.model_dump(), **changes})
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc) from exc

        self._values = updated
        self._persist()
        log_event("settings.update", keys=sorted(changes))
        self._notify()
        return self.values

    def reset(self) -> DisplaySettings:
        self._values = DisplaySettings()
        self._persist()
        log_event("settings.reset")
        self._notify()
        return self.values

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.values
        for listener in list(self._listeners):
            listener(snapshot)


_store: SettingsStore | None = None


def get_settings_store() -> SettingsStore:
    global _store
    if _store is None:
        _store = SettingsStore()
    return _store

"""JSON persistence for the tunable extraction constants."""

from __future__ import annotations

import json
import logging
import os
from decimal import Decimal
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Iterable

logger = logging.getLogger(__name__)

SETTINGS_PATH_ENV = "FISCAL_EXTRACT_SETTINGS_PATH"
DEFAULT_SETTINGS_PATH = Path("data/settings.json")


def _encode(value: Any) -> Any:
    # Decimals are written as strings
    if isinstance(value, Decimal):
        return str(value)
    return value


class SettingsStore:
    """Reads and writes the engine settings file.

    Only keys named in *known_fields* are loaded or written.
    """

    def __init__(self, known_fields: Iterable[str], *, default_path: str | Path | None = None) -> None:
        self._known_fields = frozenset(known_fields)
        self._default_path = Path(default_path) if default_path else DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        override = os.getenv(SETTINGS_PATH_ENV)
        if override and override.strip():
            return Path(override).expanduser()
        return self._default_path

    def load(self) -> dict[str, Any]:
        """Persisted values for known fields; an absent file means no overrides."""

        target = self.path
        if not target.exists():
            return {}
        try:
            data = json.loads(target.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"Settings file at {target} is not valid JSON: {exc.msg}") from exc
        if not isinstance(data, dict):
            raise RuntimeError(f"Settings file at {target} must contain a JSON object.")

        unknown = sorted(set(data) - self._known_fields)
        if unknown:
            logger.warning("Ignoring unknown settings in %s: %s", target, ", ".join(unknown))
        return {key: value for key, value in data.items() if key in self._known_fields}

    def validate_keys(self, values: dict[str, Any]) -> None:
        unknown = sorted(set(values) - self._known_fields)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(unknown)}")

    def save(self, values: dict[str, Any]) -> None:
        """Atomically replace the settings file with *values*."""

        self.validate_keys(values)
        target = self.path
        target.parent.mkdir(parents=True, exist_ok=True)
        payload = {key: _encode(value) for key, value in values.items()}
        with NamedTemporaryFile("w", encoding="utf-8", dir=str(target.parent), delete=False) as handle:
            json.dump(payload, handle, indent=2, sort_keys=True)
            handle.write("\n")
            temp_name = handle.name
        os.replace(temp_name, target)


__all__ = ["DEFAULT_SETTINGS_PATH", "SETTINGS_PATH_ENV", "SettingsStore"]

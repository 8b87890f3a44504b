"""Engine configuration sourced from persisted storage and environment."""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import MISSING, dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .settings_store import SettingsStore

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _get_int_env(name: str, default: Optional[int] = None) -> Optional[int]:
    """Read an integer environment variable with optional default."""

    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name!r} must be an integer.") from exc
    if value < 0:
        raise ValueError(f"Environment variable {name!r} must be non-negative.")
    return value


def _get_decimal_env(name: str, default: Any = None) -> Any:
    """Read a non-negative decimal environment variable."""

    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = Decimal(raw.strip())
    except InvalidOperation as exc:
        raise ValueError(f"Environment variable {name!r} must be a decimal number.") from exc
    if not value.is_finite() or value < 0:
        raise ValueError(f"Environment variable {name!r} must be a non-negative number.")
    return value


def _coerce_rate(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be an integer, not a boolean.")
    try:
        parsed = int(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"{field_name} must be an integer percentage.") from exc
    if not 0 <= parsed <= 100:
        raise ValueError(f"{field_name} must be between 0 and 100.")
    return parsed


def _coerce_decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be a number, not a boolean.")
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"{field_name} must be a decimal number.") from exc
    if not parsed.is_finite() or parsed < 0:
        raise ValueError(f"{field_name} must be a non-negative number.")
    return parsed


def _coerce_log_level(value: Any) -> str:
    level = str(value or "WARNING").strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}.")
    return level


@dataclass(slots=True)
class Settings:
    """Tunable constants of the extraction engine."""

    # Locale-standard rates applied when a document omits them
    default_vat_rate: int = 21
    default_irpf_rate: int = 15

    # Total reconciliation: warn above the tolerance, overwrite above the threshold
    total_tolerance: Decimal = Decimal("0.10")
    total_override_threshold: Decimal = Decimal("1.0")

    # Characters scanned before a tax ID when looking for the party name
    party_window_chars: int = 150

    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        self.default_vat_rate = _coerce_rate(self.default_vat_rate, "default_vat_rate")
        self.default_irpf_rate = _coerce_rate(self.default_irpf_rate, "default_irpf_rate")
        self.total_tolerance = _coerce_decimal(self.total_tolerance, "total_tolerance")
        self.total_override_threshold = _coerce_decimal(
            self.total_override_threshold, "total_override_threshold"
        )
        if self.total_override_threshold < self.total_tolerance:
            raise ValueError("total_override_threshold must not be lower than total_tolerance.")
        window = _coerce_decimal(self.party_window_chars, "party_window_chars")
        self.party_window_chars = int(window)
        self.log_level = _coerce_log_level(self.log_level)

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


_SETTINGS_FIELD_NAMES = {field.name for field in fields(Settings)}
_settings_store = SettingsStore(_SETTINGS_FIELD_NAMES)
_ENV_OVERRIDE_FIELDS: set[str] = set()

_ENV_VARIABLES = {
    "default_vat_rate": ("DEFAULT_VAT_RATE", _get_int_env),
    "default_irpf_rate": ("DEFAULT_IRPF_RATE", _get_int_env),
    "total_tolerance": ("TOTAL_TOLERANCE", _get_decimal_env),
    "total_override_threshold": ("TOTAL_OVERRIDE_THRESHOLD", _get_decimal_env),
    "party_window_chars": ("PARTY_WINDOW_CHARS", _get_int_env),
}


def _settings_defaults() -> dict[str, Any]:
    defaults: dict[str, Any] = {}
    for item in fields(Settings):
        if item.default is not MISSING:
            defaults[item.name] = copy.deepcopy(item.default)
    return defaults


def _collect_env_overrides(base: dict[str, Any]) -> tuple[dict[str, Any], set[str]]:
    overrides: dict[str, Any] = {}
    override_fields: set[str] = set()

    for name, (variable, reader) in _ENV_VARIABLES.items():
        if variable in os.environ:
            overrides[name] = reader(variable, base.get(name))
            override_fields.add(name)

    if "FISCAL_EXTRACT_LOG_LEVEL" in os.environ:
        overrides["log_level"] = os.getenv("FISCAL_EXTRACT_LOG_LEVEL") or base.get("log_level")
        override_fields.add("log_level")

    return overrides, override_fields


def _load_settings_and_overrides() -> tuple[Settings, set[str]]:
    defaults = _settings_defaults()
    stored = _settings_store.load()
    data: dict[str, Any] = {**defaults, **stored}
    env_overrides, override_fields = _collect_env_overrides(data)
    data.update(env_overrides)
    return Settings(**data), override_fields


def _apply_settings(new_settings: Settings, overrides: set[str]) -> None:
    global _ENV_OVERRIDE_FIELDS
    for item in fields(Settings):
        setattr(settings, item.name, getattr(new_settings, item.name))
    _ENV_OVERRIDE_FIELDS = set(overrides)


def reload_settings() -> Settings:
    """Reload settings from disk and environment, mutating the shared instance."""

    new_settings, overrides = _load_settings_and_overrides()
    _apply_settings(new_settings, overrides)
    return settings


def update_persisted_settings(partial: dict[str, Any]) -> Settings:
    """Persist updated settings and refresh the in-memory configuration."""

    if not partial:
        return reload_settings()

    _settings_store.validate_keys(partial)
    stored = {**_settings_store.load(), **copy.deepcopy(partial)}

    # Validate before touching the disk
    Settings(**{**_settings_defaults(), **stored})
    _settings_store.save(stored)
    return reload_settings()


def export_settings() -> dict[str, Any]:
    """Return a JSON-serializable representation of the active settings."""

    data: dict[str, Any] = {}
    for item in fields(Settings):
        value = getattr(settings, item.name)
        data[item.name] = str(value) if isinstance(value, Decimal) else value
    return data


def get_environment_overrides() -> dict[str, bool]:
    """Expose which fields are currently controlled by environment variables."""

    return {name: (name in _ENV_OVERRIDE_FIELDS) for name in _SETTINGS_FIELD_NAMES}


settings, _ENV_OVERRIDE_FIELDS = _load_settings_and_overrides()


__all__ = [
    "Settings",
    "export_settings",
    "get_environment_overrides",
    "reload_settings",
    "settings",
    "update_persisted_settings",
]

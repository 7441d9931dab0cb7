"""
Planner settings loaded from defaults, an optional YAML file and ``TASKPLAN_*``
environment variables (a ``.env`` file is honoured).
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Optional

import yaml
from dotenv import load_dotenv

from taskplan.calendar import CalendarError, resolve_timezone

from ._exceptions import ConfigurationError

load_dotenv()

logger = logging.getLogger(__name__)


def _optional_float(value: str) -> Optional[float]:
    if value.strip().lower() in ("", "none", "null"):
        return None
    return float(value)


_ENV_OVERRIDES: dict[str, tuple[str, Callable[[str], Any]]] = {
    "TASKPLAN_DEFAULT_DAILY_HOURS": ("default_daily_hours", float),
    "TASKPLAN_BUFFER_DAYS": ("buffer_days", int),
    "TASKPLAN_HORIZON_DAYS": ("horizon_days", int),
    "TASKPLAN_MAX_CANDIDATE_DAYS": ("max_candidate_days", int),
    "TASKPLAN_DEFAULT_PRIORITY": ("default_priority", int),
    "TASKPLAN_DEFAULT_TIMEZONE": ("default_timezone", str),
    "TASKPLAN_LOCK_TIMEOUT": ("lock_timeout", _optional_float),
}


@dataclass
class PlannerSettings:
    """
    Tunables of the allocation engine.

    Attributes:
        default_daily_hours: Capacity of every weekday for a user with no
            weekly availability rules at all.
        buffer_days: Safety buffer kept before a deadline when capacity allows.
        horizon_days: Calendar days scanned per item before giving up.
        max_candidate_days: Candidate days collected per item.
        default_priority: Priority of items whose project sets none (1 = highest).
        default_timezone: IANA zone used when the caller supplies none.
        lock_timeout: Seconds to wait for a user's running schedule; ``None``
            waits indefinitely.
    """

    default_daily_hours: float = 8.0
    buffer_days: int = 7
    horizon_days: int = 60
    max_candidate_days: int = 30
    default_priority: int = 3
    default_timezone: str = "UTC"
    lock_timeout: Optional[float] = None

    def __post_init__(self) -> None:
        for env_key, (attr_name, cast_fn) in _ENV_OVERRIDES.items():
            env_val = os.environ.get(env_key)
            if env_val is None:
                continue
            try:
                setattr(self, attr_name, cast_fn(env_val))
            except (ValueError, TypeError) as exc:
                raise ConfigurationError(
                    f"Invalid value for env var {env_key}='{env_val}': {exc}"
                ) from exc
        self.validate()

    def validate(self) -> None:
        if self.default_daily_hours < 0 or self.default_daily_hours > 24:
            raise ConfigurationError(
                f"default_daily_hours must be within [0, 24]; got {self.default_daily_hours}"
            )
        if self.buffer_days < 0:
            raise ConfigurationError(f"buffer_days must be >= 0; got {self.buffer_days}")
        if self.horizon_days < 1:
            raise ConfigurationError(f"horizon_days must be >= 1; got {self.horizon_days}")
        if self.max_candidate_days < 1:
            raise ConfigurationError(
                f"max_candidate_days must be >= 1; got {self.max_candidate_days}"
            )
        if self.default_priority < 1:
            raise ConfigurationError(
                f"default_priority must be >= 1; got {self.default_priority}"
            )
        if self.lock_timeout is not None and self.lock_timeout < 0:
            raise ConfigurationError(f"lock_timeout must be >= 0; got {self.lock_timeout}")
        try:
            resolve_timezone(self.default_timezone)
        except CalendarError as exc:
            raise ConfigurationError(str(exc)) from exc

    @property
    def default_daily_minutes(self) -> int:
        return int(round(self.default_daily_hours * 60))


def load_settings(path: str | Path | None = None) -> PlannerSettings:
    """
    Build settings from a YAML mapping at ``path`` (missing file → defaults).

    Environment variables win over file values.
    """
    values: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if config_path.exists():
            try:
                loaded = yaml.safe_load(config_path.read_text(encoding="utf-8"))
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Cannot parse {config_path}: {exc}") from exc
            if loaded is None:
                loaded = {}
            if not isinstance(loaded, dict):
                raise ConfigurationError(f"{config_path} must contain a mapping")
            section = loaded.get("planner", loaded)
            known = {f.name for f in fields(PlannerSettings)}
            unknown = sorted(set(section) - known)
            if unknown:
                raise ConfigurationError(f"Unknown planner settings: {', '.join(unknown)}")
            values = dict(section)
        else:
            logger.debug("Settings file %s not found; using defaults", config_path)
    try:
        return PlannerSettings(**values)
    except TypeError as exc:
        raise ConfigurationError(str(exc)) from exc


_settings: Optional[PlannerSettings] = None
_settings_lock = threading.Lock()


def get_settings() -> PlannerSettings:
    """Process-wide settings, loaded once from ``TASKPLAN_CONFIG`` if set."""
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                _settings = load_settings(os.environ.get("TASKPLAN_CONFIG"))
    return _settings


def reset_settings() -> None:
    global _settings
    with _settings_lock:
        _settings = None

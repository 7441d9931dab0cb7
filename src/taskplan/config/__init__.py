"""
taskplan.config
~~~~~~~~~~~~~~~

Engine settings: defaults, YAML file, ``TASKPLAN_*`` environment overrides.

Usage::

    from taskplan.config import get_settings, load_settings

    settings = get_settings()                      # cached, honours TASKPLAN_CONFIG
    custom = load_settings("planner.yaml")         # explicit file
"""

from taskplan.config._exceptions import ConfigurationError
from taskplan.config.settings import (
    PlannerSettings,
    get_settings,
    load_settings,
    reset_settings,
)

__all__ = [
    "ConfigurationError",
    "PlannerSettings",
    "get_settings",
    "load_settings",
    "reset_settings",
]

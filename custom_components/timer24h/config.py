"""Configuration validation for Timer 24H.

Every field is validated on its own. A malformed field is dropped and its
default used instead; unknown keys are ignored. Validation is never fatal.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict
import logging
from typing import Any

import voluptuous as vol

from .const import (
    CONF_ALLOW_LOCAL_FALLBACK,
    CONF_AUTO_CREATE_HELPER,
    CONF_ENTITIES,
    CONF_HOME_LOGIC,
    CONF_HOME_SENSORS,
    CONF_SAVE_STATE,
    CONF_STORAGE_KEY,
    CONF_TITLE,
    HOME_LOGIC_OPTIONS,
)
from .exceptions import ConfigInvalid
from .types import Timer24hConfig

_LOGGER = logging.getLogger(__name__)


def _entity_list(value: Any) -> tuple[str, ...]:
    """Keep the non-empty strings of a list, drop everything else."""
    if not isinstance(value, (list, tuple)):
        raise vol.Invalid("expected a list of entity ids")
    return tuple(item for item in value if isinstance(item, str) and item)


_NON_EMPTY_STRING = vol.All(str, vol.Length(min=1))

FIELD_VALIDATORS: dict[str, vol.Schema] = {
    CONF_TITLE: vol.Schema(_NON_EMPTY_STRING),
    CONF_HOME_LOGIC: vol.Schema(vol.In(HOME_LOGIC_OPTIONS)),
    CONF_ENTITIES: vol.Schema(_entity_list),
    CONF_HOME_SENSORS: vol.Schema(_entity_list),
    CONF_SAVE_STATE: vol.Schema(bool),
    CONF_STORAGE_KEY: vol.Schema(_NON_EMPTY_STRING),
    CONF_ALLOW_LOCAL_FALLBACK: vol.Schema(bool),
    CONF_AUTO_CREATE_HELPER: vol.Schema(bool),
}


def validate_field(key: str, value: Any) -> Any:
    """Validate a single field. Raises ConfigInvalid."""
    try:
        return FIELD_VALIDATORS[key](value)
    except vol.Invalid as err:
        raise ConfigInvalid(f"Invalid value for '{key}': {err}") from err


def build_config(raw: Mapping[str, Any] | None) -> Timer24hConfig:
    """Build a validated configuration from a raw mapping."""
    if not isinstance(raw, Mapping):
        _LOGGER.warning("Configuration is not a mapping (%s). Using defaults.", type(raw).__name__)
        return Timer24hConfig()

    values: dict[str, Any] = {}
    for key in FIELD_VALIDATORS:
        if key not in raw:
            continue
        try:
            values[key] = validate_field(key, raw[key])
        except ConfigInvalid as err:
            _LOGGER.warning("%s. Falling back to default.", err)

    return Timer24hConfig(**values)


def config_to_dict(config: Timer24hConfig) -> dict[str, Any]:
    """Plain dict representation (lists instead of tuples)."""
    data = asdict(config)
    data[CONF_ENTITIES] = list(config.entities)
    data[CONF_HOME_SENSORS] = list(config.home_sensors)
    return data

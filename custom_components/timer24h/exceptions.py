"""Errors raised inside the Timer 24H engine.

None of these reach the user-interaction path: the persistence chain, the
reconciler, the dispatcher and the lifecycle manager catch, log and degrade.
"""
from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError


class Timer24hError(HomeAssistantError):
    """Base class for Timer 24H errors."""


class ConfigInvalid(Timer24hError):
    """A configuration field is malformed and has been replaced by its default."""


class StoreUnavailable(Timer24hError):
    """A storage tier cannot be reached."""


class StoreMalformed(Timer24hError):
    """A storage tier returned data that does not parse as a snapshot."""


class ActuatorUnreachable(Timer24hError):
    """A command to a single actuator failed."""


class DeletionFailed(Timer24hError):
    """Both deletion calls for the remote storage resource failed."""

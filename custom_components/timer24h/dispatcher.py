"""Fan-out of the on/off intent to heterogeneous actuators."""
from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
import logging
from typing import Any

from .const import HVAC_MODE_HEAT, HVAC_MODE_OFF
from .exceptions import ActuatorUnreachable
from .host import ActuatorCommand, ActuatorRegistry

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Command:
    """One service invocation for one actuator."""
    namespace: str
    verb: str
    params: dict[str, Any]


CommandMapper = Callable[[str, str, bool], "Command | None"]


def _switch_command(namespace: str, entity_id: str, on: bool) -> Command:
    return Command(namespace, "turn_on" if on else "turn_off", {"entity_id": entity_id})


def _climate_command(namespace: str, entity_id: str, on: bool) -> Command:
    return Command(
        namespace, "set_hvac_mode",
        {"entity_id": entity_id, "hvac_mode": HVAC_MODE_HEAT if on else HVAC_MODE_OFF},
    )


def _trigger_command(namespace: str, entity_id: str, on: bool) -> Command | None:
    # One-shot: there is no meaningful "off" for a script or automation run.
    if not on:
        return None
    verb = "trigger" if namespace == "automation" else "turn_on"
    return Command(namespace, verb, {"entity_id": entity_id})


def _no_command(namespace: str, entity_id: str, on: bool) -> None:
    return None


@dataclass(frozen=True)
class ActuatorClass:
    """Closed set of actuator variants, each with its own command mapping."""
    name: str
    mapper: CommandMapper

    def command(self, entity_id: str, on: bool) -> Command | None:
        namespace = entity_id.split(".", 1)[0]
        return self.mapper(namespace, entity_id, on)


BINARY = ActuatorClass("binary", _switch_command)
LIGHT = ActuatorClass("light", _switch_command)
CLIMATE = ActuatorClass("climate", _climate_command)
TRIGGER = ActuatorClass("trigger", _trigger_command)
UNSUPPORTED = ActuatorClass("unsupported", _no_command)

ACTUATOR_CLASSES: dict[str, ActuatorClass] = {
    "switch": BINARY,
    "input_boolean": BINARY,
    "light": LIGHT,
    "climate": CLIMATE,
    "script": TRIGGER,
    "automation": TRIGGER,
}


def resolve_class(entity_id: str) -> ActuatorClass:
    """Class by namespace prefix. Unknown namespaces map to the no-op variant."""
    return ACTUATOR_CLASSES.get(entity_id.split(".", 1)[0], UNSUPPORTED)


@dataclass
class DispatchResult:
    """Outcome of one apply(). Only used for logging."""
    sent: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class ActuatorDispatcher:
    """Drives the configured actuators. Per-actuator failures never affect siblings."""

    def __init__(self, registry: ActuatorRegistry, commands: ActuatorCommand) -> None:
        self._registry = registry
        self._commands = commands

    async def _async_send(self, entity_id: str, command: Command) -> None:
        try:
            await self._commands.async_invoke(command.namespace, command.verb, dict(command.params))
        except Exception as err:
            raise ActuatorUnreachable(f"{entity_id}: {command.namespace}.{command.verb} failed: {err}") from err

    async def async_apply(self, entities: Sequence[str], desired_on: bool) -> DispatchResult:
        result = DispatchResult()
        if not entities:
            return result

        known = self._registry.snapshot(entities)
        pending: list[tuple[str, Command]] = []
        for entity_id in entities:
            if entity_id not in known:
                _LOGGER.warning("Entity not found: %s", entity_id)
                result.skipped.append(entity_id)
                continue
            command = resolve_class(entity_id).command(entity_id, desired_on)
            if command is None:
                result.skipped.append(entity_id)
                continue
            pending.append((entity_id, command))

        outcomes = await asyncio.gather(
            *(self._async_send(entity_id, command) for entity_id, command in pending),
            return_exceptions=True,
        )

        for (entity_id, _), outcome in zip(pending, outcomes):
            if isinstance(outcome, BaseException):
                _LOGGER.error("Failed to control %s: %s", entity_id, outcome)
                result.failed.append(entity_id)
            else:
                result.sent.append(entity_id)

        _LOGGER.debug(
            "Dispatched %s: %d sent, %d skipped, %d failed",
            "on" if desired_on else "off", len(result.sent), len(result.skipped), len(result.failed),
        )
        return result

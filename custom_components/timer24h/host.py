"""Host capabilities consumed by the engine, and their Home Assistant implementations.

The engine only sees the abstract classes below. Everything Home Assistant
specific about storage, state lookup and service calls lives in the Hass*
implementations at the bottom of this module.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass
import logging
from typing import Any, TypedDict

from homeassistant.components.persistent_notification import DOMAIN as NOTIFICATION_DOMAIN
from homeassistant.core import HomeAssistant
from homeassistant.helpers.storage import Store
from homeassistant.util import slugify

from .const import (
    DOCUMENT_STORE_TEMPLATE,
    DOMAIN,
    LOCAL_KEY_TEMPLATE,
    LOCAL_STORE_KEY,
    STORAGE_VERSION,
)
from .exceptions import StoreMalformed, StoreUnavailable

_LOGGER = logging.getLogger(__name__)


class Message(TypedDict):
    id: str
    text: str


class RemoteDocumentStore(ABC):
    """Keyed document storage that survives across devices."""

    @abstractmethod
    async def async_get(self, key: str) -> str | None:
        """Return the stored text, or None if the key was never written."""

    @abstractmethod
    async def async_set(self, key: str, text: str) -> None:
        """Overwrite the document. Raises on failure."""


class RemoteMessageStore(ABC):
    """Degraded remote channel: user-visible messages keyed by id."""

    @abstractmethod
    async def async_list(self) -> list[Message]:
        """Return all messages."""

    @abstractmethod
    async def async_create(self, message_id: str, title: str, text: str) -> None:
        """Create or overwrite a message. Raises on failure."""


class LocalStore(ABC):
    """Same-device key/value storage."""

    @abstractmethod
    async def async_get(self, key: str) -> str | None:
        """Return the stored text or None."""

    @abstractmethod
    async def async_set(self, key: str, text: str) -> None:
        """Store text under key."""

    @abstractmethod
    async def async_remove(self, key: str) -> None:
        """Drop key. Missing keys are ignored."""


class ActuatorRegistry(ABC):
    """Read-only view of live device states."""

    @abstractmethod
    def snapshot(self, refs: Iterable[str]) -> dict[str, str]:
        """Return {ref: state} for every known ref. Unknown refs are left out."""


class ActuatorCommand(ABC):
    """Command dispatch to devices."""

    @abstractmethod
    async def async_invoke(self, namespace: str, verb: str, params: dict[str, Any]) -> None:
        """Run one command. Raises on failure."""


class ResourceDeletion(ABC):
    """Removal of the remote storage resource."""

    @abstractmethod
    async def async_delete_primary(self, ref: str) -> None:
        """Primary deletion call. Raises on failure."""

    @abstractmethod
    async def async_delete_fallback(self, ref: str) -> None:
        """Secondary deletion call. Raises on failure."""


@dataclass
class HostBinding:
    """Everything the engine needs from its host."""
    documents: RemoteDocumentStore
    messages: RemoteMessageStore
    local: LocalStore
    registry: ActuatorRegistry
    commands: ActuatorCommand
    deletion: ResourceDeletion
    session_alive: Callable[[], bool]


# --- Home Assistant implementations ---

class HassDocumentStore(RemoteDocumentStore):
    """One storage file per key under .storage/."""

    def __init__(self, hass: HomeAssistant) -> None:
        self.hass = hass
        self._stores: dict[str, Store] = {}

    def _store(self, key: str) -> Store:
        if key not in self._stores:
            self._stores[key] = Store(self.hass, STORAGE_VERSION, DOCUMENT_STORE_TEMPLATE.format(slugify(key)))
        return self._stores[key]

    async def async_get(self, key: str) -> str | None:
        data = await self._store(key).async_load()
        if data is None:
            return None
        if not isinstance(data, dict) or not isinstance(data.get("value"), str):
            raise StoreMalformed(f"Document {key} has no text value")
        return data["value"]

    async def async_set(self, key: str, text: str) -> None:
        await self._store(key).async_save({"value": text})

    async def async_remove(self, key: str) -> None:
        await self._store(key).async_remove()
        self._stores.pop(key, None)


class HassNotificationStore(RemoteMessageStore):
    """Persistent notifications used as a key -> text store."""

    def __init__(self, hass: HomeAssistant) -> None:
        self.hass = hass

    async def async_list(self) -> list[Message]:
        notifications = self.hass.data.get(NOTIFICATION_DOMAIN)
        if not isinstance(notifications, dict):
            raise StoreUnavailable("Persistent notifications are not loaded")
        return [
            {"id": str(notification_id), "text": str(item.get("message", ""))}
            for notification_id, item in notifications.items()
            if isinstance(item, dict)
        ]

    async def async_create(self, message_id: str, title: str, text: str) -> None:
        await self.hass.services.async_call(
            NOTIFICATION_DOMAIN, "create",
            {"notification_id": message_id, "title": title, "message": text},
            blocking=True,
        )

    async def async_dismiss(self, message_id: str) -> None:
        await self.hass.services.async_call(
            NOTIFICATION_DOMAIN, "dismiss",
            {"notification_id": message_id},
            blocking=True,
        )


class HassLocalStore(LocalStore):
    """A single storage file holding a key -> text map."""

    def __init__(self, hass: HomeAssistant) -> None:
        self._store = Store(hass, STORAGE_VERSION, LOCAL_STORE_KEY)
        self._data: dict[str, str] | None = None
        self._lock = asyncio.Lock()

    async def _async_data(self) -> dict[str, str]:
        if self._data is None:
            loaded = await self._store.async_load()
            self._data = dict(loaded) if isinstance(loaded, dict) else {}
        return self._data

    async def async_get(self, key: str) -> str | None:
        async with self._lock:
            value = (await self._async_data()).get(key)
        return value if isinstance(value, str) else None

    async def async_set(self, key: str, text: str) -> None:
        async with self._lock:
            data = await self._async_data()
            data[key] = text
            await self._store.async_save(data)

    async def async_remove(self, key: str) -> None:
        async with self._lock:
            data = await self._async_data()
            if data.pop(key, None) is not None:
                await self._store.async_save(data)


class HassStateRegistry(ActuatorRegistry):

    def __init__(self, hass: HomeAssistant) -> None:
        self.hass = hass

    def snapshot(self, refs: Iterable[str]) -> dict[str, str]:
        states = {}
        for ref in refs:
            state = self.hass.states.get(ref)
            if state is not None:
                states[ref] = state.state
        return states


class HassServiceCommand(ActuatorCommand):

    def __init__(self, hass: HomeAssistant) -> None:
        self.hass = hass

    async def async_invoke(self, namespace: str, verb: str, params: dict[str, Any]) -> None:
        await self.hass.services.async_call(namespace, verb, params, blocking=True)


class HassResourceDeletion(ResourceDeletion):
    """
    Primary: drop the document file, then tidy the notification copy and the
    local entry. Fallback: dismiss the notification copy.
    """

    def __init__(
        self,
        documents: HassDocumentStore,
        messages: HassNotificationStore,
        local: LocalStore,
    ) -> None:
        self._documents = documents
        self._messages = messages
        self._local = local

    async def async_delete_primary(self, ref: str) -> None:
        await self._documents.async_remove(ref)
        # Removing a missing file succeeds, so the other copies are tidied here.
        try:
            await self._messages.async_dismiss(ref)
        except Exception as err:
            _LOGGER.debug("Could not dismiss notification copy of %s: %s", ref, err)
        try:
            await self._local.async_remove(LOCAL_KEY_TEMPLATE.format(ref))
        except Exception as err:
            _LOGGER.debug("Could not remove local copy of %s: %s", ref, err)

    async def async_delete_fallback(self, ref: str) -> None:
        await self._messages.async_dismiss(ref)


def _shared_local_store(hass: HomeAssistant) -> HassLocalStore:
    """All timers share one local map, so they must share its cache and lock."""
    domain_data = hass.data.setdefault(DOMAIN, {})
    if "local_store" not in domain_data:
        domain_data["local_store"] = HassLocalStore(hass)
    return domain_data["local_store"]


def build_hass_host(hass: HomeAssistant) -> HostBinding:
    """Wire the Home Assistant implementations together."""
    documents = HassDocumentStore(hass)
    messages = HassNotificationStore(hass)
    local = _shared_local_store(hass)
    return HostBinding(
        documents=documents,
        messages=messages,
        local=local,
        registry=HassStateRegistry(hass),
        commands=HassServiceCommand(hass),
        deletion=HassResourceDeletion(documents, messages, local),
        # Entries are set up before hass reports running, and storage is usable then.
        session_alive=lambda: not hass.is_stopping,
    )

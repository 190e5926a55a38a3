"""Tiered persistence of the schedule snapshot.

Tiers are tried in priority order: remote document store, remote message
store, local device store. Writes stop at the first tier that accepts the
snapshot; reads return the first snapshot found. Neither ever raises.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
import logging

from homeassistant.helpers.json import json_dumps
from homeassistant.util import dt as dt_util
from homeassistant.util.json import json_loads

from .const import (
    DOC_TIME_SLOTS,
    DOC_TIMESTAMP,
    LOCAL_KEY_TEMPLATE,
    NOTIFICATION_TITLE,
    SYNC_LOCAL,
    SYNC_SYNCED,
    SYNC_UNSAVED,
    TIER_DOCUMENT,
    TIER_LOCAL,
    TIER_NOTIFICATION,
)
from .exceptions import StoreMalformed, StoreUnavailable, Timer24hError
from .grid import normalize_slots
from .host import LocalStore, RemoteDocumentStore, RemoteMessageStore
from .types import PersistedSnapshot, Timer24hConfig, TimeSlot

_LOGGER = logging.getLogger(__name__)


def make_snapshot(slots: Iterable[TimeSlot], timestamp: int | None = None) -> PersistedSnapshot:
    if timestamp is None:
        timestamp = int(dt_util.utcnow().timestamp() * 1000)
    return PersistedSnapshot(time_slots=tuple(slots), timestamp=timestamp)


def encode_snapshot(snapshot: PersistedSnapshot) -> str:
    return json_dumps(snapshot.as_document())


def decode_snapshot(text: str) -> PersistedSnapshot:
    """Parse a persisted document. Raises StoreMalformed."""
    try:
        document = json_loads(text)
    except (ValueError, TypeError) as err:
        raise StoreMalformed(f"Snapshot is not valid JSON: {err}") from err

    if not isinstance(document, dict) or DOC_TIME_SLOTS not in document:
        raise StoreMalformed("Snapshot has no timeSlots")

    try:
        slots = normalize_slots(document[DOC_TIME_SLOTS])
    except ValueError as err:
        raise StoreMalformed(f"Snapshot has an invalid schedule: {err}") from err

    timestamp = document.get(DOC_TIMESTAMP)
    if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
        timestamp = 0
    return PersistedSnapshot(time_slots=slots, timestamp=int(timestamp))


class StorageTier(ABC):
    """One backend of the fallback chain."""

    name: str
    remote: bool = True

    @abstractmethod
    async def async_write(self, key: str, snapshot: PersistedSnapshot) -> None:
        """Overwrite the snapshot. Raises StoreUnavailable."""

    @abstractmethod
    async def async_read(self, key: str) -> PersistedSnapshot | None:
        """Return the snapshot, None if absent. Raises StoreUnavailable or StoreMalformed."""


class DocumentTier(StorageTier):
    """Remote structured store. Authoritative during reconciliation."""

    name = TIER_DOCUMENT

    def __init__(self, store: RemoteDocumentStore) -> None:
        self._store = store

    async def async_write(self, key: str, snapshot: PersistedSnapshot) -> None:
        try:
            await self._store.async_set(key, encode_snapshot(snapshot))
        except Timer24hError:
            raise
        except Exception as err:
            raise StoreUnavailable(f"Document store write failed: {err}") from err

    async def async_read(self, key: str) -> PersistedSnapshot | None:
        try:
            text = await self._store.async_get(key)
        except Timer24hError:
            raise
        except Exception as err:
            raise StoreUnavailable(f"Document store read failed: {err}") from err
        if text is None:
            return None
        return decode_snapshot(text)


class NotificationTier(StorageTier):
    """Remote message store. The message id is the storage key."""

    name = TIER_NOTIFICATION

    def __init__(self, store: RemoteMessageStore) -> None:
        self._store = store

    async def async_write(self, key: str, snapshot: PersistedSnapshot) -> None:
        try:
            await self._store.async_create(key, NOTIFICATION_TITLE, encode_snapshot(snapshot))
        except Timer24hError:
            raise
        except Exception as err:
            raise StoreUnavailable(f"Message store write failed: {err}") from err

    async def async_read(self, key: str) -> PersistedSnapshot | None:
        try:
            messages = await self._store.async_list()
        except Timer24hError:
            raise
        except Exception as err:
            raise StoreUnavailable(f"Message store read failed: {err}") from err

        for message in messages:
            if message.get("id") == key and message.get("text"):
                return decode_snapshot(message["text"])
        return None


class LocalTier(StorageTier):
    """Same-device store. Last resort, only when local fallback is allowed."""

    name = TIER_LOCAL
    remote = False

    def __init__(self, store: LocalStore) -> None:
        self._store = store

    @staticmethod
    def local_key(key: str | None) -> str:
        return LOCAL_KEY_TEMPLATE.format(key or "default")

    async def async_write(self, key: str, snapshot: PersistedSnapshot) -> None:
        try:
            await self._store.async_set(self.local_key(key), encode_snapshot(snapshot))
        except Exception as err:
            raise StoreUnavailable(f"Local store write failed: {err}") from err

    async def async_read(self, key: str) -> PersistedSnapshot | None:
        try:
            text = await self._store.async_get(self.local_key(key))
        except Exception as err:
            raise StoreUnavailable(f"Local store read failed: {err}") from err
        if text is None:
            return None
        return decode_snapshot(text)


class PersistenceTierChain:
    """Ordered storage tiers with fallback on failure."""

    def __init__(
        self,
        tiers: Sequence[StorageTier],
        config: Timer24hConfig,
        session_alive: Callable[[], bool],
    ) -> None:
        self._tiers = list(tiers)
        self.config = config
        self._session_alive = session_alive
        self.last_tier: str | None = None

    @property
    def sync_status(self) -> str:
        """User-visible indicator: where the schedule currently lives."""
        if self.last_tier in (TIER_DOCUMENT, TIER_NOTIFICATION):
            return SYNC_SYNCED
        if self.last_tier == TIER_LOCAL:
            return SYNC_LOCAL
        return SYNC_UNSAVED

    def remote_available(self) -> bool:
        """Remote tiers need persistence enabled, a storage key and a live session."""
        if not self.config.save_state or not self.config.storage_key:
            return False
        try:
            return bool(self._session_alive())
        except Exception as err:
            _LOGGER.debug("Session check failed: %s", err)
            return False

    def _usable_tiers(self, remote_only: bool = False) -> list[StorageTier]:
        remote_ok = self.remote_available()
        usable = []
        for tier in self._tiers:
            if tier.remote:
                if remote_ok:
                    usable.append(tier)
            elif not remote_only and self.config.allow_local_fallback:
                usable.append(tier)
        return usable

    async def async_write(self, snapshot: PersistedSnapshot) -> str | None:
        """Write to the first tier that accepts. Returns that tier's name or None."""
        key = self.config.storage_key
        for tier in self._usable_tiers():
            try:
                await tier.async_write(key, snapshot)
            except Timer24hError as err:
                _LOGGER.warning("Saving to %s tier failed, falling through: %s", tier.name, err)
                continue
            _LOGGER.debug("Saved schedule to %s tier (key=%s)", tier.name, key)
            self.last_tier = tier.name
            return tier.name

        _LOGGER.error("Schedule could not be saved to any storage tier (key=%s)", key)
        return None

    async def async_read(self, remote_only: bool = False) -> PersistedSnapshot | None:
        """Return the first snapshot found. None means no saved state."""
        key = self.config.storage_key
        for tier in self._usable_tiers(remote_only):
            try:
                snapshot = await tier.async_read(key)
            except StoreMalformed as err:
                _LOGGER.warning("Ignoring malformed data in %s tier: %s", tier.name, err)
                continue
            except Timer24hError as err:
                _LOGGER.debug("Reading %s tier failed, falling through: %s", tier.name, err)
                continue
            if snapshot is None:
                _LOGGER.debug("No saved schedule in %s tier", tier.name)
                continue
            _LOGGER.debug("Loaded schedule from %s tier", tier.name)
            self.last_tier = tier.name
            return snapshot

        return None

"""Default configuration, storage-key ownership and deferred storage cleanup."""
from __future__ import annotations

import asyncio
import logging
import random

from homeassistant.util import dt as dt_util

from .const import (
    CLEANUP_GRACE_PERIOD,
    DEFAULT_STUB_TITLE,
    LOGIC_OR,
    STORAGE_KEY_PREFIX,
)
from .exceptions import DeletionFailed
from .host import ResourceDeletion
from .types import Timer24hConfig

_LOGGER = logging.getLogger(__name__)


def generate_storage_key(now_ms: int | None = None, suffix: int | None = None) -> str:
    """Unique key from the current time plus a random suffix, in our namespace."""
    if now_ms is None:
        now_ms = int(dt_util.utcnow().timestamp() * 1000)
    if suffix is None:
        suffix = random.randint(0, 999)
    return f"{STORAGE_KEY_PREFIX}{now_ms}_{suffix:03d}"


def is_owned(storage_key: str | None) -> bool:
    """Keys we generated carry the namespace prefix. Anything else is user-managed."""
    return bool(storage_key) and STORAGE_KEY_PREFIX in storage_key


def default_config() -> Timer24hConfig:
    """Configuration for a freshly added timer."""
    return Timer24hConfig(
        title=DEFAULT_STUB_TITLE,
        home_logic=LOGIC_OR,
        entities=(),
        home_sensors=(),
        save_state=True,
        storage_key=generate_storage_key(),
        allow_local_fallback=True,
        auto_create_helper=True,
    )


class LifecycleManager:
    """
    Tracks attach/detach of one timer instance.
    A detach only deletes remote storage if no re-attach happens within the
    grace period, so reloads and re-layouts keep their data.
    """

    def __init__(
        self,
        storage_key: str | None,
        deletion: ResourceDeletion,
        grace_period: float = CLEANUP_GRACE_PERIOD,
    ) -> None:
        self.storage_key = storage_key
        self._deletion = deletion
        self._grace_period = grace_period
        self._attached = False
        self._cleanup_handle: asyncio.TimerHandle | None = None
        self._cleanup_task: asyncio.Task | None = None
        self._cleanup_attempted = False

    @property
    def attached(self) -> bool:
        return self._attached

    @property
    def cleanup_pending(self) -> bool:
        return self._cleanup_handle is not None

    def attach(self) -> None:
        """(Re-)attach. Cancels a pending cleanup."""
        self._attached = True
        self.cancel()

    def detach(self) -> None:
        """Detach and schedule the deferred cleanup check."""
        self._attached = False
        self.cancel()
        if self._cleanup_attempted:
            return
        loop = asyncio.get_running_loop()
        self._cleanup_handle = loop.call_later(self._grace_period, self._check_cleanup)
        _LOGGER.debug("Cleanup of %s scheduled in %.0fs", self.storage_key, self._grace_period)

    def cancel(self) -> None:
        """Drop a pending cleanup check without running it."""
        if self._cleanup_handle is not None:
            self._cleanup_handle.cancel()
            self._cleanup_handle = None

    def _check_cleanup(self) -> None:
        self._cleanup_handle = None
        if self._attached:
            return
        if not is_owned(self.storage_key):
            _LOGGER.debug("Storage %s is not ours, leaving it in place", self.storage_key)
            return
        self._cleanup_task = asyncio.get_running_loop().create_task(self.async_cleanup())

    async def async_cleanup(self) -> bool:
        """Delete the remote resource: primary call, then fallback. Never retried."""
        self._cleanup_attempted = True
        ref = self.storage_key
        _LOGGER.info("Cleaning up storage for removed timer: %s", ref)

        try:
            await self._deletion.async_delete_primary(ref)
            _LOGGER.info("Deleted storage %s", ref)
            return True
        except Exception as primary_err:
            _LOGGER.debug("Primary deletion of %s failed: %s", ref, primary_err)

        try:
            await self._deletion.async_delete_fallback(ref)
            _LOGGER.info("Deleted storage %s via fallback", ref)
            return True
        except Exception as fallback_err:
            err = DeletionFailed(f"Could not delete storage {ref}: {fallback_err}")
            _LOGGER.warning("%s. Please delete it manually.", err)
            return False

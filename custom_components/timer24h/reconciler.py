"""Periodic pull of the authoritative remote schedule."""
from __future__ import annotations

import logging

from .grid import TimeSlotGrid
from .storage import PersistenceTierChain

_LOGGER = logging.getLogger(__name__)


class SyncReconciler:
    """
    Merges external schedule changes into the local grid.
    Remote wins: a differing snapshot replaces the grid wholesale.
    Every pull is an independent attempt; failures wait for the next tick.
    """

    def __init__(self, grid: TimeSlotGrid, chain: PersistenceTierChain) -> None:
        self._grid = grid
        self._chain = chain

    async def async_pull(self) -> bool:
        """Returns True if the grid was replaced and re-evaluation is due."""
        if not self._chain.remote_available():
            return False

        revision = self._grid.revision
        try:
            snapshot = await self._chain.async_read(remote_only=True)
        except Exception as err:
            _LOGGER.debug("Sync pull failed: %s", err)
            return False

        if snapshot is None:
            return False

        # A local edit landed while we were reading; its write is newer.
        if self._grid.revision != revision:
            _LOGGER.debug("Discarding sync result superseded by a local edit")
            return False

        if self._grid.matches(snapshot.time_slots):
            return False

        if not self._grid.replace(snapshot.time_slots):
            return False

        _LOGGER.info("Remote schedule changed, local state updated")
        return True

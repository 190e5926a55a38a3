"""The Timer 24H engine: schedule, evaluation, persistence, sync and dispatch."""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime
import logging
from typing import Any

from .const import EVALUATION_INTERVAL, SYNC_INTERVAL
from .dispatcher import ActuatorDispatcher, DispatchResult
from .evaluator import ActivationEvaluator
from .grid import TimeSlotGrid
from .host import HostBinding
from .reconciler import SyncReconciler
from .storage import DocumentTier, LocalTier, NotificationTier, PersistenceTierChain, make_snapshot
from .types import Evaluation, Timer24hConfig

_LOGGER = logging.getLogger(__name__)

Listener = Callable[[], None]


class Timer24hEngine:
    """
    Owns one timer's state and its two periodic tasks.

    User edits mutate the grid synchronously and hand persistence to a
    background task. The evaluation tick never waits for persistence or
    actuator commands.
    """

    def __init__(
        self,
        config: Timer24hConfig,
        host: HostBinding,
        evaluation_interval: float = EVALUATION_INTERVAL,
        sync_interval: float = SYNC_INTERVAL,
    ) -> None:
        self.config = config
        self.host = host
        self._evaluation_interval = evaluation_interval
        self._sync_interval = sync_interval

        self.grid = TimeSlotGrid()
        self.evaluator = ActivationEvaluator(self.grid, config)
        self.chain = PersistenceTierChain(
            [DocumentTier(host.documents), NotificationTier(host.messages), LocalTier(host.local)],
            config,
            host.session_alive,
        )
        self.reconciler = SyncReconciler(self.grid, self.chain)
        self.dispatcher = ActuatorDispatcher(host.registry, host.commands)

        self.last_evaluation: Evaluation | None = None
        self._last_dispatched: bool | None = None

        self._periodic: list[asyncio.Task] = []
        self._background: set[asyncio.Task] = set()
        self._listeners: list[Listener] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def sync_status(self) -> str:
        return self.chain.sync_status

    # --- Listeners ---

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Call listener whenever state visible to the host changes."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self) -> None:
        if not self._running:
            return
        for listener in list(self._listeners):
            listener()

    # --- Lifecycle ---

    async def async_load(self) -> bool:
        """
        Load the saved schedule once. Returns True if the grid was replaced.
        Edits made while the load was in flight win over the loaded data.
        """
        revision = self.grid.revision
        snapshot = await self.chain.async_read()

        if snapshot is None:
            _LOGGER.info("No saved schedule for %s", self.config.storage_key)
            if self.config.auto_create_helper and self.grid.revision == revision:
                # Make sure the storage resource exists from the start.
                await self.chain.async_write(make_snapshot(self.grid.snapshot()))
            return False

        if self.grid.revision != revision:
            _LOGGER.info("Keeping local edits made while loading %s", self.config.storage_key)
            return False

        if not self.grid.replace(snapshot.time_slots):
            return False
        self._notify()
        return True

    def start(self) -> None:
        """Start the evaluation and sync tasks. Safe to call again after stop()."""
        if self._running:
            return
        self._running = True
        self._last_dispatched = None
        loop = asyncio.get_running_loop()
        self._periodic = [
            loop.create_task(self._async_periodic(self._evaluation_interval, self.async_tick, immediate=True)),
            loop.create_task(self._async_periodic(self._sync_interval, self.async_sync)),
        ]
        _LOGGER.debug("Engine started for %s", self.config.storage_key)

    def stop(self) -> None:
        """Cancel both periodic tasks. In-flight writes are left to complete."""
        self._running = False
        for task in self._periodic:
            task.cancel()
        self._periodic = []
        _LOGGER.debug("Engine stopped for %s", self.config.storage_key)

    def reconfigure(self, config: Timer24hConfig) -> None:
        """Swap in a new configuration wholesale."""
        self.config = config
        self.evaluator.config = config
        self.chain.config = config
        self._last_dispatched = None
        self._notify()

    async def async_drain(self) -> None:
        """Wait for background writes and dispatches that are still running."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _async_periodic(
        self,
        interval: float,
        job: Callable[[], Awaitable[Any]],
        immediate: bool = False,
    ) -> None:
        if not immediate:
            await asyncio.sleep(interval)
        while True:
            try:
                await job()
            except Exception:
                _LOGGER.exception("Periodic job %s failed", getattr(job, "__name__", job))
            await asyncio.sleep(interval)

    def _spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    # --- User interaction ---

    def toggle_slot(self, hour: int, minute: int) -> bool:
        """Flip one slot and persist in the background. Never blocks on storage."""
        if not self.grid.toggle(hour, minute):
            return False
        self._after_edit()
        return True

    def set_slots(self, slots: Iterable[Any]) -> bool:
        """Replace the whole schedule from user input."""
        if not self.grid.replace(slots):
            return False
        self._after_edit()
        return True

    def _after_edit(self) -> None:
        self._spawn(self.chain.async_write(make_snapshot(self.grid.snapshot())))
        self._evaluate_and_dispatch()
        self._notify()

    # --- Evaluation & dispatch ---

    def evaluate(self, now: datetime | None = None) -> Evaluation:
        """Evaluate against a fresh sensor snapshot."""
        readings = self.host.registry.snapshot(self.config.home_sensors)
        self.last_evaluation = self.evaluator.evaluate(readings, now)
        return self.last_evaluation

    def _evaluate_and_dispatch(self, now: datetime | None = None, force: bool = False) -> Evaluation:
        evaluation = self.evaluate(now)
        if force or evaluation.active != self._last_dispatched:
            if self._last_dispatched is not None:
                _LOGGER.info("Timer %s turned %s", self.config.title, "on" if evaluation.active else "off")
            self._last_dispatched = evaluation.active
            self._spawn(self._async_dispatch(evaluation.active))
        return evaluation

    async def _async_dispatch(self, desired_on: bool) -> DispatchResult:
        return await self.dispatcher.async_apply(self.config.entities, desired_on)

    async def async_tick(self, now: datetime | None = None) -> Evaluation:
        """One evaluation cycle. Dispatches only when the verdict changes."""
        evaluation = self._evaluate_and_dispatch(now)
        self._notify()
        return evaluation

    def apply_now(self) -> Evaluation:
        """Re-send the current verdict to every actuator."""
        evaluation = self._evaluate_and_dispatch(force=True)
        self._notify()
        return evaluation

    async def async_sync(self) -> bool:
        """One reconciliation cycle. Returns True if the remote schedule was merged."""
        if not await self.reconciler.async_pull():
            return False
        self._evaluate_and_dispatch()
        self._notify()
        return True

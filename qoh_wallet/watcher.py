"""Storage watcher — notices slot writes made by other processes.

Polls the shared storage file and hands the set of externally written slot
keys to every subscriber, the way a browser delivers ``storage`` events to
other tabs. Writes made through this process's own storage handle are
skipped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable

from .storage import KeyValueStorage, SlotChange

ChangeCallback = Callable[[Iterable[str]], object]


class StorageWatcher:
    """Polling change notifier for a ``KeyValueStorage``."""

    def __init__(
        self,
        storage: KeyValueStorage,
        poll_interval: float = 1.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._storage = storage
        self._poll_interval = poll_interval
        self._logger = logger or logging.getLogger("qoh.watcher")
        self._subscribers: list[ChangeCallback] = []
        self._last_revision = storage.current_revision()
        self._task: asyncio.Task | None = None

    def subscribe(self, callback: ChangeCallback) -> None:
        self._subscribers.append(callback)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ── Lifecycle ────────────────────────────────────────────

    async def start(self) -> None:
        """Start the polling loop."""
        if self.running:
            return
        self._last_revision = self._storage.current_revision()
        self._task = asyncio.create_task(self._poll_loop())
        self._logger.info("Storage watcher started (interval: %.1fs)", self._poll_interval)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    # ── Polling ──────────────────────────────────────────────

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            try:
                await self.poll()
            except Exception:
                self._logger.exception("Storage poll failed")

    async def poll(self) -> set[str]:
        """Read new writes in an executor, then notify on the loop thread."""
        loop = asyncio.get_running_loop()
        changes = await loop.run_in_executor(
            None, self._storage.changes_since, self._last_revision,
        )
        return self._dispatch(changes)

    def poll_once(self) -> set[str]:
        """Check for new writes and notify subscribers of external ones.

        Returns the externally changed keys (empty if none).
        """
        return self._dispatch(self._storage.changes_since(self._last_revision))

    def _dispatch(self, changes: list[SlotChange]) -> set[str]:
        if not changes:
            return set()
        self._last_revision = max(change.revision for change in changes)
        keys = {change.key for change in changes if change.external}
        if not keys:
            return set()

        self._logger.debug("External storage change: %s", ", ".join(sorted(keys)))
        for callback in list(self._subscribers):
            try:
                callback(keys)
            except Exception:
                self._logger.exception("Storage change subscriber failed")
        return keys

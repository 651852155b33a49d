"""Tests for StorageWatcher change delivery."""

from __future__ import annotations

import asyncio
import logging
import threading

from qoh_wallet.storage import KeyValueStorage
from qoh_wallet.watcher import StorageWatcher


def _watcher(storage: KeyValueStorage, interval: float = 0.01) -> StorageWatcher:
    return StorageWatcher(storage, poll_interval=interval, logger=logging.getLogger("test"))


class TestPollOnce:
    def test_no_changes(self, storage: KeyValueStorage):
        assert _watcher(storage).poll_once() == set()

    def test_own_writes_skipped(self, storage: KeyValueStorage):
        watcher = _watcher(storage)
        received: list[set[str]] = []
        watcher.subscribe(received.append)
        storage.set_item("qoh-data", "{}")
        assert watcher.poll_once() == set()
        assert received == []

    def test_external_writes_delivered(self, storage: KeyValueStorage, other_storage: KeyValueStorage):
        watcher = _watcher(storage)
        received: list[set[str]] = []
        watcher.subscribe(received.append)
        other_storage.set_item("qoh-data", "{}")
        other_storage.set_item("qoh-current-player", "2")
        assert watcher.poll_once() == {"qoh-data", "qoh-current-player"}
        assert received == [{"qoh-data", "qoh-current-player"}]

    def test_changes_delivered_once(self, storage: KeyValueStorage, other_storage: KeyValueStorage):
        watcher = _watcher(storage)
        other_storage.set_item("k", "v")
        assert watcher.poll_once() == {"k"}
        assert watcher.poll_once() == set()

    def test_writes_before_creation_not_delivered(self, storage: KeyValueStorage, other_storage: KeyValueStorage):
        other_storage.set_item("k", "v")
        assert _watcher(storage).poll_once() == set()

    def test_failing_subscriber_isolated(self, storage: KeyValueStorage, other_storage: KeyValueStorage):
        watcher = _watcher(storage)
        received: list[set[str]] = []

        def boom(keys):
            raise RuntimeError("subscriber broke")

        watcher.subscribe(boom)
        watcher.subscribe(received.append)
        other_storage.set_item("k", "v")
        watcher.poll_once()
        assert received == [{"k"}]


class TestLoop:
    async def test_start_and_stop(self, storage: KeyValueStorage):
        watcher = _watcher(storage)
        await watcher.start()
        assert watcher.running
        await watcher.stop()
        assert not watcher.running

    async def test_loop_delivers(self, storage: KeyValueStorage, other_storage: KeyValueStorage):
        watcher = _watcher(storage)
        received: list[set[str]] = []
        watcher.subscribe(received.append)
        await watcher.start()
        try:
            other_storage.set_item("qoh-data", "{}")
            for _ in range(100):
                if received:
                    break
                await asyncio.sleep(0.01)
        finally:
            await watcher.stop()
        assert received == [{"qoh-data"}]

    async def test_stop_without_start(self, storage: KeyValueStorage):
        await _watcher(storage).stop()


class TestAsyncPoll:
    async def test_reads_off_the_loop_thread(
        self, storage: KeyValueStorage, other_storage: KeyValueStorage, monkeypatch,
    ):
        watcher = _watcher(storage)
        reader_threads: list[int] = []
        callback_threads: list[int] = []
        original = storage.changes_since

        def recording_changes_since(revision: int):
            reader_threads.append(threading.get_ident())
            return original(revision)

        monkeypatch.setattr(storage, "changes_since", recording_changes_since)
        watcher.subscribe(lambda keys: callback_threads.append(threading.get_ident()))
        other_storage.set_item("qoh-data", "{}")

        assert await watcher.poll() == {"qoh-data"}
        loop_thread = threading.get_ident()
        assert reader_threads and reader_threads[0] != loop_thread
        assert callback_threads == [loop_thread]

    async def test_no_changes(self, storage: KeyValueStorage):
        assert await _watcher(storage).poll() == set()

"""Application orchestrator — WalletApp.

Wiring order: config → storage → store (load) → controllers → watcher.
"""

from __future__ import annotations

import logging

from .admin_controller import AdminController
from .config import WalletConfig, load_config
from .player_controller import PlayerController
from .storage import KeyValueStorage
from .store import LedgerStore
from .views import ConsoleView, View
from .watcher import StorageWatcher


class WalletApp:
    """Top-level application object shared by the CLI and tests."""

    def __init__(
        self,
        config: WalletConfig | None = None,
        view: View | None = None,
        config_path: str | None = None,
    ) -> None:
        self.logger = logging.getLogger("qoh")
        self.config = config or load_config(config_path)
        self.view = view or ConsoleView(symbol=self.config.currency.symbol)

        self.storage = KeyValueStorage(self.config.storage.path, logging.getLogger("qoh.storage"))
        self.store = LedgerStore(self.storage, self.config, logging.getLogger("qoh.store"))
        self.store.load()
        self.logger.info("Ledger loaded from %s", self.config.storage.path)

        self.player = PlayerController(self.store, self.view, self.config)
        self.admin = AdminController(self.store, self.view, self.config)
        self.watcher = StorageWatcher(
            self.storage,
            poll_interval=self.config.watcher.poll_interval_seconds,
        )
        self.watcher.subscribe(self.player.on_external_change)
        self.watcher.subscribe(self.admin.on_external_change)

    async def start(self) -> None:
        await self.watcher.start()

    async def stop(self) -> None:
        await self.watcher.stop()

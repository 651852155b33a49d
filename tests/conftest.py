"""Shared test fixtures for qoh-wallet."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from qoh_wallet.admin_controller import AdminController
from qoh_wallet.config import WalletConfig
from qoh_wallet.player_controller import PlayerController
from qoh_wallet.storage import KeyValueStorage
from qoh_wallet.store import LedgerStore
from qoh_wallet.views import AdminRosters, LoginOption, PlayerPanel


# ── Minimal config dict matching WalletConfig schema ─────────

def make_config_dict(**overrides) -> dict:
    """Build a valid config dict with sensible test defaults."""
    base = {
        "storage": {
            "path": "test-wallet.db",
            "data_key": "qoh-data",
            "session_key": "qoh-current-player",
        },
        "watcher": {"poll_interval_seconds": 0.05},
        "currency": {"symbol": "$"},
        "activity": {"max_entries": 50},
        "deposit": {"methods": ["tierlock", "bitcoin", "card"], "default_method": "tierlock"},
        "games": ["Ultra Panda", "Fire Kirin", "Orion Stars", "Juwa"],
    }
    base.update(overrides)
    return base


class RecordingView:
    """View that records everything rendered, for assertions."""

    def __init__(self) -> None:
        self.player_panels: list[PlayerPanel] = []
        self.login_options: list[tuple[LoginOption, ...]] = []
        self.admin_rosters: list[AdminRosters] = []
        self.alerts: list[str] = []

    def render_player(self, panel: PlayerPanel) -> None:
        self.player_panels.append(panel)

    def render_login_options(self, options: tuple[LoginOption, ...]) -> None:
        self.login_options.append(options)

    def render_admin(self, rosters: AdminRosters) -> None:
        self.admin_rosters.append(rosters)

    def alert(self, message: str) -> None:
        self.alerts.append(message)

    @property
    def last_panel(self) -> PlayerPanel:
        return self.player_panels[-1]

    @property
    def last_rosters(self) -> AdminRosters:
        return self.admin_rosters[-1]


@pytest.fixture
def sample_config_dict(tmp_path: Path) -> dict:
    cfg = make_config_dict()
    cfg["storage"]["path"] = str(tmp_path / "test-wallet.db")
    return cfg


@pytest.fixture
def sample_config(sample_config_dict: dict) -> WalletConfig:
    return WalletConfig(**sample_config_dict)


@pytest.fixture
def storage(sample_config: WalletConfig) -> KeyValueStorage:
    """Storage handle on a temp SQLite file."""
    return KeyValueStorage(sample_config.storage.path, logging.getLogger("test"))


@pytest.fixture
def other_storage(sample_config: WalletConfig, storage: KeyValueStorage) -> KeyValueStorage:
    """A second handle on the same file, standing in for another process."""
    return KeyValueStorage(sample_config.storage.path, logging.getLogger("test.other"))


@pytest.fixture
def store(storage: KeyValueStorage, sample_config: WalletConfig) -> LedgerStore:
    """Store loaded with the demo seed."""
    s = LedgerStore(storage, sample_config, logging.getLogger("test"))
    s.load()
    return s


@pytest.fixture
def view() -> RecordingView:
    return RecordingView()


@pytest.fixture
def player_controller(
    store: LedgerStore, view: RecordingView, sample_config: WalletConfig,
) -> PlayerController:
    return PlayerController(store, view, sample_config, logging.getLogger("test"))


@pytest.fixture
def admin_controller(
    store: LedgerStore, view: RecordingView, sample_config: WalletConfig,
) -> AdminController:
    return AdminController(store, view, sample_config, logging.getLogger("test"))


@pytest.fixture
def other_store(other_storage: KeyValueStorage, sample_config: WalletConfig, store: LedgerStore) -> LedgerStore:
    """Store in "another process" sharing the same file as ``store``."""
    s = LedgerStore(other_storage, sample_config, logging.getLogger("test.other"))
    s.load()
    return s

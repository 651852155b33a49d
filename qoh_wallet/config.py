"""Configuration system for qoh-wallet.

All Pydantic models are defined here with sensible defaults, so the app
runs with no config file at all. A YAML file only needs the sections it
wants to override.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator


# ═══════════════════════════════════════════════════════════════
#  Persistence
# ═══════════════════════════════════════════════════════════════

class StorageConfig(BaseModel):
    path: str = "qoh-wallet.db"
    data_key: str = "qoh-data"
    session_key: str = "qoh-current-player"


class WatcherConfig(BaseModel):
    """Polling for writes made by other processes sharing the storage file."""
    poll_interval_seconds: float = Field(default=1.0, gt=0)


# ═══════════════════════════════════════════════════════════════
#  Ledger Behaviour
# ═══════════════════════════════════════════════════════════════

class CurrencyConfig(BaseModel):
    symbol: str = "$"


class ActivityConfig(BaseModel):
    max_entries: int = Field(default=50, ge=1)


class DepositConfig(BaseModel):
    methods: list[str] = Field(default=["tierlock", "bitcoin", "cash app", "card"])
    default_method: str = "tierlock"

    @model_validator(mode="after")
    def check_default_method(self) -> DepositConfig:
        wanted = self.default_method.strip().lower()
        if wanted not in {m.strip().lower() for m in self.methods}:
            raise ValueError(f"deposit.default_method {self.default_method!r} is not in deposit.methods")
        return self


DEFAULT_GAMES = [
    "Ultra Panda",
    "Fire Kirin",
    "Orion Stars",
    "Juwa",
    "Game Vault",
    "Milky Way",
]


# ═══════════════════════════════════════════════════════════════
#  Top-Level Wallet Config
# ═══════════════════════════════════════════════════════════════

class WalletConfig(BaseModel):
    """Full wallet config."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)
    currency: CurrencyConfig = Field(default_factory=CurrencyConfig)
    activity: ActivityConfig = Field(default_factory=ActivityConfig)
    deposit: DepositConfig = Field(default_factory=DepositConfig)
    games: list[str] = Field(default_factory=lambda: list(DEFAULT_GAMES))


# ═══════════════════════════════════════════════════════════════
#  Config Loading
# ═══════════════════════════════════════════════════════════════

def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand ${VAR} and ${VAR:-default} in string values."""
    if isinstance(obj, str):
        return re.sub(
            r"\$\{([^}:]+)(?::-(.*?))?\}",
            lambda m: os.environ.get(m.group(1), m.group(2) or ""),
            obj,
        )
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def load_config(config_path: str | None = None) -> WalletConfig:
    """Load and validate a YAML config file into WalletConfig.

    ``None`` returns the built-in defaults. An empty file is treated the same.
    """
    if config_path is None:
        return WalletConfig()

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if raw is None:
        return WalletConfig()
    if not isinstance(raw, dict):
        raise ValueError("Config file must contain a YAML mapping at the top level.")

    raw = _expand_env_vars(raw)
    return WalletConfig(**raw)

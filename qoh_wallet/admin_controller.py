"""Admin controller — rosters across all players and administrative actions."""

from __future__ import annotations

import logging
from typing import Iterable

from .config import WalletConfig
from .models import GameAccount, Transfer
from .outcomes import (
    ALERT_DUPLICATE_USERNAME,
    ALERT_NO_PLAYERS_FOR_ADMIN,
    ActionOutcome,
    ActionResult,
)
from .store import LedgerStore
from .utils import format_currency, parse_int
from .views import AdminRosters, View, build_admin_rosters


class AdminController:
    """Drives the admin view. Never touches the player session pointer
    except through ``reset``."""

    def __init__(
        self,
        store: LedgerStore,
        view: View,
        config: WalletConfig,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._view = view
        self._config = config
        self._logger = logger or logging.getLogger("qoh.admin")

    def rosters(self) -> AdminRosters:
        return build_admin_rosters(self._store.ledger)

    def render(self) -> None:
        self._view.render_admin(self.rosters())

    def start(self) -> None:
        self.render()

    def create_player(self, name: str, email: str) -> ActionOutcome:
        name, email = (name or "").strip(), (email or "").strip()
        if not name or not email:
            return ActionOutcome.ignored()
        player = self._store.create_player(name, email, f"Admin created account for {name}")
        self.render()
        return ActionOutcome.ok(player)

    def create_game_account(
        self, player_id: int | str | None, game: str, username: str,
    ) -> ActionOutcome:
        ledger = self._store.ledger
        if not ledger.players:
            self._view.alert(ALERT_NO_PLAYERS_FOR_ADMIN)
            return ActionOutcome(result=ActionResult.NO_PLAYER, message=ALERT_NO_PLAYERS_FOR_ADMIN)
        player = ledger.find_player(parse_int(player_id))
        game, username = (game or "").strip(), (username or "").strip()
        if player is None or not game or not username:
            return ActionOutcome.ignored()

        account = self._store.create_game_account(
            player, game, username, f"Admin added {game} account ({username}).",
        )
        if account is None:
            self._view.alert(ALERT_DUPLICATE_USERNAME)
            return ActionOutcome(result=ActionResult.DUPLICATE_USERNAME, message=ALERT_DUPLICATE_USERNAME)
        self.render()
        return ActionOutcome.ok(account)

    def approve_transfer(self, transfer_id: int | str) -> ActionOutcome:
        symbol = self._config.currency.symbol

        def activity(transfer: Transfer, account: GameAccount) -> str:
            return f"Transfer of {format_currency(transfer.amount, symbol)} to {account.game} approved."

        transfer = self._store.approve_transfer(parse_int(transfer_id), activity)
        if transfer is None:
            self._logger.debug("Approve ignored for transfer %s", transfer_id)
            return ActionOutcome.ignored()
        self.render()
        return ActionOutcome.ok(transfer)

    def reset(self) -> ActionOutcome:
        ledger = self._store.reset()
        self.render()
        return ActionOutcome.ok(ledger)

    def on_external_change(self, keys: Iterable[str]) -> bool:
        """Reload after another process wrote the data slot."""
        if self._store.data_key not in set(keys):
            return False
        self._logger.info("Storage changed externally; reloading admin rosters")
        self._store.reload()
        self.render()
        return True

"""Player controller — one active player's wallet, accounts and transfers.

Every action follows the same shape: validate the input, mutate through the
store (which persists), then re-render the active player. Missing
preconditions raise an alert on the view; bad numbers and blank fields are
ignored without feedback.
"""

from __future__ import annotations

import logging
from typing import Iterable

from .config import WalletConfig
from .models import Player
from .outcomes import (
    ALERT_DUPLICATE_USERNAME,
    ALERT_INSUFFICIENT_FUNDS,
    ALERT_NO_GAME_ACCOUNT,
    ALERT_NO_PLAYER,
    ActionOutcome,
    ActionResult,
)
from .store import LedgerStore
from .utils import format_currency, match_choice, parse_int, suggest_username
from .views import View, build_login_options, build_player_panel


class PlayerController:
    """Drives the player-facing view."""

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
        self._logger = logger or logging.getLogger("qoh.player")

    def _money(self, amount: int) -> str:
        return format_currency(amount, self._config.currency.symbol)

    def _alert(self, result: ActionResult, message: str) -> ActionOutcome:
        self._logger.info("Player action refused: %s", message)
        self._view.alert(message)
        return ActionOutcome(result=result, message=message)

    # ══════════════════════════════════════════════════════════
    #  Session & Rendering
    # ══════════════════════════════════════════════════════════

    def ensure_active_player(self) -> Player | None:
        """Session player, else the first player (adopted), else None."""
        ledger = self._store.ledger
        player = ledger.find_player(self._store.get_current_player_id())
        if player is not None:
            return player
        if ledger.players:
            fallback = ledger.players[0]
            self._store.set_current_player(fallback.id)
            return fallback
        self._store.set_current_player(None)
        return None

    def suggest_username(self, game: str | None = None, player: Player | None = None) -> str:
        player = player or self.ensure_active_player()
        if player is None:
            return ""
        game = game if game is not None else self._default_game()
        return suggest_username(player.name, game, player.usernames())

    def _default_game(self) -> str:
        return self._config.games[0] if self._config.games else ""

    def render(self, player: Player | None = None) -> None:
        player = player if player is not None else self.ensure_active_player()
        suggestion = self.suggest_username(player=player) if player else ""
        self._view.render_player(build_player_panel(self._store.ledger, player, suggestion))

    def refresh_login_options(self, selected_id: int | None = None) -> None:
        ledger = self._store.ledger
        if not ledger.players:
            self._store.set_current_player(None)
            self._view.render_login_options(())
            return
        if selected_id is None:
            selected_id = self._store.get_current_player_id()
        if ledger.find_player(selected_id) is None:
            selected_id = ledger.players[0].id
        self._store.set_current_player(selected_id)
        self._view.render_login_options(build_login_options(ledger, selected_id))

    def start(self) -> None:
        """Initial render: login list then the resolved player."""
        self.refresh_login_options()
        self.render()

    def switch_player(self, player_id: int) -> ActionOutcome:
        self._store.set_current_player(player_id)
        player = self.ensure_active_player()
        self.render(player)
        return ActionOutcome.ok(player)

    # ══════════════════════════════════════════════════════════
    #  Actions
    # ══════════════════════════════════════════════════════════

    def sign_up(self, name: str, email: str) -> ActionOutcome:
        name, email = (name or "").strip(), (email or "").strip()
        if not name or not email:
            return ActionOutcome.ignored()
        player = self._store.create_player(name, email, f"Account created for {name}")
        self.refresh_login_options(player.id)
        self.render(player)
        return ActionOutcome.ok(player)

    def create_game_account(self, game: str, username: str | None = None) -> ActionOutcome:
        player = self.ensure_active_player()
        if player is None:
            return self._alert(ActionResult.NO_PLAYER, ALERT_NO_PLAYER)
        choice = match_choice(game, self._config.games)
        if choice is None:
            self._logger.debug("Game %r is not in the catalogue", game)
            return ActionOutcome.ignored()
        game = choice
        username = (username or "").strip() or suggest_username(player.name, game, player.usernames())

        account = self._store.create_game_account(
            player, game, username, f"{game} account created automatically as {username}.",
        )
        if account is None:
            return self._alert(ActionResult.DUPLICATE_USERNAME, ALERT_DUPLICATE_USERNAME)
        self.render(player)
        return ActionOutcome.ok(account)

    def deposit(self, amount: int | str, method: str | None = None) -> ActionOutcome:
        player = self.ensure_active_player()
        if player is None:
            return self._alert(ActionResult.NO_PLAYER, ALERT_NO_PLAYER)
        value = parse_int(amount)
        if value <= 0:
            return ActionOutcome.ignored()
        label = match_choice(
            (method or "").strip() or self._config.deposit.default_method,
            self._config.deposit.methods,
        )
        if label is None:
            self._logger.debug("Unknown deposit method %r", method)
            return ActionOutcome.ignored()
        method = label
        wallet = self._store.deposit(player, value, f"{self._money(value)} added via {method}")
        self.render(player)
        return ActionOutcome.ok(wallet)

    def request_transfer(self, game_account_id: int | str | None, amount: int | str) -> ActionOutcome:
        player = self.ensure_active_player()
        if player is None:
            return self._alert(ActionResult.NO_PLAYER, ALERT_NO_PLAYER)
        account = player.find_game_account(parse_int(game_account_id))
        if account is None:
            return self._alert(ActionResult.NO_GAME_ACCOUNT, ALERT_NO_GAME_ACCOUNT)
        value = parse_int(amount)
        if value <= 0:
            return ActionOutcome.ignored()
        if value > player.wallet:
            return self._alert(ActionResult.INSUFFICIENT_FUNDS, ALERT_INSUFFICIENT_FUNDS)

        transfer = self._store.transfer_to_game(
            player, account, value,
            f"Transferred {self._money(value)} to {account.game} automatically.",
        )
        self.render(player)
        self.refresh_login_options(player.id)
        return ActionOutcome.ok(transfer)

    def reset(self) -> ActionOutcome:
        ledger = self._store.reset()
        first = ledger.players[0]
        self.refresh_login_options(first.id)
        self.render(first)
        return ActionOutcome.ok(ledger)

    def on_external_change(self, keys: Iterable[str]) -> bool:
        """Reload after another process wrote the data or session slot."""
        if not {self._store.data_key, self._store.session_key} & set(keys):
            return False
        self._logger.info("Storage changed externally; reloading player view")
        self._store.reload()
        self.refresh_login_options()
        self.render()
        return True

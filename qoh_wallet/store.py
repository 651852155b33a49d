"""Ledger store — the canonical document and its persistence contract.

One ``LedgerStore`` owns the in-memory Ledger for a process. Every mutation
is a method here: it changes the document in place, appends an activity
entry, and writes the whole document back to the data slot before
returning. There are no partial writes and no write coalescing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from pydantic import ValidationError

from .config import WalletConfig
from .models import ActivityEntry, GameAccount, Ledger, Player, Transfer, TransferStatus
from .storage import KeyValueStorage
from .utils import now_utc


def seed_demo_data(now: datetime | None = None) -> Ledger:
    """Fixed two-player demo dataset, timestamped relative to *now*."""
    now = now or now_utc()
    earlier = now - timedelta(hours=3)
    return Ledger(
        next_player_id=3,
        next_game_id=4,
        next_transfer_id=3,
        players=[
            Player(
                id=1,
                name="Ava Hearts",
                email="ava@example.com",
                wallet=250,
                game_accounts=[
                    GameAccount(id=1, game="Ultra Panda", username="avaQueen", balance=120),
                    GameAccount(id=2, game="Fire Kirin", username="avaFlame", balance=55),
                ],
                activity=[
                    ActivityEntry(message="Transfer of $40 to Fire Kirin completed automatically.", time=earlier),
                    ActivityEntry(message="Ultra Panda account created automatically as avaQueen.", time=earlier),
                    ActivityEntry(message="$100 added via tierlock", time=now),
                ],
            ),
            Player(
                id=2,
                name="Leo Club",
                email="leo@example.com",
                wallet=80,
                game_accounts=[
                    GameAccount(id=3, game="Ultra Panda", username="lionking", balance=0),
                ],
                activity=[
                    ActivityEntry(message="$80 added via bitcoin", time=now),
                ],
            ),
        ],
        transfers=[
            Transfer(
                id=1,
                player_id=1,
                game_account_id=1,
                amount=60,
                status=TransferStatus.APPROVED,
                requested_at=earlier,
                approved_at=earlier,
            ),
        ],
    )


class LedgerStore:
    """Owns the Ledger document, the data slot and the session pointer slot."""

    def __init__(
        self,
        storage: KeyValueStorage,
        config: WalletConfig,
        logger: logging.Logger | None = None,
    ) -> None:
        self._storage = storage
        self._config = config
        self._logger = logger or logging.getLogger("qoh.store")
        self._ledger: Ledger | None = None

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    @property
    def data_key(self) -> str:
        return self._config.storage.data_key

    @property
    def session_key(self) -> str:
        return self._config.storage.session_key

    @property
    def ledger(self) -> Ledger:
        """The in-memory document, loaded on first access."""
        if self._ledger is None:
            self.load()
        return self._ledger

    # ══════════════════════════════════════════════════════════
    #  Load / Save
    # ══════════════════════════════════════════════════════════

    def load(self) -> Ledger:
        """Read the persisted Ledger, reseeding whenever it is unusable.

        Absent, unparsable, partial or player-less documents are replaced in
        storage by a fresh seed. Content problems are logged, never raised.
        """
        raw = self._storage.get_item(self.data_key)
        if not raw:
            self._logger.info("No stored ledger; seeding demo data")
            self._ledger = self._reseed()
            return self._ledger

        try:
            ledger = Ledger.from_json(raw)
        except ValidationError:
            self._logger.exception("Failed to parse stored ledger; reseeding demo data")
            self._ledger = self._reseed()
            return self._ledger

        if not ledger.players:
            self._logger.warning("Stored ledger has no players; reseeding demo data")
            self._ledger = self._reseed()
            return self._ledger

        self._ledger = ledger
        return self._ledger

    def reload(self) -> Ledger:
        """Drop the in-memory copy and return the freshly loaded document."""
        self._ledger = None
        return self.load()

    def save(self, ledger: Ledger | None = None) -> None:
        """Persist the full document, replacing any prior value."""
        if ledger is not None:
            self._ledger = ledger
        if self._ledger is None:
            raise RuntimeError("No ledger loaded to save.")
        self._storage.set_item(self.data_key, self._ledger.to_json())

    def _reseed(self) -> Ledger:
        seeded = seed_demo_data()
        self._storage.set_item(self.data_key, seeded.to_json())
        return seeded.model_copy(deep=True)

    def reset(self) -> Ledger:
        """Replace everything with a fresh seed and point the session at its first player."""
        seeded = seed_demo_data()
        self.save(seeded)
        self.set_current_player(seeded.players[0].id)
        self._logger.info("Ledger reset to demo data")
        return seeded

    # ══════════════════════════════════════════════════════════
    #  Session Pointer
    # ══════════════════════════════════════════════════════════

    def get_current_player_id(self) -> int | None:
        """Return the session player id, or None if unset or unparsable."""
        raw = self._storage.get_item(self.session_key)
        if not raw:
            return None
        try:
            return int(raw.strip())
        except ValueError:
            self._logger.warning("Ignoring unparsable session pointer %r", raw)
            return None

    def set_current_player(self, player_id: int | None) -> None:
        if player_id is None:
            self._storage.remove_item(self.session_key)
        else:
            self._storage.set_item(self.session_key, str(int(player_id)))

    # ══════════════════════════════════════════════════════════
    #  Lookups
    # ══════════════════════════════════════════════════════════

    def find_player(self, player_id: int | None) -> Player | None:
        return self.ledger.find_player(player_id)

    def add_activity(self, player: Player, message: str) -> ActivityEntry:
        """Prepend an entry, dropping the oldest beyond the configured cap."""
        entry = ActivityEntry(message=message, time=now_utc())
        player.activity = [entry, *player.activity][: self._config.activity.max_entries]
        return entry

    # ══════════════════════════════════════════════════════════
    #  Mutations
    # ══════════════════════════════════════════════════════════

    def create_player(self, name: str, email: str, activity: str) -> Player:
        ledger = self.ledger
        player = Player(id=ledger.next_player_id, name=name, email=email)
        ledger.next_player_id += 1
        self.add_activity(player, activity)
        ledger.players.append(player)
        self.save()
        self._logger.info("Player %d created: %s <%s>", player.id, name, email)
        return player

    def create_game_account(
        self, player: Player, game: str, username: str, activity: str,
    ) -> GameAccount | None:
        """Add a zero-balance account. Returns None if the username is taken."""
        if username.lower() in player.usernames():
            return None
        ledger = self.ledger
        account = GameAccount(id=ledger.next_game_id, game=game, username=username)
        ledger.next_game_id += 1
        player.game_accounts.append(account)
        self.add_activity(player, activity)
        self.save()
        self._logger.info(
            "Game account %d (%s/%s) created for player %d",
            account.id, game, username, player.id,
        )
        return account

    def deposit(self, player: Player, amount: int, activity: str) -> int | None:
        """Credit the wallet. Returns the new wallet, or None for a non-positive amount."""
        if amount <= 0:
            return None
        player.wallet += amount
        self.add_activity(player, activity)
        self.save()
        self._logger.info("Player %d deposited %d (wallet %d)", player.id, amount, player.wallet)
        return player.wallet

    def transfer_to_game(
        self, player: Player, account: GameAccount, amount: int, activity: str,
    ) -> Transfer | None:
        """Move *amount* from wallet to game account as an approved transfer.

        Returns None without touching anything when the amount is not
        positive, exceeds the wallet, or the account is not the player's.
        """
        if amount <= 0 or amount > player.wallet:
            return None
        if player.find_game_account(account.id) is not account:
            return None

        ledger = self.ledger
        now = now_utc()
        player.wallet -= amount
        account.balance += amount
        transfer = Transfer(
            id=ledger.next_transfer_id,
            player_id=player.id,
            game_account_id=account.id,
            amount=amount,
            status=TransferStatus.APPROVED,
            requested_at=now,
            approved_at=now,
        )
        ledger.next_transfer_id += 1
        ledger.transfers.insert(0, transfer)
        self.add_activity(player, activity)
        self.save()
        self._logger.info(
            "Transfer %d: player %d moved %d to game account %d",
            transfer.id, player.id, amount, account.id,
        )
        return transfer

    def approve_transfer(
        self, transfer_id: int, activity: Callable[[Transfer, GameAccount], str],
    ) -> Transfer | None:
        """Approve a pending transfer and credit its game account.

        *activity* builds the player's activity message from the transfer and
        the credited account. Returns None (no-op) if the transfer is missing, already approved,
        or its player/account no longer resolves.
        """
        ledger = self.ledger
        transfer = ledger.find_transfer(transfer_id)
        if transfer is None or not transfer.is_pending:
            return None
        player = ledger.find_player(transfer.player_id)
        account = player.find_game_account(transfer.game_account_id) if player else None
        if player is None or account is None:
            return None

        transfer.status = TransferStatus.APPROVED
        transfer.approved_at = now_utc()
        account.balance += transfer.amount
        self.add_activity(player, activity(transfer, account))
        self.save()
        self._logger.info("Transfer %d approved (%d to game account %d)", transfer.id, transfer.amount, account.id)
        return transfer

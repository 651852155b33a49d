"""Typed schema for the persisted Ledger document.

JSON keys are camelCase (``nextPlayerId``, ``gameAccounts`` …); Python
attributes are snake_case. Nested lists carry explicit defaults, the root
document does not: a stored document missing any top-level key fails
validation and is treated as malformed by the store.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class TransferStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"


class ActivityEntry(_Document):
    message: str
    time: datetime


class GameAccount(_Document):
    id: int
    game: str
    username: str
    balance: int = Field(default=0, ge=0)


class Player(_Document):
    id: int
    name: str
    email: str
    wallet: int = Field(default=0, ge=0)
    game_accounts: list[GameAccount] = Field(default_factory=list)
    activity: list[ActivityEntry] = Field(default_factory=list)

    def find_game_account(self, account_id: int | None) -> GameAccount | None:
        for account in self.game_accounts:
            if account.id == account_id:
                return account
        return None

    def usernames(self) -> list[str]:
        """Lowercased usernames of every game account this player owns."""
        return [account.username.lower() for account in self.game_accounts]

    @property
    def last_activity_at(self) -> datetime | None:
        return self.activity[0].time if self.activity else None


class Transfer(_Document):
    id: int
    player_id: int
    game_account_id: int
    amount: int = Field(gt=0)
    status: TransferStatus
    requested_at: datetime
    approved_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is TransferStatus.PENDING

    @model_validator(mode="after")
    def check_approved_timestamp(self) -> Transfer:
        if self.status is TransferStatus.APPROVED and self.approved_at is None:
            raise ValueError(f"approved transfer {self.id} has no approvedAt")
        return self


class Ledger(_Document):
    """Root document: players, transfers and the id counters."""

    next_player_id: int = Field(ge=1)
    next_game_id: int = Field(ge=1)
    next_transfer_id: int = Field(ge=1)
    players: list[Player]
    transfers: list[Transfer]

    @model_validator(mode="after")
    def check_references(self) -> Ledger:
        player_ids = [p.id for p in self.players]
        if len(set(player_ids)) != len(player_ids):
            raise ValueError("duplicate player id")
        game_ids = [g.id for p in self.players for g in p.game_accounts]
        if len(set(game_ids)) != len(game_ids):
            raise ValueError("duplicate game account id")
        transfer_ids = [t.id for t in self.transfers]
        if len(set(transfer_ids)) != len(transfer_ids):
            raise ValueError("duplicate transfer id")

        if player_ids and max(player_ids) >= self.next_player_id:
            raise ValueError("nextPlayerId must exceed every player id")
        if game_ids and max(game_ids) >= self.next_game_id:
            raise ValueError("nextGameId must exceed every game account id")
        if transfer_ids and max(transfer_ids) >= self.next_transfer_id:
            raise ValueError("nextTransferId must exceed every transfer id")

        for transfer in self.transfers:
            player = self.find_player(transfer.player_id)
            if player is None:
                raise ValueError(f"transfer {transfer.id} references unknown player {transfer.player_id}")
            if player.find_game_account(transfer.game_account_id) is None:
                raise ValueError(
                    f"transfer {transfer.id} references game account "
                    f"{transfer.game_account_id} not owned by player {player.id}"
                )
        return self

    def find_player(self, player_id: int | None) -> Player | None:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def find_transfer(self, transfer_id: int | None) -> Transfer | None:
        for transfer in self.transfers:
            if transfer.id == transfer_id:
                return transfer
        return None

    def transfers_for(self, player_id: int) -> list[Transfer]:
        return [t for t in self.transfers if t.player_id == player_id]

    def pending_transfers(self) -> list[Transfer]:
        return [t for t in self.transfers if t.is_pending]

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, raw: str) -> Ledger:
        return cls.model_validate_json(raw)

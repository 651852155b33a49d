"""View projections and the console renderer.

Controllers never format output themselves. They build immutable
projections of the Ledger (``PlayerPanel``, ``AdminRosters`` …) with the
pure ``build_*`` functions below and hand them to a ``View``.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, TextIO

from .models import Ledger, Player, Transfer
from .utils import format_currency, format_timestamp


# ═══════════════════════════════════════════════════════════════
#  Projections
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GameAccountCard:
    id: int
    game: str
    username: str
    balance: int


@dataclass(frozen=True)
class TransferRow:
    id: int
    player_name: str
    game: str
    username: str
    amount: int
    status: str
    requested_at: datetime
    approved_at: datetime | None
    can_approve: bool


@dataclass(frozen=True)
class ActivityLine:
    message: str
    time: datetime


@dataclass(frozen=True)
class PlayerPanel:
    """Everything the player page shows. ``player_id`` is None for a guest."""
    player_id: int | None = None
    name: str = "Guest"
    email: str = ""
    wallet: int = 0
    game_accounts: tuple[GameAccountCard, ...] = ()
    transfers: tuple[TransferRow, ...] = ()
    activity: tuple[ActivityLine, ...] = ()
    suggested_username: str = ""

    @property
    def is_guest(self) -> bool:
        return self.player_id is None


@dataclass(frozen=True)
class LoginOption:
    player_id: int
    label: str
    selected: bool


@dataclass(frozen=True)
class PlayerRosterRow:
    id: int
    name: str
    email: str
    wallet: int
    game_count: int
    last_activity_at: datetime | None


@dataclass(frozen=True)
class AdminRosters:
    players: tuple[PlayerRosterRow, ...] = ()
    transfers: tuple[TransferRow, ...] = ()
    player_options: tuple[LoginOption, ...] = ()

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def pending_count(self) -> int:
        return sum(1 for row in self.transfers if row.can_approve)


def _transfer_row(ledger: Ledger, transfer: Transfer) -> TransferRow:
    player = ledger.find_player(transfer.player_id)
    account = player.find_game_account(transfer.game_account_id) if player else None
    return TransferRow(
        id=transfer.id,
        player_name=player.name if player else "Unknown",
        game=account.game if account else "",
        username=account.username if account else "",
        amount=transfer.amount,
        status=transfer.status.value,
        requested_at=transfer.requested_at,
        approved_at=transfer.approved_at,
        can_approve=transfer.is_pending,
    )


def build_player_panel(
    ledger: Ledger, player: Player | None, suggested_username: str = "",
) -> PlayerPanel:
    if player is None:
        return PlayerPanel()
    return PlayerPanel(
        player_id=player.id,
        name=player.name,
        email=player.email,
        wallet=player.wallet,
        game_accounts=tuple(
            GameAccountCard(id=a.id, game=a.game, username=a.username, balance=a.balance)
            for a in player.game_accounts
        ),
        transfers=tuple(_transfer_row(ledger, t) for t in ledger.transfers_for(player.id)),
        activity=tuple(ActivityLine(message=e.message, time=e.time) for e in player.activity),
        suggested_username=suggested_username,
    )


def build_login_options(ledger: Ledger, selected_id: int | None) -> tuple[LoginOption, ...]:
    return tuple(
        LoginOption(
            player_id=p.id,
            label=f"{p.name} ({p.email})",
            selected=p.id == selected_id,
        )
        for p in ledger.players
    )


def build_admin_rosters(ledger: Ledger) -> AdminRosters:
    return AdminRosters(
        players=tuple(
            PlayerRosterRow(
                id=p.id,
                name=p.name,
                email=p.email,
                wallet=p.wallet,
                game_count=len(p.game_accounts),
                last_activity_at=p.last_activity_at,
            )
            for p in ledger.players
        ),
        transfers=tuple(_transfer_row(ledger, t) for t in ledger.transfers),
        player_options=build_login_options(ledger, None),
    )


# ═══════════════════════════════════════════════════════════════
#  Renderers
# ═══════════════════════════════════════════════════════════════

class View(Protocol):
    def render_player(self, panel: PlayerPanel) -> None: ...

    def render_login_options(self, options: tuple[LoginOption, ...]) -> None: ...

    def render_admin(self, rosters: AdminRosters) -> None: ...

    def alert(self, message: str) -> None: ...


@dataclass
class ConsoleView:
    """Plain-text renderer used by the CLI."""

    out: TextIO = field(default_factory=lambda: sys.stdout)
    err: TextIO = field(default_factory=lambda: sys.stderr)
    symbol: str = "$"

    def _money(self, amount: int) -> str:
        return format_currency(amount, self.symbol)

    def _line(self, text: str = "") -> None:
        print(text, file=self.out)

    def render_player(self, panel: PlayerPanel) -> None:
        if panel.is_guest:
            self._line("Guest")
            self._line("Wallet balance: " + self._money(0))
            self._line("No player selected.")
            return

        self._line(f"{panel.name}'s wallet: {self._money(panel.wallet)}")
        self._line()
        self._line("Game accounts")
        if not panel.game_accounts:
            self._line("  No game accounts assigned yet.")
        for card in panel.game_accounts:
            self._line(f"  [{card.id}] {card.game} • {card.username}  credits {self._money(card.balance)}")

        self._line()
        self._line("Transfers")
        if not panel.transfers:
            self._line("  No transfers yet.")
        for row in panel.transfers:
            self._line(self._transfer_line(row))

        self._line()
        self._line("Activity")
        if not panel.activity:
            self._line("  No activity yet.")
        for entry in panel.activity:
            self._line(f"  {format_timestamp(entry.time)}  {entry.message}")

        if panel.suggested_username:
            self._line()
            self._line(f"Suggested username: {panel.suggested_username}")

    def render_login_options(self, options: tuple[LoginOption, ...]) -> None:
        if not options:
            self._line("No players yet")
            return
        for option in options:
            marker = "*" if option.selected else " "
            self._line(f"{marker} {option.player_id}: {option.label}")

    def render_admin(self, rosters: AdminRosters) -> None:
        self._line(f"Players ({rosters.player_count} players)")
        if not rosters.players:
            self._line("  No players yet.")
        for p in rosters.players:
            self._line(
                f"  [{p.id}] {p.name} <{p.email}>  wallet {self._money(p.wallet)}  "
                f"games {p.game_count}  last activity {format_timestamp(p.last_activity_at)}"
            )
        self._line()
        self._line(f"Transfers ({rosters.pending_count} pending)")
        if not rosters.transfers:
            self._line("  No transfer requests yet.")
        for row in rosters.transfers:
            self._line(self._transfer_line(row))

    def _transfer_line(self, row: TransferRow) -> str:
        action = "  [approve]" if row.can_approve else ""
        return (
            f"  #{row.id} {row.player_name} {row.game} • {row.username}  "
            f"{self._money(row.amount)}  {row.status}  "
            f"requested {format_timestamp(row.requested_at)}  "
            f"approved {format_timestamp(row.approved_at)}{action}"
        )

    def alert(self, message: str) -> None:
        print(f"! {message}", file=self.err)

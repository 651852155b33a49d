"""Outcome of a controller action.

Every player/admin action returns an ``ActionOutcome`` so callers can see
whether it applied, was silently ignored, or was refused with an alert.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ActionResult(Enum):
    SUCCESS = "success"
    IGNORED = "ignored"
    NO_PLAYER = "no_player"
    NO_GAME_ACCOUNT = "no_game_account"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    DUPLICATE_USERNAME = "duplicate_username"


ALERT_NO_PLAYER = "Select or create a player first."
ALERT_NO_PLAYERS_FOR_ADMIN = "Create a player first."
ALERT_NO_GAME_ACCOUNT = "Pick a game account."
ALERT_INSUFFICIENT_FUNDS = "Not enough wallet credits."
ALERT_DUPLICATE_USERNAME = "That username is already used for one of this player's game accounts."


@dataclass(frozen=True)
class ActionOutcome:
    result: ActionResult
    message: str = ""
    value: Any = None

    @property
    def applied(self) -> bool:
        return self.result is ActionResult.SUCCESS

    @classmethod
    def ok(cls, value: Any = None, message: str = "") -> ActionOutcome:
        return cls(result=ActionResult.SUCCESS, message=message, value=value)

    @classmethod
    def ignored(cls) -> ActionOutcome:
        return cls(result=ActionResult.IGNORED)

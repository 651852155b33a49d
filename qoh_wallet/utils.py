"""Shared utility helpers for qoh-wallet."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable

_WHITESPACE = re.compile(r"\s+")


def now_utc() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def format_currency(amount: int, symbol: str = "$") -> str:
    """Whole-unit currency string, e.g. ``$1,250`` or ``-$40``."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(int(amount)):,}"


def format_timestamp(dt: datetime | None) -> str:
    """Local datetime string for display, or a placeholder dash when absent."""
    if dt is None:
        return "—"
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def parse_int(value: object) -> int:
    """Parse a form field the way ``parseInt`` does: leading integer, else 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if value is None:
        return 0
    match = re.match(r"\s*([+-]?\d+)", str(value))
    if not match:
        return 0
    try:
        return int(match.group(1))
    except ValueError:
        # Past the interpreter's int digit limit
        return 0


def match_choice(value: str | None, choices: Iterable[str]) -> str | None:
    """Catalogue entry equal to *value* ignoring case and outer whitespace."""
    wanted = (value or "").strip().lower()
    if not wanted:
        return None
    for choice in choices:
        if choice.strip().lower() == wanted:
            return choice
    return None


def unique_username(base: str, existing: Iterable[str]) -> str:
    """Lowercased *base*, or *base* plus 2, 3, … until not in *existing*.

    *existing* is expected to be lowercased already.
    """
    taken = set(existing)
    candidate = base.lower()
    suffix = 1
    while candidate in taken:
        suffix += 1
        candidate = f"{base}{suffix}".lower()
    return candidate


def suggest_username(player_name: str | None, game_name: str | None, existing: Iterable[str]) -> str:
    """First name token plus game name, disambiguated case-insensitively."""
    tokens = (player_name or "").split()
    first = (tokens[0] if tokens else "player").lower()
    game = _WHITESPACE.sub("", game_name or "") or "game"
    base = f"{first}{game.lower()}"
    return unique_username(base, (name.lower() for name in existing))

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Player:
    player_id: str
    name: str


def build_roster(names: Sequence[str]) -> tuple[Player, ...]:
    """One player per name, in the given order, each with a fresh id."""

    if not names:
        raise ValueError("At least one player is required")

    players: list[Player] = []
    for name in names:
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("Player names must not be blank")
        players.append(Player(player_id=uuid4().hex, name=cleaned))
    return tuple(players)

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from pairs.core.cards import Card
from pairs.core.roster import Player


class InvariantViolation(RuntimeError):
    """The context reached a shape the scheduler can never legitimately produce."""


@dataclass(frozen=True, slots=True)
class Guess:
    """A card selected during the current turn, carrying its value for resolution."""

    card_id: str
    value: str


@dataclass(frozen=True, slots=True)
class GameContext:
    """Immutable game record; every transition builds a new one.

    - `matched` holds card *values*, not card ids: both cards of a value are
      found together.
    - `pre_reveal_matched` is set only while the reveal assist is active and
      holds the genuinely found values to restore afterwards.
    """

    cards: tuple[Card, ...]
    players: tuple[Player, ...]
    turn: int = 0
    guess: tuple[Guess, ...] = ()
    matched: frozenset[str] = frozenset()
    points: Mapping[str, int] = field(default_factory=dict)
    winners: tuple[Player, ...] = ()
    reveal_enabled: bool = True
    restart_enabled: bool = True
    pre_reveal_matched: frozenset[str] | None = None

    @property
    def values(self) -> frozenset[str]:
        return frozenset(c.value for c in self.cards)

    @property
    def reveal_active(self) -> bool:
        return self.pre_reveal_matched is not None

    @property
    def found(self) -> frozenset[str]:
        """Values genuinely matched by players, ignoring an active reveal."""

        if self.pre_reveal_matched is not None:
            return self.pre_reveal_matched
        return self.matched

    @property
    def active_player(self) -> Player:
        if not 0 <= self.turn < len(self.players):
            raise InvariantViolation(f"Turn index {self.turn} has no player (roster size {len(self.players)})")
        return self.players[self.turn]

    def score_of(self, player_id: str) -> int:
        return self.points.get(player_id, 0)

    def card(self, card_id: str) -> Card | None:
        return next((c for c in self.cards if c.card_id == card_id), None)

    def face_up_card_ids(self) -> list[str]:
        pending = {g.card_id for g in self.guess}
        return [c.card_id for c in self.cards if c.card_id in pending or c.value in self.matched]


def new_context(*, cards: tuple[Card, ...], players: tuple[Player, ...]) -> GameContext:
    if not players:
        raise ValueError("At least one player is required")
    return GameContext(cards=cards, players=players)

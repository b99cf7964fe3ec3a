from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from uuid import uuid4

DEFAULT_VALUES = "abcdef"
DEFAULT_PALETTE: tuple[str, ...] = ("red", "green", "blue", "orange", "purple", "black")

CARDS_PER_VALUE = 2


@dataclass(frozen=True, slots=True)
class Card:
    card_id: str
    value: str
    # Display attribute (a color by default); derived from the value's position.
    tag: str


def build_deck(values: Sequence[str], palette: Sequence[str] = DEFAULT_PALETTE) -> tuple[Card, ...]:
    """Build the unshuffled deck: two cards per value, in value order.

    `values` may be any sequence of symbols, including a plain string ("abcdef").
    """

    symbols = list(values)
    if not symbols:
        raise ValueError("At least one card value is required")
    if len(set(symbols)) != len(symbols):
        raise ValueError("Card values must be unique")
    if len(palette) < len(symbols):
        raise ValueError(f"Palette has {len(palette)} entries but {len(symbols)} values need a tag")

    cards: list[Card] = []
    for i, value in enumerate(symbols):
        for _ in range(CARDS_PER_VALUE):
            cards.append(Card(card_id=uuid4().hex, value=value, tag=palette[i]))
    return tuple(cards)


def shuffle(cards: Sequence[Card], *, rng: random.Random) -> tuple[Card, ...]:
    """Return a uniformly shuffled copy; `cards` itself is left untouched."""

    out = list(cards)
    rng.shuffle(out)
    return tuple(out)

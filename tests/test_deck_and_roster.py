from __future__ import annotations

import random
from collections import Counter

import pytest

from pairs.core.cards import DEFAULT_PALETTE, DEFAULT_VALUES, build_deck, shuffle
from pairs.core.roster import build_roster


def test_build_deck_has_exactly_two_cards_per_value() -> None:
    deck = build_deck(DEFAULT_VALUES)

    assert len(deck) == 2 * len(DEFAULT_VALUES)
    counts = Counter(c.value for c in deck)
    assert set(counts) == set(DEFAULT_VALUES)
    assert set(counts.values()) == {2}
    assert len({c.card_id for c in deck}) == len(deck)


def test_build_deck_tags_by_value_position() -> None:
    deck = build_deck("abc", ["red", "green", "blue", "unused"])

    tags = {c.value: c.tag for c in deck}
    assert tags == {"a": "red", "b": "green", "c": "blue"}
    # Both cards of a value share the tag.
    assert len({(c.value, c.tag) for c in deck}) == 3


def test_default_palette_covers_default_values() -> None:
    deck = build_deck(DEFAULT_VALUES, DEFAULT_PALETTE)
    assert {c.tag for c in deck} == set(DEFAULT_PALETTE)


@pytest.mark.parametrize(
    ("values", "palette", "message"),
    [
        ("", DEFAULT_PALETTE, "At least one"),
        ("aab", DEFAULT_PALETTE, "unique"),
        ("abc", ("red",), "Palette"),
    ],
)
def test_build_deck_rejects_bad_inputs(values: str, palette: tuple[str, ...], message: str) -> None:
    with pytest.raises(ValueError) as e:
        build_deck(values, palette)
    assert message in str(e.value)


def test_shuffle_is_a_permutation_and_leaves_input_alone() -> None:
    deck = build_deck(DEFAULT_VALUES)
    original = tuple(deck)

    out = shuffle(deck, rng=random.Random(42))

    assert deck == original
    assert sorted(c.card_id for c in out) == sorted(c.card_id for c in deck)
    assert out != deck


def test_shuffle_is_reproducible_from_seed() -> None:
    deck = build_deck(DEFAULT_VALUES)
    assert shuffle(deck, rng=random.Random(3)) == shuffle(deck, rng=random.Random(3))


def test_build_roster_keeps_order_and_generates_unique_ids() -> None:
    players = build_roster(["Ann", " Bo ", "Cy"])

    assert [p.name for p in players] == ["Ann", "Bo", "Cy"]
    assert len({p.player_id for p in players}) == 3


def test_build_roster_rejects_empty_and_blank_names() -> None:
    with pytest.raises(ValueError):
        build_roster([])
    with pytest.raises(ValueError):
        build_roster(["Ann", "   "])

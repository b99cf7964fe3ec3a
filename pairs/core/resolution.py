"""Pure transition functions: (context, ...) -> new context.

None of these mutate their input. They never raise for reachable states; the only
error is `InvariantViolation` when the active turn has no player.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace

from pairs.core.cards import shuffle
from pairs.core.context import GameContext, Guess
from pairs.core.roster import Player

logger = logging.getLogger(__name__)

POINTS_PER_MATCH = 1
MAX_PENDING_GUESSES = 2


def is_game_over(ctx: GameContext) -> bool:
    return len(ctx.found) * 2 >= len(ctx.cards)


def append_guess(ctx: GameContext, guess: Guess) -> GameContext:
    card = ctx.card(guess.card_id)
    if card is None or card.value != guess.value:
        logger.debug("Ignoring guess for unknown card %s", guess.card_id)
        return ctx
    if guess.value in ctx.matched:
        logger.debug("Ignoring guess for already matched value %r", guess.value)
        return ctx
    if any(g.card_id == guess.card_id for g in ctx.guess):
        logger.debug("Ignoring repeated guess for pending card %s", guess.card_id)
        return ctx

    if len(ctx.guess) < MAX_PENDING_GUESSES:
        return replace(ctx, guess=ctx.guess + (guess,))

    # A third click arrived before the pending pair was resolved.
    if len(ctx.players) == 1:
        return replace(ctx, guess=(ctx.guess[1], guess))
    return replace(ctx, guess=(guess,))


def resolve_guess_pair(ctx: GameContext) -> GameContext:
    if len(ctx.guess) != MAX_PENDING_GUESSES:
        return ctx

    first, second = ctx.guess
    active = ctx.active_player

    if first.value == second.value:
        points = dict(ctx.points)
        points[active.player_id] = ctx.score_of(active.player_id) + POINTS_PER_MATCH
        logger.info("Player %s matched %r", active.name, first.value)
        return replace(ctx, points=points, matched=ctx.matched | {first.value}, guess=())

    # Mismatched guesses stay pending until the settle step so both cards remain visible.
    return replace(ctx, turn=(ctx.turn + 1) % len(ctx.players))


def compute_winners(ctx: GameContext) -> tuple[Player, ...]:
    best: int | None = None
    winners: list[Player] = []
    for player in ctx.players:
        score = ctx.score_of(player.player_id)
        if best is None or score > best:
            best = score
            winners = [player]
        elif score == best:
            winners.append(player)
    return tuple(winners)


def finalize_turn(ctx: GameContext) -> GameContext:
    if is_game_over(ctx):
        winners = compute_winners(ctx)
        logger.info("Game over; winners: %s", ", ".join(p.name for p in winners))
        return replace(ctx, winners=winners, guess=())
    if len(ctx.guess) == MAX_PENDING_GUESSES:
        return replace(ctx, guess=())
    # A lone pending guess stays face-up until the second pick.
    return ctx


def restart(ctx: GameContext, *, rng: random.Random) -> GameContext:
    turn = 0
    if len(ctx.winners) == 1:
        winner = ctx.winners[0]
        turn = next((i for i, p in enumerate(ctx.players) if p.player_id == winner.player_id), 0)

    return replace(
        ctx,
        cards=shuffle(ctx.cards, rng=rng),
        turn=turn,
        guess=(),
        matched=frozenset(),
        points={},
        winners=(),
        reveal_enabled=True,
        restart_enabled=True,
        pre_reveal_matched=None,
    )


def reveal(ctx: GameContext) -> GameContext:
    if not ctx.reveal_enabled:
        return ctx
    return replace(
        ctx,
        matched=ctx.values,
        pre_reveal_matched=ctx.matched,
        reveal_enabled=False,
    )


def unreveal(ctx: GameContext) -> GameContext:
    if ctx.pre_reveal_matched is None:
        return ctx
    return replace(ctx, matched=ctx.pre_reveal_matched, pre_reveal_matched=None)

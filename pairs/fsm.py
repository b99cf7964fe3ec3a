from __future__ import annotations

from typing import TYPE_CHECKING

from statemachine import State, StateMachine

from pairs.api.models import TurnPhase
from pairs.core import resolution
from pairs.core.context import Guess

if TYPE_CHECKING:
    from pairs.scheduler import TurnScheduler


class TurnFSM(StateMachine):
    """Turn protocol for one session.

    The machine owns *when* things happen; the scheduler owns the context and the
    timers, and every context change goes through a pure resolution function.

    - idle: accepting guesses, restart, and reveal.
    - resolving: a guess arrived; the turn timer is running.
    - settling: transient; runs the settle step then returns to idle.
    - revealing: reveal-all assist is up until the reveal timer fires.
    """

    idle = State(TurnPhase.idle.value, value=TurnPhase.idle.value, initial=True)
    resolving = State(TurnPhase.resolving.value, value=TurnPhase.resolving.value)
    settling = State(TurnPhase.settling.value, value=TurnPhase.settling.value)
    revealing = State(TurnPhase.revealing.value, value=TurnPhase.revealing.value)

    # Re-entering resolving restarts the turn timer. While revealing every value
    # counts as matched, so no guess passes the condition there.
    guess = idle.to(resolving, cond="guess_applies") | resolving.to.itself(cond="guess_applies")
    turn_elapsed = resolving.to(settling)
    settled = settling.to(idle)

    reveal = idle.to(revealing, cond="reveal_enabled")
    reveal_elapsed = revealing.to(idle)

    restart = idle.to.itself() | resolving.to(idle) | settling.to(idle) | revealing.to(idle)

    def __init__(self, scheduler: "TurnScheduler"):
        self.scheduler = scheduler
        super().__init__(allow_event_without_transition=True)

    @property
    def phase(self) -> TurnPhase:
        return TurnPhase(str(self.current_state.value))

    @property
    def reveal_enabled(self) -> bool:
        return self.scheduler.context.reveal_enabled

    def guess_applies(self, guess: Guess) -> bool:
        ctx = self.scheduler.context
        return resolution.append_guess(ctx, guess) is not ctx

    def on_guess(self, guess: Guess) -> None:
        self.scheduler.apply(lambda ctx: resolution.append_guess(ctx, guess))

    def on_enter_resolving(self) -> None:
        self.scheduler.start_turn_timer()

    def on_turn_elapsed(self) -> None:
        self.scheduler.apply(resolution.resolve_guess_pair)

    def on_enter_settling(self) -> None:
        self.scheduler.apply(resolution.finalize_turn)

    def on_enter_revealing(self) -> None:
        self.scheduler.apply(resolution.reveal)
        self.scheduler.start_reveal_timer()

    def on_reveal_elapsed(self) -> None:
        self.scheduler.apply(resolution.unreveal)

    def on_restart(self) -> None:
        self.scheduler.cancel_timers()
        self.scheduler.apply(lambda ctx: resolution.restart(ctx, rng=self.scheduler.rng))

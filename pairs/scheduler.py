from __future__ import annotations

import logging
import random
from collections import deque
from collections.abc import Callable

from pairs.api.models import CommandType, GameSnapshot, GuessCommand, PairsCommand, RestartCommand, RevealCommand, TurnPhase
from pairs.config import EngineConfig
from pairs.core.cards import build_deck, shuffle
from pairs.core.context import GameContext, Guess, new_context
from pairs.core.events import EngineEvent, EventName
from pairs.core.roster import build_roster
from pairs.fsm import TurnFSM
from pairs.timers import TimerHandle, Timers

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[GameSnapshot], None]

_TURN_TIMER = "turn"
_REVEAL_TIMER = "reveal"

HISTORY_LIMIT = 256


class TurnScheduler:
    """Owns the single current context for a session and sequences every change.

    Commands and timer firings share one FIFO queue and are processed to
    completion in arrival order. Each processed event swaps in a new immutable
    context and notifies listeners with a snapshot.

    Every timer is tagged with the current epoch; `restart` bumps the epoch and
    cancels outstanding handles, so a stale timer can never touch the restarted
    game.

    `history` keeps only the most recent `HISTORY_LIMIT` processed events.
    """

    def __init__(
        self,
        *,
        context: GameContext,
        timers: Timers,
        config: EngineConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.timers = timers
        self.rng = rng or random.Random()
        self.context = context
        self.epoch = 0
        self.history: deque[EngineEvent] = deque(maxlen=HISTORY_LIMIT)

        self._queue: deque[EngineEvent] = deque()
        self._draining = False
        self._handles: dict[str, TimerHandle] = {}
        self._listeners: list[SnapshotListener] = []

        self.fsm = TurnFSM(self)

    @classmethod
    def new_game(
        cls,
        *,
        player_names: list[str],
        timers: Timers,
        config: EngineConfig | None = None,
        rng: random.Random | None = None,
    ) -> "TurnScheduler":
        config = config or EngineConfig()
        rng = rng or random.Random()
        cards = shuffle(build_deck(config.values, config.palette), rng=rng)
        ctx = new_context(cards=cards, players=build_roster(player_names))
        return cls(context=ctx, timers=timers, config=config, rng=rng)

    @property
    def phase(self) -> TurnPhase:
        return self.fsm.phase

    # --- boundary -----------------------------------------------------------

    def subscribe(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def accepted_commands(self) -> list[CommandType]:
        phase = self.phase
        accepted: list[CommandType] = ["GUESS", "RESTART"]
        if phase == TurnPhase.idle and self.context.reveal_enabled:
            accepted.append("REVEAL")
        return accepted

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot.from_context(self.context, phase=self.phase, accepted_commands=self.accepted_commands())

    def dispatch(self, command: PairsCommand) -> GameSnapshot:
        """Enqueue a command and process the queue; returns the resulting snapshot."""

        if isinstance(command, GuessCommand):
            event = EngineEvent.command(name="guess", payload={"card_id": command.card_id, "card_value": command.card_value})
        elif isinstance(command, RestartCommand):
            event = EngineEvent.command(name="restart")
        elif isinstance(command, RevealCommand):
            event = EngineEvent.command(name="reveal")
        else:
            raise ValueError(f"Unknown command: {command!r}")

        self._enqueue(event)
        return self.snapshot()

    # --- hooks used by TurnFSM ----------------------------------------------

    def apply(self, update: Callable[[GameContext], GameContext]) -> None:
        self.context = update(self.context)

    def start_turn_timer(self) -> None:
        self._start_timer(_TURN_TIMER, self.config.turn_delay_ms, "turn_elapsed")

    def start_reveal_timer(self) -> None:
        self._start_timer(_REVEAL_TIMER, self.config.reveal_delay_ms, "reveal_elapsed")

    def cancel_timers(self) -> None:
        self.epoch += 1
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()

    # --- internals ----------------------------------------------------------

    def _start_timer(self, key: str, delay_ms: int, event_name: EventName) -> None:
        previous = self._handles.pop(key, None)
        if previous is not None:
            previous.cancel()

        event = EngineEvent.timer(name=event_name, epoch=self.epoch)

        def _fire() -> None:
            self._handles.pop(key, None)
            self._enqueue(event)

        self._handles[key] = self.timers.call_later(delay_ms, _fire)

    def _enqueue(self, event: EngineEvent) -> None:
        self._queue.append(event)
        if self._draining:
            return

        self._draining = True
        try:
            while self._queue:
                self._process(self._queue.popleft())
        finally:
            self._draining = False

    def _process(self, event: EngineEvent) -> None:
        if event.source == "timer" and event.epoch != self.epoch:
            logger.debug("Dropping stale %s timer from epoch %d (now %d)", event.name, event.epoch, self.epoch)
            return

        before_ctx, before_phase = self.context, self.phase
        self.history.append(event)

        if event.name == "guess":
            guess = Guess(card_id=str(event.payload["card_id"]), value=str(event.payload["card_value"]))
            self.fsm.send("guess", guess=guess)
        elif event.name == "turn_elapsed":
            self.fsm.send("turn_elapsed")
            self.fsm.send("settled")
        else:
            self.fsm.send(event.name)

        if self.context is before_ctx and self.phase == before_phase:
            logger.debug("%s event %s ignored in phase %s", event.source, event.name, before_phase.value)
            return

        logger.debug("%s event %s: %s -> %s", event.source, event.name, before_phase.value, self.phase.value)
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum

from pairs.core.cards import DEFAULT_PALETTE, DEFAULT_VALUES

DEFAULT_TURN_DELAY_MS = 1000
DEFAULT_REVEAL_DELAY_MS = 3000


class ScoringMode(StrEnum):
    point_per_match = "point_per_match"
    # Reserved; not implemented.
    fewest_turns = "fewest_turns"


@dataclass(frozen=True, slots=True)
class EngineConfig:
    # How long both guessed cards stay visible before the turn is resolved.
    turn_delay_ms: int = DEFAULT_TURN_DELAY_MS
    # How long the reveal-all assist stays up.
    reveal_delay_ms: int = DEFAULT_REVEAL_DELAY_MS
    scoring_mode: ScoringMode = ScoringMode.point_per_match
    values: str = DEFAULT_VALUES
    palette: tuple[str, ...] = DEFAULT_PALETTE

    def __post_init__(self) -> None:
        if self.turn_delay_ms < 0 or self.reveal_delay_ms < 0:
            raise ValueError("Delays must be non-negative")
        if self.scoring_mode is not ScoringMode.point_per_match:
            raise ValueError(f"Scoring mode '{self.scoring_mode.value}' is not supported")

    def with_overrides(
        self,
        *,
        turn_delay_ms: int | None = None,
        reveal_delay_ms: int | None = None,
    ) -> "EngineConfig":
        return EngineConfig(
            turn_delay_ms=self.turn_delay_ms if turn_delay_ms is None else turn_delay_ms,
            reveal_delay_ms=self.reveal_delay_ms if reveal_delay_ms is None else reveal_delay_ms,
            scoring_mode=self.scoring_mode,
            values=self.values,
            palette=self.palette,
        )


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from e


def config_from_env() -> EngineConfig:
    palette_raw = os.environ.get("PAIRS_PALETTE")
    palette = tuple(p.strip() for p in palette_raw.split(",") if p.strip()) if palette_raw else DEFAULT_PALETTE

    return EngineConfig(
        turn_delay_ms=_int_from_env("PAIRS_TURN_DELAY_MS", DEFAULT_TURN_DELAY_MS),
        reveal_delay_ms=_int_from_env("PAIRS_REVEAL_DELAY_MS", DEFAULT_REVEAL_DELAY_MS),
        scoring_mode=ScoringMode(os.environ.get("PAIRS_SCORING_MODE", ScoringMode.point_per_match.value)),
        values=os.environ.get("PAIRS_VALUES", DEFAULT_VALUES),
        palette=palette,
    )

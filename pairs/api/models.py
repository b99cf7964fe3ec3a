from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter

from pairs.core.context import GameContext
from pairs.core.resolution import is_game_over

CommandType = Literal["GUESS", "RESTART", "REVEAL"]


class TurnPhase(StrEnum):
    idle = "idle"
    resolving = "resolving"
    settling = "settling"
    revealing = "revealing"


class GuessCommand(BaseModel):
    type: Literal["GUESS"] = "GUESS"
    card_id: str = Field(..., min_length=1)
    card_value: str = Field(..., min_length=1)


class RestartCommand(BaseModel):
    type: Literal["RESTART"] = "RESTART"


class RevealCommand(BaseModel):
    type: Literal["REVEAL"] = "REVEAL"


PairsCommand = Annotated[Union[GuessCommand, RestartCommand, RevealCommand], Field(discriminator="type")]

_COMMAND_ADAPTER: TypeAdapter[PairsCommand] = TypeAdapter(PairsCommand)


def parse_command(raw: dict[str, Any]) -> GuessCommand | RestartCommand | RevealCommand:
    """Validate an incoming command; raises ValueError (pydantic ValidationError) on anything else."""

    return _COMMAND_ADAPTER.validate_python(raw)


class CardView(BaseModel):
    card_id: str
    value: str
    tag: str


class PlayerView(BaseModel):
    player_id: str
    name: str


class GuessView(BaseModel):
    card_id: str
    value: str


class GameSnapshot(BaseModel):
    """Read-only view of a session published after every transition."""

    phase: TurnPhase
    cards: list[CardView]
    players: list[PlayerView]
    turn: int
    guess: list[GuessView] = Field(default_factory=list)
    matched: list[str] = Field(default_factory=list)
    points: dict[str, int] = Field(default_factory=dict)
    winners: list[PlayerView] = Field(default_factory=list)
    reveal_enabled: bool = True
    restart_enabled: bool = True

    # Derived for the presentation layer.
    active_player_id: str
    face_up_card_ids: list[str] = Field(default_factory=list)
    reveal_active: bool = False
    game_over: bool = False
    accepted_commands: list[CommandType] = Field(default_factory=list)

    @classmethod
    def from_context(
        cls,
        ctx: GameContext,
        *,
        phase: TurnPhase,
        accepted_commands: list[CommandType],
    ) -> "GameSnapshot":
        return cls(
            phase=phase,
            cards=[CardView(card_id=c.card_id, value=c.value, tag=c.tag) for c in ctx.cards],
            players=[PlayerView(player_id=p.player_id, name=p.name) for p in ctx.players],
            turn=ctx.turn,
            guess=[GuessView(card_id=g.card_id, value=g.value) for g in ctx.guess],
            matched=sorted(ctx.matched),
            points=dict(ctx.points),
            winners=[PlayerView(player_id=p.player_id, name=p.name) for p in ctx.winners],
            reveal_enabled=ctx.reveal_enabled,
            restart_enabled=ctx.restart_enabled,
            active_player_id=ctx.active_player.player_id,
            face_up_card_ids=ctx.face_up_card_ids(),
            reveal_active=ctx.reveal_active,
            game_over=is_game_over(ctx),
            accepted_commands=list(accepted_commands),
        )


class SessionCreateRequest(BaseModel):
    player_names: list[str] = Field(..., min_length=1, max_length=8)
    turn_delay_ms: int | None = Field(default=None, ge=0, le=60_000)
    reveal_delay_ms: int | None = Field(default=None, ge=0, le=60_000)
    # For reproducible shuffles.
    seed: int | None = None


class SessionState(BaseModel):
    session_id: UUID
    snapshot: GameSnapshot


class SessionListResponse(BaseModel):
    sessions: list[SessionState]

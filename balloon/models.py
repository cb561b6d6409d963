from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for everything that crosses the link.

    Wire names are camelCase (``gameId``, ``balloonStatus``) so payloads stay
    readable by the JS clients; Python code uses the snake_case attributes.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GamePhase(StrEnum):
    mode_select = "MODE_SELECT"
    name_entry = "NAME_ENTRY"
    lobby = "LOBBY"
    round1 = "ROUND1"  # looks only
    round2 = "ROUND2"  # questions + answers
    round3 = "ROUND3"  # spotlight chooses
    results = "RESULTS"


class PlayerRole(StrEnum):
    host = "host"
    balloon = "balloon"


class BalloonStatus(StrEnum):
    intact = "intact"
    popped = "popped"


class PlayerState(WireModel):
    id: str
    name: str
    role: PlayerRole = PlayerRole.balloon
    balloon_status: BalloonStatus = BalloonStatus.intact

    # Free-text tag set when the balloon pops ("looks", "answer", ...).
    pop_reason: str | None = None

    @property
    def is_popped(self) -> bool:
        return self.balloon_status == BalloonStatus.popped


class Question(WireModel):
    id: str
    from_player_id: str
    text: str
    # Count of questions that existed when this one was created.
    order_index: int = Field(..., ge=0)


class Answer(WireModel):
    id: str
    question_id: str
    from_player_id: str
    text: str


class Match(WireModel):
    spotlight_id: str
    balloon_id: str


class SessionState(WireModel):
    """The whole game session. The host holds the canonical copy; clients hold replicas."""

    game_id: str | None = None
    phase: GamePhase = GamePhase.mode_select
    host_id: str | None = None

    # Assigned by the host in the lobby, before ROUND1.
    spotlight_id: str | None = None

    players: list[PlayerState] = Field(default_factory=list)
    questions: list[Question] = Field(default_factory=list)
    answers: list[Answer] = Field(default_factory=list)

    # Set at most once per round; FINAL_CHOICE is the only writer.
    match: Match | None = None

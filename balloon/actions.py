from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, Literal, Union
from uuid import UUID, uuid5

from pydantic import Field

from balloon.models import Answer, BalloonStatus, GamePhase, Match, PlayerRole, PlayerState, Question, SessionState, WireModel
from balloon.queries import answer_for, require_player
from balloon.validators import PreconditionFailed, ValidationContext, pipeline_for_action

logger = logging.getLogger(__name__)

ActionName = Literal["JOIN", "POP", "KEEP", "QUESTION", "ANSWER", "FINAL_CHOICE"]

# Answer ids are derived from the question id so applying an action is deterministic.
_ANSWER_ID_NAMESPACE = UUID("6f1c2a8e-4b7d-5e39-9a0c-3d2b8f71e4a5")


class JoinAction(WireModel):
    type: Literal["JOIN"] = "JOIN"
    player_id: str
    name: str

    def validation_context(self) -> ValidationContext:
        return ValidationContext(action=self.type, player_id=self.player_id)


class PopAction(WireModel):
    type: Literal["POP"] = "POP"
    player_id: str
    reason: str | None = None

    def validation_context(self) -> ValidationContext:
        return ValidationContext(action=self.type, player_id=self.player_id)


class KeepAction(WireModel):
    type: Literal["KEEP"] = "KEEP"
    player_id: str

    def validation_context(self) -> ValidationContext:
        return ValidationContext(action=self.type, player_id=self.player_id)


class QuestionAction(WireModel):
    type: Literal["QUESTION"] = "QUESTION"
    id: str
    from_player_id: str
    text: str

    def validation_context(self) -> ValidationContext:
        return ValidationContext(action=self.type, player_id=self.from_player_id, question_id=self.id)


class AnswerAction(WireModel):
    type: Literal["ANSWER"] = "ANSWER"
    question_id: str
    from_player_id: str
    text: str

    def validation_context(self) -> ValidationContext:
        return ValidationContext(action=self.type, player_id=self.from_player_id, question_id=self.question_id)


class FinalChoiceAction(WireModel):
    type: Literal["FINAL_CHOICE"] = "FINAL_CHOICE"
    spotlight_id: str
    balloon_id: str

    def validation_context(self) -> ValidationContext:
        return ValidationContext(action=self.type, player_id=self.spotlight_id, other_player_id=self.balloon_id)


Action = Annotated[
    Union[JoinAction, PopAction, KeepAction, QuestionAction, AnswerAction, FinalChoiceAction],
    Field(discriminator="type"),
]


@dataclass(frozen=True, slots=True)
class ApplyResult:
    """Result of applying an action.

    - `state`: the resulting session (the input object itself when nothing applied).
    - `applied`: False when a precondition failed and the action was ignored.
    - `reason`: the failed precondition, for logs and tests only; never sent to the submitter.
    """

    state: SessionState
    applied: bool
    reason: str | None = None


def answer_id_for(question_id: str) -> str:
    return str(uuid5(_ANSWER_ID_NAMESPACE, question_id))


def _apply_join(state: SessionState, action: JoinAction) -> None:
    state.players.append(
        PlayerState(
            id=action.player_id,
            name=action.name,
            role=PlayerRole.balloon,
            balloon_status=BalloonStatus.intact,
            pop_reason=None,
        )
    )


def _apply_pop(state: SessionState, action: PopAction) -> None:
    player = state.players[require_player(state=state, player_id=action.player_id)]
    player.balloon_status = BalloonStatus.popped
    player.pop_reason = action.reason or None


def _apply_keep(state: SessionState, action: KeepAction) -> None:
    player = state.players[require_player(state=state, player_id=action.player_id)]
    player.balloon_status = BalloonStatus.intact


def _apply_question(state: SessionState, action: QuestionAction) -> None:
    state.questions.append(
        Question(
            id=action.id,
            from_player_id=action.from_player_id,
            text=action.text,
            order_index=len(state.questions),
        )
    )


def _apply_answer(state: SessionState, action: AnswerAction) -> None:
    existing = answer_for(state=state, question_id=action.question_id)
    if existing is not None:
        existing.text = action.text
        return

    state.answers.append(
        Answer(
            id=answer_id_for(action.question_id),
            question_id=action.question_id,
            from_player_id=action.from_player_id,
            text=action.text,
        )
    )


def _apply_final_choice(state: SessionState, action: FinalChoiceAction) -> None:
    state.match = Match(spotlight_id=action.spotlight_id, balloon_id=action.balloon_id)
    # The choice itself ends the game; there is no separate controller step.
    state.phase = GamePhase.results


_HANDLERS: dict[str, Callable[[SessionState, Action], None]] = {
    "JOIN": _apply_join,  # type: ignore[dict-item]
    "POP": _apply_pop,  # type: ignore[dict-item]
    "KEEP": _apply_keep,  # type: ignore[dict-item]
    "QUESTION": _apply_question,  # type: ignore[dict-item]
    "ANSWER": _apply_answer,  # type: ignore[dict-item]
    "FINAL_CHOICE": _apply_final_choice,  # type: ignore[dict-item]
}


def apply_action(state: SessionState, action: Action) -> ApplyResult:
    """Apply one action to a session (host only).

    Never raises for a well-formed action: a failed precondition leaves the state
    untouched and is reported through `ApplyResult.applied`/`reason`. The input
    session is never mutated; successful actions return a new session.
    """

    ctx = action.validation_context()
    try:
        pipeline_for_action(action.type).validate(ctx=ctx, state=state)
    except PreconditionFailed as e:
        logger.debug("ignored %s: %s", action.type, e)
        return ApplyResult(state=state, applied=False, reason=str(e))

    new_state = state.model_copy(deep=True)
    _HANDLERS[action.type](new_state, action)
    return ApplyResult(state=new_state, applied=True)


def apply(state: SessionState, action: Action) -> SessionState:
    return apply_action(state, action).state

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from balloon.models import SessionState
from balloon.queries import find_player, find_question, question_from


class PreconditionFailed(ValueError):
    """An action does not apply to the current state. The processor turns this into a no-op."""


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    action: str
    player_id: str | None = None
    other_player_id: str | None = None
    question_id: str | None = None


class ActionValidator(ABC):
    """A small, composable precondition check for an incoming action."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, state: SessionState) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class PlayerExistsValidator(ActionValidator):
    """The acting player (or, with `other=True`, the second referenced player) must exist."""

    other: bool = False

    def validate(self, *, ctx: ValidationContext, state: SessionState) -> None:
        pid = ctx.other_player_id if self.other else ctx.player_id
        if find_player(state=state, player_id=pid) is None:
            raise PreconditionFailed(f"Action '{ctx.action}' refers to unknown player '{pid}'")


@dataclass(frozen=True, slots=True)
class PlayerAbsentValidator(ActionValidator):
    def validate(self, *, ctx: ValidationContext, state: SessionState) -> None:
        if find_player(state=state, player_id=ctx.player_id) is not None:
            raise PreconditionFailed(f"Player '{ctx.player_id}' already joined")


@dataclass(frozen=True, slots=True)
class NotPoppedValidator(ActionValidator):
    def validate(self, *, ctx: ValidationContext, state: SessionState) -> None:
        player = find_player(state=state, player_id=ctx.player_id)
        if player is not None and player.is_popped:
            raise PreconditionFailed(f"Action '{ctx.action}' not allowed for popped player '{player.id}'")


@dataclass(frozen=True, slots=True)
class SingleQuestionValidator(ActionValidator):
    """One question per player per round."""

    def validate(self, *, ctx: ValidationContext, state: SessionState) -> None:
        if ctx.player_id is not None and question_from(state=state, player_id=ctx.player_id) is not None:
            raise PreconditionFailed(f"Player '{ctx.player_id}' already asked a question this round")


@dataclass(frozen=True, slots=True)
class QuestionIdUnusedValidator(ActionValidator):
    """Question ids are unique across the round."""

    def validate(self, *, ctx: ValidationContext, state: SessionState) -> None:
        if ctx.question_id is not None and find_question(state=state, question_id=ctx.question_id) is not None:
            raise PreconditionFailed(f"Question '{ctx.question_id}' already exists")


@dataclass(frozen=True, slots=True)
class QuestionExistsValidator(ActionValidator):
    def validate(self, *, ctx: ValidationContext, state: SessionState) -> None:
        if ctx.question_id is None or find_question(state=state, question_id=ctx.question_id) is None:
            raise PreconditionFailed(f"Question '{ctx.question_id}' not found")


@dataclass(frozen=True, slots=True)
class NoMatchYetValidator(ActionValidator):
    """The match is terminal: the first FINAL_CHOICE applied wins."""

    def validate(self, *, ctx: ValidationContext, state: SessionState) -> None:
        if state.match is not None:
            raise PreconditionFailed("Match already set")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[ActionValidator, ...]

    def validate(self, *, ctx: ValidationContext, state: SessionState) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, state=state)


# Actions carry no phase rules: clients may send them in any phase and the
# host accepts whatever satisfies these checks.
DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "JOIN": ValidatorPipeline(validators=(PlayerAbsentValidator(),)),
    "POP": ValidatorPipeline(validators=(PlayerExistsValidator(),)),
    "KEEP": ValidatorPipeline(
        validators=(
            PlayerExistsValidator(),
            NotPoppedValidator(),
        )
    ),
    "QUESTION": ValidatorPipeline(
        validators=(
            PlayerExistsValidator(),
            NotPoppedValidator(),
            SingleQuestionValidator(),
            QuestionIdUnusedValidator(),
        )
    ),
    "ANSWER": ValidatorPipeline(validators=(QuestionExistsValidator(),)),
    "FINAL_CHOICE": ValidatorPipeline(
        validators=(
            PlayerExistsValidator(),
            PlayerExistsValidator(other=True),
            NoMatchYetValidator(),
        )
    ),
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe

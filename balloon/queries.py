from __future__ import annotations

from balloon.models import Answer, PlayerState, Question, SessionState


def find_player(*, state: SessionState, player_id: str | None) -> PlayerState | None:
    if player_id is None:
        return None
    return next((p for p in state.players if p.id == player_id), None)


def require_player(*, state: SessionState, player_id: str) -> int:
    for idx, p in enumerate(state.players):
        if p.id == player_id:
            return idx
    raise ValueError("Player not found")


def spotlight(*, state: SessionState) -> PlayerState | None:
    return find_player(state=state, player_id=state.spotlight_id)


def balloons(*, state: SessionState) -> list[PlayerState]:
    """Every player except the spotlight, in join order."""

    return [p for p in state.players if p.id != state.spotlight_id]


def remaining_balloons(*, state: SessionState) -> list[PlayerState]:
    """Balloons still in the running (not popped)."""

    return [p for p in balloons(state=state) if not p.is_popped]


def question_from(*, state: SessionState, player_id: str) -> Question | None:
    return next((q for q in state.questions if q.from_player_id == player_id), None)


def find_question(*, state: SessionState, question_id: str) -> Question | None:
    return next((q for q in state.questions if q.id == question_id), None)


def answer_for(*, state: SessionState, question_id: str) -> Answer | None:
    return next((a for a in state.answers if a.question_id == question_id), None)


def questions_answered(*, state: SessionState) -> bool:
    """True when every remaining balloon has asked a question and it has been answered.

    Popped balloons are ignored: their question may stay unanswered.
    """

    for b in remaining_balloons(state=state):
        q = question_from(state=state, player_id=b.id)
        if q is None or answer_for(state=state, question_id=q.id) is None:
            return False
    return True

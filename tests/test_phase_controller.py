from __future__ import annotations

import pytest

from balloon import phases
from balloon.actions import AnswerAction, PopAction, QuestionAction, apply
from balloon.fsm import SessionFSM
from balloon.models import Answer, BalloonStatus, GamePhase, Match, PlayerRole, Question
from balloon.queries import find_player


def test_fsm_starts_from_session_phase(session_factory) -> None:
    fsm = SessionFSM(session_factory(phase=GamePhase.round2))
    assert fsm.current_state.value == GamePhase.round2.value


def test_create_host_session() -> None:
    local_id, state = phases.create_host_session()

    assert state.phase == GamePhase.name_entry
    assert state.game_id
    assert state.host_id == local_id
    assert len(state.players) == 1
    host = state.players[0]
    assert (host.id, host.name, host.role) == (local_id, "Host", PlayerRole.host)


def test_create_client_session_is_an_empty_placeholder() -> None:
    local_id, state = phases.create_client_session()

    assert local_id
    assert state.phase == GamePhase.name_entry
    assert state.players == []
    assert state.game_id is None


def test_open_lobby_renames_host() -> None:
    _, state = phases.create_host_session()

    result = phases.open_lobby(state, "  Hana ")

    assert result.changed
    assert result.state.phase == GamePhase.lobby
    assert result.state.players[0].name == "Hana"


def test_open_lobby_blank_name_falls_back_to_host() -> None:
    _, state = phases.create_host_session()
    assert phases.open_lobby(state, "   ").state.players[0].name == "Host"


def test_open_lobby_outside_name_entry_is_noop(session_factory) -> None:
    state = session_factory(phase=GamePhase.round1)
    result = phases.open_lobby(state, "X")
    assert not result.changed
    assert result.state is state
    assert result.reason


def test_assign_spotlight_only_in_lobby(session_factory) -> None:
    lobby = session_factory(spotlight=False)
    result = phases.assign_spotlight(lobby, "a")
    assert result.changed
    assert result.state.spotlight_id == "a"
    assert result.state.phase == GamePhase.lobby

    round1 = session_factory(phase=GamePhase.round1)
    assert not phases.assign_spotlight(round1, "a").changed


def test_assign_spotlight_unknown_player(session_factory) -> None:
    result = phases.assign_spotlight(session_factory(spotlight=False), "ghost")
    assert not result.changed
    assert "ghost" in (result.reason or "")


def test_start_round1_requires_spotlight(session_factory) -> None:
    result = phases.start_round1(session_factory(spotlight=False))
    assert not result.changed
    assert result.state.phase == GamePhase.lobby


def test_start_round1_resets_round(session_factory) -> None:
    state = session_factory(
        questions=[Question(id="q1", from_player_id="a", text="?", order_index=0)],
        answers=[Answer(id="x", question_id="q1", from_player_id="s", text="!")],
        match=Match(spotlight_id="s", balloon_id="a"),
    )
    state.players[2].balloon_status = BalloonStatus.popped
    state.players[2].pop_reason = "looks"

    result = phases.start_round1(state)

    assert result.changed
    s = result.state
    assert s.phase == GamePhase.round1
    assert (s.questions, s.answers, s.match) == ([], [], None)
    assert all(p.balloon_status == BalloonStatus.intact and p.pop_reason is None for p in s.players)
    # Input untouched.
    assert state.players[2].is_popped


def test_round3_only_via_round1_and_round2(session_factory) -> None:
    lobby = session_factory()
    assert not phases.start_round3(lobby).changed
    assert not phases.start_round2(lobby).changed

    r1 = phases.start_round1(lobby).state
    assert not phases.start_round3(r1).changed
    r2 = phases.start_round2(r1).state
    assert r2.phase == GamePhase.round2


def test_round3_gate_ignores_popped_balloons(session_factory) -> None:
    # Balloons are h, a, b, c (the host plays too). a and b ask and get answers; c and h pop.
    state = session_factory(phase=GamePhase.round2)
    state = apply(state, QuestionAction(id="qa", from_player_id="a", text="?"))
    state = apply(state, QuestionAction(id="qb", from_player_id="b", text="?"))
    state = apply(state, AnswerAction(question_id="qa", from_player_id="s", text="!"))

    assert not phases.start_round3(state).changed

    state = apply(state, AnswerAction(question_id="qb", from_player_id="s", text="!"))
    state = apply(state, PopAction(player_id="c", reason="answer"))
    assert not phases.start_round3(state).changed

    state = apply(state, PopAction(player_id="h", reason="looks"))
    result = phases.start_round3(state)
    assert result.changed
    assert result.state.phase == GamePhase.round3


@pytest.mark.parametrize("phase", [GamePhase.round2, GamePhase.round3])
def test_auto_advance_when_every_balloon_popped(session_factory, phase: GamePhase) -> None:
    state = session_factory(phase=phase)
    for pid in ("h", "a", "b"):
        state = apply(state, PopAction(player_id=pid, reason="looks"))
    assert not phases.auto_advance(state).changed

    state = apply(state, PopAction(player_id="c", reason="looks"))
    result = phases.auto_advance(state)
    assert result.changed
    assert result.state.phase == GamePhase.results


@pytest.mark.parametrize("phase", [GamePhase.lobby, GamePhase.round1, GamePhase.results])
def test_auto_advance_only_in_question_rounds(session_factory, phase: GamePhase) -> None:
    state = session_factory(phase=phase)
    for pid in ("h", "a", "b", "c"):
        state = apply(state, PopAction(player_id=pid))
    result = phases.auto_advance(state)
    assert not result.changed
    assert result.state.phase == phase


def test_restart_keeps_players_and_balloon_state(session_factory) -> None:
    state = session_factory(
        phase=GamePhase.results,
        questions=[Question(id="q1", from_player_id="a", text="?", order_index=0)],
        match=Match(spotlight_id="s", balloon_id="a"),
    )
    state = apply(state, PopAction(player_id="b", reason="looks"))

    result = phases.restart(state)

    assert result.changed
    s = result.state
    assert s.phase == GamePhase.lobby
    assert (s.questions, s.answers, s.match) == ([], [], None)
    assert len(s.players) == 5
    assert find_player(state=s, player_id="b").is_popped  # type: ignore[union-attr]
    assert s.spotlight_id == "s"


def test_restart_only_from_results(session_factory) -> None:
    assert not phases.restart(session_factory(phase=GamePhase.round3)).changed


def test_trigger_dispatch(session_factory) -> None:
    assert phases.trigger(session_factory(), "start_round1").state.phase == GamePhase.round1
    with pytest.raises(ValueError):
        phases.trigger(session_factory(), "auto_results")


def test_start_round1_refuses_dangling_spotlight(session_factory) -> None:
    result = phases.start_round1(session_factory(spotlight_id="ghost"))
    assert not result.changed
    assert result.state.phase == GamePhase.lobby

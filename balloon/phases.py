from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import uuid4

from statemachine.exceptions import TransitionNotAllowed

from balloon.fsm import SessionFSM
from balloon.models import GamePhase, PlayerRole, PlayerState, SessionState
from balloon.queries import find_player

logger = logging.getLogger(__name__)

HOST_TRIGGERS: frozenset[str] = frozenset({"start_round1", "start_round2", "start_round3", "restart"})

DEFAULT_HOST_NAME = "Host"


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """Result of a phase-controller call.

    - `state`: the resulting session (the input object itself when nothing changed).
    - `changed`: whether the session moved or was otherwise mutated.
    - `reason`: why an illegal trigger was ignored.
    """

    state: SessionState
    changed: bool
    reason: str | None = None


def _fire(state: SessionState, event: str) -> TransitionResult:
    session = state.model_copy(deep=True)
    fsm = SessionFSM(session)
    try:
        fsm.send(event)
    except TransitionNotAllowed as e:
        logger.debug("transition %s refused in %s", event, state.phase.value)
        return TransitionResult(state=state, changed=False, reason=str(e))

    fsm.sync_phase_to_model()
    return TransitionResult(state=session, changed=True)


def create_host_session() -> tuple[str, SessionState]:
    """Start hosting: fresh ids, the host as the only player, phase NAME_ENTRY.

    Returns `(local_player_id, session)`.
    """

    local_player_id = str(uuid4())
    session = SessionState(
        game_id=str(uuid4()),
        host_id=local_player_id,
        players=[PlayerState(id=local_player_id, name=DEFAULT_HOST_NAME, role=PlayerRole.host)],
    )
    return local_player_id, _fire(session, "choose_role").state


def create_client_session() -> tuple[str, SessionState]:
    """Start joining: a fresh local player id and an empty NAME_ENTRY placeholder.

    The placeholder is replaced by the first snapshot from the host.
    """

    local_player_id = str(uuid4())
    return local_player_id, _fire(SessionState(), "choose_role").state


def open_lobby(state: SessionState, name: str = "") -> TransitionResult:
    result = _fire(state, "open_lobby")
    if not result.changed:
        return result

    host = find_player(state=result.state, player_id=result.state.host_id)
    if host is not None:
        host.name = name.strip() or DEFAULT_HOST_NAME
    return result


def assign_spotlight(state: SessionState, player_id: str) -> TransitionResult:
    """Pick the spotlight player. Lobby only; not a phase transition."""

    if state.phase != GamePhase.lobby:
        return TransitionResult(state=state, changed=False, reason=f"Spotlight can only be set in {GamePhase.lobby.value}")
    if find_player(state=state, player_id=player_id) is None:
        return TransitionResult(state=state, changed=False, reason=f"Unknown player '{player_id}'")

    session = state.model_copy(deep=True)
    session.spotlight_id = player_id
    return TransitionResult(state=session, changed=True)


def start_round1(state: SessionState) -> TransitionResult:
    return _fire(state, "start_round1")


def start_round2(state: SessionState) -> TransitionResult:
    return _fire(state, "start_round2")


def start_round3(state: SessionState) -> TransitionResult:
    return _fire(state, "start_round3")


def restart(state: SessionState) -> TransitionResult:
    return _fire(state, "restart")


def auto_advance(state: SessionState) -> TransitionResult:
    """Move to RESULTS when no balloon is left in ROUND2/ROUND3. Evaluated after every mutation."""

    if state.phase not in (GamePhase.round2, GamePhase.round3):
        return TransitionResult(state=state, changed=False, reason="No automatic transition from this phase")
    return _fire(state, "auto_results")


def trigger(state: SessionState, name: str) -> TransitionResult:
    """Dispatch a host-operator trigger by name."""

    if name not in HOST_TRIGGERS:
        raise ValueError(f"Unknown trigger: {name}")
    return _fire(state, name)

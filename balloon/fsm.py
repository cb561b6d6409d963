from __future__ import annotations

from statemachine import State, StateMachine

from balloon.models import BalloonStatus, GamePhase, SessionState
from balloon.queries import balloons, questions_answered, remaining_balloons, spotlight


class SessionFSM(StateMachine):
    """FSM wrapper around SessionState.

    - phases: mode select -> name entry -> lobby -> round1 -> round2 -> round3 -> results,
      with results -> lobby as the only way back.
    - actions are applied by the processor; the FSM guards host-driven transitions and
      carries their side effects.
    """

    mode_select = State(GamePhase.mode_select.value, value=GamePhase.mode_select.value, initial=True)
    name_entry = State(GamePhase.name_entry.value, value=GamePhase.name_entry.value)
    lobby = State(GamePhase.lobby.value, value=GamePhase.lobby.value)
    round1 = State(GamePhase.round1.value, value=GamePhase.round1.value)
    round2 = State(GamePhase.round2.value, value=GamePhase.round2.value)
    round3 = State(GamePhase.round3.value, value=GamePhase.round3.value)
    results = State(GamePhase.results.value, value=GamePhase.results.value)

    choose_role = mode_select.to(name_entry)
    open_lobby = name_entry.to(lobby)
    start_round1 = lobby.to(round1, cond="spotlight_assigned")
    start_round2 = round1.to(round2, cond="looks_decided")
    start_round3 = round2.to(round3, cond="questions_settled")
    auto_results = round2.to(results, cond="no_balloons_left") | round3.to(results, cond="no_balloons_left")
    restart = results.to(lobby)

    def __init__(self, session: SessionState):
        self.session = session
        super().__init__(start_value=session.phase.value)

    def spotlight_assigned(self) -> bool:
        return spotlight(state=self.session) is not None

    def looks_decided(self) -> bool:
        # Statuses are an enum, so this only fails on a hand-built session.
        return all(p.balloon_status in (BalloonStatus.intact, BalloonStatus.popped) for p in balloons(state=self.session))

    def questions_settled(self) -> bool:
        return questions_answered(state=self.session)

    def no_balloons_left(self) -> bool:
        return not remaining_balloons(state=self.session)

    def on_start_round1(self) -> None:
        for p in balloons(state=self.session):
            p.balloon_status = BalloonStatus.intact
            p.pop_reason = None
        self._clear_round()

    def on_restart(self) -> None:
        # Balloon statuses survive until the next start_round1.
        self._clear_round()

    def _clear_round(self) -> None:
        self.session.questions = []
        self.session.answers = []
        self.session.match = None

    def sync_phase_to_model(self) -> None:
        self.session.phase = GamePhase(str(self.current_state.value))

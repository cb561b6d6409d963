from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from uuid import uuid4

from balloon.actions import (
    Action,
    AnswerAction,
    FinalChoiceAction,
    JoinAction,
    KeepAction,
    PopAction,
    QuestionAction,
)
from balloon.codec import apply_snapshot, encode_action
from balloon.models import PlayerState, SessionState
from balloon.phases import create_client_session
from balloon.queries import find_player
from balloon.transport import Channel, Transport

logger = logging.getLogger(__name__)

DEFAULT_PLAYER_NAME = "Player"

StateListener = Callable[[SessionState], None]


class ClientReplica:
    """A non-host device: submits actions and mirrors the host's snapshots.

    The replica is never merged or edited locally. Each decodable snapshot
    replaces it wholesale; anything else is dropped and the old replica kept.
    """

    def __init__(self, *, transport: Transport, local_player_id: str | None = None, state_cursor: str = "0"):
        own_id, placeholder = create_client_session()
        self.transport = transport
        self.local_player_id = local_player_id or own_id
        self._state = placeholder
        self._state_cursor = state_cursor
        self._lock = threading.Lock()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def me(self) -> PlayerState | None:
        return find_player(state=self._state, player_id=self.local_player_id)

    @property
    def joined(self) -> bool:
        """Whether the host has accepted our JOIN, as far as the last snapshot tells."""

        return self.me is not None

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    # ---- outbound ----

    def submit(self, action: Action) -> str:
        """Send an action to the host. Fire-and-forget: the outcome shows up in later snapshots."""

        return self.transport.publish(Channel.actions, encode_action(action))

    def join(self, name: str = "") -> str:
        return self.submit(JoinAction(player_id=self.local_player_id, name=name.strip() or DEFAULT_PLAYER_NAME))

    def keep(self) -> str:
        return self.submit(KeepAction(player_id=self.local_player_id))

    def pop(self, reason: str | None = None) -> str:
        return self.submit(PopAction(player_id=self.local_player_id, reason=reason))

    def ask(self, text: str) -> str:
        return self.submit(QuestionAction(id=str(uuid4()), from_player_id=self.local_player_id, text=text))

    def answer(self, question_id: str, text: str) -> str:
        return self.submit(AnswerAction(question_id=question_id, from_player_id=self.local_player_id, text=text))

    def choose(self, balloon_id: str) -> str:
        return self.submit(FinalChoiceAction(spotlight_id=self.local_player_id, balloon_id=balloon_id))

    # ---- inbound ----

    def receive_snapshot(self, payload: str | bytes) -> bool:
        """Replace the replica with a snapshot. Returns False (replica kept) if it does not decode."""

        with self._lock:
            current = self._state
            new_state = apply_snapshot(current, payload)
            replaced = new_state is not current
            if replaced:
                self._state = new_state
            listeners = list(self._listeners)

        if replaced:
            for listener in listeners:
                listener(new_state)
        return replaced

    def pump(self, *, count: int = 100) -> int:
        """Read pending snapshots in arrival order; the last good one wins. Returns how many were read."""

        entries = self.transport.read(Channel.state, after_id=self._state_cursor, count=count)
        for msg_id, payload in entries:
            self._state_cursor = msg_id
            self.receive_snapshot(payload)
        return len(entries)

    def resync(self) -> bool:
        """Jump to the most recent snapshot, skipping any backlog."""

        latest = self.transport.latest(Channel.state)
        if latest is None:
            return False
        msg_id, payload = latest
        self._state_cursor = msg_id
        return self.receive_snapshot(payload)

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from balloon.actions import Action, ApplyResult, apply_action
from balloon.codec import ActionDecodeError, decode_action, encode_snapshot
from balloon.models import SessionState
from balloon import phases
from balloon.phases import TransitionResult
from balloon.transport import Channel, Transport

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]


class HostSession:
    """The authoritative session on the host device.

    Every mutation (local action, remote action, phase trigger) runs under one
    lock, then the whole session is published on the state channel and handed
    to subscribers. Publishing happens even when nothing changed so clients
    that missed a snapshot catch up on the next one.
    """

    def __init__(
        self,
        *,
        transport: Transport,
        local_player_id: str | None = None,
        state: SessionState | None = None,
        action_cursor: str = "0",
    ):
        if state is None:
            local_player_id, state = phases.create_host_session()
        if local_player_id is None:
            local_player_id = state.host_id
        if local_player_id is None:
            raise ValueError("local_player_id is required when the session has no host")

        self.transport = transport
        self.local_player_id = local_player_id
        self._state = state
        self._action_cursor = action_cursor
        self._lock = threading.Lock()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call `listener` with every snapshot the host publishes. Returns an unsubscribe callable."""

        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    # ---- actions ----

    def apply(self, action: Action) -> ApplyResult:
        """Apply an action as if it had arrived from a client (local short-circuit)."""

        with self._lock:
            result, listeners = self._apply_locked(action)

        self._notify(result.state, listeners)
        return result

    def receive_action(self, payload: str | bytes) -> ApplyResult | None:
        """Handle one raw message from the action channel. Malformed messages are dropped."""

        action = self._decode(payload)
        if action is None:
            return None
        return self.apply(action)

    def pump(self, *, max_messages: int = 100) -> int:
        """Process pending actions one message at a time. Returns how many messages were read.

        Reading an entry, moving the cursor past it and applying it happen under
        the host lock, so concurrent pumps never apply the same entry twice.
        """

        processed = 0
        while processed < max_messages:
            with self._lock:
                entries = self.transport.read(Channel.actions, after_id=self._action_cursor, count=1)
                if not entries:
                    break
                msg_id, payload = entries[0]
                self._action_cursor = msg_id
                action = self._decode(payload)
                if action is None:
                    outcome = None
                else:
                    outcome = self._apply_locked(action)

            processed += 1
            if outcome is not None:
                result, listeners = outcome
                self._notify(result.state, listeners)
        return processed

    # ---- host-operator transitions ----

    def open_lobby(self, name: str = "") -> TransitionResult:
        return self._transition(lambda s: phases.open_lobby(s, name))

    def assign_spotlight(self, player_id: str) -> TransitionResult:
        return self._transition(lambda s: phases.assign_spotlight(s, player_id))

    def start_round1(self) -> TransitionResult:
        return self._transition(phases.start_round1)

    def start_round2(self) -> TransitionResult:
        return self._transition(phases.start_round2)

    def start_round3(self) -> TransitionResult:
        return self._transition(phases.start_round3)

    def restart(self) -> TransitionResult:
        return self._transition(phases.restart)

    def trigger(self, name: str) -> TransitionResult:
        """Fire a named host trigger (`start_round1`, ..., `restart`). Raises ValueError for unknown names."""

        if name not in phases.HOST_TRIGGERS:
            raise ValueError(f"Unknown trigger: {name}")
        return self._transition(lambda s: phases.trigger(s, name))

    def broadcast(self) -> SessionState:
        """Republish the current session without changing it."""

        with self._lock:
            snapshot, listeners = self._publish_locked()
        self._notify(snapshot, listeners)
        return snapshot

    # ---- internals ----

    @staticmethod
    def _decode(payload: str | bytes) -> Action | None:
        try:
            return decode_action(payload)
        except ActionDecodeError as e:
            logger.warning("discarding action: %s", e)
            return None

    def _apply_locked(self, action: Action) -> tuple[ApplyResult, list[StateListener]]:
        result = apply_action(self._state, action)
        if result.applied:
            logger.debug("applied %s", action.type)
            self._state = phases.auto_advance(result.state).state
        else:
            logger.debug("ignored %s: %s", action.type, result.reason)
        snapshot, listeners = self._publish_locked()
        return ApplyResult(state=snapshot, applied=result.applied, reason=result.reason), listeners

    def _transition(self, fn: Callable[[SessionState], TransitionResult]) -> TransitionResult:
        with self._lock:
            result = fn(self._state)
            if result.changed:
                logger.info("session %s now in %s", self._state.game_id, result.state.phase.value)
                new_state = phases.auto_advance(result.state).state
            else:
                logger.debug("transition ignored: %s", result.reason)
                new_state = self._state
            self._state = new_state
            snapshot, listeners = self._publish_locked()

        self._notify(snapshot, listeners)
        return TransitionResult(state=snapshot, changed=result.changed, reason=result.reason)

    def _publish_locked(self) -> tuple[SessionState, list[StateListener]]:
        self.transport.publish(Channel.state, encode_snapshot(self._state))
        return self._state, list(self._listeners)

    @staticmethod
    def _notify(snapshot: SessionState, listeners: list[StateListener]) -> None:
        for listener in listeners:
            listener(snapshot)

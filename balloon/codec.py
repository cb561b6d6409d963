from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import TypeAdapter, ValidationError

from balloon.actions import Action
from balloon.models import SessionState

logger = logging.getLogger(__name__)

_ACTION_ADAPTER: TypeAdapter[Action] = TypeAdapter(Action)


class SnapshotDecodeError(ValueError):
    pass


class ActionDecodeError(ValueError):
    pass


def encode_snapshot(state: SessionState) -> str:
    """Serialize the whole session as one JSON message (camelCase keys, nulls included)."""

    return state.model_dump_json(by_alias=True)


def decode_snapshot(payload: str | bytes) -> SessionState:
    try:
        return SessionState.model_validate_json(payload)
    except ValidationError as e:
        raise SnapshotDecodeError(f"Malformed snapshot: {e.error_count()} error(s)") from e


def apply_snapshot(current: SessionState, payload: str | bytes) -> SessionState:
    """Replace the replica wholesale, or keep `current` if the payload does not decode."""

    try:
        return decode_snapshot(payload)
    except SnapshotDecodeError as e:
        logger.warning("discarding snapshot: %s", e)
        return current


def encode_action(action: Action) -> str:
    return action.model_dump_json(by_alias=True)


def decode_action(payload: str | bytes) -> Action:
    """Parse an action message; the `type` field selects the action model."""

    try:
        return _ACTION_ADAPTER.validate_json(payload)
    except ValidationError as e:
        raise ActionDecodeError(f"Malformed action: {e.error_count()} error(s)") from e


def parse_action(data: Mapping[str, Any]) -> Action:
    """Same as `decode_action`, for an already-parsed JSON object."""

    try:
        return _ACTION_ADAPTER.validate_python(dict(data))
    except ValidationError as e:
        raise ActionDecodeError(f"Malformed action: {e.error_count()} error(s)") from e

from __future__ import annotations

from pydantic import Field

from balloon.models import SessionState, WireModel


class LobbyRequest(WireModel):
    # Blank falls back to "Host".
    name: str = Field("", max_length=64)


class SpotlightRequest(WireModel):
    player_id: str = Field(..., min_length=1)


class TransitionResponse(WireModel):
    state: SessionState
    changed: bool
    reason: str | None = None

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from balloon.api.deps import get_host
from balloon.api.models import LobbyRequest, SpotlightRequest, TransitionResponse
from balloon.codec import ActionDecodeError, parse_action
from balloon.host import HostSession
from balloon.models import SessionState
from balloon.phases import HOST_TRIGGERS, TransitionResult
from balloon.websocket_hub import hub

router = APIRouter()


def _transition_response(result: TransitionResult) -> TransitionResponse:
    return TransitionResponse(state=result.state, changed=result.changed, reason=result.reason)


@router.websocket("/ws/state")
async def session_updates_ws(websocket: WebSocket, host: HostSession = Depends(get_host)) -> None:
    await hub.connect(websocket)
    # New subscribers start from the current snapshot instead of waiting for the next change.
    await websocket.send_json(host.state.model_dump(mode="json", by_alias=True))

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(websocket)
    except Exception:
        await hub.disconnect(websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/session", response_model=SessionState)
async def get_session_route(host: HostSession = Depends(get_host)) -> SessionState:
    return host.state


@router.post("/session/actions", response_model=SessionState)
async def submit_action_route(body: dict[str, Any], host: HostSession = Depends(get_host)) -> SessionState:
    """Apply an action on the host. An action that does not apply still returns 200 with the unchanged session."""

    try:
        action = parse_action(body)
    except ActionDecodeError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return host.apply(action).state


@router.post("/session/lobby", response_model=TransitionResponse)
async def open_lobby_route(payload: LobbyRequest, host: HostSession = Depends(get_host)) -> TransitionResponse:
    return _transition_response(host.open_lobby(payload.name))


@router.post("/session/spotlight", response_model=TransitionResponse)
async def assign_spotlight_route(payload: SpotlightRequest, host: HostSession = Depends(get_host)) -> TransitionResponse:
    return _transition_response(host.assign_spotlight(payload.player_id))


@router.post("/session/phase/{trigger}", response_model=TransitionResponse)
async def phase_trigger_route(trigger: str, host: HostSession = Depends(get_host)) -> TransitionResponse:
    if trigger not in HOST_TRIGGERS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown trigger: {trigger}")
    return _transition_response(host.trigger(trigger))

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from balloon.host import HostSession
from balloon.models import SessionState
from balloon.websocket_hub import SessionWebSocketHub


def test_ws_sends_current_then_every_snapshot(api_client: tuple[TestClient, HostSession]) -> None:
    client, host = api_client

    with client.websocket_connect("/ws/state") as ws:
        first = ws.receive_json()
        assert first["phase"] == "NAME_ENTRY"
        assert first["gameId"] == host.state.game_id

        res = client.post("/session/lobby", json={"name": "Hana"})
        assert res.status_code == 200

        msg = ws.receive_json()
        assert msg["phase"] == "LOBBY"

        # No-op still pushes a snapshot.
        client.post("/session/actions", json={"type": "KEEP", "playerId": "ghost"})
        assert ws.receive_json()["phase"] == "LOBBY"


class _FakeSocket:
    def __init__(self, *, fail: bool = False) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.fail = fail
        self.accepted = False
        self.sent: list[dict[str, object]] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, payload: dict[str, object]) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(payload)


@pytest.mark.asyncio
async def test_hub_drops_failing_connections() -> None:
    h = SessionWebSocketHub()
    ok, bad = _FakeSocket(), _FakeSocket(fail=True)
    await h.connect(ok)  # type: ignore[arg-type]
    await h.connect(bad)  # type: ignore[arg-type]
    assert ok.accepted and bad.accepted

    await h.broadcast_snapshot(SessionState(game_id="g"))

    assert ok.sent[0]["gameId"] == "g"
    assert h.connection_count == 1


@pytest.mark.asyncio
async def test_hub_disconnect() -> None:
    h = SessionWebSocketHub()
    ws = _FakeSocket()
    await h.connect(ws)  # type: ignore[arg-type]
    await h.disconnect(ws)  # type: ignore[arg-type]

    await h.broadcast({"x": 1})

    assert ws.sent == []
    assert h.connection_count == 0

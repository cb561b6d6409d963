from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from balloon.models import SessionState

logger = logging.getLogger(__name__)


class SessionWebSocketHub:
    """In-process WebSocket fan-out of session snapshots.

    Contract:
      - register a connection with `connect(websocket)`.
      - push the whole session with `broadcast_snapshot(state)`; each message is the
        same camelCase JSON the state channel carries.

    Connections that fail on send are dropped.
    """

    def __init__(self) -> None:
        self._conns: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._conns.add(websocket)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._conns.discard(websocket)

    @property
    def connection_count(self) -> int:
        return len(self._conns)

    async def broadcast(self, payload: dict[str, object]) -> None:
        async with self._lock:
            conns = list(self._conns)

        if not conns:
            return

        dead: list[WebSocket] = []
        for ws in conns:
            if ws.client_state != WebSocketState.CONNECTED:
                dead.append(ws)
                continue
            try:
                await ws.send_json(payload)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.info("dropping websocket: %s", e)
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._conns.discard(ws)

    async def broadcast_snapshot(self, state: SessionState) -> None:
        await self.broadcast(state.model_dump(mode="json", by_alias=True))


hub = SessionWebSocketHub()

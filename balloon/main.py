from __future__ import annotations

import asyncio
import logging
import threading

import redis
from fastapi import FastAPI

from balloon.api.deps import get_host
from balloon.api.routes import router
from balloon.config import load_settings
from balloon.host import HostSession
from balloon.models import SessionState
from balloon.websocket_hub import hub

settings = load_settings()

app = FastAPI(title="balloon-sync", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


def _resolve_host() -> HostSession:
    # Honour dependency overrides so tests can swap in a host on fakeredis.
    provider = app.dependency_overrides.get(get_host, get_host)
    return provider()


def pump_actions(*, host: HostSession, stop: threading.Event, interval_s: float) -> None:
    """Drain the action channel into the host until `stop` is set."""

    while not stop.is_set():
        try:
            processed = host.pump()
        except redis.RedisError:
            logger.exception("action pump failed; retrying")
            processed = 0
        if not processed:
            stop.wait(interval_s)


@app.on_event("startup")
async def _startup() -> None:
    host = _resolve_host()
    loop = asyncio.get_running_loop()

    def _push(state: SessionState) -> None:
        # Snapshots can come from the pump thread; hand them to the event loop.
        asyncio.run_coroutine_threadsafe(hub.broadcast_snapshot(state), loop)

    stop = threading.Event()
    thread = threading.Thread(
        target=pump_actions,
        kwargs={"host": host, "stop": stop, "interval_s": settings.pump_interval_ms / 1000},
        name="balloon-action-pump",
        daemon=True,
    )
    app.state.unsubscribe_hub = host.subscribe(_push)
    app.state.pump_stop = stop
    app.state.pump_thread = thread
    thread.start()
    logger.info("bridge up for session %s", host.state.game_id)


@app.on_event("shutdown")
async def _shutdown() -> None:
    app.state.unsubscribe_hub()
    app.state.pump_stop.set()
    app.state.pump_thread.join(timeout=1.0)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "balloon-sync", "version": "0.1.0"}

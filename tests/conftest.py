from __future__ import annotations

from collections.abc import Callable, Generator

import fakeredis
import pytest
from fastapi.testclient import TestClient

from balloon.client import ClientReplica
from balloon.host import HostSession
from balloon.models import GamePhase, PlayerRole, PlayerState, SessionState
from balloon.streams import RedisStreamTransport


@pytest.fixture()
def redis_client() -> fakeredis.FakeRedis:
    # A private server per test: FakeRedis instances otherwise share data.
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture()
def transport(redis_client: fakeredis.FakeRedis) -> RedisStreamTransport:
    return RedisStreamTransport(r=redis_client, prefix="test", maxlen=50)


@pytest.fixture()
def host(transport: RedisStreamTransport) -> HostSession:
    return HostSession(transport=transport)


@pytest.fixture()
def make_client(transport: RedisStreamTransport) -> Callable[[], ClientReplica]:
    def _make() -> ClientReplica:
        return ClientReplica(transport=transport)

    return _make


@pytest.fixture()
def session_factory() -> Callable[..., SessionState]:
    """Build a session by hand: host `h`, spotlight `s`, balloons `a`, `b`, `c`."""

    def _make(*, phase: GamePhase = GamePhase.lobby, spotlight: bool = True, **overrides: object) -> SessionState:
        state = SessionState(
            game_id="g1",
            phase=phase,
            host_id="h",
            spotlight_id="s" if spotlight else None,
            players=[
                PlayerState(id="h", name="Host", role=PlayerRole.host),
                PlayerState(id="s", name="Sam"),
                PlayerState(id="a", name="Ann"),
                PlayerState(id="b", name="Bob"),
                PlayerState(id="c", name="Cat"),
            ],
        )
        return state.model_copy(update=overrides)

    return _make


@pytest.fixture()
def api_client(host: HostSession) -> Generator[tuple[TestClient, HostSession], None, None]:
    """FastAPI TestClient wired to the `host` fixture (fakeredis transport)."""

    from balloon.api.deps import get_host
    from balloon.main import app

    def _override() -> HostSession:
        return host

    app.dependency_overrides[get_host] = _override
    with TestClient(app) as c:
        yield c, host
    app.dependency_overrides.clear()

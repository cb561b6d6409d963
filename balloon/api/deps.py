from __future__ import annotations

import threading

from balloon.config import load_settings
from balloon.host import HostSession
from balloon.infra.redis_client import create_redis
from balloon.streams import RedisStreamTransport
from balloon.transport import Channel

_host: HostSession | None = None
_host_lock = threading.Lock()


def get_host() -> HostSession:
    """The bridge's HostSession, created on first use. Override in tests."""

    global _host
    with _host_lock:
        if _host is None:
            settings = load_settings()
            transport = RedisStreamTransport.from_settings(r=create_redis(settings), settings=settings)
            # Skip actions left over from an earlier session on the same streams.
            latest = transport.latest(Channel.actions)
            _host = HostSession(transport=transport, action_cursor=latest[0] if latest else "0")
        return _host

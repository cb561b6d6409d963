from __future__ import annotations

from dataclasses import dataclass
from typing import cast

import redis

from balloon.config import Settings
from balloon.transport import Channel

PAYLOAD_FIELD = "payload"


@dataclass(frozen=True, slots=True)
class SessionStream:
    prefix: str
    channel: Channel

    @property
    def key(self) -> str:
        return f"{self.prefix}:{self.channel.value}"


class RedisStreamTransport:
    """Transport backed by one Redis Stream per channel.

    Each message is a single-field entry ``{"payload": <json>}``. Streams are
    trimmed approximately to `maxlen` entries on write.
    """

    def __init__(self, *, r: redis.Redis, prefix: str = "balloon", maxlen: int = 1_000):
        self.r = r
        self.prefix = prefix
        self.maxlen = maxlen

    @classmethod
    def from_settings(cls, *, r: redis.Redis, settings: Settings) -> "RedisStreamTransport":
        return cls(r=r, prefix=settings.stream_prefix, maxlen=settings.stream_maxlen)

    def key_for(self, channel: Channel) -> str:
        return SessionStream(prefix=self.prefix, channel=channel).key

    def publish(self, channel: Channel, payload: str) -> str:
        # redis-py stubs expect field/value unions; we only write strings.
        stream_id = self.r.xadd(self.key_for(channel), {PAYLOAD_FIELD: payload}, maxlen=self.maxlen, approximate=True)
        return cast(str, stream_id)

    def read(self, channel: Channel, after_id: str = "0", count: int = 10) -> list[tuple[str, str]]:
        """Entries strictly after `after_id`, oldest first. Never blocks."""

        key = self.key_for(channel)
        resp = self.r.xread({key: after_id}, count=count)
        out: list[tuple[str, str]] = []
        for _stream, messages in resp or []:
            for msg_id, fields in messages:
                out.append((cast(str, msg_id), fields.get(PAYLOAD_FIELD, "")))
        return out

    def latest(self, channel: Channel) -> tuple[str, str] | None:
        """The most recent entry on a channel, if any."""

        entries = self.r.xrevrange(self.key_for(channel), count=1)
        if not entries:
            return None
        msg_id, fields = entries[0]
        return cast(str, msg_id), fields.get(PAYLOAD_FIELD, "")

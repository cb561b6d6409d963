from __future__ import annotations

from enum import StrEnum
from typing import Protocol


class Channel(StrEnum):
    state = "state"  # host -> clients, full snapshots
    actions = "actions"  # clients -> host


class Transport(Protocol):
    """Byte-pipe between devices.

    No acknowledgment, ordering or delivery guarantee is assumed by callers.
    Message ids are opaque and only meaningful as `after_id` for the same channel.
    """

    def publish(self, channel: Channel, payload: str) -> str: ...

    def read(self, channel: Channel, after_id: str = "0", count: int = 10) -> list[tuple[str, str]]: ...

    def latest(self, channel: Channel) -> tuple[str, str] | None: ...

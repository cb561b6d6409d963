from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True, slots=True)
class Settings:
    redis_url: str = "redis://localhost:6379/0"
    # Prefix for the state/actions stream keys.
    stream_prefix: str = "balloon"
    # Approximate cap on each stream; only the latest snapshot matters to clients.
    stream_maxlen: int = 1_000
    # Idle wait between action-channel polls in the bridge.
    pump_interval_ms: int = 100
    log_level: str = "INFO"


def _positive_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive")
    return value


def load_settings(*, env_file: Path | None = None) -> Settings:
    """Read settings from the environment, after loading `.env` if present.

    Variables already set in the environment win over the file.
    """

    if env_file is None:
        env_file = Path.cwd() / ".env"
    if env_file.exists():
        load_dotenv(dotenv_path=env_file, override=False)

    defaults = Settings()
    return Settings(
        redis_url=os.environ.get("REDIS_URL", defaults.redis_url),
        stream_prefix=os.environ.get("BALLOON_STREAM_PREFIX", defaults.stream_prefix),
        stream_maxlen=_positive_int("BALLOON_STREAM_MAXLEN", defaults.stream_maxlen),
        pump_interval_ms=_positive_int("BALLOON_PUMP_INTERVAL_MS", defaults.pump_interval_ms),
        log_level=os.environ.get("BALLOON_LOG_LEVEL", defaults.log_level).upper(),
    )

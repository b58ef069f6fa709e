from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_USER_AGENT = "webreq/0.1"


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back on bad input."""

    raw = os.environ.get(name, "").strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except Exception:
        return int(default)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return float(default)
    try:
        return float(raw)
    except Exception:
        return float(default)


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Client settings.

    - timeout_seconds: transport timeout per request
    - max_workers: size of the worker pool running request stages
    - upload_chunk_bytes: read size when copying upload streams
    - max_error_body_bytes: cap on the body kept with HttpStatusError
    """

    timeout_seconds: float = 30.0
    max_workers: int = 8
    upload_chunk_bytes: int = 4096
    max_error_body_bytes: int = 64 * 1024
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            object.__setattr__(self, "timeout_seconds", 30.0)
        for name in ("max_workers", "upload_chunk_bytes", "max_error_body_bytes"):
            object.__setattr__(self, name, max(1, int(getattr(self, name))))
        object.__setattr__(self, "log_level", str(self.log_level).strip().upper() or "INFO")

    @staticmethod
    def from_env() -> "ClientConfig":
        """Create a config from environment variables.

        - WEBREQ_TIMEOUT_SEC (default 30)
        - WEBREQ_MAX_WORKERS (default 8)
        - WEBREQ_UPLOAD_CHUNK_BYTES (default 4096)
        - WEBREQ_MAX_ERROR_BODY_BYTES (default 65536)
        - WEBREQ_USER_AGENT (default webreq/<version>)
        - WEBREQ_LOG_LEVEL (default INFO)

        """

        return ClientConfig(
            timeout_seconds=_env_float("WEBREQ_TIMEOUT_SEC", 30.0),
            max_workers=_env_int("WEBREQ_MAX_WORKERS", 8),
            upload_chunk_bytes=_env_int("WEBREQ_UPLOAD_CHUNK_BYTES", 4096),
            max_error_body_bytes=_env_int("WEBREQ_MAX_ERROR_BODY_BYTES", 64 * 1024),
            user_agent=os.environ.get("WEBREQ_USER_AGENT", "").strip() or DEFAULT_USER_AGENT,
            log_level=os.environ.get("WEBREQ_LOG_LEVEL", "INFO"),
        )

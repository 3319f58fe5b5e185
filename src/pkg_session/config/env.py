from __future__ import annotations

import os
from pathlib import Path

from ..domain.constants import UnauthenticatedMode
from .settings import SessionSettings


def settings_from_env() -> SessionSettings:
    def _bool(key: str, default: bool = True) -> bool:
        raw = os.getenv(key)
        if raw is None:
            return default
        return str(raw).strip().lower() in {"1", "true", "yes", "on"}

    def _float(key: str, default: float) -> float:
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            return default
        try:
            value = float(raw)
        except ValueError:
            raise RuntimeError(f"{key} must be a number, got {raw!r}") from None
        if value < 0:
            raise RuntimeError(f"{key} must not be negative, got {raw!r}")
        return value

    base_url = os.getenv("SESSION_API_BASE_URL")
    if not base_url:
        raise RuntimeError("Missing session settings: SESSION_API_BASE_URL")

    raw_mode = (os.getenv("SESSION_UNAUTHENTICATED_MODE") or "anonymous").strip().lower()
    try:
        mode = UnauthenticatedMode(raw_mode)
    except ValueError:
        allowed = ", ".join(m.value for m in UnauthenticatedMode)
        raise RuntimeError(
            f"SESSION_UNAUTHENTICATED_MODE must be one of: {allowed}"
        ) from None

    defaults = SessionSettings(api_base_url=base_url)
    storage_path = os.getenv("SESSION_STORAGE_PATH")

    return SessionSettings(
        api_base_url=base_url,
        storage_path=Path(storage_path).expanduser() if storage_path else defaults.storage_path,
        storage_key=os.getenv("SESSION_STORAGE_KEY") or defaults.storage_key,
        refresh_threshold_seconds=_float("SESSION_REFRESH_THRESHOLD", defaults.refresh_threshold_seconds),
        refresh_timeout_seconds=_float("SESSION_REFRESH_TIMEOUT", defaults.refresh_timeout_seconds),
        request_timeout_seconds=_float("SESSION_REQUEST_TIMEOUT", defaults.request_timeout_seconds),
        verify_ssl=_bool("VERIFY_SSL", True),
        unauthenticated_mode=mode,
    )

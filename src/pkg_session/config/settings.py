from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..domain.constants import (
    DEFAULT_REFRESH_THRESHOLD_SECONDS,
    DEFAULT_REFRESH_TIMEOUT_SECONDS,
    DEFAULT_STORAGE_KEY,
    UnauthenticatedMode,
)

DEFAULT_STORAGE_PATH = Path("~/.pkg_session/tokens.json")


@dataclass(slots=True)
class SessionSettings:
    """
    API connection + session lifecycle settings.

    Host code decides how to construct this (env, config file, etc.).
    """
    api_base_url: str
    storage_path: Path = field(default_factory=lambda: DEFAULT_STORAGE_PATH.expanduser())
    storage_key: str = DEFAULT_STORAGE_KEY

    refresh_threshold_seconds: float = DEFAULT_REFRESH_THRESHOLD_SECONDS
    refresh_timeout_seconds: float = DEFAULT_REFRESH_TIMEOUT_SECONDS
    request_timeout_seconds: float = 30.0
    verify_ssl: bool = True

    unauthenticated_mode: UnauthenticatedMode = UnauthenticatedMode.ANONYMOUS

    @property
    def base_url_slash(self) -> str:
        b = self.api_base_url.strip()
        return b if b.endswith("/") else b + "/"

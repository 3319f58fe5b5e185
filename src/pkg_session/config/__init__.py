"""
pkg_session.config

- SessionSettings: API base URL, storage location and refresh tuning.
- settings_from_env: build SessionSettings from SESSION_* environment variables.
"""

from __future__ import annotations

from .env import settings_from_env
from .settings import SessionSettings

__all__ = ["SessionSettings", "settings_from_env"]

from __future__ import annotations

from .auth import SessionAuth

__all__ = ["SessionAuth"]

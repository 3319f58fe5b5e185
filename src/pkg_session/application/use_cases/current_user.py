from __future__ import annotations

import logging
from typing import Optional

import httpx

from ...domain.entities import Session, UserProfile
from ..token_store import TokenStore

logger = logging.getLogger(__name__)


class CurrentUserUseCase:
    """
    Loads the signed-in user's profile from /auth/me and caches it.

    `http` must be the authorized client (SessionAuth attached), so the
    call goes through the regular refresh pipeline. The cache is dropped
    as soon as the session ends.
    """

    def __init__(self, http: httpx.AsyncClient, store: TokenStore) -> None:
        self._http = http
        self._profile: Optional[UserProfile] = None
        self._unsubscribe = store.subscribe(self._on_session_change)

    @property
    def cached(self) -> Optional[UserProfile]:
        return self._profile

    async def get(self, refresh: bool = False) -> UserProfile:
        if self._profile is not None and not refresh:
            return self._profile

        resp = await self._http.post("/auth/me")
        resp.raise_for_status()
        self._profile = UserProfile.from_payload(resp.json())
        return self._profile

    def close(self) -> None:
        self._unsubscribe()
        self._profile = None

    def _on_session_change(self, session: Session) -> None:
        if session.is_signed_out and self._profile is not None:
            logger.debug("Session ended, dropping cached profile")
            self._profile = None

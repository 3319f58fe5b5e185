from __future__ import annotations

import logging
from typing import AsyncGenerator, Generator

import httpx

from ...application.session_coordinator import SessionCoordinator
from ...domain.constants import UnauthenticatedMode
from ...domain.exceptions import NotAuthenticatedError

logger = logging.getLogger(__name__)


class SessionAuth(httpx.Auth):
    """
    httpx auth flow that attaches the session's bearer token.

    Every request sent through a client configured with this auth first
    asks the SessionCoordinator for a fresh token (refreshing if needed).

    When there is no usable session:
      - UnauthenticatedMode.ANONYMOUS: the request goes out without a token
      - UnauthenticatedMode.STRICT: NotAuthenticatedError is raised and
        nothing is sent

    Usage:

        coordinator = SessionCoordinator(store, gateway, policy)
        api = httpx.AsyncClient(base_url=..., auth=SessionAuth(coordinator))
        resp = await api.get("/locations")
    """

    def __init__(
            self,
            coordinator: SessionCoordinator,
            mode: UnauthenticatedMode = UnauthenticatedMode.ANONYMOUS,
    ) -> None:
        self._coordinator = coordinator
        self._mode = mode

    @property
    def mode(self) -> UnauthenticatedMode:
        return self._mode

    async def async_auth_flow(
            self,
            request: httpx.Request,
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        if "Authorization" in request.headers:
            # caller supplied its own credentials
            yield request
            return

        try:
            token = await self._coordinator.ensure_fresh_token()
        except NotAuthenticatedError:
            if self._mode is UnauthenticatedMode.STRICT:
                raise
            logger.debug("No session, sending %s %s anonymously", request.method, request.url.path)
            yield request
            return

        request.headers["Authorization"] = f"Bearer {token}"
        yield request

    def sync_auth_flow(
            self,
            request: httpx.Request,
    ) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("SessionAuth only works with httpx.AsyncClient")

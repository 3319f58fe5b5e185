from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ...domain.ports import AuthGateway
from ..session_coordinator import SessionCoordinator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SignOutUseCase:
    """
    Application use case:
    - tell the server to invalidate the session (best effort)
    - clear the local session whatever the server said

    Returns True when the server acknowledged the logout.
    """

    gateway: AuthGateway
    coordinator: SessionCoordinator

    async def execute(self) -> bool:
        pair = self.coordinator.store.get()
        acknowledged = False

        if pair is not None:
            try:
                await self.gateway.logout(pair.access_token)
                acknowledged = True
            except httpx.HTTPError as exc:
                logger.warning("Server-side logout failed, clearing local session anyway: %r", exc)

        await self.coordinator.sign_out()
        return acknowledged

from __future__ import annotations

import logging
from dataclasses import dataclass

from ...domain.entities import TokenPair
from ...domain.ports import AuthGateway
from ...domain.value_objects import Credentials
from ..session_coordinator import SessionCoordinator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SignInUseCase:
    """
    Application use case:
    - exchange credentials (or a Google authorization code) for a token pair
    - hand the pair to the coordinator, which starts the session

    Errors from the server surface as AuthenticationError.
    """

    gateway: AuthGateway
    coordinator: SessionCoordinator

    async def login(self, credentials: Credentials) -> TokenPair:
        pair = await self.gateway.login(credentials)
        await self.coordinator.sign_in(pair)
        return pair

    async def register(self, credentials: Credentials) -> TokenPair:
        """
        Register and sign in.

        Some servers only return the created user from /auth/register; in
        that case we log in with the same credentials.
        """
        pair = await self.gateway.register(credentials)
        if pair is None:
            logger.debug("Registration returned no tokens, logging in")
            pair = await self.gateway.login(credentials)
        await self.coordinator.sign_in(pair)
        return pair

    async def google_login(self, code: str, state: str = "") -> TokenPair:
        pair = await self.gateway.google_login(code, state)
        await self.coordinator.sign_in(pair)
        return pair

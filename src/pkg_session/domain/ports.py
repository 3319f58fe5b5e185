from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from .entities import TokenGrant, TokenPair
from .value_objects import Credentials, TokenClaims


class ClaimsDecoder(Protocol):
    """
    Port for reading claims out of an access token.

    Implementations live in the adapters layer (e.g. PyJWT decoder).
    """

    def decode(self, token: str) -> TokenClaims:
        """
        Decode the token payload WITHOUT verifying its signature.

        Raises:
          - MalformedTokenError if the payload cannot be parsed
        """
        ...


class TokenStorage(Protocol):
    """
    Port for the durable key-value record holding the token pair.

    I/O failures are signalled with OSError.
    """

    async def load(self, key: str) -> Optional[Mapping[str, Any]]:
        ...

    async def save(self, key: str, record: Mapping[str, Any]) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class AuthGateway(Protocol):
    """
    Port for the server's /auth/* endpoints.
    """

    async def login(self, credentials: Credentials) -> TokenPair:
        ...

    async def register(self, credentials: Credentials) -> Optional[TokenPair]:
        """Returns None when the server does not sign the new user in."""
        ...

    async def google_login(self, code: str, state: str = "") -> TokenPair:
        ...

    async def refresh(self, refresh_token: str) -> TokenGrant:
        """
        Exchange the refresh token for a new access token.

        Raises:
          - RefreshRejectedError when the server refuses the refresh token
          - RefreshFailedError on network errors, timeouts or bad responses
        """
        ...

    async def logout(self, access_token: str) -> None:
        ...

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ...domain.entities import TokenGrant, TokenPair
from ...domain.exceptions import (
    AuthenticationError,
    RefreshFailedError,
    RefreshRejectedError,
)
from ...domain.ports import AuthGateway
from ...domain.value_objects import Credentials

logger = logging.getLogger(__name__)

# statuses that mean "your credentials are wrong", not "the server is broken"
_CLIENT_REJECTIONS = {400, 401, 403, 409, 422}
_REFRESH_REJECTIONS = {401, 403}


class AuthApiClient(AuthGateway):
    """
    Minimal async client for the /auth/* endpoints.

    - login / register / google login -> TokenPair
    - refresh with the refresh token as bearer credential
    - best-effort logout

    Uses its own unauthenticated httpx.AsyncClient: these calls must never
    go through the request authorizer, or a refresh would wait on itself.
    """

    def __init__(
            self,
            base_url: str,
            client: Optional[httpx.AsyncClient] = None,
            *,
            timeout: float = 10.0,
            verify_ssl: bool = True,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            verify=verify_ssl,
        )

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------ #
    # sign-in endpoints
    # ------------------------------------------------------------------ #

    async def login(self, credentials: Credentials) -> TokenPair:
        resp = await self._client.post("/auth/login", json=credentials.as_payload())
        body = self._check_sign_in(resp, "Login")
        pair = TokenPair.from_record(body)
        if pair is None:
            raise AuthenticationError("Login response did not contain a token pair")
        return pair

    async def register(self, credentials: Credentials) -> Optional[TokenPair]:
        """
        Create an account.

        Returns the token pair when the server signs the user in directly,
        None when it only answers with the created user record.
        """
        resp = await self._client.post("/auth/register", json=credentials.as_payload())
        body = self._check_sign_in(resp, "Registration")
        return TokenPair.from_record(body)

    async def google_login(self, code: str, state: str = "") -> TokenPair:
        if not code or not code.strip():
            raise AuthenticationError("Authorization code not provided")

        resp = await self._client.post("/auth/google", params={"code": code, "state": state})
        body = self._check_sign_in(resp, "Google login")
        pair = TokenPair.from_record(body)
        if pair is None:
            raise AuthenticationError("Google login response did not contain a token pair")
        return pair

    # ------------------------------------------------------------------ #
    # AuthGateway port
    # ------------------------------------------------------------------ #

    async def refresh(self, refresh_token: str) -> TokenGrant:
        try:
            resp = await self._client.post(
                "/auth/refresh",
                headers=self._auth_headers(refresh_token),
            )
        except httpx.TransportError as exc:
            # timeouts are TransportErrors too
            raise RefreshFailedError(f"Refresh request failed: {exc!r}") from exc

        if resp.status_code in _REFRESH_REJECTIONS:
            raise RefreshRejectedError(
                f"Refresh token rejected: {resp.status_code} {self._message(resp)}"
            )
        if resp.is_error:
            raise RefreshFailedError(f"Refresh endpoint answered {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise RefreshFailedError("Refresh response is not JSON") from exc

        access = body.get("access_token") if isinstance(body, dict) else None
        if not isinstance(access, str) or not access:
            raise RefreshFailedError("Refresh response has no access_token")

        rotated = body.get("refresh_token")
        return TokenGrant(
            access_token=access,
            refresh_token=rotated if isinstance(rotated, str) and rotated else None,
        )

    async def logout(self, access_token: str) -> None:
        resp = await self._client.post("/auth/logout", headers=self._auth_headers(access_token))
        resp.raise_for_status()

    # ------------------------------------------------------------------ #
    # helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _auth_headers(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def _message(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            return resp.text
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return resp.text

    def _check_sign_in(self, resp: httpx.Response, action: str) -> dict[str, Any]:
        if resp.status_code in _CLIENT_REJECTIONS:
            logger.info("%s rejected with status %s", action, resp.status_code)
            raise AuthenticationError(f"{action} failed: {self._message(resp)}")
        resp.raise_for_status()

        try:
            body = resp.json()
        except ValueError as exc:
            raise AuthenticationError(f"{action} response is not JSON") from exc
        if not isinstance(body, dict):
            raise AuthenticationError(f"{action} response is not an object")
        return body

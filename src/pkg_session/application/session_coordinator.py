from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from ..domain.constants import DEFAULT_REFRESH_TIMEOUT_SECONDS, TokenStatus
from ..domain.entities import TokenPair
from ..domain.exceptions import (
    NotAuthenticatedError,
    RaceLostError,
    RefreshFailedError,
    RefreshRejectedError,
    StorageError,
)
from ..domain.ports import AuthGateway
from ..domain.refresh_policy import RefreshPolicy
from .token_store import TokenStore

logger = logging.getLogger(__name__)


class SessionCoordinator:
    """
    Keeps the access token usable for every outbound call.

    States:  SignedOut -> SignedIn -> (Refreshing) -> SignedIn -> ... -> SignedOut

    - a FRESH token is returned as-is, without I/O
    - a NEAR_EXPIRY or EXPIRED token triggers a refresh
    - at most one refresh is in flight; concurrent callers await the same
      task and see the same outcome
    - a failed refresh of a NEAR_EXPIRY token falls back to the old token,
      anything else that fails ends the session

    This object (together with sign-in/sign-out) is the only writer of the
    TokenStore.
    """

    def __init__(
            self,
            store: TokenStore,
            gateway: AuthGateway,
            policy: RefreshPolicy,
            *,
            clock: Callable[[], float] = time.time,
            refresh_timeout: float = DEFAULT_REFRESH_TIMEOUT_SECONDS,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._policy = policy
        self._clock = clock
        self._refresh_timeout = refresh_timeout

        self._inflight: Optional[asyncio.Task[str]] = None
        # bumped on every sign-in/sign-out so a late refresh cannot
        # overwrite or clear a session it does not belong to
        self._generation = 0

    # ------------------------------------------------------------------ #
    # lifecycle
    # ------------------------------------------------------------------ #

    async def init(self) -> None:
        await self._store.init()

    async def dispose(self) -> None:
        """Let an outstanding refresh settle, then release the store."""
        task = self._inflight
        if task is not None:
            await asyncio.wait([task])
        self._store.dispose()

    # ------------------------------------------------------------------ #
    # introspection
    # ------------------------------------------------------------------ #

    @property
    def store(self) -> TokenStore:
        return self._store

    @property
    def is_refreshing(self) -> bool:
        return self._inflight is not None

    def status(self) -> Optional[TokenStatus]:
        """Classification of the current access token, None when signed out."""
        pair = self._store.get()
        if pair is None:
            return None
        return self._policy.classify(pair.access_token, self._clock())

    def expires_in(self) -> Optional[float]:
        """Seconds until the access token expires, None if signed out or unknown."""
        pair = self._store.get()
        if pair is None:
            return None
        return self._policy.seconds_remaining(pair.access_token, self._clock())

    # ------------------------------------------------------------------ #
    # session transitions
    # ------------------------------------------------------------------ #

    async def sign_in(self, pair: TokenPair) -> None:
        self._generation += 1
        await self._store.set(pair)
        logger.info("Session started")

    async def sign_out(self) -> None:
        self._generation += 1
        await self._store.clear()
        logger.info("Session ended")

    # ------------------------------------------------------------------ #
    # main entry point
    # ------------------------------------------------------------------ #

    async def ensure_fresh_token(self) -> str:
        """
        Return an access token that is safe to attach to a request.

        Raises:
            NotAuthenticatedError: no session, or the session just ended
            RaceLostError: a shared refresh started by another caller ended it
        """
        pair = self._store.get()
        if pair is None:
            raise NotAuthenticatedError("Not signed in")

        status = self._policy.classify(pair.access_token, self._clock())
        if status is TokenStatus.FRESH:
            return pair.access_token

        inflight = self._inflight
        if inflight is not None:
            logger.debug("Joining in-flight token refresh")
            return await self._await_refresh(inflight, joined=True)

        logger.debug("Access token is %s, refreshing", status.value)
        task = asyncio.create_task(self._refresh(pair, status, self._generation))
        task.add_done_callback(_consume_exception)
        self._inflight = task
        return await self._await_refresh(task, joined=False)

    # ------------------------------------------------------------------ #
    # internals
    # ------------------------------------------------------------------ #

    @staticmethod
    async def _await_refresh(task: asyncio.Task[str], *, joined: bool) -> str:
        try:
            # a cancelled caller must not cancel the refresh others wait on
            return await asyncio.shield(task)
        except NotAuthenticatedError as exc:
            if joined:
                raise RaceLostError(str(exc)) from exc
            raise

    async def _refresh(self, pair: TokenPair, status: TokenStatus, generation: int) -> str:
        try:
            return await self._run_refresh(pair, status, generation)
        finally:
            if self._inflight is asyncio.current_task():
                self._inflight = None

    async def _run_refresh(self, pair: TokenPair, status: TokenStatus, generation: int) -> str:
        # `generation` is the one the caller saw when it read `pair`
        if generation != self._generation:
            logger.debug("Session changed before refresh started, skipping it")
            return self._current_token()

        try:
            grant = await asyncio.wait_for(
                self._gateway.refresh(pair.refresh_token),
                timeout=self._refresh_timeout,
            )
        except RefreshRejectedError as exc:
            if generation != self._generation:
                return self._current_token()
            logger.warning("Refresh token rejected, signing out: %s", exc)
            await self._end_session()
            raise NotAuthenticatedError("Refresh token was rejected") from exc
        except (RefreshFailedError, asyncio.TimeoutError) as exc:
            reason = str(exc) or type(exc).__name__
            if generation != self._generation:
                return self._current_token()
            if status is TokenStatus.NEAR_EXPIRY:
                logger.warning("Token refresh failed (%s), reusing current access token", reason)
                return pair.access_token
            logger.warning("Token refresh failed (%s) and access token expired, signing out", reason)
            await self._end_session()
            raise NotAuthenticatedError("Access token expired and could not be refreshed") from exc

        if generation != self._generation:
            logger.debug("Session changed during refresh, dropping refreshed token")
            return self._current_token()

        refreshed = TokenPair(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token or pair.refresh_token,
        )
        try:
            await self._store.set(refreshed)
        except StorageError as exc:
            logger.warning("Refreshed token kept in memory only: %s", exc)
        logger.info("Access token refreshed (refresh token rotated: %s)", grant.refresh_token is not None)
        return refreshed.access_token

    async def _end_session(self) -> None:
        self._generation += 1
        try:
            await self._store.clear()
        except StorageError as exc:
            logger.warning("Session cleared in memory only: %s", exc)

    def _current_token(self) -> str:
        pair = self._store.get()
        if pair is None:
            raise NotAuthenticatedError("Session ended while refreshing")
        return pair.access_token


def _consume_exception(task: asyncio.Task[str]) -> None:
    # the outcome is delivered to the awaiting callers; this only keeps
    # asyncio quiet when every caller was cancelled before it finished
    if not task.cancelled():
        task.exception()

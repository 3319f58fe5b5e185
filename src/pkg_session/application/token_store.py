from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional

from ..domain.constants import DEFAULT_STORAGE_KEY
from ..domain.entities import Session, TokenPair
from ..domain.exceptions import StorageError
from ..domain.ports import TokenStorage

logger = logging.getLogger(__name__)

SessionListener = Callable[[Session], None]


class TokenStore:
    """
    Holds the current token pair and persists it under a fixed key.

    - `get()` is a synchronous snapshot read
    - `set()` / `clear()` swap the snapshot in one assignment, then persist
    - a storage failure raises StorageError; the new snapshot stays in
      memory and listeners are still notified
    - listeners are told about real transitions only

    Only the SessionCoordinator is supposed to call `set()` / `clear()`.
    """

    def __init__(self, storage: TokenStorage, key: str = DEFAULT_STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._tokens: Optional[TokenPair] = None
        self._listeners: List[SessionListener] = []
        self._initialized = False
        self._disposed = False

    # ------------------------------------------------------------------ #
    # lifecycle
    # ------------------------------------------------------------------ #

    async def init(self) -> None:
        """Re-hydrate the pair from storage. Safe to call more than once."""
        if self._initialized:
            return

        record = await self._persist(self._storage.load(self._key))
        pair = TokenPair.from_record(record)
        if pair is None and record is not None:
            # partial or garbage record: not a valid persisted state
            logger.warning("Discarding incomplete session record %r", self._key)
            await self._persist(self._storage.delete(self._key))

        self._tokens = pair
        self._initialized = True
        logger.debug("Token store initialised (signed_in=%s)", pair is not None)

    def dispose(self) -> None:
        self._listeners.clear()
        self._disposed = True

    @property
    def initialized(self) -> bool:
        return self._initialized

    # ------------------------------------------------------------------ #
    # reads
    # ------------------------------------------------------------------ #

    def get(self) -> Optional[TokenPair]:
        return self._tokens

    @property
    def session(self) -> Session:
        return Session(tokens=self._tokens)

    # ------------------------------------------------------------------ #
    # writes
    # ------------------------------------------------------------------ #

    async def set(self, pair: TokenPair) -> None:
        self._ensure_usable()
        if not isinstance(pair, TokenPair):
            raise TypeError(f"Expected TokenPair, got {type(pair).__name__}")

        changed = pair != self._tokens
        self._tokens = pair
        try:
            await self._persist(self._storage.save(self._key, pair.to_record()))
        finally:
            if changed:
                self._notify()

    async def clear(self) -> None:
        self._ensure_usable()
        if self._tokens is None:
            # still make sure nothing is left on disk
            await self._persist(self._storage.delete(self._key))
            return

        self._tokens = None
        try:
            await self._persist(self._storage.delete(self._key))
        finally:
            self._notify()

    async def _persist(self, operation: Awaitable[Any]) -> Any:
        try:
            return await operation
        except OSError as exc:
            raise StorageError(f"Session record {self._key!r} is not accessible: {exc}") from exc

    # ------------------------------------------------------------------ #
    # change notification
    # ------------------------------------------------------------------ #

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register `listener`; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        session = self.session
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception:
                logger.exception("Session listener %r failed", listener)

    def _ensure_usable(self) -> None:
        if self._disposed:
            raise RuntimeError("TokenStore has been disposed")

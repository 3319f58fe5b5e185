from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .constants import DEFAULT_REFRESH_THRESHOLD_SECONDS, TokenStatus
from .exceptions import MalformedTokenError
from .ports import ClaimsDecoder


@dataclass(slots=True)
class RefreshPolicy:
    """
    Pure decision logic: is an access token fresh, about to expire, or expired?

    No I/O and no clock of its own; `now` is always passed in so callers
    (and tests) control time.

    Anything that cannot be decoded, or has no `exp` claim, is EXPIRED.
    """

    decoder: ClaimsDecoder
    threshold_seconds: float = DEFAULT_REFRESH_THRESHOLD_SECONDS

    def classify(
            self,
            token: str,
            now: float,
            threshold_seconds: Optional[float] = None,
    ) -> TokenStatus:
        threshold = self.threshold_seconds if threshold_seconds is None else threshold_seconds

        exp = self._expiry(token)
        if exp is None or exp < now:
            return TokenStatus.EXPIRED
        if exp - now < threshold:
            return TokenStatus.NEAR_EXPIRY
        return TokenStatus.FRESH

    def seconds_remaining(self, token: str, now: float) -> Optional[float]:
        """Seconds until `exp`, negative once expired, None if unknown."""
        exp = self._expiry(token)
        if exp is None:
            return None
        return exp - now

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _expiry(self, token: str) -> Optional[float]:
        try:
            return self.decoder.decode(token).exp
        except MalformedTokenError:
            return None

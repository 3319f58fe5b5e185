from numbers import Real
from typing import Any, Mapping

import jwt
from jwt.exceptions import PyJWTError

from ...domain.exceptions import MalformedTokenError
from ...domain.ports import ClaimsDecoder
from ...domain.value_objects import TokenClaims


class JWTClaimsDecoder(ClaimsDecoder):
    """
    Adapter implementing the ClaimsDecoder port using PyJWT.

    The signature is NOT verified: the server enforces it on every call,
    the client only needs the expiration hint to plan refreshes.
    """

    def decode(self, token: str) -> TokenClaims:
        """
        Read the claim segment of a JWT.

        Raises:
            MalformedTokenError
        """
        if not isinstance(token, str) or not token:
            raise MalformedTokenError("Token is empty")

        try:
            payload: Mapping[str, Any] = jwt.decode(
                token,
                options={"verify_signature": False},
            )
        except PyJWTError as exc:
            raise MalformedTokenError(f"Undecodable token: {exc}") from exc

        exp = payload.get("exp")
        if exp is None:
            return TokenClaims(exp=None)

        # bool is an int subclass, but `"exp": true` is not a timestamp
        if isinstance(exp, bool) or not isinstance(exp, Real):
            raise MalformedTokenError(f"Invalid exp claim: {exp!r}")

        return TokenClaims(exp=float(exp))

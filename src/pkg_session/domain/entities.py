from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .value_objects import EmailAddress


@dataclass(frozen=True, slots=True)
class TokenPair:
    """
    Access token plus the refresh token it was issued with.

    Both are always present; a pair with a missing half cannot be built.
    """
    access_token: str
    refresh_token: str

    def __post_init__(self) -> None:
        if not self.access_token or not self.refresh_token:
            raise ValueError("TokenPair requires both an access and a refresh token")

    def __repr__(self) -> str:
        # keep tokens out of logs and tracebacks
        return "TokenPair(access_token='***', refresh_token='***')"

    def to_record(self) -> dict[str, Optional[str]]:
        return {"access_token": self.access_token, "refresh_token": self.refresh_token}

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | None) -> Optional["TokenPair"]:
        """
        Build a pair from a persisted/HTTP record.

        Returns None when either half is missing, so partial records read
        as signed out.
        """
        if not record:
            return None
        access = record.get("access_token")
        refresh = record.get("refresh_token")
        if not isinstance(access, str) or not isinstance(refresh, str):
            return None
        if not access or not refresh:
            return None
        return cls(access_token=access, refresh_token=refresh)


@dataclass(frozen=True, slots=True)
class TokenGrant:
    """
    Result of a successful refresh call.

    `refresh_token` is only set when the server rotated it.
    """
    access_token: str
    refresh_token: Optional[str] = None

    def __repr__(self) -> str:
        rotated = self.refresh_token is not None
        return f"TokenGrant(access_token='***', rotated={rotated})"


@dataclass(frozen=True, slots=True)
class Session:
    """
    Logical session state derived from the stored pair.

    `tokens is None` means signed out.
    """
    tokens: Optional[TokenPair] = None

    @property
    def is_signed_in(self) -> bool:
        return self.tokens is not None

    @property
    def is_signed_out(self) -> bool:
        return self.tokens is None


@dataclass(slots=True)
class UserProfile:
    """
    The user record returned by /auth/me.
    """
    id: Any
    email: EmailAddress | None = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image_url: Optional[str] = None
    provider: Optional[str] = None
    google_id: Optional[str] = None

    @property
    def full_name(self) -> Optional[str]:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "UserProfile":
        # some endpoints wrap the record in {"data": {...}}
        data = payload.get("data", payload)
        if not isinstance(data, Mapping) or "id" not in data:
            raise ValueError("User payload has no 'id' field")
        email = data.get("email")
        return cls(
            id=data["id"],
            email=EmailAddress(email) if email else None,
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            image_url=data.get("image_url"),
            provider=data.get("provider"),
            google_id=data.get("google_id"),
        )

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


# --- Token value objects ---------------------------------------------------


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    The subset of access token claims the client cares about.

    Only `exp` (Unix seconds) is needed to schedule refreshes; everything
    else in the payload is the server's business.
    """
    exp: Optional[float] = None


# --- Identity value objects ------------------------------------------------


@dataclass(frozen=True, slots=True)
class EmailAddress:
    """
    Simple email value object.

    Validation stays light on purpose, the server has the final word.
    """
    value: str

    def __post_init__(self) -> None:
        if "@" not in self.value:
            raise ValueError(f"Invalid email address: {self.value!r}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Credentials:
    """
    Email/password pair posted to /auth/login and /auth/register.
    """
    email: EmailAddress
    password: str

    def __init__(self, email: EmailAddress | str, password: str) -> None:
        if isinstance(email, str):
            email = EmailAddress(email)
        if not password:
            raise ValueError("Password must not be empty")
        object.__setattr__(self, "email", email)
        object.__setattr__(self, "password", password)

    def __repr__(self) -> str:
        return f"Credentials(email={str(self.email)!r}, password='***')"

    def as_payload(self) -> dict[str, str]:
        return {"email": str(self.email), "password": self.password}

from enum import Enum

DEFAULT_REFRESH_THRESHOLD_SECONDS = 300
DEFAULT_REFRESH_TIMEOUT_SECONDS = 10.0
DEFAULT_STORAGE_KEY = "auth-token"


class TokenStatus(Enum):
    FRESH = "fresh"
    NEAR_EXPIRY = "near_expiry"
    EXPIRED = "expired"


class UnauthenticatedMode(Enum):
    # send the request without credentials
    ANONYMOUS = "anonymous"
    # refuse to send it
    STRICT = "strict"

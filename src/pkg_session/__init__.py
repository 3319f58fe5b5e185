"""
pkg_session

Client-side session lifecycle for bearer-token APIs: keeps a short-lived
access token and its refresh token valid across any number of concurrent
calls made through httpx.
"""

__version__ = "0.1.0"

from .domain.constants import TokenStatus, UnauthenticatedMode
from .domain.entities import Session, TokenGrant, TokenPair, UserProfile
from .domain.exceptions import (
    SessionError,
    NotAuthenticatedError,
    RaceLostError,
    MalformedTokenError,
    RefreshFailedError,
    RefreshRejectedError,
    AuthenticationError,
    StorageError,
)
from .domain.value_objects import TokenClaims, EmailAddress, Credentials
from .domain.ports import ClaimsDecoder, TokenStorage, AuthGateway
from .domain.refresh_policy import RefreshPolicy

from .application.token_store import TokenStore
from .application.session_coordinator import SessionCoordinator

# Adapters
from .adapters.jwt.claims_decoder import JWTClaimsDecoder
from .adapters.storage.file_storage import FileTokenStorage
from .adapters.storage.memory_storage import MemoryTokenStorage
from .adapters.http.auth_api import AuthApiClient

# Integrations
from .integrations.httpx import SessionAuth
from .integrations.common.session_factory import SessionClient, create_session_client
from .config import SessionSettings, settings_from_env

__all__ = [
    "__version__",
    # domain core
    "TokenStatus",
    "UnauthenticatedMode",
    "Session",
    "TokenGrant",
    "TokenPair",
    "UserProfile",
    "TokenClaims",
    "EmailAddress",
    "Credentials",
    "ClaimsDecoder",
    "TokenStorage",
    "AuthGateway",
    "RefreshPolicy",
    # exceptions
    "SessionError",
    "NotAuthenticatedError",
    "RaceLostError",
    "MalformedTokenError",
    "RefreshFailedError",
    "RefreshRejectedError",
    "AuthenticationError",
    "StorageError",
    # application
    "TokenStore",
    "SessionCoordinator",
    # adapters
    "JWTClaimsDecoder",
    "FileTokenStorage",
    "MemoryTokenStorage",
    "AuthApiClient",
    # integrations
    "SessionAuth",
    "SessionClient",
    "create_session_client",
    "SessionSettings",
    "settings_from_env",
]

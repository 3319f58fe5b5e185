class SessionError(Exception):
    """Base class for all session lifecycle errors."""
    pass


class NotAuthenticatedError(SessionError):
    """Raised when there is no usable session."""
    pass


class RaceLostError(NotAuthenticatedError):
    """Raised to callers that joined a shared refresh which ended the session."""
    pass


class MalformedTokenError(SessionError):
    """Raised when a token's claims cannot be decoded."""
    pass


class RefreshFailedError(SessionError):
    """Raised when the refresh endpoint could not be reached or answered badly."""
    pass


class RefreshRejectedError(SessionError):
    """Raised when the server explicitly refuses the refresh token."""
    pass


class AuthenticationError(SessionError):
    """Raised when the server rejects login, registration or social login."""
    pass


class StorageError(SessionError):
    """Raised when the token pair could not be written to or read from storage."""
    pass

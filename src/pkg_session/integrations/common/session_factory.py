from __future__ import annotations

from typing import Optional

import httpx

from ...adapters.http.auth_api import AuthApiClient
from ...adapters.jwt.claims_decoder import JWTClaimsDecoder
from ...adapters.storage.file_storage import FileTokenStorage
from ...application.session_coordinator import SessionCoordinator
from ...application.token_store import TokenStore
from ...application.use_cases.current_user import CurrentUserUseCase
from ...application.use_cases.sign_in import SignInUseCase
from ...application.use_cases.sign_out import SignOutUseCase
from ...config.settings import SessionSettings
from ...domain.constants import UnauthenticatedMode
from ...domain.entities import Session, TokenPair, UserProfile
from ...domain.ports import TokenStorage
from ...domain.refresh_policy import RefreshPolicy
from ...domain.value_objects import Credentials
from ..httpx.auth import SessionAuth


class SessionClient:
    """
    Framework-agnostic session facade.

    Owns one explicitly constructed set of collaborators (no module-level
    state), so several independent sessions can live in one process:

        async with create_session_client(settings) as session:
            await session.login(Credentials("me@example.com", "secret"))
            resp = await session.http.get("/locations")
    """

    def __init__(
            self,
            *,
            coordinator: SessionCoordinator,
            gateway: AuthApiClient,
            http: httpx.AsyncClient,
    ) -> None:
        self.coordinator = coordinator
        self.gateway = gateway
        self.http = http

        self._sign_in = SignInUseCase(gateway=gateway, coordinator=coordinator)
        self._sign_out = SignOutUseCase(gateway=gateway, coordinator=coordinator)
        self._current_user = CurrentUserUseCase(http=http, store=coordinator.store)

    # --- Lifecycle ---------------------------------------------------------

    async def init(self) -> "SessionClient":
        await self.coordinator.init()
        return self

    async def aclose(self) -> None:
        self._current_user.close()
        await self.coordinator.dispose()
        await self.http.aclose()
        await self.gateway.close()

    async def __aenter__(self) -> "SessionClient":
        return await self.init()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # --- Core operations ---------------------------------------------------

    @property
    def session(self) -> Session:
        return self.coordinator.store.session

    async def ensure_fresh_token(self) -> str:
        return await self.coordinator.ensure_fresh_token()

    async def login(self, credentials: Credentials) -> TokenPair:
        return await self._sign_in.login(credentials)

    async def register(self, credentials: Credentials) -> TokenPair:
        return await self._sign_in.register(credentials)

    async def google_login(self, code: str, state: str = "") -> TokenPair:
        return await self._sign_in.google_login(code, state)

    async def logout(self) -> bool:
        return await self._sign_out.execute()

    async def me(self, refresh: bool = False) -> UserProfile:
        return await self._current_user.get(refresh=refresh)


def create_session_client(
        settings: SessionSettings,
        *,
        storage: Optional[TokenStorage] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
) -> SessionClient:
    """
    High-level factory: SessionSettings -> SessionClient.

    - builds the durable storage, TokenStore and RefreshPolicy
    - wires the AuthApiClient and SessionCoordinator
    - returns a facade with an authorized httpx.AsyncClient

    `storage` and `transport` are injection points for tests.
    """
    auth_http = httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=settings.refresh_timeout_seconds,
        verify=settings.verify_ssl,
        transport=transport,
    )
    gateway = AuthApiClient(settings.api_base_url, client=auth_http)

    store = TokenStore(
        storage=storage or FileTokenStorage(settings.storage_path),
        key=settings.storage_key,
    )
    policy = RefreshPolicy(
        decoder=JWTClaimsDecoder(),
        threshold_seconds=settings.refresh_threshold_seconds,
    )
    coordinator = SessionCoordinator(
        store,
        gateway,
        policy,
        refresh_timeout=settings.refresh_timeout_seconds,
    )

    api_http = httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=settings.request_timeout_seconds,
        verify=settings.verify_ssl,
        transport=transport,
        auth=SessionAuth(coordinator, mode=UnauthenticatedMode(settings.unauthenticated_mode)),
    )

    return SessionClient(coordinator=coordinator, gateway=gateway, http=api_http)

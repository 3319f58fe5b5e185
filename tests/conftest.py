# tests/conftest.py
from __future__ import annotations

import asyncio
import itertools
import time
from typing import Any, Optional

import httpx
import jwt
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pkg_session.adapters.jwt.claims_decoder import JWTClaimsDecoder
from pkg_session.adapters.storage.memory_storage import MemoryTokenStorage
from pkg_session.application.session_coordinator import SessionCoordinator
from pkg_session.application.token_store import TokenStore
from pkg_session.domain.entities import TokenGrant, TokenPair
from pkg_session.domain.refresh_policy import RefreshPolicy

SECRET = "test-secret-that-is-long-enough-for-hs256"
NOW = 1_700_000_000.0
BASE_URL = "http://testserver"


def make_token(exp: Optional[float] = None, **claims: Any) -> str:
    payload = dict(claims)
    if exp is not None:
        payload["exp"] = int(exp)
    payload.setdefault("sub", "1")
    return jwt.encode(payload, SECRET, algorithm="HS256")


# --------------------------------------------------------------------- #
# Fake refresh gateway (coordinator tests)
# --------------------------------------------------------------------- #


class FakeGateway:
    """Counts refresh calls; optionally blocks on a gate or sleeps first."""

    def __init__(
            self,
            grant: Optional[TokenGrant] = None,
            error: Optional[Exception] = None,
            delay: float = 0.0,
    ) -> None:
        self.grant = grant
        self.error = error
        self.delay = delay
        self.gate: Optional[asyncio.Event] = None
        self.calls = 0
        self.refresh_tokens: list[str] = []
        self.logouts: list[str] = []

    async def refresh(self, refresh_token: str) -> TokenGrant:
        self.calls += 1
        self.refresh_tokens.append(refresh_token)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        assert self.grant is not None
        return self.grant

    async def logout(self, access_token: str) -> None:
        self.logouts.append(access_token)


class FailingStorage(MemoryTokenStorage):
    """Memory storage whose writes (and optionally reads) raise OSError on demand."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False
        self.fail_reads = False

    async def load(self, key: str):
        if self.fail_reads:
            raise OSError("permission denied")
        return await super().load(key)

    async def save(self, key: str, record) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        await super().save(key, record)

    async def delete(self, key: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        await super().delete(key)


@pytest.fixture
def policy() -> RefreshPolicy:
    return RefreshPolicy(decoder=JWTClaimsDecoder(), threshold_seconds=300)


@pytest.fixture
def storage() -> MemoryTokenStorage:
    return MemoryTokenStorage()


@pytest.fixture
def store(storage: MemoryTokenStorage) -> TokenStore:
    return TokenStore(storage)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway(grant=TokenGrant(access_token=make_token(exp=NOW + 3600)))


@pytest.fixture
def coordinator(store: TokenStore, gateway: FakeGateway, policy: RefreshPolicy) -> SessionCoordinator:
    return SessionCoordinator(store, gateway, policy, clock=lambda: NOW, refresh_timeout=1.0)


async def signed_in(coordinator: SessionCoordinator, exp: float, refresh: str = "refresh-1") -> TokenPair:
    await coordinator.init()
    pair = TokenPair(access_token=make_token(exp=exp), refresh_token=refresh)
    await coordinator.sign_in(pair)
    return pair


# --------------------------------------------------------------------- #
# Fake auth server (HTTP boundary tests)
# --------------------------------------------------------------------- #


class FakeAuthServer:
    """
    In-process stand-in for the /auth/* API, served through ASGITransport.
    """

    def __init__(self, access_lifetime: float = 3600) -> None:
        self.access_lifetime = access_lifetime
        self.users: dict[str, dict[str, Any]] = {
            "ada@example.com": {"id": 1, "password": "secret", "first_name": "Ada"},
        }
        self.refresh_tokens: set[str] = set()
        self.access_tokens: dict[str, str] = {}
        self.refresh_status: Optional[int] = None
        self.register_returns_tokens = False
        self.refresh_calls = 0
        self.logout_calls = 0
        self.me_auth_headers: list[Optional[str]] = []
        self._ids = itertools.count(2)
        self._serial = itertools.count()
        self.app = self._build_app()

    def transport(self) -> httpx.ASGITransport:
        return httpx.ASGITransport(app=self.app)

    def issue(self, email: str) -> dict[str, str]:
        serial = next(self._serial)
        access = make_token(exp=time.time() + self.access_lifetime, email=email, n=serial)
        refresh = make_token(exp=time.time() + 86400, email=email, n=serial, kind="refresh")
        self.access_tokens[access] = email
        self.refresh_tokens.add(refresh)
        return {"status": "success", "access_token": access, "refresh_token": refresh}

    def _bearer(self, request: Request) -> Optional[str]:
        header = request.headers.get("Authorization")
        if header and header.startswith("Bearer "):
            return header[7:]
        return None

    def _build_app(self) -> FastAPI:
        app = FastAPI()
        server = self

        def fail(status_code: int, message: str) -> JSONResponse:
            return JSONResponse({"status": "fail", "message": message}, status_code=status_code)

        @app.post("/auth/login")
        async def login(request: Request):
            body = await request.json()
            user = server.users.get(body.get("email"))
            if user is None or user["password"] != body.get("password"):
                return fail(400, "Invalid email or password")
            return JSONResponse(server.issue(body["email"]), status_code=201)

        @app.post("/auth/register")
        async def register(request: Request):
            body = await request.json()
            if body.get("email") in server.users:
                return fail(409, "User with that email already exists")
            user_id = next(server._ids)
            server.users[body["email"]] = {"id": user_id, "password": body["password"]}
            if server.register_returns_tokens:
                return JSONResponse(server.issue(body["email"]), status_code=201)
            return JSONResponse(
                {"status": "success", "data": {"id": user_id, "email": body["email"]}},
                status_code=201,
            )

        @app.post("/auth/google")
        async def google(code: str = "", state: str = ""):
            if not code.strip():
                return fail(400, "Authorization code not provided!")
            server.users.setdefault("g@example.com", {"id": 99, "password": "", "provider": "google"})
            return JSONResponse(server.issue("g@example.com"), status_code=201)

        @app.post("/auth/refresh")
        async def refresh(request: Request):
            server.refresh_calls += 1
            if server.refresh_status is not None:
                return fail(server.refresh_status, "forced failure")
            token = server._bearer(request)
            if token is None:
                return fail(401, "You are not logged in, please provide token")
            if token not in server.refresh_tokens:
                return fail(401, "Invalid token")
            email = jwt.decode(token, SECRET, algorithms=["HS256"])["email"]
            access = make_token(exp=time.time() + server.access_lifetime, email=email, n=next(server._serial))
            server.access_tokens[access] = email
            return JSONResponse({"status": "success", "access_token": access}, status_code=201)

        @app.post("/auth/logout")
        async def logout(request: Request):
            server.logout_calls += 1
            token = server._bearer(request)
            if token is None or token not in server.access_tokens:
                return fail(401, "You are not logged in")
            del server.access_tokens[token]
            return JSONResponse({}, status_code=200)

        @app.post("/auth/me")
        async def me(request: Request):
            server.me_auth_headers.append(request.headers.get("Authorization"))
            token = server._bearer(request)
            if token is None or token not in server.access_tokens:
                return fail(401, "You are not logged in")
            email = server.access_tokens[token]
            user = server.users[email]
            return JSONResponse({
                "status": "success",
                "data": {
                    "id": user["id"],
                    "email": email,
                    "first_name": user.get("first_name"),
                    "provider": user.get("provider"),
                },
            })

        return app


@pytest.fixture
def auth_server() -> FakeAuthServer:
    return FakeAuthServer()

"""
Shared test fixtures.

This module provides reusable fixtures for:
- Creating HS256 access tokens signed like the hosted auth service
- An in-memory Redis stand-in for the session store
- Fake async DB sessions that replay a planned list of results
- A dummy httpx.AsyncClient answering hosted auth routes
- Signing a caller in through the session store
"""

import asyncio
import time
import uuid
from types import SimpleNamespace
from typing import Dict, List, Optional
from unittest.mock import AsyncMock

import jwt
import pytest

from common.auth.session import SessionStore
from libs.auth.hosted_auth import AuthEvent, AuthSession, AuthStateChange, AuthUser
from libs.config import config
from services.identity.roles import home_route_for

TEST_JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"
TEST_AUTH_URL = "http://auth.test/auth/v1"


# ============================================================================
# Tokens
# ============================================================================


@pytest.fixture
def jwt_secret(monkeypatch):
    """Point token verification at the test secret."""
    monkeypatch.setattr(config, "AUTH_JWT_SECRET", TEST_JWT_SECRET)
    return TEST_JWT_SECRET


@pytest.fixture
def create_access_token(jwt_secret):
    """
    Factory fixture to create access tokens.

    Returns:
        Function that creates tokens with custom claims
    """

    def _create(
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        expires_in: int = 3600,
        **extra_claims,
    ) -> str:
        now = int(time.time())
        payload = {
            "sub": user_id or str(uuid.uuid4()),
            "aud": config.AUTH_JWT_AUDIENCE,
            "iat": now,
            "exp": now + expires_in,
            "session_id": session_id or str(uuid.uuid4()),
            "role": "authenticated",
            **extra_claims,
        }
        return jwt.encode(payload, jwt_secret, algorithm="HS256")

    return _create


# ============================================================================
# Redis
# ============================================================================


class FakeRedis:
    """Dict-backed stand-in for common.redis_client.RedisClient."""

    def __init__(self):
        self.values: Dict[str, object] = {}
        self.sets: Dict[str, set] = {}
        self.ttls: Dict[str, Optional[int]] = {}

    def set(self, key, value, ttl=None):
        self.values[key] = value
        self.ttls[key] = ttl
        return True

    def get(self, key):
        return self.values.get(key)

    def set_json(self, key, value, ttl=None):
        return self.set(key, dict(value), ttl)

    def get_json(self, key):
        value = self.values.get(key)
        return dict(value) if value is not None else None

    def delete(self, key):
        existed = key in self.values or key in self.sets
        self.values.pop(key, None)
        self.sets.pop(key, None)
        return existed

    def delete_many(self, keys):
        return sum(1 for k in keys if self.delete(k))

    def sadd(self, key, *members):
        self.sets.setdefault(key, set()).update(members)
        return True

    def smembers(self, key):
        return set(self.sets.get(key, set()))


@pytest.fixture
def fake_redis():
    return FakeRedis()


# ============================================================================
# Database
# ============================================================================


class FakeResult:
    def __init__(self, obj):
        self._obj = obj

    def scalar_one_or_none(self):
        return self._obj

    def scalar_one(self):
        if self._obj is None:
            raise Exception("No row found")
        return self._obj

    def scalars(self):
        return self

    def first(self):
        if isinstance(self._obj, list):
            return self._obj[0] if self._obj else None
        return self._obj

    def all(self):
        if isinstance(self._obj, list):
            return self._obj
        return [self._obj] if self._obj else []


class FakeDB:
    """
    Async session stand-in that records calls.

    Each execute() pops the next planned item: a FakeResult is returned, an
    exception is raised.
    """

    def __init__(self, plan=None, *, commit_raises: Exception | None = None):
        self.plan = list(plan or [])
        self.added = []
        self.commits = 0
        self.rollbacks = 0
        self.commit_raises = commit_raises
        self.execute = AsyncMock(side_effect=self._execute)

    async def _execute(self, stmt, params=None):
        if self.plan:
            item = self.plan.pop(0)
            if isinstance(item, BaseException):
                raise item
            return item
        return FakeResult(None)

    def add(self, obj):
        self.added.append(obj)

    async def commit(self):
        if self.commit_raises:
            raise self.commit_raises
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1

    @property
    def committed(self):
        return self.commits > 0

    @property
    def rolled_back(self):
        return self.rollbacks > 0


@pytest.fixture
def make_result():
    return FakeResult


@pytest.fixture
def make_db():
    return FakeDB


def override_db(app, fake_db):
    from libs.db import get_db

    async def override_get_db():
        yield fake_db

    app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def use_db():
    """Install a FakeDB as get_db on an app; overrides cleared afterwards."""
    apps = []

    def _use(app, fake_db):
        apps.append(app)
        override_db(app, fake_db)
        return fake_db

    yield _use
    for app in apps:
        app.dependency_overrides.clear()


# ============================================================================
# Hosted auth
# ============================================================================


@pytest.fixture
def auth_http(monkeypatch):
    """
    Replace httpx.AsyncClient inside the hosted auth client.

    Register answers in ``routes[(method, path)] = (status_code, body)``;
    every request is appended to ``calls``. Unregistered routes answer 404.
    """
    import libs.auth.hosted_auth as hosted_auth

    routes: Dict[tuple, tuple] = {}
    calls: List[SimpleNamespace] = []

    class DummyResponse:
        def __init__(self, status_code: int, payload):
            self.status_code = status_code
            self._payload = payload

        def json(self):
            if self._payload is None:
                raise ValueError("no body")
            return self._payload

    class DummyAsyncClient:
        def __init__(self, timeout=10.0):
            self.timeout = timeout

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return False

        async def request(self, method, url, json=None, params=None, headers=None):
            path = url.split("/auth/v1", 1)[-1]
            calls.append(
                SimpleNamespace(method=method, path=path, json=json, params=params, headers=headers)
            )
            status_code, body = routes.get((method, path), (404, {"msg": "not found"}))
            if isinstance(body, BaseException):
                raise body
            return DummyResponse(status_code, body)

    monkeypatch.setattr(hosted_auth.httpx, "AsyncClient", DummyAsyncClient)
    return SimpleNamespace(routes=routes, calls=calls)


@pytest.fixture
def auth_client():
    from libs.auth.hosted_auth import HostedAuthClient

    return HostedAuthClient(base_url=TEST_AUTH_URL, api_key="anon-key", timeout=5)


@pytest.fixture
def make_session_store(fake_redis):
    """
    Factory fixture for a SessionStore on FakeRedis.

    ``roles`` maps user id to role names; unknown users have no roles.
    """

    def _make(roles: Optional[Dict[str, List[str]]] = None) -> SessionStore:
        table = roles or {}

        async def role_loader(user_id: str) -> List[str]:
            return list(table.get(user_id, []))

        return SessionStore(role_loader=role_loader, route_for_roles=home_route_for, redis=fake_redis)

    return _make


@pytest.fixture
def sign_in():
    """
    Push a SIGNED_IN event through a session store.

    Returns:
        Function returning the new session id
    """

    def _sign_in(store: SessionStore, user_id: Optional[str] = None, email="student@uni.test") -> str:
        user_id = user_id or str(uuid.uuid4())
        session = AuthSession(
            session_id=str(uuid.uuid4()),
            access_token="access-" + user_id,
            refresh_token="refresh-" + user_id,
            expires_in=3600,
            user=AuthUser(id=user_id, email=email, user_metadata={"full_name": "Test User"}),
        )
        asyncio.run(
            store.handle_auth_event(
                AuthStateChange(event=AuthEvent.SIGNED_IN, user_id=user_id, session=session)
            )
        )
        return session.session_id

    return _sign_in

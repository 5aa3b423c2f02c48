# pytest common/auth/tests/test_session_store.py -q

import uuid

import pytest

from common.auth.session import SessionStore
from common.constants import SESSION_KEY_PREFIX, USER_SESSIONS_KEY_PREFIX
from libs.auth.hosted_auth import AuthEvent, AuthSession, AuthStateChange, AuthUser

pytestmark = pytest.mark.unit


def _session(user_id, sid=None):
    return AuthSession(
        session_id=sid or str(uuid.uuid4()),
        access_token="access",
        refresh_token="refresh",
        expires_in=3600,
        user=AuthUser(id=user_id, email="x@uni.test", user_metadata={"full_name": "X"}),
    )


def _signed_in(session):
    return AuthStateChange(event=AuthEvent.SIGNED_IN, user_id=session.user.id, session=session)


@pytest.mark.asyncio
async def test_signed_in_writes_record_with_resolved_route(make_session_store, fake_redis):
    user_id = str(uuid.uuid4())
    store = make_session_store({user_id: ["admin"]})
    session = _session(user_id)

    await store.handle_auth_event(_signed_in(session))

    record = store.get(session.session_id)
    assert record["user_id"] == user_id
    assert record["roles"] == ["admin"]
    assert record["home_route"] == "/dashboard/admin"
    assert record["full_name"] == "X"
    assert fake_redis.ttls[f"{SESSION_KEY_PREFIX}{session.session_id}"] == store.ttl
    assert store.sessions_for_user(user_id) == {session.session_id}


@pytest.mark.asyncio
async def test_user_without_roles_gets_student_dashboard(make_session_store):
    store = make_session_store()
    session = _session(str(uuid.uuid4()))

    await store.handle_auth_event(_signed_in(session))

    assert store.get(session.session_id)["home_route"] == "/dashboard/student"


@pytest.mark.asyncio
async def test_signed_out_removes_every_session_of_user(make_session_store, fake_redis):
    user_id = str(uuid.uuid4())
    store = make_session_store()
    first, second = _session(user_id), _session(user_id)
    await store.handle_auth_event(_signed_in(first))
    await store.handle_auth_event(_signed_in(second))

    await store.handle_auth_event(AuthStateChange(event=AuthEvent.SIGNED_OUT, user_id=user_id))

    assert store.get(first.session_id) is None
    assert store.get(second.session_id) is None
    assert f"{USER_SESSIONS_KEY_PREFIX}{user_id}" not in fake_redis.sets


@pytest.mark.asyncio
async def test_token_refreshed_overwrites_same_sid(make_session_store):
    user_id = str(uuid.uuid4())
    store = make_session_store()
    session = _session(user_id, sid="sess-1")
    await store.handle_auth_event(_signed_in(session))

    refreshed = session.model_copy(update={"access_token": "access-2"})
    await store.handle_auth_event(
        AuthStateChange(event=AuthEvent.TOKEN_REFRESHED, user_id=user_id, session=refreshed)
    )

    assert store.get("sess-1")["access_token"] == "access-2"
    assert store.sessions_for_user(user_id) == {"sess-1"}


@pytest.mark.asyncio
async def test_user_updated_re_resolves_roles(fake_redis):
    user_id = str(uuid.uuid4())
    roles = {user_id: []}

    async def loader(uid):
        return roles[uid]

    store = SessionStore(
        role_loader=loader,
        route_for_roles=lambda r: "/dashboard/admin" if r else "/dashboard/student",
        redis=fake_redis,
    )
    session = _session(user_id)
    await store.handle_auth_event(_signed_in(session))
    assert store.get(session.session_id)["home_route"] == "/dashboard/student"

    roles[user_id] = ["ombudsperson"]
    await store.handle_auth_event(AuthStateChange(event=AuthEvent.USER_UPDATED, user_id=user_id))

    assert store.get(session.session_id)["roles"] == ["ombudsperson"]
    assert store.get(session.session_id)["home_route"] == "/dashboard/admin"
    assert store.get(session.session_id)["email"] == "x@uni.test"


@pytest.mark.asyncio
async def test_user_updated_refreshes_email(make_session_store):
    user_id = str(uuid.uuid4())
    store = make_session_store()
    first, second = _session(user_id), _session(user_id)
    await store.handle_auth_event(_signed_in(first))
    await store.handle_auth_event(_signed_in(second))

    await store.handle_auth_event(
        AuthStateChange(
            event=AuthEvent.USER_UPDATED,
            user_id=user_id,
            user=AuthUser(id=user_id, email="new@uni.test"),
        )
    )

    assert store.get(first.session_id)["email"] == "new@uni.test"
    assert store.get(second.session_id)["email"] == "new@uni.test"


@pytest.mark.asyncio
async def test_redis_write_failure_raises(make_session_store, fake_redis, monkeypatch):
    store = make_session_store()
    monkeypatch.setattr(fake_redis, "set_json", lambda key, value, ttl=None: False)

    with pytest.raises(RuntimeError):
        await store.handle_auth_event(_signed_in(_session(str(uuid.uuid4()))))


@pytest.mark.asyncio
async def test_store_follows_auth_client_events(make_session_store, auth_client):
    store = make_session_store()
    store.attach(auth_client)
    session = _session(str(uuid.uuid4()))

    await auth_client._emit(_signed_in(session))

    assert store.get(session.session_id) is not None


def test_get_ignores_missing_or_inactive_sid(make_session_store, fake_redis):
    store = make_session_store()
    fake_redis.set_json(f"{SESSION_KEY_PREFIX}old", {"sid": "old", "status": "revoked"})

    assert store.get(None) is None
    assert store.get("unknown") is None
    assert store.get("old") is None


@pytest.mark.asyncio
async def test_roles_are_loaded_once_per_sign_in(fake_redis, mocker):
    loader = mocker.AsyncMock(return_value=["department_officer"])
    store = SessionStore(role_loader=loader, route_for_roles=lambda r: "/dashboard/admin", redis=fake_redis)
    user_id = str(uuid.uuid4())

    await store.handle_auth_event(_signed_in(_session(user_id)))

    loader.assert_awaited_once_with(user_id)

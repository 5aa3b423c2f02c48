"""
FastAPI dependencies resolving the caller of a request.

A browser request carries the session cookie and is answered from the
session store. API clients may instead send the hosted-auth access token as
a bearer token; their roles are then read from the database.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from common.auth.session import SessionStore
from common.constants import SESSION_COOKIE_NAME
from common.errors import AuthenticationFailed, NotAuthorized
from libs.auth.hosted_auth import HostedAuthClient
from libs.auth.token_verify import verify_token
from libs.db import get_db
from services.identity.roles import fetch_roles, home_route_for, is_elevated
from services.identity.runtime import get_auth_client, get_session_store
from services.identity.schemas import Caller

optional_bearer = HTTPBearer(auto_error=False)


def get_store() -> SessionStore:
    return get_session_store()


def get_auth() -> HostedAuthClient:
    return get_auth_client()


def caller_from_record(record: dict) -> Caller:
    return Caller(
        user_id=record["user_id"],
        email=record.get("email"),
        full_name=record.get("full_name"),
        roles=record.get("roles") or [],
        home_route=record["home_route"],
        sid=record.get("sid"),
        access_token=record.get("access_token"),
    )


async def optional_caller(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer),
    store: SessionStore = Depends(get_store),
    db: AsyncSession = Depends(get_db),
) -> Optional[Caller]:
    record = store.get(request.cookies.get(SESSION_COOKIE_NAME))
    if record:
        return caller_from_record(record)

    if credentials is None:
        return None

    payload = verify_token(credentials)
    roles = await fetch_roles(db, payload["sub"])
    return Caller(
        user_id=payload["sub"],
        email=payload.get("email"),
        roles=roles,
        home_route=home_route_for(roles),
        access_token=credentials.credentials,
    )


async def require_caller(caller: Optional[Caller] = Depends(optional_caller)) -> Caller:
    if caller is None:
        raise AuthenticationFailed("Please sign in to continue")
    return caller


async def require_elevated(caller: Caller = Depends(require_caller)) -> Caller:
    if not is_elevated(caller.roles):
        raise NotAuthorized("Administrator access is required for this action")
    return caller

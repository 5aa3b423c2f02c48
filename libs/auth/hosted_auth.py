"""
Client for the hosted auth service (GoTrue-compatible REST API).

- HostedAuthClient: password sign-in, sign-up with profile metadata,
  sign-out, token refresh, user lookup and email/password updates
- on_auth_state_change: subscription used by the session store; every
  successful call that changes the session emits exactly one event
  (sign_up can opt out with emit=False)

Env vars (see libs/config.py):
- AUTH_URL        e.g. https://<project>.example.co/auth/v1
- AUTH_ANON_KEY   public API key sent as the ``apikey`` header
"""

import logging
import uuid
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
import jwt
from pydantic import BaseModel, Field

from libs.config import config

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    """Auth state change notifications."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)


class AuthSession(BaseModel):
    session_id: str
    access_token: str
    refresh_token: str
    expires_in: int = 3600
    token_type: str = "bearer"
    user: AuthUser


class AuthStateChange(BaseModel):
    event: AuthEvent
    user_id: str
    session: Optional[AuthSession] = None
    # USER_UPDATED carries the user as the service now reports it
    user: Optional[AuthUser] = None


class AuthServiceError(Exception):
    """Error reported by the hosted auth service; message kept verbatim."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


Listener = Callable[[AuthStateChange], Awaitable[None]]


def _error_message(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"Auth service returned HTTP {response.status_code}"
    for key in ("msg", "error_description", "message", "error"):
        if isinstance(body, dict) and body.get(key):
            return str(body[key])
    return f"Auth service returned HTTP {response.status_code}"


def _session_id_from_token(access_token: str) -> Optional[str]:
    """The hosted service stamps a stable ``session_id`` claim on every token."""
    try:
        claims = jwt.decode(access_token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return None
    return claims.get("session_id")


class HostedAuthClient:
    """
    Thin async wrapper around the hosted auth REST API.

    Listeners registered with on_auth_state_change are awaited in
    subscription order after each state-changing call succeeds.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or config.AUTH_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else config.AUTH_ANON_KEY
        self.timeout = timeout or config.AUTH_HTTP_TIMEOUT
        self._listeners: List[Listener] = []

    # ---------- subscription ----------

    def on_auth_state_change(self, listener: Listener) -> Callable[[], None]:
        """
        Subscribe to auth state changes.

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _emit(self, change: AuthStateChange) -> None:
        logger.info("Auth state change %s for user %s", change.event.value, change.user_id)
        for listener in list(self._listeners):
            await listener(change)

    # ---------- transport ----------

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        access_token: Optional[str] = None,
    ) -> dict:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    url,
                    json=json,
                    params=params,
                    headers=self._headers(access_token),
                )
        except httpx.HTTPError as e:
            logger.error("Auth service unreachable at %s: %s", url, e)
            raise AuthServiceError(f"Auth service unreachable: {e}") from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning("Auth service %s %s -> %s: %s", method, path, response.status_code, message)
            raise AuthServiceError(message, status_code=response.status_code)

        if response.status_code == 204:
            return {}
        return response.json()

    def _to_session(self, body: dict, session_id: Optional[str] = None) -> AuthSession:
        access_token = body["access_token"]
        sid = session_id or _session_id_from_token(access_token) or f"sess_{uuid.uuid4().hex[:16]}"
        return AuthSession(
            session_id=sid,
            access_token=access_token,
            refresh_token=body.get("refresh_token", ""),
            expires_in=int(body.get("expires_in", 3600)),
            token_type=body.get("token_type", "bearer"),
            user=AuthUser(**body["user"]),
        )

    # ---------- API ----------

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        body = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = self._to_session(body)
        await self._emit(
            AuthStateChange(event=AuthEvent.SIGNED_IN, user_id=session.user.id, session=session)
        )
        return session

    async def sign_up(
        self,
        email: str,
        password: str,
        data: Optional[Dict[str, Any]] = None,
        redirect_to: Optional[str] = None,
        emit: bool = True,
    ) -> AuthUser:
        """
        Register a new account.

        When the project auto-confirms emails the response already contains a
        session; in that case SIGNED_IN is emitted as well, unless ``emit`` is
        False (accounts created on behalf of someone else, or sign-ups that
        are followed by an explicit login).
        """
        params = {"redirect_to": redirect_to} if redirect_to else None
        body = await self._request(
            "POST",
            "/signup",
            params=params,
            json={"email": email, "password": password, "data": data or {}},
        )
        if "access_token" in body:
            session = self._to_session(body)
            if not emit:
                return session.user
            await self._emit(
                AuthStateChange(event=AuthEvent.SIGNED_IN, user_id=session.user.id, session=session)
            )
            return session.user
        # Unconfirmed sign-ups return the bare user object
        user_body = body.get("user", body)
        return AuthUser(**user_body)

    async def sign_out(self, access_token: str, user_id: str) -> None:
        await self._request("POST", "/logout", access_token=access_token)
        await self._emit(AuthStateChange(event=AuthEvent.SIGNED_OUT, user_id=user_id))

    async def refresh_session(self, refresh_token: str, session_id: Optional[str] = None) -> AuthSession:
        body = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        session = self._to_session(body, session_id=session_id)
        await self._emit(
            AuthStateChange(event=AuthEvent.TOKEN_REFRESHED, user_id=session.user.id, session=session)
        )
        return session

    async def get_user(self, access_token: str) -> AuthUser:
        body = await self._request("GET", "/user", access_token=access_token)
        return AuthUser(**body)

    async def update_user(
        self,
        access_token: str,
        *,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> AuthUser:
        payload = {}
        if email is not None:
            payload["email"] = email
        if password is not None:
            payload["password"] = password
        body = await self._request("PUT", "/user", json=payload, access_token=access_token)
        user = AuthUser(**body)
        await self._emit(AuthStateChange(event=AuthEvent.USER_UPDATED, user_id=user.id, user=user))
        return user

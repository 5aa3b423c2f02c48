"""
Session store for browser sessions.

The store is the single writer of session state: it is subscribed to the
hosted auth client and only its auth-state-change handler creates, updates
or deletes records. Every page and API that needs the current session reads
from here instead of calling the auth service again.

Redis layout:
1. nexus:session:<sid>           - session record (JSON)
2. nexus:user_sessions:<user_id> - set of sids belonging to the user

The session id is the stable ``session_id`` issued by the hosted auth
service, so it survives token refreshes.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

from common.constants import (
    SESSION_KEY_PREFIX,
    SESSION_TTL,
    USER_SESSIONS_KEY_PREFIX,
)
from common.redis_client import get_redis_client
from libs.auth.hosted_auth import AuthEvent, AuthStateChange, AuthUser, HostedAuthClient

logger = logging.getLogger(__name__)

RoleLoader = Callable[[str], Awaitable[List[str]]]
RouteResolver = Callable[[List[str]], str]


class SessionStore:
    """
    Stores sessions in Redis, keyed by session id.

    Args:
        role_loader: coroutine returning the role names of a user
        route_for_roles: maps role names to the user's dashboard route
        redis: RedisClient-compatible object (defaults to the singleton)
    """

    def __init__(
        self,
        role_loader: RoleLoader,
        route_for_roles: RouteResolver,
        redis=None,
        ttl: int = SESSION_TTL,
    ):
        self.redis = redis if redis is not None else get_redis_client()
        self.role_loader = role_loader
        self.route_for_roles = route_for_roles
        self.ttl = ttl

    def attach(self, auth_client: HostedAuthClient) -> Callable[[], None]:
        """Subscribe to the auth client; returns the unsubscribe function."""
        return auth_client.on_auth_state_change(self.handle_auth_event)

    # ---------- writer ----------

    async def handle_auth_event(self, change: AuthStateChange) -> None:
        """
        Apply an auth state change.

        SIGNED_IN / TOKEN_REFRESHED write the session and re-resolve roles.
        USER_UPDATED re-resolves roles (and the email, when the change
        carries the user) for every session of the user.
        SIGNED_OUT removes every session of the user (the hosted logout
        revokes all refresh tokens of the user).
        """
        if change.event == AuthEvent.SIGNED_OUT:
            removed = self._delete_user_sessions(change.user_id)
            logger.info("Removed %d session(s) for user %s", removed, change.user_id)
            return

        if change.event == AuthEvent.USER_UPDATED:
            await self._refresh_user_sessions(change.user_id, change.user)
            return

        if change.session is None:
            logger.warning("Ignoring %s without a session", change.event.value)
            return

        session = change.session
        roles = await self.role_loader(session.user.id)
        now = datetime.now(timezone.utc).isoformat()
        record = {
            "sid": session.session_id,
            "user_id": session.user.id,
            "email": session.user.email,
            "full_name": session.user.user_metadata.get("full_name"),
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "expires_at": time.time() + session.expires_in,
            "roles": roles,
            "home_route": self.route_for_roles(roles),
            "updated_at": now,
            "status": "active",
        }

        session_key = f"{SESSION_KEY_PREFIX}{session.session_id}"
        if not self.redis.set_json(session_key, record, ttl=self.ttl):
            raise RuntimeError("Failed to store session in Redis")
        self.redis.sadd(f"{USER_SESSIONS_KEY_PREFIX}{session.user.id}", session.session_id)

    async def _refresh_user_sessions(self, user_id: str, user: Optional[AuthUser] = None) -> None:
        sids = self.redis.smembers(f"{USER_SESSIONS_KEY_PREFIX}{user_id}")
        if not sids:
            return
        roles = await self.role_loader(user_id)
        for sid in sids:
            key = f"{SESSION_KEY_PREFIX}{sid}"
            record = self.redis.get_json(key)
            if not record:
                continue
            record["roles"] = roles
            if user is not None:
                record["email"] = user.email
            record["home_route"] = self.route_for_roles(roles)
            record["updated_at"] = datetime.now(timezone.utc).isoformat()
            self.redis.set_json(key, record, ttl=self.ttl)

    def _delete_user_sessions(self, user_id: str) -> int:
        user_sessions_key = f"{USER_SESSIONS_KEY_PREFIX}{user_id}"
        sids = self.redis.smembers(user_sessions_key)
        if not sids:
            return 0
        deleted = self.redis.delete_many([f"{SESSION_KEY_PREFIX}{sid}" for sid in sids])
        self.redis.delete(user_sessions_key)
        return deleted

    # ---------- readers ----------

    def get(self, sid: Optional[str]) -> Optional[dict]:
        """
        Get an active session record.

        Returns:
            Session record if found and active, None otherwise
        """
        if not sid:
            return None
        record = self.redis.get_json(f"{SESSION_KEY_PREFIX}{sid}")
        if not record or record.get("status") != "active":
            return None
        return record

    def sessions_for_user(self, user_id: str) -> set:
        return self.redis.smembers(f"{USER_SESSIONS_KEY_PREFIX}{user_id}")

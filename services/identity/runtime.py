"""
Process-wide auth wiring.

One HostedAuthClient and one SessionStore per process; the store is
subscribed to the client here so it stays the only writer of sessions.
"""

from typing import Optional

from common.auth.session import SessionStore
from libs.auth.hosted_auth import HostedAuthClient
from services.identity.roles import home_route_for, load_roles

_auth_client: Optional[HostedAuthClient] = None
_session_store: Optional[SessionStore] = None


def get_auth_client() -> HostedAuthClient:
    global _auth_client, _session_store
    if _auth_client is None:
        _auth_client = HostedAuthClient()
        _session_store = SessionStore(role_loader=load_roles, route_for_roles=home_route_for)
        _session_store.attach(_auth_client)
    return _auth_client


def get_session_store() -> SessionStore:
    get_auth_client()
    return _session_store

"""
Role resolution.

Reads the caller's rows from user_roles and decides which dashboard the user
belongs on. Any elevated role wins; no rows at all means student.
"""

import logging
import uuid
from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

import libs.db as db
from common.constants import ELEVATED_ROLES, ROUTE_ADMIN_DASHBOARD, ROUTE_STUDENT_DASHBOARD
from models.user_models import UserRole

logger = logging.getLogger(__name__)


def _role_name(role) -> str:
    return getattr(role, "value", role)


def is_elevated(roles: Iterable) -> bool:
    return any(_role_name(r) in ELEVATED_ROLES for r in roles)


def home_route_for(roles: Iterable) -> str:
    return ROUTE_ADMIN_DASHBOARD if is_elevated(roles) else ROUTE_STUDENT_DASHBOARD


async def fetch_roles(session: AsyncSession, user_id: str) -> List[str]:
    result = await session.execute(
        select(UserRole.role).where(UserRole.user_id == uuid.UUID(str(user_id)))
    )
    return [_role_name(r) for r in result.scalars().all()]


async def resolve_home_route(session: AsyncSession, user_id: str) -> str:
    roles = await fetch_roles(session, user_id)
    route = home_route_for(roles)
    logger.debug("User %s roles=%s -> %s", user_id, roles, route)
    return route


async def load_roles(user_id: str) -> List[str]:
    """Role loader for the session store; opens its own DB session."""
    async with db.AsyncSessionLocal() as session:
        return await fetch_roles(session, user_id)

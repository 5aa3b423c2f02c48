# Run:
# uvicorn services.dashboard.main:app --host 0.0.0.0 --port 21002 --reload
# Docs: http://127.0.0.1:21002/docs

import logging
import os
import sys
import uuid
from typing import List, Optional

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from common.complaint_types import priority_tone, status_tone
from common.constants import ADMIN_DASHBOARD_PAGE_SIZE
from libs.db import get_db
from libs.fastapi_service import (
    CORSMiddlewareConfig,
    FastAPIServiceFactory,
    ServiceAppConfig,
)
from models.complaint import Complaint
from models.user_models import Profile
from services.dashboard.schemas import (
    AdminDashboardResponse,
    AdminStats,
    ComplaintRow,
    ProfileOut,
    StudentDashboardResponse,
    StudentStats,
)
from services.dashboard.stats import admin_stats, student_stats
from services.identity.dependencies import require_caller, require_elevated
from services.identity.schemas import Caller

logger = logging.getLogger(__name__)

service_config = ServiceAppConfig(
    title="Dashboard Service",
    description="Student and administrator dashboards: complaint lists and counters.",
    service_name="dashboard",
    cors_config=CORSMiddlewareConfig(),
)

factory = FastAPIServiceFactory(service_config)
app = factory.create_app()


async def _load_profile(db: AsyncSession, user_id: str) -> Optional[ProfileOut]:
    result = await db.execute(select(Profile).where(Profile.id == uuid.UUID(str(user_id))))
    profile = result.scalars().first()
    if profile is None:
        return None
    return ProfileOut(
        id=profile.id,
        full_name=profile.full_name,
        department_id=profile.department_id,
        is_active=profile.is_active,
    )


def _rows(complaints: List[Complaint], show_submitter: bool = False) -> List[ComplaintRow]:
    rows = []
    for c in complaints:
        anonymous = c.submitter_pseudonym_hash is not None
        rows.append(
            ComplaintRow(
                tracking_id=c.tracking_id,
                title=c.title,
                category=c.category,
                status=c.status,
                priority=c.priority,
                submitted_at=c.submitted_at,
                status_tone=status_tone(c.status),
                priority_tone=priority_tone(c.priority),
                anonymous=anonymous,
                submitter_user_id=(
                    c.submitter_user_id if show_submitter and not anonymous else None
                ),
            )
        )
    return rows


@app.get("/")
async def root():
    return {"service": "dashboard", "status": "running"}


@app.get("/v1/dashboard/student", response_model=StudentDashboardResponse, tags=["Dashboard"])
async def student_dashboard(
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
):
    profile = await _load_profile(db, caller.user_id)
    result = await db.execute(
        select(Complaint)
        .where(Complaint.submitter_user_id == uuid.UUID(str(caller.user_id)))
        .order_by(Complaint.submitted_at.desc())
    )
    complaints = list(result.scalars().all())

    return StudentDashboardResponse(
        user_id=caller.user_id,
        email=caller.email,
        profile=profile,
        stats=StudentStats(**student_stats(complaints)),
        complaints=_rows(complaints),
    )


@app.get("/v1/dashboard/admin", response_model=AdminDashboardResponse, tags=["Dashboard"])
async def admin_dashboard(
    caller: Caller = Depends(require_elevated),
    db: AsyncSession = Depends(get_db),
):
    profile = await _load_profile(db, caller.user_id)
    result = await db.execute(select(Complaint).order_by(Complaint.submitted_at.desc()))
    complaints = list(result.scalars().all())

    # Counters cover every complaint, the list only the most recent ones
    return AdminDashboardResponse(
        user_id=caller.user_id,
        email=caller.email,
        profile=profile,
        stats=AdminStats(**admin_stats(complaints)),
        complaints=_rows(complaints[:ADMIN_DASHBOARD_PAGE_SIZE], show_submitter=True),
    )

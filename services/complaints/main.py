# Run:
# uvicorn services.complaints.main:app --host 0.0.0.0 --port 21001 --reload
# Docs: http://127.0.0.1:21001/docs

import asyncio
import logging
import os
import sys
from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from common.complaint_types import priority_tone, status_tone
from common.constants import ROUTE_STUDENT_DASHBOARD, SUBMIT_REDIRECT_DELAY_MS
from libs.db import get_db
from libs.fastapi_service import (
    CORSMiddlewareConfig,
    FastAPIServiceFactory,
    ServiceAppConfig,
)
from services.complaints.schemas import (
    ComplaintSubmitRequest,
    ComplaintSubmitResponse,
    FeedbackEntry,
    HistoryEntry,
    HistoryResponse,
    Notice,
    TrackedComplaint,
    TrackResponse,
)
from services.complaints.submission import ComplaintSubmitter
from services.complaints.tracking import find_complaint, load_history
from services.identity.dependencies import require_caller
from services.identity.schemas import Caller, Toast

logger = logging.getLogger(__name__)

service_config = ServiceAppConfig(
    title="Complaints Service",
    description="Submit complaints and look them up by tracking ID.",
    service_name="complaints",
    cors_config=CORSMiddlewareConfig(),
)

factory = FastAPIServiceFactory(service_config)
app = factory.create_app()

COMPLAINTS_SUBMITTED_TOTAL = factory.add_business_metric(
    "complaints_submitted_total", "Total complaints stored"
)
COMPLAINT_SUBMIT_RETRIES_TOTAL = factory.add_business_metric(
    "complaint_submit_retries_total", "Submission attempts retried after a tracking ID conflict"
)
TRACKING_LOOKUPS_TOTAL = factory.add_business_metric(
    "tracking_lookups_total", "Tracking ID lookups by outcome", ["result"]
)

NOT_FOUND_NOTICE = Notice(
    title="Not Found",
    description="No complaint found with this tracking ID",
)


def get_sleep():
    """Backoff sleeper; overridden in tests."""
    return asyncio.sleep


async def _count_retry(attempt: int, exc: BaseException) -> None:
    COMPLAINT_SUBMIT_RETRIES_TOTAL.inc()


@app.get("/")
async def root():
    return {"service": "complaints", "status": "running"}


@app.post("/v1/complaints/submit", response_model=ComplaintSubmitResponse, tags=["Complaints"])
async def submit_complaint(
    payload: ComplaintSubmitRequest,
    caller: Caller = Depends(require_caller),
    db: AsyncSession = Depends(get_db),
    sleep=Depends(get_sleep),
):
    submitter = ComplaintSubmitter(db, sleep=sleep, on_retry=_count_retry)
    tracking_id = await submitter.submit(payload, caller.user_id)

    COMPLAINTS_SUBMITTED_TOTAL.inc()
    return ComplaintSubmitResponse(
        tracking_id=tracking_id,
        status="submitted",
        redirect_to=ROUTE_STUDENT_DASHBOARD,
        redirect_delay_ms=SUBMIT_REDIRECT_DELAY_MS,
        toast=Toast(
            title="Complaint Submitted Successfully",
            description=f"Your tracking ID: {tracking_id}. We'll keep you updated.",
        ),
    )


@app.get("/v1/complaints/track", response_model=TrackResponse, tags=["Complaints"])
async def track_complaint(
    id: Optional[str] = Query(None, description="Tracking ID, e.g. EN-2025-00001"),
    db: AsyncSession = Depends(get_db),
):
    complaint = await find_complaint(db, id)
    if complaint is None:
        TRACKING_LOOKUPS_TOTAL.labels(result="not_found").inc()
        return TrackResponse(found=False, notice=NOT_FOUND_NOTICE)

    TRACKING_LOOKUPS_TOTAL.labels(result="found").inc()
    return TrackResponse(
        found=True,
        complaint=TrackedComplaint(
            tracking_id=complaint.tracking_id,
            title=complaint.title,
            description=complaint.description,
            category=complaint.category,
            status=complaint.status,
            priority=complaint.priority,
            submitted_at=complaint.submitted_at,
            department_assigned=complaint.department_assigned,
            status_tone=status_tone(complaint.status),
            priority_tone=priority_tone(complaint.priority),
        ),
    )


@app.get(
    "/v1/complaints/{tracking_id}/history",
    response_model=HistoryResponse,
    tags=["Complaints"],
)
async def complaint_history(tracking_id: str, db: AsyncSession = Depends(get_db)):
    complaint = await find_complaint(db, tracking_id)
    if complaint is None:
        TRACKING_LOOKUPS_TOTAL.labels(result="not_found").inc()
        return HistoryResponse(tracking_id=tracking_id.strip().upper(), entries=[])

    audit_rows, feedback_rows = await load_history(db, complaint)
    return HistoryResponse(
        tracking_id=complaint.tracking_id,
        status=complaint.status,
        entries=[
            HistoryEntry(
                action=row.action,
                timestamp=row.timestamp,
                actor_user_id=row.actor_user_id,
                details=row.details,
            )
            for row in audit_rows
        ],
        feedback=[
            FeedbackEntry(
                rating=row.rating,
                comments=row.comments,
                feedback_status=row.feedback_status,
                reopened=row.reopened,
                submitted_at=row.submitted_at,
            )
            for row in feedback_rows
        ],
    )

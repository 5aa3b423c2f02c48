"""Tracking-id lookups and the read-only audit history."""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from common.errors import ValidationFailed
from models.audit import AuditLog
from models.complaint import Complaint
from models.feedback import Feedback

logger = logging.getLogger(__name__)


def normalize_tracking_id(raw: Optional[str]) -> str:
    tracking_id = (raw or "").strip().upper()
    if not tracking_id:
        raise ValidationFailed("Please enter a tracking ID")
    return tracking_id


async def find_complaint(db: AsyncSession, raw_tracking_id: Optional[str]) -> Optional[Complaint]:
    """Case-insensitive lookup: ids are stored upper-case."""
    tracking_id = normalize_tracking_id(raw_tracking_id)
    result = await db.execute(select(Complaint).where(Complaint.tracking_id == tracking_id))
    complaint = result.scalars().first()
    if complaint is None:
        logger.debug("No complaint for tracking id %s", tracking_id)
    return complaint


async def load_history(
    db: AsyncSession, complaint: Complaint
) -> Tuple[List[AuditLog], List[Feedback]]:
    audit = await db.execute(
        select(AuditLog)
        .where(AuditLog.complaint_id == complaint.id)
        .order_by(AuditLog.timestamp.asc())
    )
    feedback = await db.execute(
        select(Feedback)
        .where(Feedback.complaint_id == complaint.id)
        .order_by(Feedback.submitted_at.asc())
    )
    return list(audit.scalars().all()), list(feedback.scalars().all())

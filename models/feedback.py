"""
Feedback-related database models for the Ethereal Nexus backend.

Post-resolution rating and comment attached to a complaint.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Text, func
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from common.complaint_types import FeedbackStatus
from models.base import Base, pg_enum


class Feedback(Base):
    """Feedback submission model."""

    __tablename__ = "feedback"

    id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    complaint_id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("complaints.id", name="feedback_complaint_id_fkey"),
        nullable=False,
        index=True,
    )

    # 1..5
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    feedback_status: Mapped[FeedbackStatus] = mapped_column(
        pg_enum(FeedbackStatus, "feedback_status"), nullable=False
    )
    reopened: Mapped[Optional[bool]] = mapped_column(Boolean, server_default="false")

    submitted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

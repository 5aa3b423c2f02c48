"""
Complaint model.

Rows are created only by the submission workflow; the tracking id comes from
the database function ``generate_tracking_id()`` and every later status
change happens server-side.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text, func, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from common.complaint_types import ComplaintCategory, ComplaintPriority, ComplaintStatus
from models import organisation  # noqa: F401  (departments, companies)
from models.base import Base, pg_enum


class Complaint(Base):
    """Complaint submission model."""

    __tablename__ = "complaints"

    id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    tracking_id: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        unique=True,
        index=True,
        server_default=text("generate_tracking_id()"),
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    category: Mapped[ComplaintCategory] = mapped_column(
        pg_enum(ComplaintCategory, "complaint_category"), nullable=False
    )
    subcategory: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[Optional[ComplaintStatus]] = mapped_column(
        pg_enum(ComplaintStatus, "complaint_status"),
        nullable=True,
        server_default=ComplaintStatus.SUBMITTED.value,
    )
    priority: Mapped[Optional[ComplaintPriority]] = mapped_column(
        pg_enum(ComplaintPriority, "complaint_priority"),
        nullable=True,
        server_default=ComplaintPriority.LOW.value,
    )

    submitter_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        PG_UUID(as_uuid=True), nullable=True, index=True
    )
    # Anonymity support: salted hash instead of the user id
    submitter_pseudonym_hash: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    department_assigned: Mapped[Optional[uuid.UUID]] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("departments.id", name="complaints_department_assigned_fkey"),
        nullable=True,
    )
    assigned_to_company: Mapped[Optional[uuid.UUID]] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("companies.id", name="complaints_assigned_to_company_fkey"),
        nullable=True,
    )

    submitted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    assigned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    sla_deadline: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    escalation_level: Mapped[Optional[int]] = mapped_column(Integer, server_default="0")
    auto_escalated: Mapped[Optional[bool]] = mapped_column(Boolean, server_default="false")

    sentiment_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    immutable_hash: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolution_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Opaque JSON, e.g. list of storage object paths
    attachments: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

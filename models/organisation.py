"""
Reference entities used for complaint assignment and SLA policy.

The application reads these rows but never mutates them.
"""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, Date, DateTime, Text, func
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class Department(Base):
    __tablename__ = "departments"

    id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # {"Academic": 72, "Safety": 24, ...}
    sla_hours_by_category: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    priority_thresholds: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    escalation_policy: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    contact_person: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    service_category: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contract_valid_till: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    is_verified: Mapped[Optional[bool]] = mapped_column(Boolean, server_default="false")

    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from common.complaint_types import (
    AuditAction,
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
    FeedbackStatus,
)
from services.identity.schemas import Toast


class ComplaintSubmitRequest(BaseModel):
    category: ComplaintCategory
    title: str = Field(..., description="Short summary shown in dashboards")
    description: str
    department: Optional[UUID] = None
    building_office: Optional[str] = Field(
        None, description="Letters, digits, hyphens and spaces only"
    )
    anonymous: Optional[bool] = Field(
        None, description="Hide the submitter from administrators; unset uses the saved default"
    )


class ComplaintSubmitResponse(BaseModel):
    tracking_id: str
    status: Literal["submitted"]
    redirect_to: str
    redirect_delay_ms: int
    toast: Toast


class Notice(BaseModel):
    title: str
    description: str


class TrackedComplaint(BaseModel):
    tracking_id: str
    title: str
    description: str
    category: ComplaintCategory
    status: Optional[ComplaintStatus] = None
    priority: Optional[ComplaintPriority] = None
    submitted_at: Optional[datetime] = None
    department_assigned: Optional[UUID] = None
    status_tone: str
    priority_tone: str


class TrackResponse(BaseModel):
    found: bool
    complaint: Optional[TrackedComplaint] = None
    notice: Optional[Notice] = None


class HistoryEntry(BaseModel):
    action: AuditAction
    timestamp: Optional[datetime] = None
    actor_user_id: Optional[UUID] = None
    details: Optional[dict] = None


class FeedbackEntry(BaseModel):
    rating: Optional[int] = None
    comments: Optional[str] = None
    feedback_status: FeedbackStatus
    reopened: Optional[bool] = None
    submitted_at: Optional[datetime] = None


class HistoryResponse(BaseModel):
    tracking_id: str
    status: Optional[ComplaintStatus] = None
    entries: List[HistoryEntry]
    feedback: List[FeedbackEntry] = []

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from common.complaint_types import ComplaintCategory, ComplaintPriority, ComplaintStatus


class ProfileOut(BaseModel):
    id: UUID
    full_name: Optional[str] = None
    department_id: Optional[UUID] = None
    is_active: Optional[bool] = None


class ComplaintRow(BaseModel):
    tracking_id: str
    title: str
    category: ComplaintCategory
    status: Optional[ComplaintStatus] = None
    priority: Optional[ComplaintPriority] = None
    submitted_at: Optional[datetime] = None
    status_tone: str
    priority_tone: str
    anonymous: bool = False
    # Only on administrator rows, and never for anonymous complaints
    submitter_user_id: Optional[UUID] = None


class StudentStats(BaseModel):
    total: int
    pending: int
    in_progress: int
    resolved: int


class AdminStats(BaseModel):
    total: int
    pending: int
    in_progress: int
    resolved: int
    critical: int


class StudentDashboardResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    profile: Optional[ProfileOut] = None
    stats: StudentStats
    complaints: List[ComplaintRow]


class AdminDashboardResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    profile: Optional[ProfileOut] = None
    stats: AdminStats
    complaints: List[ComplaintRow]

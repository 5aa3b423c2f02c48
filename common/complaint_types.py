"""
Complaint and role enumerations shared by every service.

Values match the Postgres enum labels exactly, so members can be compared
against raw column values.
"""

from enum import Enum
from typing import Dict, FrozenSet


class AppRole(str, Enum):
    """Role values stored in user_roles.role"""
    STUDENT = "student"
    DEPARTMENT_OFFICER = "department_officer"
    ADMIN = "admin"
    OMBUDSPERSON = "ombudsperson"
    COMPANY_REP = "company_rep"


class AuditAction(str, Enum):
    """Audit trail actions recorded by the database"""
    SUBMIT = "Submit"
    REVIEW = "Review"
    ASSIGN = "Assign"
    RESOLVE = "Resolve"
    CLOSE = "Close"
    REOPEN = "Reopen"
    ESCALATE = "Escalate"
    FEEDBACK = "Feedback"


class ComplaintCategory(str, Enum):
    """Complaint category values"""
    ACADEMIC = "Academic"
    HOSTEL = "Hostel"
    INFRASTRUCTURE = "Infrastructure"
    SAFETY = "Safety"
    ADMINISTRATION = "Administration"
    OTHER = "Other"


class ComplaintPriority(str, Enum):
    """Complaint priority values"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class FeedbackStatus(str, Enum):
    """Post-resolution feedback outcome"""
    RESOLVED = "Resolved"
    UNRESOLVED = "Unresolved"
    PARTIAL = "Partial"


class ComplaintStatus(str, Enum):
    """
    Complaint status values.

    Transitions are performed by database-side actors only; the table below
    is consulted for display and validation of incoming data, never to
    mutate a complaint.
    """
    SUBMITTED = "Submitted"
    REVIEWED = "Reviewed"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"
    REOPENED = "Reopened"
    ESCALATED = "Escalated"

    def can_transition_to(self, target: "ComplaintStatus") -> bool:
        return ComplaintStatus(target) in STATUS_TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        return self is ComplaintStatus.CLOSED


STATUS_TRANSITIONS: Dict[ComplaintStatus, FrozenSet[ComplaintStatus]] = {
    ComplaintStatus.SUBMITTED: frozenset(
        {ComplaintStatus.REVIEWED, ComplaintStatus.ESCALATED}
    ),
    ComplaintStatus.REVIEWED: frozenset(
        {ComplaintStatus.ASSIGNED, ComplaintStatus.ESCALATED}
    ),
    ComplaintStatus.ASSIGNED: frozenset(
        {ComplaintStatus.IN_PROGRESS, ComplaintStatus.ESCALATED}
    ),
    ComplaintStatus.IN_PROGRESS: frozenset(
        {
            ComplaintStatus.RESOLVED,
            ComplaintStatus.ESCALATED,
            ComplaintStatus.REOPENED,
        }
    ),
    ComplaintStatus.RESOLVED: frozenset(
        {ComplaintStatus.CLOSED, ComplaintStatus.REOPENED}
    ),
    ComplaintStatus.CLOSED: frozenset({ComplaintStatus.REOPENED}),
    ComplaintStatus.REOPENED: frozenset(
        {
            ComplaintStatus.REVIEWED,
            ComplaintStatus.ASSIGNED,
            ComplaintStatus.IN_PROGRESS,
            ComplaintStatus.ESCALATED,
        }
    ),
    ComplaintStatus.ESCALATED: frozenset(
        {
            ComplaintStatus.ASSIGNED,
            ComplaintStatus.IN_PROGRESS,
            ComplaintStatus.RESOLVED,
        }
    ),
}

# Display tones used by the dashboards and the tracking page
STATUS_TONES = {
    ComplaintStatus.RESOLVED.value: "success",
    ComplaintStatus.IN_PROGRESS.value: "info",
    ComplaintStatus.SUBMITTED.value: "warning",
    ComplaintStatus.REVIEWED.value: "warning",
}

PRIORITY_TONES = {
    ComplaintPriority.CRITICAL.value: "destructive",
    ComplaintPriority.HIGH.value: "warning",
    ComplaintPriority.MEDIUM.value: "info",
}


def status_tone(status) -> str:
    return STATUS_TONES.get(status, "muted")


def priority_tone(priority) -> str:
    return PRIORITY_TONES.get(priority, "muted")

"""
Dashboard counters.

Buckets compare raw status strings for equality, so a complaint lands in at
most one bucket; statuses outside every bucket (Reopened, Escalated) only
count towards the total.
"""

from typing import Dict, Iterable, List

from common.complaint_types import ComplaintPriority, ComplaintStatus

STUDENT_BUCKETS: Dict[str, frozenset] = {
    "pending": frozenset({ComplaintStatus.SUBMITTED.value, ComplaintStatus.REVIEWED.value}),
    "in_progress": frozenset({ComplaintStatus.IN_PROGRESS.value, ComplaintStatus.ASSIGNED.value}),
    "resolved": frozenset({ComplaintStatus.RESOLVED.value, ComplaintStatus.CLOSED.value}),
}

ADMIN_BUCKETS: Dict[str, frozenset] = {
    "pending": frozenset({ComplaintStatus.SUBMITTED.value}),
    "in_progress": frozenset({ComplaintStatus.IN_PROGRESS.value}),
    "resolved": frozenset({ComplaintStatus.RESOLVED.value}),
}


def _value(member) -> str:
    return getattr(member, "value", member)


def _bucket_counts(statuses: List[str], buckets: Dict[str, frozenset]) -> Dict[str, int]:
    counts = {"total": len(statuses)}
    for name, members in buckets.items():
        counts[name] = sum(1 for s in statuses if s in members)
    return counts


def student_stats(complaints: Iterable) -> Dict[str, int]:
    statuses = [_value(c.status) for c in complaints]
    return _bucket_counts(statuses, STUDENT_BUCKETS)


def admin_stats(complaints: Iterable) -> Dict[str, int]:
    complaints = list(complaints)
    counts = _bucket_counts([_value(c.status) for c in complaints], ADMIN_BUCKETS)
    counts["critical"] = sum(
        1 for c in complaints if _value(c.priority) == ComplaintPriority.CRITICAL.value
    )
    return counts

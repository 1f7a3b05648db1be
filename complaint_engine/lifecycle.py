"""
Complaint status state machine.

Complaints move forward only: NEW -> ASSIGNED -> IN_PROGRESS -> RESOLVED ->
CLOSED. Any open complaint may also be marked RESOLVED directly (the "Mark
Resolved" action). Nothing ever returns to NEW and CLOSED is final.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional, Tuple

from .errors import InvalidTransition
from .models import ComplaintStatus, UserRole

ALLOWED_TRANSITIONS: Dict[ComplaintStatus, FrozenSet[ComplaintStatus]] = {
    ComplaintStatus.NEW: frozenset({ComplaintStatus.ASSIGNED, ComplaintStatus.RESOLVED}),
    ComplaintStatus.ASSIGNED: frozenset({ComplaintStatus.IN_PROGRESS, ComplaintStatus.RESOLVED}),
    ComplaintStatus.IN_PROGRESS: frozenset({ComplaintStatus.RESOLVED}),
    ComplaintStatus.RESOLVED: frozenset({ComplaintStatus.CLOSED}),
    ComplaintStatus.CLOSED: frozenset(),
}

TERMINAL_STATUSES = frozenset({ComplaintStatus.RESOLVED, ComplaintStatus.CLOSED})

# Steps shown in the progress tracker, in order
PROGRESS_STEPS: List[ComplaintStatus] = [
    ComplaintStatus.NEW,
    ComplaintStatus.ASSIGNED,
    ComplaintStatus.IN_PROGRESS,
    ComplaintStatus.RESOLVED,
    ComplaintStatus.CLOSED,
]


def progress_index(status: ComplaintStatus) -> int:
    return PROGRESS_STEPS.index(ComplaintStatus(status))


def is_allowed(old_status: ComplaintStatus, new_status: ComplaintStatus) -> bool:
    return ComplaintStatus(new_status) in ALLOWED_TRANSITIONS[ComplaintStatus(old_status)]


def validate_transition(old_status: ComplaintStatus, new_status: ComplaintStatus) -> None:
    if not is_allowed(old_status, new_status):
        raise InvalidTransition(
            f"Invalid status transition from {ComplaintStatus(old_status).value} to {ComplaintStatus(new_status).value}"
        )


def can_transition(role: Optional[UserRole], old_status: ComplaintStatus, new_status: ComplaintStatus) -> Tuple[bool, int, str]:
    """Return (allowed, http_code, message) for the requested transition.

    - Returns (False, 403, msg) when the role may not change status at all
      (students) or may not close complaints (only admins close).
    - Returns (False, 400, msg) for transitions the state machine rejects.
    - Returns (True, 200, '') for allowed transitions.
    """
    role = UserRole(role) if role else UserRole.STUDENT
    if role == UserRole.STUDENT:
        return False, 403, "Students cannot change complaint status"
    if not is_allowed(old_status, new_status):
        return False, 400, (
            f"Invalid status transition from {ComplaintStatus(old_status).value} "
            f"to {ComplaintStatus(new_status).value}"
        )
    if ComplaintStatus(new_status) == ComplaintStatus.CLOSED and role != UserRole.ADMIN:
        return False, 403, "Only admin can set status to 'CLOSED'"
    return True, 200, ""


__all__ = [
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "PROGRESS_STEPS",
    "progress_index",
    "is_allowed",
    "validate_transition",
    "can_transition",
]

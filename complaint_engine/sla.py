"""
SLA deadline calculation and breach checks.

Deadlines are fixed offsets from creation time keyed by priority. A complaint
is breached when the clock is past its deadline and it is not in a terminal
status (RESOLVED or CLOSED); the same rule is used by the detail view, the
list view and the reports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable

from .lifecycle import TERMINAL_STATUSES
from .models import Complaint, Priority

logger = logging.getLogger(__name__)

SLA_OFFSETS: Dict[Priority, timedelta] = {
    Priority.CRITICAL: timedelta(hours=2),
    Priority.HIGH: timedelta(hours=24),
    Priority.MEDIUM: timedelta(days=3),
    Priority.LOW: timedelta(days=7),
}

BREACH_EXCLUDED_STATUSES = TERMINAL_STATUSES

# Fraction of the SLA window after which a complaint counts as near breach
DEFAULT_WARNING_THRESHOLD = 0.75

BREACHED_LABEL = "BREACHED"


def sla_offset(priority) -> timedelta:
    try:
        return SLA_OFFSETS[Priority(priority)]
    except ValueError:
        return SLA_OFFSETS[Priority.LOW]


def compute_deadline(priority, created_at: datetime) -> datetime:
    """Return the absolute deadline for a complaint created at `created_at`."""
    return created_at + sla_offset(priority)


def is_breached(complaint: Complaint, now: datetime) -> bool:
    if complaint.status in BREACH_EXCLUDED_STATUSES:
        return False
    return now > complaint.sla_deadline


def time_remaining(complaint: Complaint, now: datetime) -> timedelta:
    remaining = complaint.sla_deadline - now
    if remaining <= timedelta(0):
        return timedelta(0)
    return remaining


def format_time_left(complaint: Complaint, now: datetime) -> str:
    """Countdown label shown next to a complaint, e.g. ``"5h 12m"``.

    Resolved and closed complaints show their status instead of a countdown.
    """
    if complaint.status in BREACH_EXCLUDED_STATUSES:
        return complaint.status.value
    remaining = time_remaining(complaint, now)
    if remaining <= timedelta(0):
        return BREACHED_LABEL
    total_minutes = int(remaining.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"


def is_near_breach(complaint: Complaint, now: datetime, threshold: float = DEFAULT_WARNING_THRESHOLD) -> bool:
    if complaint.status in BREACH_EXCLUDED_STATUSES:
        return False
    if now >= complaint.sla_deadline:
        return False
    window = (complaint.sla_deadline - complaint.created_at).total_seconds()
    elapsed = (now - complaint.created_at).total_seconds()
    return elapsed / window >= threshold


@dataclass(frozen=True)
class SLAStatistics:
    total_active: int
    on_track: int
    near_breach: int
    breached: int
    compliance_rate: float


def sla_statistics(
    complaints: Iterable[Complaint],
    now: datetime,
    threshold: float = DEFAULT_WARNING_THRESHOLD,
) -> SLAStatistics:
    total_active = near = breached = 0
    for complaint in complaints:
        if complaint.status in BREACH_EXCLUDED_STATUSES:
            continue
        total_active += 1
        if is_breached(complaint, now):
            breached += 1
        elif is_near_breach(complaint, now, threshold):
            near += 1

    on_track = total_active - near - breached
    compliance = (on_track / total_active * 100) if total_active else 100.0
    logger.debug("SLA statistics: active=%s near=%s breached=%s", total_active, near, breached)
    return SLAStatistics(
        total_active=total_active,
        on_track=on_track,
        near_breach=near,
        breached=breached,
        compliance_rate=round(compliance, 2),
    )


__all__ = [
    "SLA_OFFSETS",
    "BREACH_EXCLUDED_STATUSES",
    "BREACHED_LABEL",
    "SLAStatistics",
    "sla_offset",
    "compute_deadline",
    "is_breached",
    "time_remaining",
    "format_time_left",
    "is_near_breach",
    "sla_statistics",
]

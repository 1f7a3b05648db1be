"""
Demo complaints for a fresh dashboard.

Generates a realistic spread of statuses, priorities and assignees over the
last 30 days. Pass a seeded `random.Random` for reproducible data.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta
from typing import List, Optional

from .classifier import LocalClassifier
from .models import Category, Complaint, ComplaintStatus, Priority, UserRole
from .sla import compute_deadline
from .users import users_with_role

logger = logging.getLogger(__name__)

DESCRIPTIONS = [
    "The ceiling fan in my hostel room has been broken for a week.",
    "The food served in the canteen today was stale and the plates were dirty.",
    "The wifi in the library keeps disconnecting during exam preparation.",
    "A senior student keeps threatening juniors near the hostel gate.",
    "My attendance for the lecture series was marked incorrectly by the faculty.",
    "The scholarship disbursement has been delayed without any notice.",
    "Water supply in block B is unavailable since morning, this is unacceptable.",
    "Washrooms on the second floor are not cleaned regularly.",
    "I feel the grading in the last exam was biased and unfair.",
    "Students are being forced to participate in ragging activities at night.",
    "The event registration portal is slow and keeps failing.",
    "Street lights near the parking lot are not working, it feels unsafe.",
    "Staff at the admin office were helpful but the fee receipt issue is still stuck.",
]

DEPARTMENTS = ["Computer Science", "Mechanical", "Civil", "Electrical", "Electronics",
               "Information Tech", "Chemical", "Biotech"]
LOCATIONS = ["Main Building", "Library", "Canteen", "Hostel A", "Hostel B", "Sports Complex",
             "Lab 1", "Lab 2", "Parking Lot", "Auditorium"]


def _random_status(rng: random.Random) -> ComplaintStatus:
    roll = rng.random()
    if roll > 0.8:
        return ComplaintStatus.RESOLVED
    if roll > 0.6:
        return ComplaintStatus.IN_PROGRESS
    if roll > 0.4:
        return ComplaintStatus.ASSIGNED
    if roll > 0.3:
        return ComplaintStatus.CLOSED
    return ComplaintStatus.NEW


def demo_complaints(count: int, now: datetime, rng: Optional[random.Random] = None, year: Optional[int] = None) -> List[Complaint]:
    """Build `count` demo complaints, oldest id first."""
    rng = rng or random.Random()
    year = year or now.year
    classifier = LocalClassifier()
    students = users_with_role(UserRole.STUDENT)
    staff = users_with_role(UserRole.STAFF)

    complaints = []
    for i in range(count):
        priority = rng.choice(list(Priority))
        description = rng.choice(DESCRIPTIONS)
        verdict = classifier.classify(description)
        status = _random_status(rng)
        customer = rng.choice(students)
        assignee = rng.choice(staff) if status != ComplaintStatus.NEW else None

        created_at = now - timedelta(seconds=rng.random() * 30 * 24 * 3600)
        updated_at = created_at + (now - created_at) * rng.random()
        incident_at = created_at - timedelta(seconds=rng.random() * 5 * 24 * 3600)

        complaints.append(Complaint(
            id=f"CMP-{year}-{i + 1:05d}",
            title=f"{verdict.category.value} Issue - {i + 1}",
            description=f"{description} (Ticket #{i + 1})",
            category=verdict.category if verdict.category != Category.OTHER else rng.choice(list(Category)),
            priority=priority,
            status=status,
            sentiment=verdict.sentiment,
            created_at=created_at,
            updated_at=updated_at,
            sla_deadline=compute_deadline(priority, created_at),
            customer_id=customer.id,
            customer_name=customer.name,
            assigned_to=assignee.id if assignee else None,
            student_id=f"{year}{i + 1:04d}",
            department=rng.choice(DEPARTMENTS),
            contact_number=f"98{rng.randrange(100_000_000):08d}",
            incident_date=incident_at,
            incident_location=rng.choice(LOCATIONS),
        ))
    return complaints


def seed_store(store, count: int = 120, rng: Optional[random.Random] = None) -> int:
    """Load demo complaints into `store` so that CMP-...-00001 is listed first."""
    complaints = demo_complaints(count, store.clock(), rng=rng)
    for complaint in reversed(complaints):
        store.restore(complaint)
    logger.info("Seeded %s demo complaints", len(complaints))
    return len(complaints)


__all__ = ["demo_complaints", "seed_store"]

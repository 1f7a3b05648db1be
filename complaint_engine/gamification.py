"""
Staff points and badges.

Resolving a complaint earns points by priority, with a bonus when it was
resolved inside its SLA window; four- and five-star ratings earn extra points.
The scoreboard listens to store events and keeps its own tallies, so the
complaint records are never touched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .models import ComplaintStatus, Priority
from .notifications import ComplaintEvent

logger = logging.getLogger(__name__)

RESOLUTION_POINTS: Dict[Priority, int] = {
    Priority.CRITICAL: 100,
    Priority.HIGH: 50,
    Priority.MEDIUM: 30,
    Priority.LOW: 10,
}
WITHIN_SLA_BONUS = 25
FIVE_STAR_POINTS = 40


class Badge(str, Enum):
    QUICK_RESOLVER = "🚀 Quick Resolver"
    FIRE_FIGHTER = "🔥 Fire Fighter"
    CENTURY_CLUB = "💯 Century Club"
    CUSTOMER_CHAMPION = "⭐ Customer Champion"


@dataclass
class StaffScore:
    staff_id: str
    points: int = 0
    resolved: int = 0
    resolved_within_sla: int = 0
    critical_resolved: int = 0
    five_star_ratings: int = 0
    rating_total: int = 0
    rating_count: int = 0
    badges: List[Badge] = field(default_factory=list)

    @property
    def average_rating(self) -> Optional[float]:
        if not self.rating_count:
            return None
        return round(self.rating_total / self.rating_count, 2)


@dataclass(frozen=True)
class PointsAwarded:
    base_points: int
    bonus_points: int
    total_points: int
    new_badges: List[Badge]


def rating_points(rating: int) -> int:
    if rating == 5:
        return FIVE_STAR_POINTS
    if rating == 4:
        return FIVE_STAR_POINTS // 2
    return 0


class Scoreboard:

    def __init__(self, store=None):
        # The store is only needed to look up priority/deadline on resolve events
        self.store = store
        self._scores: Dict[str, StaffScore] = {}

    def score(self, staff_id: str) -> StaffScore:
        if staff_id not in self._scores:
            self._scores[staff_id] = StaffScore(staff_id=staff_id)
        return self._scores[staff_id]

    def _check_badges(self, score: StaffScore) -> List[Badge]:
        earned = []
        thresholds = [
            (Badge.QUICK_RESOLVER, score.resolved_within_sla >= 10),
            (Badge.FIRE_FIGHTER, score.critical_resolved >= 10),
            (Badge.CENTURY_CLUB, score.resolved >= 100),
            (Badge.CUSTOMER_CHAMPION, score.five_star_ratings >= 10),
        ]
        for badge, reached in thresholds:
            if reached and badge not in score.badges:
                score.badges.append(badge)
                earned.append(badge)
        return earned

    def award_resolution(self, staff_id: str, priority: Priority, within_sla: bool) -> PointsAwarded:
        score = self.score(staff_id)
        base = RESOLUTION_POINTS.get(Priority(priority), RESOLUTION_POINTS[Priority.LOW])
        bonus = WITHIN_SLA_BONUS if within_sla else 0

        score.points += base + bonus
        score.resolved += 1
        if within_sla:
            score.resolved_within_sla += 1
        if Priority(priority) == Priority.CRITICAL:
            score.critical_resolved += 1

        new_badges = self._check_badges(score)
        logger.info(
            "Awarded %s points to staff %s for resolving %s priority complaint%s",
            base + bonus, staff_id, Priority(priority).value, " within SLA" if within_sla else "",
        )
        return PointsAwarded(base_points=base, bonus_points=bonus, total_points=base + bonus, new_badges=new_badges)

    def award_rating(self, staff_id: str, rating: int) -> int:
        score = self.score(staff_id)
        points = rating_points(rating)
        score.points += points
        score.rating_total += rating
        score.rating_count += 1
        if rating == 5:
            score.five_star_ratings += 1
        self._check_badges(score)
        return points

    def handle_event(self, event: ComplaintEvent) -> None:
        if event.event_type == "complaint.status_changed" and event.data.get("new_status") == ComplaintStatus.RESOLVED.value:
            if self.store is None:
                return
            complaint = self.store.get(event.data["complaint_id"])
            if not complaint.assigned_to:
                return
            within_sla = complaint.updated_at <= complaint.sla_deadline
            self.award_resolution(complaint.assigned_to, complaint.priority, within_sla)
        elif event.event_type == "complaint.feedback" and event.data.get("assigned_to"):
            self.award_rating(event.data["assigned_to"], event.data["rating"])

    def leaderboard(self, limit: int = 10) -> List[StaffScore]:
        ranked = sorted(self._scores.values(), key=lambda s: (-s.points, s.staff_id))
        return ranked[:limit]


__all__ = [
    "RESOLUTION_POINTS",
    "WITHIN_SLA_BONUS",
    "FIVE_STAR_POINTS",
    "Badge",
    "StaffScore",
    "PointsAwarded",
    "rating_points",
    "Scoreboard",
]

"""Aggregates behind the dashboard and reports pages."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List

from .lifecycle import TERMINAL_STATUSES
from .models import Category, Complaint, ComplaintStatus, Priority, Sentiment, User
from .sla import sla_statistics


def _counts(values, enum_cls) -> Dict[str, int]:
    counter = Counter(v.value for v in values)
    return {member.value: counter.get(member.value, 0) for member in enum_cls}


def dashboard_stats(complaints: Iterable[Complaint], now: datetime) -> Dict[str, Any]:
    complaints = list(complaints)
    total = len(complaints)
    resolved = sum(1 for c in complaints if c.status in TERMINAL_STATUSES)
    sla = sla_statistics(complaints, now)

    return {
        "total": total,
        "by_status": _counts((c.status for c in complaints), ComplaintStatus),
        "by_priority": _counts((c.priority for c in complaints), Priority),
        "by_sentiment": _counts((c.sentiment for c in complaints), Sentiment),
        "by_category": _counts((c.category for c in complaints), Category),
        "open_critical": sum(
            1 for c in complaints if c.priority == Priority.CRITICAL and c.status not in TERMINAL_STATUSES
        ),
        "resolution_rate": round(resolved / total * 100, 2) if total else 0.0,
        "sla": {
            "total_active": sla.total_active,
            "on_track": sla.on_track,
            "near_breach": sla.near_breach,
            "breached": sla.breached,
            "compliance_rate": sla.compliance_rate,
        },
    }


def staff_performance(complaints: Iterable[Complaint], staff: Iterable[User]) -> List[Dict[str, Any]]:
    """Per-staff workload, ordered by resolved count."""
    complaints = list(complaints)
    rows = []
    for member in staff:
        assigned = [c for c in complaints if c.assigned_to == member.id]
        resolved = [c for c in assigned if c.status in TERMINAL_STATUSES]
        ratings = [c.feedback.rating for c in resolved if c.feedback is not None]
        rows.append({
            "staff_id": member.id,
            "name": member.name,
            "assigned": len(assigned),
            "resolved": len(resolved),
            "resolution_rate": round(len(resolved) / len(assigned) * 100, 2) if assigned else 0.0,
            "average_rating": round(sum(ratings) / len(ratings), 2) if ratings else None,
        })
    rows.sort(key=lambda r: (-r["resolved"], r["staff_id"]))
    return rows


__all__ = ["dashboard_stats", "staff_performance"]

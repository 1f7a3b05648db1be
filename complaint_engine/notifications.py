"""
Domain events and the in-app notification feed.

The store publishes an event for every mutation; the notification centre turns
the interesting ones into the messages shown in the dashboard bell.
"""
import logging
import uuid
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field

from .errors import NotFound

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ComplaintEvent(BaseModel):
    """Base model for complaint domain events."""
    event_type: str
    timestamp: datetime = Field(default_factory=_now)
    data: Dict[str, Any] = Field(default_factory=dict)


class ComplaintCreatedEvent(ComplaintEvent):
    """Event sent when a new complaint is created."""
    event_type: str = "complaint.created"

    def __init__(self, complaint_id: str, category: str, priority: str, sentiment: str, **kwargs):
        data = {
            "complaint_id": complaint_id,
            "category": category,
            "priority": priority,
            "sentiment": sentiment,
        }
        super().__init__(data=data, **kwargs)


class StatusChangedEvent(ComplaintEvent):
    """Event sent when a complaint status is updated."""
    event_type: str = "complaint.status_changed"

    def __init__(self, complaint_id: str, old_status: str, new_status: str, updated_by: Optional[str] = None, **kwargs):
        data = {
            "complaint_id": complaint_id,
            "old_status": old_status,
            "new_status": new_status,
            "updated_by": updated_by,
        }
        super().__init__(data=data, **kwargs)


class AssignmentEvent(ComplaintEvent):
    """Event sent when a complaint is assigned to a staff member."""
    event_type: str = "complaint.assigned"

    def __init__(self, complaint_id: str, assigned_to: str, assigned_by: Optional[str] = None, **kwargs):
        data = {
            "complaint_id": complaint_id,
            "assigned_to": assigned_to,
            "assigned_by": assigned_by,
        }
        super().__init__(data=data, **kwargs)


class FeedbackEvent(ComplaintEvent):
    """Event sent when the submitter rates a resolved complaint."""
    event_type: str = "complaint.feedback"

    def __init__(self, complaint_id: str, rating: int, assigned_to: Optional[str] = None, **kwargs):
        data = {
            "complaint_id": complaint_id,
            "rating": rating,
            "assigned_to": assigned_to,
        }
        super().__init__(data=data, **kwargs)


class SLABreachEvent(ComplaintEvent):
    """Event sent the first time an open complaint is seen past its deadline."""
    event_type: str = "complaint.sla_breached"

    def __init__(self, complaint_id: str, priority: str, sla_deadline: datetime, **kwargs):
        data = {
            "complaint_id": complaint_id,
            "priority": priority,
            "sla_deadline": sla_deadline.isoformat(),
        }
        super().__init__(data=data, **kwargs)


EventListener = Callable[[ComplaintEvent], None]


class NotificationType(str, Enum):
    INFO = "info"
    ALERT = "alert"
    SUCCESS = "success"


class Notification(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:9])
    message: str
    read: bool = False
    time: datetime = Field(default_factory=_now)
    type: NotificationType = NotificationType.INFO


class NotificationCenter:
    """Bounded, newest-first notification feed."""

    def __init__(self, max_items: int = 50):
        self.max_items = max_items
        self._items: List[Notification] = []

    @property
    def items(self) -> List[Notification]:
        return list(self._items)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._items if not n.read)

    def add(self, message: str, type: NotificationType = NotificationType.INFO) -> Notification:
        notification = Notification(message=message, type=type)
        self._items.insert(0, notification)
        del self._items[self.max_items:]
        logger.info("Notification (%s): %s", notification.type.value, message)
        return notification

    def mark_read(self, notification_id: str) -> Notification:
        for notification in self._items:
            if notification.id == notification_id:
                notification.read = True
                return notification
        raise NotFound(notification_id, kind="Notification")

    def mark_all_read(self) -> None:
        for notification in self._items:
            notification.read = True

    def handle_event(self, event: ComplaintEvent) -> Optional[Notification]:
        """Translate a domain event into a notification, if it warrants one."""
        complaint_id = event.data.get("complaint_id", "unknown")

        if event.event_type == "complaint.created":
            return self.add(f"New Complaint Created: {complaint_id}", NotificationType.INFO)

        if event.event_type == "complaint.status_changed" and event.data.get("new_status") == "RESOLVED":
            return self.add(f"Complaint {complaint_id} marked as RESOLVED", NotificationType.SUCCESS)

        if event.event_type == "complaint.sla_breached":
            return self.add(
                f"SLA BREACHED: Complaint {complaint_id} ({event.data.get('priority')}) is past its deadline",
                NotificationType.ALERT,
            )

        return None


__all__ = [
    "ComplaintEvent",
    "ComplaintCreatedEvent",
    "StatusChangedEvent",
    "AssignmentEvent",
    "FeedbackEvent",
    "SLABreachEvent",
    "EventListener",
    "NotificationType",
    "Notification",
    "NotificationCenter",
]

"""
Complaint store: creation, status changes, assignment, feedback and comments.

The store owns id assignment and applies the lifecycle rules; it never reaches
for global state. Every mutation is published as a domain event to the
registered listeners (notification feed, scoreboard, metrics).
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import List, Optional

from .classifier import ClassificationResult, LocalClassifier
from .clock import Clock, utc_now
from .errors import DuplicateFeedback, InvalidInput, NotFound
from .lifecycle import TERMINAL_STATUSES, validate_transition
from .models import Comment, Complaint, ComplaintDraft, ComplaintStatus, Feedback, User
from .notifications import (
    AssignmentEvent,
    ComplaintCreatedEvent,
    ComplaintEvent,
    EventListener,
    FeedbackEvent,
    StatusChangedEvent,
)
from .observability import complaints_created_total, status_transitions_total
from .query import ComplaintFilter, Page, list_complaints
from .repository import ComplaintRepository, InMemoryComplaintRepository
from .sla import compute_deadline
from .users import can_handle_complaints, get_user

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"^CMP-\d{4}-(\d+)$")


def classification_text(title: str, description: str) -> str:
    """Text handed to the classifier for a title/description pair."""
    return f"{description} {title}".strip()


class ComplaintStore:

    def __init__(
        self,
        repository: Optional[ComplaintRepository] = None,
        classifier: Optional[LocalClassifier] = None,
        clock: Clock = utc_now,
        id_year: Optional[int] = None,
    ):
        self.repository = repository if repository is not None else InMemoryComplaintRepository()
        self.classifier = classifier or LocalClassifier()
        self.clock = clock
        self.id_year = id_year
        self._sequence = len(self.repository)
        self._listeners: List[EventListener] = []

    # -- events -----------------------------------------------------------

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def publish(self, event: ComplaintEvent) -> None:
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Listener failed for %s", event.event_type)

    # -- reads ------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.repository)

    def all(self) -> List[Complaint]:
        return self.repository.all()

    def get(self, complaint_id: str) -> Complaint:
        complaint = self.repository.get(complaint_id)
        if complaint is None:
            raise NotFound(complaint_id)
        return complaint

    def list(self, flt: Optional[ComplaintFilter] = None, page: int = 1, page_size: int = 10) -> Page:
        return list_complaints(self.repository.all(), flt, page=page, page_size=page_size)

    # -- writes -----------------------------------------------------------

    def _next_id(self, year: int) -> str:
        self._sequence += 1
        return f"CMP-{year}-{self._sequence:05d}"

    def create(self, draft: ComplaintDraft, classification: Optional[ClassificationResult] = None) -> Complaint:
        """Create a complaint from a submitted draft.

        Sentiment and suggested category come from `classification` when the
        caller already ran the classifier, otherwise from the local keyword
        classifier. A category chosen explicitly on the draft always wins.
        """
        title = (draft.title or "").strip()
        description = (draft.description or "").strip()
        if not title:
            raise InvalidInput("title is required")
        if not description:
            raise InvalidInput("description is required")
        if not draft.customer_id:
            raise InvalidInput("customer_id is required")

        if classification is None:
            classification = self.classifier.classify(classification_text(title, description), draft.category)

        now = self.clock()
        complaint = Complaint(
            id=self._next_id(self.id_year or now.year),
            title=title,
            description=description,
            category=draft.category or classification.category,
            priority=draft.priority,
            status=ComplaintStatus.NEW,
            sentiment=classification.sentiment,
            created_at=now,
            updated_at=now,
            sla_deadline=compute_deadline(draft.priority, now),
            customer_id=draft.customer_id,
            customer_name=draft.customer_name,
            student_id=draft.student_id,
            department=draft.department,
            contact_number=draft.contact_number,
            incident_date=draft.incident_date,
            incident_location=draft.incident_location,
        )
        self.repository.add(complaint)
        complaints_created_total.labels(priority=complaint.priority.value).inc()
        logger.info(
            "Created complaint %s with priority %s and SLA %s",
            complaint.id, complaint.priority.value, complaint.sla_deadline.isoformat(),
        )
        self.publish(ComplaintCreatedEvent(
            complaint_id=complaint.id,
            category=complaint.category.value,
            priority=complaint.priority.value,
            sentiment=complaint.sentiment.value,
        ))
        return complaint

    def restore(self, complaint: Complaint) -> Complaint:
        """Insert an already-built complaint (demo data, imports).

        The id sequence is advanced past the restored id so later `create`
        calls never collide with it.
        """
        self.repository.add(complaint)
        match = _ID_PATTERN.match(complaint.id)
        if match:
            self._sequence = max(self._sequence, int(match.group(1)))
        else:
            self._sequence += 1
        return complaint

    def set_status(self, complaint_id: str, new_status: ComplaintStatus, actor: Optional[User] = None) -> Complaint:
        complaint = self.get(complaint_id)
        new_status = ComplaintStatus(new_status)
        old_status = complaint.status
        validate_transition(old_status, new_status)

        complaint.status = new_status
        complaint.updated_at = self.clock()
        self.repository.save(complaint)

        status_transitions_total.labels(old_status=old_status.value, new_status=new_status.value).inc()
        logger.info("Updated complaint %s status from %s to %s", complaint_id, old_status.value, new_status.value)
        self.publish(StatusChangedEvent(
            complaint_id=complaint.id,
            old_status=old_status.value,
            new_status=new_status.value,
            updated_by=actor.id if actor else None,
        ))
        return complaint

    def assign(self, complaint_id: str, staff_id: str, actor: Optional[User] = None) -> Complaint:
        """Assign a complaint to a staff member; a NEW complaint becomes ASSIGNED."""
        complaint = self.get(complaint_id)
        staff = get_user(staff_id)
        if not can_handle_complaints(staff):
            raise InvalidInput(f"User {staff_id} is not a staff member")
        if complaint.status in TERMINAL_STATUSES:
            raise InvalidInput(f"Complaint {complaint_id} is already {complaint.status.value}")

        complaint.assigned_to = staff.id
        complaint.updated_at = self.clock()
        self.repository.save(complaint)
        logger.info("Assigned complaint %s to staff %s", complaint_id, staff.id)
        self.publish(AssignmentEvent(
            complaint_id=complaint.id,
            assigned_to=staff.id,
            assigned_by=actor.id if actor else None,
        ))

        if complaint.status == ComplaintStatus.NEW:
            self.set_status(complaint_id, ComplaintStatus.ASSIGNED, actor=actor)
        return complaint

    def attach_feedback(self, complaint_id: str, rating: int, comment: Optional[str] = None) -> Complaint:
        complaint = self.get(complaint_id)
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise InvalidInput("rating must be an integer between 1 and 5")
        if complaint.status not in TERMINAL_STATUSES:
            raise InvalidInput("feedback can only be given once the complaint is resolved")
        if complaint.feedback is not None:
            raise DuplicateFeedback(f"feedback already submitted for {complaint_id}")

        now = self.clock()
        complaint.feedback = Feedback(rating=rating, comment=(comment or "").strip() or None, submitted_at=now)
        complaint.updated_at = now
        self.repository.save(complaint)
        logger.info("Recorded %s-star feedback for complaint %s", rating, complaint_id)
        self.publish(FeedbackEvent(complaint_id=complaint.id, rating=rating, assigned_to=complaint.assigned_to))
        return complaint

    def add_comment(self, complaint_id: str, user: User, content: str, is_internal: bool = False) -> Comment:
        complaint = self.get(complaint_id)
        content = (content or "").strip()
        if not content:
            raise InvalidInput("comment content is required")

        now = self.clock()
        comment = Comment(
            id=uuid.uuid4().hex[:9],
            complaint_id=complaint.id,
            user_id=user.id,
            user_name=user.name,
            content=content,
            is_internal=is_internal,
            created_at=now,
        )
        complaint.comments.append(comment)
        complaint.updated_at = now
        self.repository.save(complaint)
        return comment

    def comments(self, complaint_id: str, include_internal: bool = True) -> List[Comment]:
        complaint = self.get(complaint_id)
        return [c for c in complaint.comments if include_internal or not c.is_internal]


__all__ = ["ComplaintStore", "classification_text"]

"""Complaint routes: submission, listing, lifecycle, feedback and reports."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field, StrictInt

from ..classifier import ClassificationResult, ClassificationSession, CompositeClassifier
from ..dependencies import (
    get_classification_session,
    get_classifier,
    get_current_user,
    get_notifications,
    get_scoreboard,
    get_store,
    require_role,
)
from ..gamification import Scoreboard
from ..errors import PermissionDenied
from ..lifecycle import can_transition, progress_index
from ..models import Category, Comment, Complaint, ComplaintDraft, ComplaintStatus, Priority, Sentiment, User, UserRole
from ..notifications import Notification, NotificationCenter
from ..query import ALL, ComplaintFilter, Page, list_complaints, visible_to
from ..reports import dashboard_stats, staff_performance
from ..sla import format_time_left, is_breached, sla_statistics
from ..store import ComplaintStore, classification_text
from ..users import users_with_role


router = APIRouter(prefix="/api/v1")

StatusFilter = Union[Literal["ALL"], ComplaintStatus]
SentimentFilter = Union[Literal["ALL"], Sentiment]


class ComplaintCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    priority: Priority = Priority.MEDIUM
    category: Optional[Category] = None
    student_id: Optional[str] = None
    department: Optional[str] = None
    contact_number: Optional[str] = None
    incident_date: Optional[datetime] = None
    incident_location: Optional[str] = None


class ComplaintCreated(BaseModel):
    complaint_id: str
    sentiment: str
    category: str
    classified_by: str


class ComplaintDetail(BaseModel):
    complaint: Complaint
    breached: bool
    time_left: str
    progress_index: int


class StatusUpdateSchema(BaseModel):
    status: ComplaintStatus


class AssignmentSchema(BaseModel):
    staff_id: str


class FeedbackSchema(BaseModel):
    # JSON booleans must not turn into a 1-star rating
    rating: StrictInt
    comment: Optional[str] = None


class CommentCreate(BaseModel):
    content: str
    is_internal: bool = False


class ClassifyRequest(BaseModel):
    text: str
    category: Optional[Category] = None


def _visible_complaint(store: ComplaintStore, complaint_id: str, user: User) -> Complaint:
    complaint = store.get(complaint_id)
    # Students only see their own complaints; anything else looks absent
    if user.role == UserRole.STUDENT and complaint.customer_id != user.id:
        raise HTTPException(status_code=404, detail="Not found")
    return complaint


@router.post("/complaints", status_code=201, response_model=ComplaintCreated)
async def submit_complaint(
    payload: ComplaintCreate,
    user: User = Depends(get_current_user),
    store: ComplaintStore = Depends(get_store),
    classifier: CompositeClassifier = Depends(get_classifier),
):
    result = await classifier.classify(classification_text(payload.title, payload.description), payload.category)
    draft = ComplaintDraft(customer_id=user.id, customer_name=user.name, **payload.model_dump())
    complaint = store.create(draft, classification=result)
    return ComplaintCreated(
        complaint_id=complaint.id,
        sentiment=complaint.sentiment.value,
        category=complaint.category.value,
        classified_by=result.origin.value,
    )


@router.get("/complaints", response_model=Page)
async def list_complaints_endpoint(
    request: Request,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=100),
    status: StatusFilter = Query(ALL),
    sentiment: SentimentFilter = Query(ALL),
    assignee: str = Query(ALL),
    search: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    store: ComplaintStore = Depends(get_store),
):
    """
    Dashboard listing with filters and pagination.

    Filters combine with AND; ``ALL`` (the default) disables a filter. Search
    matches the complaint id or title, case-insensitively. Students only get
    their own complaints.
    """
    flt = ComplaintFilter(
        status=getattr(status, "value", status),
        sentiment=getattr(sentiment, "value", sentiment),
        assignee=assignee,
        search_term=search,
    )
    size = page_size or request.app.state.settings.page_size
    return list_complaints(visible_to(store.all(), user), flt, page=page, page_size=size)


@router.get("/complaints/{complaint_id}", response_model=ComplaintDetail)
async def get_complaint(
    complaint_id: str,
    user: User = Depends(get_current_user),
    store: ComplaintStore = Depends(get_store),
):
    complaint = _visible_complaint(store, complaint_id, user)
    if user.role == UserRole.STUDENT:
        complaint = complaint.model_copy(update={"comments": [c for c in complaint.comments if not c.is_internal]})
    now = store.clock()
    return ComplaintDetail(
        complaint=complaint,
        breached=is_breached(complaint, now),
        time_left=format_time_left(complaint, now),
        progress_index=progress_index(complaint.status),
    )


@router.patch("/complaints/{complaint_id}/status", response_model=Complaint)
async def update_complaint_status(
    complaint_id: str,
    body: StatusUpdateSchema,
    user: User = Depends(get_current_user),
    store: ComplaintStore = Depends(get_store),
):
    """Move a complaint along its lifecycle.

    Students may not change status and only admins close complaints; invalid
    transitions are rejected with 400.
    """
    complaint = _visible_complaint(store, complaint_id, user)
    allowed, code, msg = can_transition(user.role, complaint.status, body.status)
    if not allowed:
        raise HTTPException(status_code=code, detail=msg)
    return store.set_status(complaint_id, body.status, actor=user)


@router.patch("/complaints/{complaint_id}/assign", response_model=Complaint)
async def assign_complaint(
    complaint_id: str,
    body: AssignmentSchema,
    user: User = Depends(require_role(UserRole.ADMIN, UserRole.STAFF)),
    store: ComplaintStore = Depends(get_store),
):
    return store.assign(complaint_id, body.staff_id, actor=user)


@router.post("/complaints/{complaint_id}/feedback", response_model=Complaint)
async def submit_feedback(
    complaint_id: str,
    body: FeedbackSchema,
    user: User = Depends(get_current_user),
    store: ComplaintStore = Depends(get_store),
):
    complaint = _visible_complaint(store, complaint_id, user)
    if complaint.customer_id != user.id:
        raise PermissionDenied("Only the submitter can rate a complaint")
    return store.attach_feedback(complaint_id, body.rating, body.comment)


@router.post("/complaints/{complaint_id}/comments", status_code=201, response_model=Comment)
async def add_comment(
    complaint_id: str,
    body: CommentCreate,
    user: User = Depends(get_current_user),
    store: ComplaintStore = Depends(get_store),
):
    _visible_complaint(store, complaint_id, user)
    if body.is_internal and user.role == UserRole.STUDENT:
        raise PermissionDenied("Students cannot post internal notes")
    return store.add_comment(complaint_id, user, body.content, is_internal=body.is_internal)


@router.get("/complaints/{complaint_id}/comments", response_model=List[Comment])
async def list_comments(
    complaint_id: str,
    user: User = Depends(get_current_user),
    store: ComplaintStore = Depends(get_store),
):
    _visible_complaint(store, complaint_id, user)
    return store.comments(complaint_id, include_internal=user.role != UserRole.STUDENT)


@router.post("/classify", response_model=Optional[ClassificationResult])
async def classify_text(
    body: ClassifyRequest,
    session: ClassificationSession = Depends(get_classification_session),
):
    """Preview sentiment and category for text being typed.

    Each user has one debounced session. Text no longer than the configured
    minimum, or superseded by a newer preview from the same user, yields
    ``null``.
    """
    return await session.submit(body.text.strip(), body.category)


@router.get("/reports/dashboard")
async def dashboard_report(
    _: User = Depends(require_role(UserRole.ADMIN, UserRole.STAFF)),
    store: ComplaintStore = Depends(get_store),
):
    stats = dashboard_stats(store.all(), store.clock())
    stats["staff"] = staff_performance(store.all(), users_with_role(UserRole.STAFF))
    return stats


@router.get("/reports/sla")
async def sla_report(
    request: Request,
    _: User = Depends(require_role(UserRole.ADMIN, UserRole.STAFF)),
    store: ComplaintStore = Depends(get_store),
):
    stats = sla_statistics(store.all(), store.clock(), request.app.state.settings.sla_warning_threshold)
    return {
        "total_active": stats.total_active,
        "on_track": stats.on_track,
        "near_breach": stats.near_breach,
        "breached": stats.breached,
        "compliance_rate": stats.compliance_rate,
    }


@router.get("/notifications", response_model=List[Notification])
async def list_notifications(
    _: User = Depends(require_role(UserRole.ADMIN, UserRole.STAFF)),
    notifications: NotificationCenter = Depends(get_notifications),
):
    return notifications.items


@router.post("/notifications/{notification_id}/read", response_model=Notification)
async def mark_notification_read(
    notification_id: str,
    _: User = Depends(require_role(UserRole.ADMIN, UserRole.STAFF)),
    notifications: NotificationCenter = Depends(get_notifications),
):
    return notifications.mark_read(notification_id)


@router.get("/leaderboard")
async def leaderboard(
    limit: int = Query(10, ge=1, le=50),
    _: User = Depends(get_current_user),
    scoreboard: Scoreboard = Depends(get_scoreboard),
):
    return [
        {
            "staff_id": s.staff_id,
            "points": s.points,
            "resolved": s.resolved,
            "average_rating": s.average_rating,
            "badges": [b.value for b in s.badges],
        }
        for s in scoreboard.leaderboard(limit)
    ]

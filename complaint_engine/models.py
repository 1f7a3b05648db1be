from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class ComplaintStatus(str, Enum):
    NEW = "NEW"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class Sentiment(str, Enum):
    ANGRY = "ANGRY"
    FRUSTRATED = "FRUSTRATED"
    NEUTRAL = "NEUTRAL"
    SATISFIED = "SATISFIED"


class Category(str, Enum):
    SEXUAL_HARASSMENT = "Sexual Harassment"
    RAGGING = "Ragging"
    ACADEMIC_ISSUES = "Academic Issues"
    INFRASTRUCTURE = "Infrastructure"
    CANTEEN_HYGIENE = "Canteen/Hygiene"
    STUDENT_AFFAIRS = "Student Affairs"
    DISCRIMINATION = "Discrimination"
    OTHER = "Other"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    STUDENT = "STUDENT"


class User(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole


class Feedback(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None
    submitted_at: datetime


class Comment(BaseModel):
    id: str
    complaint_id: str
    user_id: str
    user_name: str
    content: str
    # Internal notes are hidden from students
    is_internal: bool = False
    created_at: datetime


class ComplaintDraft(BaseModel):
    """What a submitter provides. Everything else is derived by the store."""

    title: str
    description: str
    priority: Priority = Priority.MEDIUM
    # Explicit choice; when empty the classifier suggestion is used
    category: Optional[Category] = None
    customer_id: str
    customer_name: str
    student_id: Optional[str] = None
    department: Optional[str] = None
    contact_number: Optional[str] = None
    incident_date: Optional[datetime] = None
    incident_location: Optional[str] = None


class Complaint(BaseModel):
    id: str = Field(frozen=True)
    title: str
    description: str
    category: Category
    priority: Priority = Field(frozen=True)
    status: ComplaintStatus = ComplaintStatus.NEW
    sentiment: Sentiment = Field(frozen=True)
    created_at: datetime = Field(frozen=True)
    updated_at: datetime
    sla_deadline: datetime = Field(frozen=True)
    customer_id: str = Field(frozen=True)
    customer_name: str = Field(frozen=True)
    assigned_to: Optional[str] = None

    # Incident metadata, descriptive only
    student_id: Optional[str] = None
    department: Optional[str] = None
    contact_number: Optional[str] = None
    incident_date: Optional[datetime] = None
    incident_location: Optional[str] = None

    feedback: Optional[Feedback] = None
    comments: List[Comment] = Field(default_factory=list)


__all__ = [
    "Priority",
    "ComplaintStatus",
    "Sentiment",
    "Category",
    "UserRole",
    "User",
    "Feedback",
    "Comment",
    "ComplaintDraft",
    "Complaint",
]

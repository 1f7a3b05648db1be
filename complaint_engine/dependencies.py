"""Common FastAPI dependencies."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from .classifier import ClassificationSession, CompositeClassifier
from .gamification import Scoreboard
from .models import User, UserRole
from .notifications import NotificationCenter
from .store import ComplaintStore
from .users import get_user


def get_store(request: Request) -> ComplaintStore:
    return request.app.state.store


def get_classifier(request: Request) -> CompositeClassifier:
    return request.app.state.classifier


def get_notifications(request: Request) -> NotificationCenter:
    return request.app.state.notifications


def get_scoreboard(request: Request) -> Scoreboard:
    return request.app.state.scoreboard


async def get_current_user(x_user_id: Optional[str] = Header(None)) -> User:
    """
    Resolve the acting demo user from the ``X-User-Id`` header.

    The dashboard logs in with fixed demo accounts, so the header carries the
    chosen account id. Raises HTTPException(401) when missing or unknown.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated", headers={"X-Auth-Reason": "Missing X-User-Id"})
    user = get_user(x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user", headers={"X-Auth-Reason": "Unknown X-User-Id"})
    return user


def get_classification_session(request: Request, user: User = Depends(get_current_user)) -> ClassificationSession:
    sessions = request.app.state.classification_sessions
    if user.id not in sessions:
        sessions[user.id] = request.app.state.new_classification_session()
    return sessions[user.id]


def require_role(*roles: UserRole):
    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Insufficient privileges")
        return user
    return role_checker


__all__ = [
    "get_store",
    "get_classifier",
    "get_notifications",
    "get_scoreboard",
    "get_current_user",
    "get_classification_session",
    "require_role",
]

"""
Demo users for the dashboard.

Credentials are fixed demo values; there is no user management. The first
three accounts are the ones offered on the login screen, the rest fill the
staff and student lists.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .models import User, UserRole

_FIRST_NAMES = ["James", "Mary", "Robert", "Patricia", "John", "Jennifer", "Michael", "Linda",
                "David", "Elizabeth", "William", "Barbara", "Richard", "Susan", "Joseph", "Jessica"]
_LAST_NAMES = ["Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis",
               "Rodriguez", "Martinez", "Hernandez", "Lopez", "Gonzalez", "Wilson", "Anderson", "Thomas"]


def _generated_user(user_id: str, role: UserRole, index: int) -> User:
    first = _FIRST_NAMES[index % len(_FIRST_NAMES)]
    last = _LAST_NAMES[index % len(_LAST_NAMES)]
    if role == UserRole.STAFF:
        email = f"{first.lower()}.staff@cms.com"
    else:
        email = f"{first.lower()}@gmail.com"
    return User(id=user_id, name=f"{first} {last}", email=email, role=role)


DEMO_USERS: List[User] = [
    User(id="1", name="Admin Administrator", email="admin@cms.com", role=UserRole.ADMIN),
    User(id="2", name="Sarah Staff", email="sarah.staff@cms.com", role=UserRole.STAFF),
    User(id="3", name="Alex Student", email="student@university.edu", role=UserRole.STUDENT),
    *[_generated_user(str(i + 10), UserRole.STAFF, i) for i in range(12)],
    *[_generated_user(str(i + 30), UserRole.STUDENT, i + 5) for i in range(10)],
]

_USERS_BY_ID: Dict[str, User] = {u.id: u for u in DEMO_USERS}


def get_user(user_id: Optional[str]) -> Optional[User]:
    if not user_id:
        return None
    return _USERS_BY_ID.get(user_id.strip())


def users_with_role(role: UserRole) -> List[User]:
    return [u for u in DEMO_USERS if u.role == role]


def can_handle_complaints(user: Optional[User]) -> bool:
    """Staff and admins work complaints; students only file them."""
    return user is not None and user.role in (UserRole.STAFF, UserRole.ADMIN)


__all__ = ["DEMO_USERS", "get_user", "users_with_role", "can_handle_complaints"]

import pytest

from complaint_engine.errors import InvalidTransition
from complaint_engine.lifecycle import can_transition, is_allowed, progress_index, validate_transition
from complaint_engine.models import ComplaintStatus, UserRole

S = ComplaintStatus


@pytest.mark.parametrize(
    "old,new",
    [
        (S.NEW, S.ASSIGNED),
        (S.ASSIGNED, S.IN_PROGRESS),
        (S.IN_PROGRESS, S.RESOLVED),
        (S.RESOLVED, S.CLOSED),
        (S.NEW, S.RESOLVED),
        (S.ASSIGNED, S.RESOLVED),
    ],
)
def test_allowed_transitions(old, new):
    assert is_allowed(old, new)
    validate_transition(old, new)


@pytest.mark.parametrize(
    "old,new",
    [
        (S.ASSIGNED, S.NEW),
        (S.IN_PROGRESS, S.ASSIGNED),
        (S.RESOLVED, S.IN_PROGRESS),
        (S.CLOSED, S.RESOLVED),
        (S.CLOSED, S.NEW),
        (S.NEW, S.CLOSED),
        (S.NEW, S.IN_PROGRESS),
        (S.IN_PROGRESS, S.IN_PROGRESS),
    ],
)
def test_rejected_transitions(old, new):
    assert not is_allowed(old, new)
    with pytest.raises(InvalidTransition):
        validate_transition(old, new)


def test_students_cannot_change_status():
    assert can_transition(UserRole.STUDENT, S.NEW, S.RESOLVED) == (False, 403, "Students cannot change complaint status")
    assert can_transition(None, S.NEW, S.RESOLVED)[1] == 403


def test_only_admin_closes():
    allowed, code, _ = can_transition(UserRole.STAFF, S.RESOLVED, S.CLOSED)
    assert (allowed, code) == (False, 403)
    assert can_transition(UserRole.ADMIN, S.RESOLVED, S.CLOSED) == (True, 200, "")


def test_invalid_transition_is_bad_request():
    allowed, code, msg = can_transition(UserRole.ADMIN, S.CLOSED, S.NEW)
    assert (allowed, code) == (False, 400)
    assert "CLOSED" in msg


def test_staff_can_work_complaints():
    assert can_transition(UserRole.STAFF, S.ASSIGNED, S.IN_PROGRESS) == (True, 200, "")
    assert can_transition("STAFF", "NEW", "RESOLVED")[0]


def test_progress_index():
    assert progress_index(S.NEW) == 0
    assert progress_index(S.RESOLVED) == 3
    assert progress_index("CLOSED") == 4

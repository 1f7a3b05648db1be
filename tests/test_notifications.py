import pytest

from complaint_engine.errors import NotFound
from complaint_engine.models import ComplaintStatus
from complaint_engine.notifications import (
    AssignmentEvent,
    NotificationCenter,
    NotificationType,
    SLABreachEvent,
)


@pytest.fixture
def center(store):
    center = NotificationCenter(max_items=5)
    store.subscribe(center.handle_event)
    return center


def test_creation_and_resolution_notifications(store, center, make_draft):
    complaint = store.create(make_draft())
    store.set_status(complaint.id, ComplaintStatus.RESOLVED)

    newest, oldest = center.items
    assert oldest.message == f"New Complaint Created: {complaint.id}"
    assert oldest.type == NotificationType.INFO
    assert newest.message == f"Complaint {complaint.id} marked as RESOLVED"
    assert newest.type == NotificationType.SUCCESS
    assert center.unread_count == 2


def test_breach_event_raises_alert(center, clock):
    event = SLABreachEvent(complaint_id="CMP-2024-00007", priority="Critical", sla_deadline=clock())
    notification = center.handle_event(event)

    assert notification.type == NotificationType.ALERT
    assert notification.message == "SLA BREACHED: Complaint CMP-2024-00007 (Critical) is past its deadline"


def test_unrelated_events_are_ignored(center):
    assert center.handle_event(AssignmentEvent(complaint_id="CMP-2024-00001", assigned_to="2")) is None
    assert center.items == []


def test_feed_is_bounded(store, center, make_draft):
    for _ in range(8):
        store.create(make_draft())
    assert len(center.items) == 5
    assert center.items[0].message.endswith("00008")


def test_mark_read(center):
    first = center.add("one")
    center.add("two")

    assert center.mark_read(first.id).read
    assert center.unread_count == 1
    center.mark_all_read()
    assert center.unread_count == 0

    with pytest.raises(NotFound):
        center.mark_read("nope")

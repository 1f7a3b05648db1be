import asyncio

import pytest

from complaint_engine.models import ComplaintStatus, Priority
from complaint_engine.sla_watcher import SLAWatcher


@pytest.fixture
def events(store):
    received = []
    store.subscribe(received.append)
    return received


def test_breach_is_reported_once(store, clock, make_draft, events):
    complaint = store.create(make_draft(priority=Priority.CRITICAL))
    watcher = SLAWatcher(store)
    events.clear()

    assert watcher.check_once() == []
    clock.advance(hours=3)
    assert [c.id for c in watcher.check_once()] == [complaint.id]
    assert watcher.check_once() == []

    assert [e.event_type for e in events] == ["complaint.sla_breached"]
    assert events[0].data["priority"] == "Critical"


def test_watcher_does_not_mutate(store, clock, make_draft):
    complaint = store.create(make_draft(priority=Priority.CRITICAL))
    before = complaint.model_dump()
    clock.advance(days=1)
    SLAWatcher(store).check_once()
    assert complaint.model_dump() == before


def test_resolved_complaints_are_skipped(store, clock, make_draft, events):
    complaint = store.create(make_draft(priority=Priority.CRITICAL))
    store.set_status(complaint.id, ComplaintStatus.RESOLVED)
    clock.advance(days=1)
    assert SLAWatcher(store).check_once() == []


def test_prime_marks_existing_breaches(store, clock, make_draft):
    store.create(make_draft(priority=Priority.CRITICAL))
    clock.advance(hours=3)
    watcher = SLAWatcher(store)

    assert watcher.prime() == 1
    assert watcher.check_once() == []


@pytest.mark.asyncio
async def test_start_and_stop(store, clock, make_draft, events):
    store.create(make_draft(priority=Priority.CRITICAL))
    clock.advance(hours=3)
    watcher = SLAWatcher(store, interval=0.01)

    watcher.start()
    await asyncio.sleep(0.05)
    await watcher.stop()

    assert sum(1 for e in events if e.event_type == "complaint.sla_breached") == 1

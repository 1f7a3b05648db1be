from datetime import timedelta

import pytest
from pydantic import ValidationError

from complaint_engine.classifier import ClassificationOrigin, ClassificationResult
from complaint_engine.errors import DuplicateFeedback, InvalidInput, InvalidTransition, NotFound
from complaint_engine.models import Category, ComplaintStatus, Priority, Sentiment
from complaint_engine.repository import InMemoryComplaintRepository
from complaint_engine.store import ComplaintStore
from complaint_engine.users import get_user


def test_create_assigns_sequential_ids_newest_first(store, make_draft):
    first = store.create(make_draft())
    second = store.create(make_draft())

    assert first.id == "CMP-2024-00001"
    assert second.id == "CMP-2024-00002"
    assert [c.id for c in store.all()] == [second.id, first.id]


def test_id_year_override(clock, make_draft):
    store = ComplaintStore(clock=clock, id_year=2030)
    assert store.create(make_draft()).id == "CMP-2030-00001"


def test_create_derives_fields(store, clock, make_draft):
    complaint = store.create(make_draft(priority=Priority.HIGH))

    assert complaint.status == ComplaintStatus.NEW
    assert complaint.created_at == complaint.updated_at == clock()
    assert complaint.sla_deadline == clock() + timedelta(hours=24)
    assert complaint.category == Category.INFRASTRUCTURE
    assert complaint.sentiment == Sentiment.FRUSTRATED
    assert complaint.customer_id == "3"


def test_explicit_category_and_supplied_classification(store, make_draft):
    verdict = ClassificationResult(
        sentiment=Sentiment.SATISFIED,
        category=Category.RAGGING,
        origin=ClassificationOrigin.REMOTE,
        category_origin=ClassificationOrigin.REMOTE,
    )
    suggested = store.create(make_draft(), classification=verdict)
    chosen = store.create(make_draft(category=Category.OTHER), classification=verdict)

    assert suggested.sentiment == Sentiment.SATISFIED
    assert suggested.category == Category.RAGGING
    assert chosen.category == Category.OTHER


@pytest.mark.parametrize("field", ["title", "description"])
def test_create_rejects_blank_fields(store, make_draft, field):
    with pytest.raises(InvalidInput):
        store.create(make_draft(**{field: "   "}))
    assert len(store) == 0


def test_get_unknown_id(store):
    with pytest.raises(NotFound) as exc:
        store.get("CMP-2024-99999")
    assert exc.value.item_id == "CMP-2024-99999"


def test_immutable_fields_cannot_be_reassigned(store, make_draft):
    complaint = store.create(make_draft())
    for field, value in [("id", "X"), ("priority", Priority.LOW), ("sentiment", Sentiment.ANGRY)]:
        with pytest.raises(ValidationError):
            setattr(complaint, field, value)


def test_status_forward_chain(store, clock, make_draft):
    complaint = store.create(make_draft())
    for status in (ComplaintStatus.ASSIGNED, ComplaintStatus.IN_PROGRESS,
                   ComplaintStatus.RESOLVED, ComplaintStatus.CLOSED):
        clock.advance(minutes=5)
        store.set_status(complaint.id, status)
        assert complaint.status == status
        assert complaint.updated_at == clock()


@pytest.mark.parametrize(
    "path",
    [
        [ComplaintStatus.NEW],
        [ComplaintStatus.IN_PROGRESS],
        [ComplaintStatus.CLOSED],
        [ComplaintStatus.RESOLVED, ComplaintStatus.IN_PROGRESS],
        [ComplaintStatus.RESOLVED, ComplaintStatus.CLOSED, ComplaintStatus.RESOLVED],
    ],
)
def test_illegal_transitions_raise(store, make_draft, path):
    complaint = store.create(make_draft())
    *allowed, last = path
    for status in allowed:
        store.set_status(complaint.id, status)
    before = complaint.status
    with pytest.raises(InvalidTransition):
        store.set_status(complaint.id, last)
    assert complaint.status == before


def test_set_status_unknown_id(store):
    with pytest.raises(NotFound):
        store.set_status("missing", ComplaintStatus.RESOLVED)


@pytest.mark.parametrize("rating", [0, 6, 2.5, True])
def test_feedback_rejects_bad_ratings(store, make_draft, rating):
    complaint = store.create(make_draft())
    store.set_status(complaint.id, ComplaintStatus.RESOLVED)
    with pytest.raises(InvalidInput):
        store.attach_feedback(complaint.id, rating)
    assert complaint.feedback is None


@pytest.mark.parametrize("rating", [1, 5])
def test_feedback_accepts_bounds(store, clock, make_draft, rating):
    complaint = store.create(make_draft())
    store.set_status(complaint.id, ComplaintStatus.RESOLVED)
    clock.advance(hours=1)
    store.attach_feedback(complaint.id, rating, "  thanks  ")

    assert complaint.feedback.rating == rating
    assert complaint.feedback.comment == "thanks"
    assert complaint.feedback.submitted_at == clock()


def test_feedback_requires_resolution(store, make_draft):
    complaint = store.create(make_draft())
    with pytest.raises(InvalidInput):
        store.attach_feedback(complaint.id, 5)


def test_feedback_is_write_once(store, make_draft):
    complaint = store.create(make_draft())
    store.set_status(complaint.id, ComplaintStatus.RESOLVED)
    store.attach_feedback(complaint.id, 4)
    with pytest.raises(DuplicateFeedback):
        store.attach_feedback(complaint.id, 5)
    assert complaint.feedback.rating == 4


def test_assign_moves_new_to_assigned(store, make_draft):
    complaint = store.create(make_draft())
    store.assign(complaint.id, "2", actor=get_user("1"))

    assert complaint.assigned_to == "2"
    assert complaint.status == ComplaintStatus.ASSIGNED


def test_reassign_keeps_status(store, make_draft):
    complaint = store.create(make_draft())
    store.assign(complaint.id, "2")
    store.set_status(complaint.id, ComplaintStatus.IN_PROGRESS)
    store.assign(complaint.id, "10")

    assert complaint.assigned_to == "10"
    assert complaint.status == ComplaintStatus.IN_PROGRESS


@pytest.mark.parametrize("staff_id", ["3", "999"])
def test_assign_requires_staff_member(store, make_draft, staff_id):
    complaint = store.create(make_draft())
    with pytest.raises(InvalidInput):
        store.assign(complaint.id, staff_id)
    assert complaint.assigned_to is None


def test_comments_hide_internal_notes(store, make_draft):
    complaint = store.create(make_draft())
    store.add_comment(complaint.id, get_user("2"), "Checking with maintenance", is_internal=True)
    store.add_comment(complaint.id, get_user("3"), "Any update?")

    assert len(store.comments(complaint.id)) == 2
    visible = store.comments(complaint.id, include_internal=False)
    assert [c.content for c in visible] == ["Any update?"]

    with pytest.raises(InvalidInput):
        store.add_comment(complaint.id, get_user("3"), "  ")


def test_events_are_published(store, make_draft):
    events = []
    store.subscribe(events.append)
    complaint = store.create(make_draft())
    store.assign(complaint.id, "2")
    store.set_status(complaint.id, ComplaintStatus.RESOLVED)
    store.attach_feedback(complaint.id, 5)

    assert [e.event_type for e in events] == [
        "complaint.created",
        "complaint.assigned",
        "complaint.status_changed",
        "complaint.status_changed",
        "complaint.feedback",
    ]


def test_failing_listener_does_not_block_mutation(store, make_draft):
    def broken(event):
        raise RuntimeError("listener down")

    store.subscribe(broken)
    complaint = store.create(make_draft())
    assert store.get(complaint.id) is complaint


def test_restore_advances_sequence(clock, make_draft, store):
    seeded = store.create(make_draft())
    other = ComplaintStore(repository=InMemoryComplaintRepository(), clock=clock)
    other.restore(seeded.model_copy(update={"id": "CMP-2024-00204"}))

    assert other.create(make_draft()).id == "CMP-2024-00205"

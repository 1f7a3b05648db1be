import os
from datetime import datetime, timedelta, timezone

import pytest

# Set environment variables BEFORE importing app modules
os.environ["APP_ENV"] = "test"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["LOG_JSON"] = "false"
os.environ["SLA_CHECK_INTERVAL_SECONDS"] = "3600"
os.environ["CLASSIFY_DEBOUNCE_SECONDS"] = "0"
os.environ.pop("GROQ_API_KEY", None)

from complaint_engine.config import get_settings
from complaint_engine.models import ComplaintDraft, Priority
from complaint_engine.store import ComplaintStore


START = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def store(clock):
    return ComplaintStore(clock=clock)


@pytest.fixture
def make_draft():
    """Return a factory for complaint drafts submitted by the demo student."""

    def _make(title="Broken fan", description="The ceiling fan in room 204 is broken.",
              priority=Priority.MEDIUM, **kwargs):
        kwargs.setdefault("customer_id", "3")
        kwargs.setdefault("customer_name", "Alex Student")
        return ComplaintDraft(title=title, description=description, priority=priority, **kwargs)

    return _make

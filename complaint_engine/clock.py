"""Wall-clock reads. Everything in the engine is timezone-aware UTC."""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


__all__ = ["Clock", "utc_now"]

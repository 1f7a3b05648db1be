"""
Periodic SLA recomputation.

Runs alongside the API and re-evaluates every open complaint against the
clock. It only reads complaints: the breach gauge is updated and a single
`SLABreachEvent` is published per complaint the first time it is seen past
its deadline.
"""
import asyncio
import logging
from typing import List, Optional, Set

from .clock import Clock, utc_now
from .models import Complaint
from .notifications import SLABreachEvent
from .observability import sla_breached_complaints
from .sla import is_breached

logger = logging.getLogger(__name__)


class SLAWatcher:

    def __init__(self, store, interval: float = 60.0, clock: Optional[Clock] = None):
        self.store = store
        self.interval = interval
        self.clock = clock or store.clock or utc_now
        self._alerted: Set[str] = set()
        self._task: Optional[asyncio.Task] = None

    def prime(self) -> int:
        """Treat complaints that are already breached as alerted (e.g. demo data)."""
        now = self.clock()
        for complaint in self.store.all():
            if is_breached(complaint, now):
                self._alerted.add(complaint.id)
        return len(self._alerted)

    def check_once(self) -> List[Complaint]:
        """Evaluate all complaints now; return the newly breached ones."""
        now = self.clock()
        breached = [c for c in self.store.all() if is_breached(c, now)]
        sla_breached_complaints.set(len(breached))

        newly = [c for c in breached if c.id not in self._alerted]
        for complaint in newly:
            self._alerted.add(complaint.id)
            logger.warning("SLA breached for complaint %s (priority %s)", complaint.id, complaint.priority.value)
            self.store.publish(SLABreachEvent(
                complaint_id=complaint.id,
                priority=complaint.priority.value,
                sla_deadline=complaint.sla_deadline,
            ))

        if breached:
            logger.info("SLA check complete. %s breached, %s new.", len(breached), len(newly))
        return newly

    async def _run(self) -> None:
        while True:
            try:
                self.check_once()
            except Exception:
                logger.exception("SLA check failed")
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())
            logger.info("SLA watcher started (interval=%ss)", self.interval)
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("SLA watcher stopped")


__all__ = ["SLAWatcher"]

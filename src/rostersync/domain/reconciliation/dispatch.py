"""Queue-driven event processing.

Events are drained in batches. Within a batch, events for the same member are
handled in arrival order on one worker; different members fan out across the
pool. One member's failure is recorded in the report and never stops the rest.
"""

from __future__ import annotations

import queue
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from rostersync.domain.errors import RosterSyncError
from rostersync.domain.events import MembershipEvent, event_key

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterable

    from rostersync.domain.reconciliation.reconciler import EventReconciler

log = getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 0.5


@dataclass(slots=True)
class DispatchReport:
    handled: int = 0
    failures: list[tuple[MembershipEvent, RosterSyncError]] = field(
        default_factory=list[tuple[MembershipEvent, RosterSyncError]]
    )
    by_kind: Counter[str] = field(default_factory=Counter[str])

    @property
    def failed(self) -> int:
        return len(self.failures)

    def merge(self, other: DispatchReport) -> None:
        self.handled += other.handled
        self.failures.extend(other.failures)
        self.by_kind.update(other.by_kind)


class EventDispatcher:
    def __init__(self, reconciler: EventReconciler, *, worker_count: int = 4) -> None:
        if worker_count < 1:
            raise ValueError("worker_count must be at least 1")
        self._reconciler = reconciler
        self._worker_count = worker_count
        self._queue: queue.Queue[MembershipEvent] = queue.Queue()

    def submit(self, event: MembershipEvent) -> None:
        self._queue.put(event)

    def submit_all(self, events: Iterable[MembershipEvent]) -> None:
        for event in events:
            self._queue.put(event)

    def pending(self) -> int:
        return self._queue.qsize()

    def drain(self) -> DispatchReport:
        """Process everything currently queued and return a report."""

        batch = self._take_available()
        return self._process(batch)

    def run(
        self,
        stop_event: threading.Event,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> DispatchReport:
        """Keep draining until ``stop_event`` is set; returns the cumulative report."""

        total = DispatchReport()
        while not stop_event.is_set():
            try:
                first = self._queue.get(timeout=poll_interval)
            except queue.Empty:
                continue
            batch = [first, *self._take_available()]
            total.merge(self._process(batch))
        return total

    def _take_available(self) -> list[MembershipEvent]:
        batch: list[MembershipEvent] = []
        while True:
            try:
                batch.append(self._queue.get_nowait())
            except queue.Empty:
                return batch

    def _process(self, batch: list[MembershipEvent]) -> DispatchReport:
        report = DispatchReport()
        if not batch:
            return report

        lanes: dict[str, list[MembershipEvent]] = {}
        for event in batch:
            lanes.setdefault(event_key(event), []).append(event)

        with ThreadPoolExecutor(
            max_workers=min(self._worker_count, len(lanes)),
            thread_name_prefix="reconcile",
        ) as pool:
            futures = [pool.submit(self._run_lane, lane) for lane in lanes.values()]
            for future in as_completed(futures):
                report.merge(future.result())

        if report.failures:
            log.warning(
                "Dispatched %s events: %s handled, %s failed",
                len(batch),
                report.handled,
                report.failed,
            )
        else:
            log.debug("Dispatched %s events", len(batch))
        return report

    def _run_lane(self, lane: list[MembershipEvent]) -> DispatchReport:
        report = DispatchReport()
        for event in lane:
            kind = type(event).__name__
            try:
                self._reconciler.handle(event)
            except RosterSyncError as exc:
                log.error("Reconciling %s for %s failed: %s", kind, event_key(event), exc)
                report.failures.append((event, exc))
                report.by_kind[f"{kind}.failed"] += 1
                continue
            report.handled += 1
            report.by_kind[kind] += 1
        return report

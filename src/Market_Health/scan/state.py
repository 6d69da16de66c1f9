"""Scan lifecycle: NOT_EXECUTED -> IN_PROGRESS -> FINISHED.

The ScanStateMachine is the one stateful sequencer of the engine. Starting
a scan is a compare-and-set under a lock, so at most one run per scan is in
progress; a concurrent start is rejected, never queued.
"""

from __future__ import annotations

import datetime
import logging
import threading
from collections.abc import Iterable

from Market_Health.models.enums import ScanCompletionStatus, ScanExecutionStatus
from Market_Health.models.scan import Scan
from Market_Health.utils.exceptions import ScanAlreadyRunningError

logger = logging.getLogger(__name__)


class ScanStateMachine:
    """Holds the current state of every registered scan."""

    def __init__(self, scans: Iterable[Scan] = ()) -> None:
        self._scans: dict[int, Scan] = {scan.id: scan for scan in scans}
        self._lock = threading.Lock()

    def register(self, scan: Scan) -> None:
        """Add or replace a scan definition that is not running."""
        with self._lock:
            current = self._scans.get(scan.id)
            if current is not None and current.execution_status is ScanExecutionStatus.IN_PROGRESS:
                raise ScanAlreadyRunningError(scan.id)
            self._scans[scan.id] = scan

    def get(self, scan_id: int) -> Scan:
        """Current state of a scan.

        Raises:
            KeyError: If no scan with this id is registered.
        """
        with self._lock:
            return self._scans[scan_id]

    def start(self, scan_id: int) -> Scan:
        """Move a scan to IN_PROGRESS with progress 0.

        Raises:
            KeyError: If no scan with this id is registered.
            ScanAlreadyRunningError: If the scan is already IN_PROGRESS; the
                stored scan is left untouched.
        """
        with self._lock:
            scan = self._scans[scan_id]
            if scan.execution_status is ScanExecutionStatus.IN_PROGRESS:
                raise ScanAlreadyRunningError(scan_id)
            started = scan.model_copy(
                update={"execution_status": ScanExecutionStatus.IN_PROGRESS, "progress": 0}
            )
            self._scans[scan_id] = started
        logger.info("Scan %d (%s) started", scan_id, scan.name)
        return started

    def update_progress(self, scan_id: int, progress: int) -> Scan:
        """Record the progress percentage of a running scan."""
        with self._lock:
            scan = self._require_running(scan_id)
            # Validated copy: model_copy(update=...) would skip the 0..100 check.
            updated = Scan.model_validate({**scan.model_dump(), "progress": progress})
            self._scans[scan_id] = updated
            return updated

    def finish(
        self,
        scan_id: int,
        incomplete_instrument_ids: Iterable[int] = (),
        *,
        completion: ScanCompletionStatus | None = None,
        finished_at: datetime.datetime | None = None,
    ) -> Scan:
        """Move a running scan to FINISHED.

        Unless *completion* is given, the completion status is INCOMPLETE
        when any instrument is left in *incomplete_instrument_ids*, COMPLETE
        otherwise. A failed run passes INCOMPLETE explicitly.
        """
        incomplete = frozenset(incomplete_instrument_ids)
        if completion is None:
            completion = (
                ScanCompletionStatus.INCOMPLETE if incomplete else ScanCompletionStatus.COMPLETE
            )
        with self._lock:
            scan = self._require_running(scan_id)
            progress = 100 if completion is ScanCompletionStatus.COMPLETE else scan.progress
            finished = scan.model_copy(
                update={
                    "execution_status": ScanExecutionStatus.FINISHED,
                    "completion_status": completion,
                    "progress": progress,
                    "last_scan": finished_at or datetime.datetime.now(datetime.UTC),
                    "incomplete_instrument_ids": incomplete,
                }
            )
            self._scans[scan_id] = finished
        logger.info(
            "Scan %d finished %s (%d incomplete instruments)", scan_id, completion, len(incomplete)
        )
        return finished

    def _require_running(self, scan_id: int) -> Scan:
        scan = self._scans[scan_id]
        if scan.execution_status is not ScanExecutionStatus.IN_PROGRESS:
            msg = f"scan {scan_id} is not in progress (status: {scan.execution_status})"
            raise ValueError(msg)
        return scan

"""Scan pipeline: async generator yielding progress events.

One run loads the history of every instrument of the scan's lists through
an injected QuotationProvider, computes the snapshots, ranks relative
strength per instrument type and synchronizes the market statistics. The
CLI and any other consumer drive the same generator.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from typing import Protocol

from Market_Health.analysis.classifier import DailyBehaviorClassifier
from Market_Health.analysis.patterns import PatternDetector
from Market_Health.analysis.relative_strength import rank_relative_strength
from Market_Health.analysis.statistics import (
    StatisticAggregator,
    StatisticChanges,
    StatisticStore,
)
from Market_Health.config import EngineConfig
from Market_Health.indicators.snapshots import (
    compute_moving_averages,
    indicator_snapshot,
    relative_strength_snapshot,
)
from Market_Health.models.enums import InstrumentType, ScanCompletionStatus
from Market_Health.models.market_data import InstrumentHistory, Quotation
from Market_Health.models.scan import InstrumentList, Scan
from Market_Health.models.snapshots import (
    IndicatorSnapshot,
    MovingAverageSnapshot,
    RelativeStrengthSnapshot,
    SnapshotTable,
)
from Market_Health.scan.state import ScanStateMachine
from Market_Health.utils.exceptions import QuotationDataError
from Market_Health.utils.rounding import ratio_percent

logger = logging.getLogger(__name__)


class QuotationProvider(Protocol):
    """Source of instrument histories, e.g. a database or a quote service."""

    async def get_history(self, instrument_id: int) -> InstrumentHistory: ...


# ---------------------------------------------------------------------------
# Progress / completion event types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScanProgress:
    """Emitted after each instrument has been processed."""

    scan_id: int
    instrument_id: int
    succeeded: bool
    current: int
    total: int
    progress: int


@dataclass(frozen=True)
class ScanComplete:
    """Terminal event emitted when the scan has finished."""

    scan: Scan
    statistics: StatisticChanges
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# Workspace shared across runs
# ---------------------------------------------------------------------------


@dataclass
class ScanWorkspace:
    """Collaborators and derived data a scan reads and updates.

    Histories are kept per instrument so that a run over the incomplete
    instruments only can still rank and count the whole universe. An
    instrument that fails drops its cached history.
    """

    provider: QuotationProvider
    statistics: StatisticStore = field(default_factory=StatisticStore)
    config: EngineConfig = field(default_factory=EngineConfig)
    histories: dict[int, InstrumentHistory] = field(default_factory=dict)
    moving_averages: SnapshotTable[MovingAverageSnapshot] = field(default_factory=SnapshotTable)
    relative_strength: SnapshotTable[RelativeStrengthSnapshot] = field(
        default_factory=SnapshotTable
    )
    indicators: SnapshotTable[IndicatorSnapshot] = field(default_factory=SnapshotTable)


# ---------------------------------------------------------------------------
# Pipeline generator
# ---------------------------------------------------------------------------


def _instrument_ids(scan: Scan, instrument_lists: Mapping[int, InstrumentList]) -> list[int]:
    """Instruments of all lists of *scan* in list order, without duplicates."""
    ids: dict[int, None] = {}
    for list_id in scan.list_ids:
        instrument_list = instrument_lists.get(list_id)
        if instrument_list is None:
            logger.warning("Scan %d references unknown instrument list %d", scan.id, list_id)
            continue
        ids.update(dict.fromkeys(instrument_list.instrument_ids))
    return list(ids)


def _update_snapshots(history: InstrumentHistory, workspace: ScanWorkspace) -> None:
    quotations = history.quotations
    newest = quotations.newest
    if newest is None:
        msg = f"no quotations for {history.instrument.symbol}"
        raise QuotationDataError(msg, source="scan", symbol=history.instrument.symbol)
    config = workspace.config
    compute_moving_averages(quotations, config.moving_averages, workspace.moving_averages)
    workspace.relative_strength.put(newest, relative_strength_snapshot(newest, quotations, config))
    workspace.indicators.put(newest, indicator_snapshot(newest, quotations, config))


def _rank_by_type(histories: list[InstrumentHistory], workspace: ScanWorkspace) -> None:
    newest_by_type: dict[InstrumentType, list[Quotation]] = {}
    for history in histories:
        newest = history.quotations.newest
        if newest is not None:
            newest_by_type.setdefault(history.instrument.type, []).append(newest)
    for quotations in newest_by_type.values():
        rank_relative_strength(quotations, workspace.relative_strength)


async def run_scan(
    machine: ScanStateMachine,
    scan_id: int,
    instrument_lists: Mapping[int, InstrumentList],
    workspace: ScanWorkspace,
    *,
    incomplete_only: bool = False,
    cancelled: CancelFlag | None = None,
) -> AsyncGenerator[ScanProgress | ScanComplete]:
    """Execute a scan, yielding progress events.

    Args:
        machine: State machine holding the scan; the run starts it and
            finishes it.
        scan_id: Id of the scan to execute.
        instrument_lists: Instrument lists by id.
        workspace: Provider, statistic store and snapshot tables to update.
        incomplete_only: Process only the instruments recorded as incomplete
            by the previous run.
        cancelled: Optional cancellation flag checked between instruments.

    Yields:
        ScanProgress per instrument, ScanComplete when done.

    Raises:
        ScanAlreadyRunningError: If the scan is already in progress.
    """
    started_at = time.monotonic()
    scan = machine.start(scan_id)
    all_ids = _instrument_ids(scan, instrument_lists)
    if incomplete_only:
        pending = [i for i in all_ids if i in scan.incomplete_instrument_ids]
        incomplete = set(pending)
    else:
        pending = all_ids
        incomplete = set()
    total = len(pending)
    processed = 0

    try:
        for position, instrument_id in enumerate(pending, start=1):
            if cancelled is not None and cancelled.is_set:
                remaining = pending[position - 1 :]
                logger.info(
                    "Scan %d cancelled, %d instruments not processed", scan_id, len(remaining)
                )
                incomplete.update(remaining)
                break

            succeeded = True
            try:
                history = await workspace.provider.get_history(instrument_id)
                _update_snapshots(history, workspace)
            except Exception as exc:
                succeeded = False
                incomplete.add(instrument_id)
                # A failed instrument is neither ranked nor counted with stale data
                workspace.histories.pop(instrument_id, None)
                logger.warning("Scan %d: instrument %d failed: %s", scan_id, instrument_id, exc)
            else:
                workspace.histories[instrument_id] = history
                incomplete.discard(instrument_id)

            processed = position
            progress = ratio_percent(position, total)
            machine.update_progress(scan_id, progress)
            yield ScanProgress(
                scan_id=scan_id,
                instrument_id=instrument_id,
                succeeded=succeeded,
                current=position,
                total=total,
                progress=progress,
            )

        histories = [workspace.histories[i] for i in all_ids if i in workspace.histories]
        _rank_by_type(histories, workspace)

        aggregator = StatisticAggregator(
            DailyBehaviorClassifier(PatternDetector(workspace.config.patterns))
        )
        changes = workspace.statistics.synchronize(
            aggregator.calculate(histories, workspace.moving_averages)
        )
        logger.info(
            "Scan %d statistics: %d inserted, %d updated, %d deleted",
            scan_id,
            len(changes.inserted),
            len(changes.updated),
            len(changes.deleted),
        )
    except BaseException:
        # Never leave the scan IN_PROGRESS behind; statistics were not written.
        machine.finish(
            scan_id,
            incomplete | set(pending[processed:]),
            completion=ScanCompletionStatus.INCOMPLETE,
        )
        raise

    finished = machine.finish(scan_id, incomplete)
    yield ScanComplete(
        scan=finished,
        statistics=changes,
        elapsed_seconds=time.monotonic() - started_at,
    )


# ---------------------------------------------------------------------------
# Cancellation flag (simple mutable wrapper)
# ---------------------------------------------------------------------------


class CancelFlag:
    """Cooperative cancellation flag for the scan pipeline."""

    def __init__(self) -> None:
        self._cancelled: bool = False

    @property
    def is_set(self) -> bool:
        """Return True if cancellation has been requested."""
        return self._cancelled

    def set(self) -> None:
        """Request cancellation."""
        self._cancelled = True

    def reset(self) -> None:
        """Clear the cancellation flag."""
        self._cancelled = False

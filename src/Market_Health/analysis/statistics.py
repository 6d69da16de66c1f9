"""Cross-sectional market statistics.

The aggregator sums the daily behavior counters of every instrument of a
universe for one date. The StatisticStore is the in-memory reference for
the persistence contract: one Statistic per (date, instrument type), a
second insert for the same key is rejected.
"""

from __future__ import annotations

import datetime
import itertools
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, fields

from Market_Health.analysis.classifier import DailyBehavior, DailyBehaviorClassifier
from Market_Health.models.enums import InstrumentType
from Market_Health.models.market_data import InstrumentHistory
from Market_Health.models.snapshots import MovingAverageSnapshot, SnapshotTable
from Market_Health.models.statistic import Statistic
from Market_Health.utils.exceptions import DuplicateStatisticError

logger = logging.getLogger(__name__)

StatisticKey = tuple[InstrumentType, datetime.date]

# DailyBehavior field -> Statistic field
_COUNTER_FIELDS: dict[str, str] = {
    field.name: f"number_{field.name}" for field in fields(DailyBehavior)
}


class StatisticAggregator:
    """Builds Statistic records from instrument histories."""

    def __init__(self, classifier: DailyBehaviorClassifier) -> None:
        self._classifier = classifier

    def aggregate(
        self,
        date: datetime.date,
        instrument_type: InstrumentType,
        histories: Iterable[InstrumentHistory],
        moving_averages: SnapshotTable[MovingAverageSnapshot],
    ) -> Statistic:
        """Sum the counters of every instrument that traded on *date*.

        Instruments without a quotation on *date*, or without an older
        quotation to compare against, are not counted.
        """
        totals = dict.fromkeys(_COUNTER_FIELDS.values(), 0)
        number_of_instruments = 0

        for history in histories:
            quotations = history.quotations
            index = quotations.index_of_date(date)
            if index is None:
                continue
            previous = quotations.previous(index)
            if previous is None:
                continue
            current = quotations[index]
            behavior = self._classifier.classify(current, previous, moving_averages.get(current))
            for behavior_field, statistic_field in _COUNTER_FIELDS.items():
                totals[statistic_field] += getattr(behavior, behavior_field)
            number_of_instruments += 1

        return Statistic(
            date=date,
            instrument_type=instrument_type,
            number_of_instruments=number_of_instruments,
            **totals,
        )

    def calculate(
        self,
        histories: Sequence[InstrumentHistory],
        moving_averages: SnapshotTable[MovingAverageSnapshot],
        instrument_type: InstrumentType | None = None,
    ) -> list[Statistic]:
        """Statistics for every date and instrument type in *histories*.

        Dates on which no instrument of a type could be counted produce no
        record. The result is ordered by instrument type, newest date first.
        """
        by_type: dict[InstrumentType, list[InstrumentHistory]] = {}
        for history in histories:
            by_type.setdefault(history.instrument.type, []).append(history)

        statistics: list[Statistic] = []
        for current_type in sorted(by_type):
            if instrument_type is not None and current_type is not instrument_type:
                continue
            members = by_type[current_type]
            dates = sorted(
                {q.date for history in members for q in history.quotations}, reverse=True
            )
            for date in dates:
                statistic = self.aggregate(date, current_type, members, moving_averages)
                if statistic.number_of_instruments > 0:
                    statistics.append(statistic)
            logger.debug(
                "Calculated statistics of %d instruments of type %s over %d dates",
                len(members),
                current_type,
                len(dates),
            )
        return statistics


@dataclass(frozen=True)
class StatisticChanges:
    """Result of synchronizing new statistics with the stored ones."""

    inserted: tuple[Statistic, ...] = ()
    updated: tuple[Statistic, ...] = ()
    deleted: tuple[Statistic, ...] = ()


class StatisticStore:
    """In-memory store of statistics keyed by (instrument type, date)."""

    def __init__(self) -> None:
        self._statistics: dict[StatisticKey, Statistic] = {}
        self._ids = itertools.count(1)

    @staticmethod
    def _key(statistic: Statistic) -> StatisticKey:
        return (statistic.instrument_type, statistic.date)

    def get(self, instrument_type: InstrumentType, date: datetime.date) -> Statistic | None:
        return self._statistics.get((instrument_type, date))

    def for_type(self, instrument_type: InstrumentType) -> list[Statistic]:
        """Stored statistics of one instrument type, newest first."""
        return sorted(
            (s for (kind, _), s in self._statistics.items() if kind is instrument_type),
            key=lambda s: s.date,
            reverse=True,
        )

    def insert(self, statistic: Statistic) -> Statistic:
        """Store a new statistic and return it with its assigned id.

        Raises:
            DuplicateStatisticError: If a statistic of the same type and date exists.
        """
        key = self._key(statistic)
        if key in self._statistics:
            raise DuplicateStatisticError(statistic.instrument_type, statistic.date)
        stored = statistic.model_copy(update={"id": next(self._ids)})
        self._statistics[key] = stored
        return stored

    def update(self, statistic: Statistic) -> Statistic:
        """Replace the counters of an existing statistic, keeping its id.

        Raises:
            KeyError: If no statistic of that type and date is stored.
        """
        key = self._key(statistic)
        existing = self._statistics[key]
        stored = statistic.model_copy(update={"id": existing.id})
        self._statistics[key] = stored
        return stored

    def delete(self, statistic: Statistic) -> None:
        """Remove a stored statistic.

        Raises:
            KeyError: If no statistic of that type and date is stored.
        """
        del self._statistics[self._key(statistic)]

    def synchronize(self, statistics: Iterable[Statistic]) -> StatisticChanges:
        """Make the stored statistics of the given types equal to *statistics*.

        New dates are inserted, changed counters updated, and stored dates of
        those instrument types that are no longer present are deleted.
        """
        new_by_key = {self._key(s): s for s in statistics}
        types = {kind for kind, _ in new_by_key}

        inserted: list[Statistic] = []
        updated: list[Statistic] = []
        deleted: list[Statistic] = []

        for key, stored in list(self._statistics.items()):
            if key[0] in types and key not in new_by_key:
                self.delete(stored)
                deleted.append(stored)

        for key, statistic in new_by_key.items():
            stored = self._statistics.get(key)
            if stored is None:
                inserted.append(self.insert(statistic))
            elif not stored.has_same_values(statistic):
                updated.append(self.update(statistic))

        logger.info(
            "Statistics synchronized: %d inserted, %d updated, %d deleted",
            len(inserted),
            len(updated),
            len(deleted),
        )
        return StatisticChanges(tuple(inserted), tuple(updated), tuple(deleted))

    def __len__(self) -> int:
        return len(self._statistics)

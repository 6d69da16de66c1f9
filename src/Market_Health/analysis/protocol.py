"""Health-check protocol of one instrument.

The builder walks the quotations from the start date toward the newest
quotation and records every finding of the checks of a profile. The
converter folds the findings of each date into a DateBasedProtocolEntry.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable

from Market_Health.analysis.health_checks import CheckContext, checks_for_profile
from Market_Health.analysis.patterns import PatternDetector
from Market_Health.config import EngineConfig
from Market_Health.models.enums import HealthCheckProfile, ProtocolEntryCategory
from Market_Health.models.market_data import QuotationSequence
from Market_Health.models.protocol import (
    DateBasedProtocolEntry,
    Protocol,
    ProtocolEntry,
    SimpleProtocolEntry,
)
from Market_Health.models.snapshots import MovingAverageSnapshot, SnapshotTable
from Market_Health.utils.exceptions import NoQuotationsExistError

logger = logging.getLogger(__name__)


def start_date_for_lookback(lookback: int, quotations: QuotationSequence) -> datetime.date:
    """Date *lookback* trading days back, counting the newest quotation as the first.

    The oldest quotation is used when the history is shorter.
    """
    if lookback < 1:
        msg = f"lookback must be >= 1, got {lookback}"
        raise ValueError(msg)
    if len(quotations) == 0:
        msg = "cannot determine a start date without quotations"
        raise ValueError(msg)
    return quotations[min(lookback, len(quotations)) - 1].date


class ProtocolBuilder:
    """Evaluates the health checks of a profile over an instrument's history."""

    def __init__(self, config: EngineConfig, patterns: PatternDetector | None = None) -> None:
        self._config = config
        self._patterns = patterns or PatternDetector(config.patterns)

    def build(
        self,
        quotations: QuotationSequence,
        moving_averages: SnapshotTable[MovingAverageSnapshot],
        start_date: datetime.date,
        profile: HealthCheckProfile = HealthCheckProfile.ALL,
        *,
        symbol: str | None = None,
    ) -> Protocol:
        """Findings of *profile* from *start_date* up to the newest quotation.

        Raises:
            NoQuotationsExistError: No quotation is dated on or after
                *start_date*.
        """
        start_index = quotations.index_of_date_at_or_after(start_date)
        if start_index == -1:
            raise NoQuotationsExistError(start_date, symbol=symbol)

        context = CheckContext(
            quotations=quotations,
            moving_averages=moving_averages,
            patterns=self._patterns,
            config=self._config,
            start_index=start_index,
        )
        checks = checks_for_profile(profile)
        entries: list[ProtocolEntry] = []

        for index in range(start_index, -1, -1):
            date = quotations[index].date
            for check in checks:
                text = check.evaluate(context, index)
                if text is None:
                    continue
                entries.append(
                    ProtocolEntry(date=date, category=check.category, text=text, profile=profile)
                )

        logger.debug(
            "Protocol %s for %s since %s: %d entries",
            profile,
            symbol or "instrument",
            start_date,
            len(entries),
        )
        return Protocol(entries=tuple(entries)).sorted_by_date()

    def build_for_lookback(
        self,
        quotations: QuotationSequence,
        moving_averages: SnapshotTable[MovingAverageSnapshot],
        lookback: int,
        profile: HealthCheckProfile = HealthCheckProfile.ALL,
        *,
        symbol: str | None = None,
    ) -> Protocol:
        """Findings of *profile* over the last *lookback* trading days."""
        if len(quotations) == 0:
            raise NoQuotationsExistError(datetime.date.min, symbol=symbol)
        start_date = start_date_for_lookback(lookback, quotations)
        return self.build(quotations, moving_averages, start_date, profile, symbol=symbol)

    def build_for_profiles(
        self,
        quotations: QuotationSequence,
        moving_averages: SnapshotTable[MovingAverageSnapshot],
        start_date: datetime.date,
        profiles: Iterable[HealthCheckProfile],
        *,
        symbol: str | None = None,
    ) -> Protocol:
        """One protocol holding the findings of several profiles."""
        entries: list[ProtocolEntry] = []
        for profile in profiles:
            protocol = self.build(quotations, moving_averages, start_date, profile, symbol=symbol)
            entries.extend(protocol.entries)
        return Protocol(entries=tuple(entries)).sorted_by_date()


class ProtocolConverter:
    """Converts protocols into the representations used for display."""

    @staticmethod
    def to_date_based(protocol: Protocol) -> list[DateBasedProtocolEntry]:
        """Group the entries by date, newest date first."""
        grouped: dict[datetime.date, list[SimpleProtocolEntry]] = {}
        for entry in protocol.entries:
            grouped.setdefault(entry.date, []).append(
                SimpleProtocolEntry(category=entry.category, text=entry.text)
            )
        return [
            DateBasedProtocolEntry(date=date, entries=tuple(grouped[date]))
            for date in sorted(grouped, reverse=True)
        ]


# Category weights of the health chart per profile.
_EVENT_WEIGHTS: dict[HealthCheckProfile, dict[ProtocolEntryCategory, int]] = {
    HealthCheckProfile.ALL: {
        ProtocolEntryCategory.CONFIRMATION: 1,
        ProtocolEntryCategory.VIOLATION: -1,
        ProtocolEntryCategory.UNCERTAIN: -1,
    },
    HealthCheckProfile.CONFIRMATIONS: {ProtocolEntryCategory.CONFIRMATION: 1},
    HealthCheckProfile.CONFIRMATIONS_WITHOUT_COUNTING: {ProtocolEntryCategory.CONFIRMATION: 1},
    HealthCheckProfile.SELLING_INTO_WEAKNESS: {ProtocolEntryCategory.VIOLATION: 1},
    HealthCheckProfile.WEAKNESS_WITHOUT_COUNTING: {ProtocolEntryCategory.VIOLATION: 1},
    HealthCheckProfile.SELLING_INTO_STRENGTH: {ProtocolEntryCategory.UNCERTAIN: 1},
}


def health_event_number(
    protocol: Protocol, profile: HealthCheckProfile, date: datetime.date
) -> int:
    """Score of the findings of *date* for the health chart of *profile*.

    Profiles without a chart score every date 0.
    """
    weights = _EVENT_WEIGHTS.get(profile, {})
    return sum(weights.get(entry.category, 0) for entry in protocol.entries_of_date(date))

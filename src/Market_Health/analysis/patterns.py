"""Price/volume pattern predicates of a single trading day.

Each predicate answers with a PatternResult: ``Applicable(occurred)`` when
the data needed for the judgement is present, ``NotApplicable(reason)``
when it is not (no moving average snapshot, no volume average). Callers
decide what a non-applicable answer counts as.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from Market_Health.config import PatternThresholds
from Market_Health.indicators.performance import price_performance, quotation_performance
from Market_Health.models.market_data import Quotation
from Market_Health.models.snapshots import MovingAverageSnapshot


@dataclass(frozen=True)
class Applicable:
    """The pattern could be judged; ``occurred`` is the verdict."""

    occurred: bool


@dataclass(frozen=True)
class NotApplicable:
    """The pattern could not be judged."""

    reason: str


PatternResult = Applicable | NotApplicable

_NO_VOLUME_AVERAGE = NotApplicable("no SMA(30) of volume available")


def occurred(result: PatternResult) -> bool:
    """True only for an applicable result whose pattern occurred."""
    return isinstance(result, Applicable) and result.occurred


def _range_threshold(quotation: Quotation, fraction: Decimal) -> Decimal:
    """Price at *fraction* of the daily range above the low."""
    return quotation.low + (quotation.high - quotation.low) * fraction


class PatternDetector:
    """Evaluates the daily patterns with the configured thresholds."""

    def __init__(self, thresholds: PatternThresholds) -> None:
        self._thresholds = thresholds

    @property
    def thresholds(self) -> PatternThresholds:
        return self._thresholds

    def up_on_volume(
        self,
        current: Quotation,
        previous: Quotation,
        snapshot: MovingAverageSnapshot | None,
    ) -> PatternResult:
        """Strong advance on above-average volume."""
        if snapshot is None or snapshot.sma30_volume == 0:
            return _NO_VOLUME_AVERAGE
        performance = quotation_performance(current, previous)
        return Applicable(
            performance >= self._thresholds.up_on_volume_percent
            and current.volume > snapshot.sma30_volume
        )

    def down_on_volume(
        self,
        current: Quotation,
        previous: Quotation,
        snapshot: MovingAverageSnapshot | None,
    ) -> PatternResult:
        """Strong decline on above-average volume."""
        if snapshot is None or snapshot.sma30_volume == 0:
            return _NO_VOLUME_AVERAGE
        performance = quotation_performance(current, previous)
        return Applicable(
            performance <= self._thresholds.down_on_volume_percent
            and current.volume > snapshot.sma30_volume
        )

    def bearish_reversal(
        self,
        current: Quotation,
        snapshot: MovingAverageSnapshot | None,
    ) -> PatternResult:
        """Open and close in the lower part of the range on above-average volume."""
        if snapshot is None or snapshot.sma30_volume == 0:
            return _NO_VOLUME_AVERAGE
        threshold = _range_threshold(current, self._thresholds.bearish_reversal_range)
        return Applicable(
            current.open <= threshold
            and current.close <= threshold
            and current.volume > snapshot.sma30_volume
        )

    def bullish_reversal(
        self,
        current: Quotation,
        snapshot: MovingAverageSnapshot | None,
    ) -> PatternResult:
        """Open and close in the upper part of the range on above-average volume."""
        if snapshot is None or snapshot.sma30_volume == 0:
            return _NO_VOLUME_AVERAGE
        threshold = _range_threshold(current, self._thresholds.bullish_reversal_range)
        return Applicable(
            current.open >= threshold
            and current.close >= threshold
            and current.volume > snapshot.sma30_volume
        )

    def churning(
        self,
        current: Quotation,
        previous: Quotation,
        snapshot: MovingAverageSnapshot | None,
    ) -> PatternResult:
        """Little price progress despite above-average volume."""
        if snapshot is None or snapshot.sma30_volume == 0:
            return _NO_VOLUME_AVERAGE
        performance = quotation_performance(current, previous)
        return Applicable(
            self._thresholds.churning_lower_percent
            <= performance
            <= self._thresholds.churning_upper_percent
            and current.volume > snapshot.sma30_volume
        )

    def close_near_high(self, current: Quotation) -> bool:
        return current.close >= _range_threshold(current, self._thresholds.close_near_high_range)

    def close_near_low(self, current: Quotation) -> bool:
        return current.close <= _range_threshold(current, self._thresholds.close_near_low_range)

    @staticmethod
    def gap_up_size(current: Quotation, previous: Quotation) -> Decimal:
        """Percentage by which the low exceeds the previous day's high (negative without gap)."""
        return price_performance(current.low, previous.high)

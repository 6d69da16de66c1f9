"""Daily behavior classifier.

Turns a quotation, its predecessor and its moving average snapshot into the
integer counters summed by the market statistic. Every counter is neutral (0)
when the data it depends on is missing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from Market_Health.analysis.patterns import PatternDetector, PatternResult, occurred
from Market_Health.models.market_data import Quotation
from Market_Health.models.snapshots import MovingAverageSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyBehavior:
    """Classifier counters of one instrument on one day."""

    advance: int = 0
    decline: int = 0
    above_sma50: int = 0
    at_or_below_sma50: int = 0
    above_sma200: int = 0
    at_or_below_sma200: int = 0
    ritter_market_trend: int = 0
    up_on_volume: int = 0
    down_on_volume: int = 0
    bearish_reversal: int = 0
    bullish_reversal: int = 0
    churning: int = 0


class DailyBehaviorClassifier:
    """Stateless predicates over a (current, previous) quotation pair."""

    def __init__(self, patterns: PatternDetector) -> None:
        self._patterns = patterns

    # ------------------------------------------------------------------
    # Price direction
    # ------------------------------------------------------------------

    @staticmethod
    def advance(current: Quotation, previous: Quotation) -> int:
        return 1 if current.close > previous.close else 0

    @staticmethod
    def decline(current: Quotation, previous: Quotation) -> int:
        return 1 if current.close < previous.close else 0

    # ------------------------------------------------------------------
    # Moving averages
    # ------------------------------------------------------------------

    @staticmethod
    def above_sma50(current: Quotation, snapshot: MovingAverageSnapshot | None) -> int:
        if snapshot is None or snapshot.sma50 == 0:
            return 0
        return 1 if current.close > snapshot.sma50 else 0

    @staticmethod
    def at_or_below_sma50(current: Quotation, snapshot: MovingAverageSnapshot | None) -> int:
        if snapshot is None or snapshot.sma50 == 0:
            return 0
        return 1 if current.close < snapshot.sma50 else 0

    @staticmethod
    def above_sma200(current: Quotation, snapshot: MovingAverageSnapshot | None) -> int:
        if snapshot is None or snapshot.sma200 == 0:
            return 0
        return 1 if current.close > snapshot.sma200 else 0

    @staticmethod
    def at_or_below_sma200(current: Quotation, snapshot: MovingAverageSnapshot | None) -> int:
        if snapshot is None or snapshot.sma200 == 0:
            return 0
        return 1 if current.close < snapshot.sma200 else 0

    @staticmethod
    def ritter_market_trend(
        current: Quotation,
        previous: Quotation,
        snapshot: MovingAverageSnapshot | None,
    ) -> int:
        """+1 for rising price on strong or falling price on weak volume, -1 otherwise.

        Strong volume means at least the SMA(30) of volume. An unchanged
        close, or a missing volume average, counts 0.
        """
        if snapshot is None or snapshot.sma30_volume == 0:
            return 0
        strong_volume = current.volume >= snapshot.sma30_volume
        if current.close > previous.close:
            return 1 if strong_volume else -1
        if current.close < previous.close:
            return -1 if strong_volume else 1
        return 0

    # ------------------------------------------------------------------
    # Patterns
    # ------------------------------------------------------------------

    def _count(self, name: str, evaluate: Callable[[], PatternResult], current: Quotation) -> int:
        """1 if the pattern occurred; 0 if it did not, was not applicable, or failed."""
        try:
            return 1 if occurred(evaluate()) else 0
        except Exception:
            logger.debug(
                "Pattern %s failed for quotation %d of %s; counted as 0",
                name,
                current.id,
                current.date,
                exc_info=True,
            )
            return 0

    def up_on_volume(
        self, current: Quotation, previous: Quotation, snapshot: MovingAverageSnapshot | None
    ) -> int:
        return self._count(
            "up_on_volume",
            lambda: self._patterns.up_on_volume(current, previous, snapshot),
            current,
        )

    def down_on_volume(
        self, current: Quotation, previous: Quotation, snapshot: MovingAverageSnapshot | None
    ) -> int:
        return self._count(
            "down_on_volume",
            lambda: self._patterns.down_on_volume(current, previous, snapshot),
            current,
        )

    def bearish_reversal(self, current: Quotation, snapshot: MovingAverageSnapshot | None) -> int:
        return self._count(
            "bearish_reversal", lambda: self._patterns.bearish_reversal(current, snapshot), current
        )

    def bullish_reversal(self, current: Quotation, snapshot: MovingAverageSnapshot | None) -> int:
        return self._count(
            "bullish_reversal", lambda: self._patterns.bullish_reversal(current, snapshot), current
        )

    def churning(
        self, current: Quotation, previous: Quotation, snapshot: MovingAverageSnapshot | None
    ) -> int:
        return self._count(
            "churning", lambda: self._patterns.churning(current, previous, snapshot), current
        )

    # ------------------------------------------------------------------
    # All counters
    # ------------------------------------------------------------------

    def classify(
        self,
        current: Quotation,
        previous: Quotation,
        snapshot: MovingAverageSnapshot | None,
    ) -> DailyBehavior:
        """Evaluate every counter for one instrument on one day."""
        return DailyBehavior(
            advance=self.advance(current, previous),
            decline=self.decline(current, previous),
            above_sma50=self.above_sma50(current, snapshot),
            at_or_below_sma50=self.at_or_below_sma50(current, snapshot),
            above_sma200=self.above_sma200(current, snapshot),
            at_or_below_sma200=self.at_or_below_sma200(current, snapshot),
            ritter_market_trend=self.ritter_market_trend(current, previous, snapshot),
            up_on_volume=self.up_on_volume(current, previous, snapshot),
            down_on_volume=self.down_on_volume(current, previous, snapshot),
            bearish_reversal=self.bearish_reversal(current, snapshot),
            bullish_reversal=self.bullish_reversal(current, snapshot),
            churning=self.churning(current, previous, snapshot),
        )

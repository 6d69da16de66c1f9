"""Catalogue of the health checks evaluated for an instrument's protocol.

Each check looks at one position of a date-descending quotation sequence
and returns the rationale text of a finding, or None. A check that lacks
the data it needs on a date (no previous quotation, no moving average
snapshot, too little history) also returns None for that date.

Checks are grouped into profiles; counting checks evaluate everything since
the start of the protocol and are left out of the ``*_WITHOUT_COUNTING``
profiles.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from Market_Health.analysis.patterns import PatternDetector, occurred
from Market_Health.config import TRADING_DAYS_PER_YEAR, EngineConfig
from Market_Health.indicators.performance import (
    price_performance,
    price_performance_for_days,
    quotation_performance,
)
from Market_Health.models.enums import HealthCheckProfile, ProtocolEntryCategory
from Market_Health.models.market_data import Quotation, QuotationSequence
from Market_Health.models.snapshots import MovingAverageSnapshot, SnapshotTable
from Market_Health.utils.rounding import round_half_up


@dataclass(frozen=True)
class CheckContext:
    """Everything a check may look at while a protocol is built."""

    quotations: QuotationSequence
    moving_averages: SnapshotTable[MovingAverageSnapshot]
    patterns: PatternDetector
    config: EngineConfig
    start_index: int

    def snapshot(self, index: int) -> MovingAverageSnapshot | None:
        return self.moving_averages.get(self.quotations[index])


CheckFunction = Callable[[CheckContext, int], str | None]


@dataclass(frozen=True)
class HealthCheck:
    """A named check with the category of the findings it produces."""

    name: str
    category: ProtocolEntryCategory
    evaluate: CheckFunction
    counting: bool = False


# ---------------------------------------------------------------------------
# Moving averages
# ---------------------------------------------------------------------------


def _crossed_below(
    context: CheckContext,
    index: int,
    average: Callable[[MovingAverageSnapshot], Decimal],
) -> bool:
    previous = context.quotations.previous(index)
    current_snapshot = context.snapshot(index)
    if previous is None or current_snapshot is None:
        return False
    previous_snapshot = context.moving_averages.get(previous)
    if previous_snapshot is None:
        return False
    return (
        previous.close >= average(previous_snapshot)
        and context.quotations[index].close < average(current_snapshot)
    )


def close_below_sma50(context: CheckContext, index: int) -> str | None:
    if not _crossed_below(context, index, lambda snapshot: snapshot.sma50):
        return None
    current = context.quotations[index]
    snapshot = context.snapshot(index)
    if snapshot is None or snapshot.sma30_volume == 0:
        return "Close below SMA(50)"
    if current.volume >= snapshot.sma30_volume:
        return "Close below SMA(50) on volume above the 30-day average"
    return "Close below SMA(50) on volume below the 30-day average"


def close_below_ema21(context: CheckContext, index: int) -> str | None:
    if _crossed_below(context, index, lambda snapshot: snapshot.ema21):
        return "Close below EMA(21)"
    return None


def extended_above_sma200(context: CheckContext, index: int) -> str | None:
    snapshot = context.snapshot(index)
    if snapshot is None or snapshot.sma200 == 0:
        return None
    percent = price_performance(context.quotations[index].close, snapshot.sma200)
    if percent >= context.config.health_checks.extended_above_sma200_percent:
        return f"Price is {percent}% above the SMA(200)"
    return None


def _extended_above_sma50_threshold(context: CheckContext, index: int) -> Decimal | None:
    """Distance to the SMA(50) that only the top few percent of a year exceed."""
    distances: list[Decimal] = []
    for position in range(index, min(index + TRADING_DAYS_PER_YEAR, len(context.quotations))):
        snapshot = context.snapshot(position)
        if snapshot is None or snapshot.sma50 == 0:
            continue
        distances.append(price_performance(context.quotations[position].close, snapshot.sma50))
    if not distances:
        return None
    distances.sort(reverse=True)
    count = len(distances)
    top_percent = context.config.health_checks.extended_above_sma50_top_percent
    return distances[max(count - count * top_percent // 100 - 1, 0)]


def extended_above_sma50(context: CheckContext, index: int) -> str | None:
    snapshot = context.snapshot(index)
    if snapshot is None or snapshot.sma50 == 0:
        return None
    percent = price_performance(context.quotations[index].close, snapshot.sma50)
    threshold = _extended_above_sma50_threshold(context, index)
    if threshold is not None and percent > threshold:
        return f"Price is {percent}% above the SMA(50), extended compared to the last year"
    return None


# ---------------------------------------------------------------------------
# Highs and lows
# ---------------------------------------------------------------------------


def close_near_high(context: CheckContext, index: int) -> str | None:
    if context.patterns.close_near_high(context.quotations[index]):
        return "Close near the high of the day"
    return None


def close_near_low(context: CheckContext, index: int) -> str | None:
    if context.patterns.close_near_low(context.quotations[index]):
        return "Close near the low of the day"
    return None


def new_52_week_high(context: CheckContext, index: int) -> str | None:
    """Close above the highest close of the year up to the previous day."""
    quotations = context.quotations
    if quotations.previous(index) is None:
        return None
    highest_close = max(q.close for _, q in quotations.within_year(index + 1))
    if quotations[index].close > highest_close:
        return "New 52-week closing high"
    return None


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------


def up_on_volume(context: CheckContext, index: int) -> str | None:
    previous = context.quotations.previous(index)
    if previous is None:
        return None
    result = context.patterns.up_on_volume(
        context.quotations[index], previous, context.snapshot(index)
    )
    return "Up on above-average volume" if occurred(result) else None


def down_on_volume(context: CheckContext, index: int) -> str | None:
    previous = context.quotations.previous(index)
    if previous is None:
        return None
    result = context.patterns.down_on_volume(
        context.quotations[index], previous, context.snapshot(index)
    )
    return "Down on above-average volume" if occurred(result) else None


def churning(context: CheckContext, index: int) -> str | None:
    previous = context.quotations.previous(index)
    if previous is None:
        return None
    result = context.patterns.churning(context.quotations[index], previous, context.snapshot(index))
    return "Churning: little price progress on above-average volume" if occurred(result) else None


def high_volume_reversal(context: CheckContext, index: int) -> str | None:
    result = context.patterns.bearish_reversal(context.quotations[index], context.snapshot(index))
    return "Bearish reversal on above-average volume" if occurred(result) else None


def bullish_reversal(context: CheckContext, index: int) -> str | None:
    result = context.patterns.bullish_reversal(context.quotations[index], context.snapshot(index))
    return "Bullish reversal on above-average volume" if occurred(result) else None


def gap_up(context: CheckContext, index: int) -> str | None:
    previous = context.quotations.previous(index)
    if previous is None:
        return None
    size = context.patterns.gap_up_size(context.quotations[index], previous)
    if size >= context.patterns.thresholds.gap_up_percent:
        return f"Gap up of {size}%"
    return None


# ---------------------------------------------------------------------------
# Climax runs
# ---------------------------------------------------------------------------


def climax_one_week(context: CheckContext, index: int) -> str | None:
    climax = context.config.climax
    performance = price_performance_for_days(
        climax.one_week_days, context.quotations[index], context.quotations
    )
    if performance >= climax.one_week_percent:
        return f"Climax move of {performance}% within one week"
    return None


def climax_three_weeks(context: CheckContext, index: int) -> str | None:
    climax = context.config.climax
    performance = price_performance_for_days(
        climax.three_weeks_days, context.quotations[index], context.quotations
    )
    if performance >= climax.three_weeks_percent:
        return f"Climax move of {performance}% within three weeks"
    return None


def time_climax(context: CheckContext, index: int) -> str | None:
    climax = context.config.climax
    if index + climax.time_climax_days >= len(context.quotations):
        return None
    up_days, _, _ = count_up_and_down_days(
        context.quotations, index + climax.time_climax_days - 1, index
    )
    if up_days >= climax.time_climax_up_days:
        return f"Time climax: {up_days} up days out of {climax.time_climax_days}"
    return None


# ---------------------------------------------------------------------------
# Extremes of the last year
# ---------------------------------------------------------------------------


def _largest_of_year(
    context: CheckContext,
    index: int,
    measure: Callable[[int, Quotation], Decimal | None],
) -> Decimal | None:
    """Value of *measure* at *index* if it is the year's strict maximum, else None."""
    best_value = Decimal(0)
    best_position: int | None = None
    years = context.config.health_checks.extremum_lookback_years
    for position, quotation in context.quotations.within_year(index, years):
        value = measure(position, quotation)
        if value is not None and value > best_value:
            best_value = value
            best_position = position
    if best_position == index:
        return best_value
    return None


def largest_down_day(context: CheckContext, index: int) -> str | None:
    def decline(position: int, quotation: Quotation) -> Decimal | None:
        previous = context.quotations.previous(position)
        return None if previous is None else -quotation_performance(quotation, previous)

    value = _largest_of_year(context, index, decline)
    if value is None:
        return None
    return f"Largest down day of the last year: {-value}%"


def largest_up_day(context: CheckContext, index: int) -> str | None:
    def advance(position: int, quotation: Quotation) -> Decimal | None:
        previous = context.quotations.previous(position)
        return None if previous is None else quotation_performance(quotation, previous)

    value = _largest_of_year(context, index, advance)
    if value is None:
        return None
    return f"Largest up day of the last year: {value}%"


def largest_daily_spread(context: CheckContext, index: int) -> str | None:
    value = _largest_of_year(
        context, index, lambda _, quotation: price_performance(quotation.high, quotation.low)
    )
    if value is None:
        return None
    return f"Largest daily spread of the last year: {value}%"


def largest_daily_volume(context: CheckContext, index: int) -> str | None:
    value = _largest_of_year(context, index, lambda _, quotation: Decimal(quotation.volume))
    if value is None:
        return None
    return "Largest daily volume of the last year"


# ---------------------------------------------------------------------------
# Counting since the start of the protocol
# ---------------------------------------------------------------------------


def count_up_and_down_days(
    quotations: QuotationSequence, older: int, newer: int
) -> tuple[int, int, int]:
    """Up days, down days and days total from position *older* to *newer*.

    A day without a previous quotation cannot be judged and is not counted.
    """
    up_days = down_days = total = 0
    for position in range(older, newer - 1, -1):
        previous = quotations.previous(position)
        if previous is None:
            continue
        performance = quotation_performance(quotations[position], previous)
        if performance > 0:
            up_days += 1
        elif performance < 0:
            down_days += 1
        total += 1
    return up_days, down_days, total


def count_good_and_bad_closes(
    quotations: QuotationSequence, older: int, newer: int
) -> tuple[int, int, int]:
    """Good closes, bad closes and days total from position *older* to *newer*.

    A close above the middle of the daily range is good; a close exactly in
    the middle is bad.
    """
    good = bad = 0
    for position in range(older, newer - 1, -1):
        quotation = quotations[position]
        middle = round_half_up((quotation.low + quotation.high) / 2, 3)
        if quotation.close > middle:
            good += 1
        else:
            bad += 1
    return good, bad, good + bad


def more_down_than_up_days(context: CheckContext, index: int) -> str | None:
    if index == context.start_index:
        return None
    up_days, down_days, total = count_up_and_down_days(
        context.quotations, context.start_index, index
    )
    if down_days > up_days:
        return f"More down than up days: {down_days} of {total} days"
    return None


def more_up_than_down_days(context: CheckContext, index: int) -> str | None:
    if index == context.start_index:
        return None
    up_days, down_days, total = count_up_and_down_days(
        context.quotations, context.start_index, index
    )
    if up_days > down_days:
        return f"More up than down days: {up_days} of {total} days"
    return None


def more_bad_than_good_closes(context: CheckContext, index: int) -> str | None:
    if index == context.start_index:
        return None
    good, bad, total = count_good_and_bad_closes(context.quotations, context.start_index, index)
    if bad > good:
        return f"More bad than good closes: {bad} of {total} closes"
    return None


def more_good_than_bad_closes(context: CheckContext, index: int) -> str | None:
    if index == context.start_index:
        return None
    good, bad, total = count_good_and_bad_closes(context.quotations, context.start_index, index)
    if good > bad:
        return f"More good than bad closes: {good} of {total} closes"
    return None


# ---------------------------------------------------------------------------
# Catalogue and profiles
# ---------------------------------------------------------------------------

_CONFIRMATION = ProtocolEntryCategory.CONFIRMATION
_VIOLATION = ProtocolEntryCategory.VIOLATION
_UNCERTAIN = ProtocolEntryCategory.UNCERTAIN

HEALTH_CHECKS: dict[str, HealthCheck] = {
    check.name: check
    for check in (
        HealthCheck("close_below_sma50", _VIOLATION, close_below_sma50),
        HealthCheck("close_below_ema21", _VIOLATION, close_below_ema21),
        HealthCheck("extended_above_sma200", _UNCERTAIN, extended_above_sma200),
        HealthCheck("extended_above_sma50", _UNCERTAIN, extended_above_sma50),
        HealthCheck("close_near_high", _CONFIRMATION, close_near_high),
        HealthCheck("close_near_low", _VIOLATION, close_near_low),
        HealthCheck("new_52_week_high", _CONFIRMATION, new_52_week_high),
        HealthCheck("up_on_volume", _CONFIRMATION, up_on_volume),
        HealthCheck("down_on_volume", _VIOLATION, down_on_volume),
        HealthCheck("churning", _UNCERTAIN, churning),
        HealthCheck("high_volume_reversal", _VIOLATION, high_volume_reversal),
        HealthCheck("bullish_reversal", _CONFIRMATION, bullish_reversal),
        HealthCheck("gap_up", _UNCERTAIN, gap_up),
        HealthCheck("climax_one_week", _UNCERTAIN, climax_one_week),
        HealthCheck("climax_three_weeks", _UNCERTAIN, climax_three_weeks),
        HealthCheck("time_climax", _UNCERTAIN, time_climax),
        HealthCheck("largest_down_day", _VIOLATION, largest_down_day),
        HealthCheck("largest_up_day", _UNCERTAIN, largest_up_day),
        HealthCheck("largest_daily_spread", _UNCERTAIN, largest_daily_spread),
        HealthCheck("largest_daily_volume", _UNCERTAIN, largest_daily_volume),
        HealthCheck("more_down_than_up_days", _VIOLATION, more_down_than_up_days, counting=True),
        HealthCheck(
            "more_bad_than_good_closes", _VIOLATION, more_bad_than_good_closes, counting=True
        ),
        HealthCheck("more_up_than_down_days", _CONFIRMATION, more_up_than_down_days, counting=True),
        HealthCheck(
            "more_good_than_bad_closes", _CONFIRMATION, more_good_than_bad_closes, counting=True
        ),
    )
}


def _names(category: ProtocolEntryCategory | None, *, counting: bool) -> tuple[str, ...]:
    return tuple(
        check.name
        for check in HEALTH_CHECKS.values()
        if (category is None or check.category is category) and (counting or not check.counting)
    )


PROFILE_CHECKS: dict[HealthCheckProfile, tuple[str, ...]] = {
    HealthCheckProfile.ALL: _names(None, counting=True),
    HealthCheckProfile.ALL_WITHOUT_COUNTING: _names(None, counting=False),
    HealthCheckProfile.CONFIRMATIONS: _names(_CONFIRMATION, counting=True),
    HealthCheckProfile.CONFIRMATIONS_WITHOUT_COUNTING: _names(_CONFIRMATION, counting=False),
    HealthCheckProfile.SELLING_INTO_WEAKNESS: _names(_VIOLATION, counting=True),
    HealthCheckProfile.WEAKNESS_WITHOUT_COUNTING: _names(_VIOLATION, counting=False),
    HealthCheckProfile.SELLING_INTO_STRENGTH: _names(_UNCERTAIN, counting=True),
    HealthCheckProfile.AFTER_BREAKOUT: (
        "close_below_ema21",
        "close_below_sma50",
        "down_on_volume",
        "high_volume_reversal",
        "close_near_low",
        "up_on_volume",
        "close_near_high",
        "gap_up",
        "more_down_than_up_days",
        "more_bad_than_good_closes",
    ),
    HealthCheckProfile.REVERSAL_ALERT: (
        "high_volume_reversal",
        "bullish_reversal",
        "close_near_low",
        "close_near_high",
        "churning",
        "down_on_volume",
    ),
    HealthCheckProfile.INSTITUTIONS: (
        "up_on_volume",
        "down_on_volume",
        "churning",
        "high_volume_reversal",
        "bullish_reversal",
        "largest_daily_volume",
    ),
}


def checks_for_profile(profile: HealthCheckProfile) -> tuple[HealthCheck, ...]:
    return tuple(HEALTH_CHECKS[name] for name in PROFILE_CHECKS[profile])

"""Price performance indicators.

Performance is the percentage change between two prices. The price ratio is
rounded half-up to 4 places before 1 is subtracted, so every performance is
exact to 2 places.
"""

from decimal import Decimal

from Market_Health.config import TRADING_DAYS_PER_MONTH, TRADING_DAYS_PER_YEAR
from Market_Health.models.market_data import Quotation, QuotationSequence
from Market_Health.utils.rounding import HUNDRED, ZERO, round_half_up

RATIO_DECIMALS: int = 4
PERFORMANCE_DECIMALS: int = 2

# 3 month performance counts twice
RS_PERCENT_SUM_MONTHS: tuple[int, ...] = (3, 3, 6, 9, 12)


def price_performance(current: Decimal, previous: Decimal) -> Decimal:
    """Percentage change from *previous* to *current*, 2 places.

    Returns 0 if *previous* is 0.
    """
    if previous == 0:
        return ZERO
    ratio = round_half_up(current / previous, RATIO_DECIMALS)
    return round_half_up((ratio - 1) * HUNDRED, PERFORMANCE_DECIMALS)


def quotation_performance(current: Quotation, previous: Quotation) -> Decimal:
    """Close-to-close performance of two quotations."""
    return price_performance(current.close, previous.close)


def price_performance_for_days(
    days: int,
    quotation: Quotation,
    quotations: QuotationSequence,
) -> Decimal:
    """Performance of the close over the last ``days`` trading days.

    Compares the close of *quotation* with the close ``days`` quotations
    earlier. Returns 0 unless at least ``days + 1`` quotations remain.
    """
    index = quotations.index_of(quotation)
    if quotations.remaining(index) < days + 1:
        return ZERO
    return price_performance(quotation.close, quotations[index + days].close)


def rs_percent_sum(quotation: Quotation, quotations: QuotationSequence) -> Decimal:
    """Weighted sum of the 3, 6, 9 and 12 month performance.

    Each month counts 21 trading days; the 3 month performance is counted
    twice. Returns 0 unless a full year of history is available.
    """
    index = quotations.index_of(quotation)
    if quotations.remaining(index) < TRADING_DAYS_PER_YEAR:
        return ZERO

    total = ZERO
    for months in RS_PERCENT_SUM_MONTHS:
        then = quotations[index + TRADING_DAYS_PER_MONTH * months - 1]
        ratio = round_half_up(quotation.close / then.close, RATIO_DECIMALS)
        total += (ratio - 1) * HUNDRED
    return round_half_up(total, PERFORMANCE_DECIMALS)


def distance_to_52_week_high(quotation: Quotation, quotations: QuotationSequence) -> Decimal:
    """Performance of the close relative to the highest high of one year.

    Zero when the close is at the high, negative below it.
    """
    window = quotations.window(quotations.index_of(quotation), TRADING_DAYS_PER_YEAR)
    return price_performance(quotation.close, max(q.high for q in window))


def distance_to_52_week_low(quotation: Quotation, quotations: QuotationSequence) -> Decimal:
    """Performance of the close relative to the lowest low of one year."""
    window = quotations.window(quotations.index_of(quotation), TRADING_DAYS_PER_YEAR)
    return price_performance(quotation.close, min(q.low for q in window))

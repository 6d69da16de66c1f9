"""Volume indicators: accumulation/distribution ratio, up/down volume ratio, liquidity.

Each day is judged against the previous trading day, so a window of ``days``
needs ``days + 1`` quotations. Insufficient history yields 0.
"""

from decimal import Decimal

from Market_Health.models.market_data import Quotation, QuotationSequence
from Market_Health.utils.rounding import ZERO, round_half_up

RATIO_DECIMALS: int = 2


def _day_pairs(
    days: int, quotation: Quotation, quotations: QuotationSequence
) -> list[tuple[Quotation, Quotation]] | None:
    index = quotations.index_of(quotation)
    if days < 1 or quotations.remaining(index) < days + 1:
        return None
    return [(quotations[i], quotations[i + 1]) for i in range(index, index + days)]


def accumulation_distribution_ratio(
    days: int,
    quotation: Quotation,
    quotations: QuotationSequence,
) -> Decimal:
    """Accumulation days divided by distribution days, 2 places.

    Accumulation: close up on higher volume than the day before.
    Distribution: close down on higher volume than the day before.
    Without any distribution day the number of accumulation days is returned.
    """
    pairs = _day_pairs(days, quotation, quotations)
    if pairs is None:
        return ZERO
    accumulation = sum(
        1
        for current, previous in pairs
        if current.close > previous.close and current.volume > previous.volume
    )
    distribution = sum(
        1
        for current, previous in pairs
        if current.close < previous.close and current.volume > previous.volume
    )
    if distribution == 0:
        return round_half_up(accumulation, RATIO_DECIMALS)
    return round_half_up(Decimal(accumulation) / distribution, RATIO_DECIMALS)


def up_down_volume_ratio(
    days: int,
    quotation: Quotation,
    quotations: QuotationSequence,
) -> Decimal:
    """Volume of up days divided by volume of down days, 2 places.

    Returns 0 when there is no down volume in the window.
    """
    pairs = _day_pairs(days, quotation, quotations)
    if pairs is None:
        return ZERO
    up_volume = sum(c.volume for c, p in pairs if c.close > p.close)
    down_volume = sum(c.volume for c, p in pairs if c.close < p.close)
    if down_volume == 0:
        return ZERO
    return round_half_up(Decimal(up_volume) / down_volume, RATIO_DECIMALS)


def liquidity(days: int, quotation: Quotation, quotations: QuotationSequence) -> Decimal:
    """Average traded value (close * volume) over ``days`` quotations, whole number."""
    index = quotations.index_of(quotation)
    if days < 1 or quotations.remaining(index) < days:
        return ZERO
    traded = sum((q.close * q.volume for q in quotations.window(index, days)), ZERO)
    return round_half_up(traded / days, 0)

"""Moving average indicators: SMA, EMA and SMA of volume.

All functions take a reference quotation and the date-descending sequence it
belongs to. The averaging window starts at the reference quotation and walks
toward older history. Insufficient history is not an error: the functions
return 0, the sentinel for "not computable".
"""

from decimal import Decimal

from Market_Health.models.market_data import Quotation, QuotationSequence
from Market_Health.utils.rounding import ZERO, round_half_up, round_half_up_int

PRICE_DECIMALS: int = 3


def _average_close(period: int, index: int, quotations: QuotationSequence) -> Decimal:
    if period < 1 or quotations.remaining(index) < period:
        return ZERO
    total = sum((q.close for q in quotations.window(index, period)), ZERO)
    return round_half_up(total / period, PRICE_DECIMALS)


def simple_moving_average(
    period: int,
    quotation: Quotation,
    quotations: QuotationSequence,
) -> Decimal:
    """Simple moving average of the close.

    Sum of the closes of the ``period`` quotations starting at *quotation*,
    divided by ``period`` and rounded half-up to 3 places.

    Returns 0 if fewer than ``period`` quotations remain from *quotation*.
    """
    return _average_close(period, quotations.index_of(quotation), quotations)


def exponential_moving_average(
    period: int,
    quotation: Quotation,
    quotations: QuotationSequence,
) -> Decimal:
    """Exponential moving average of the close, seeded with an SMA.

    Smoothing multiplier: ``2 / (period + 1)``. The seed is the SMA at an
    anchor quotation:

    - ``2 * period`` or more quotations remain: anchor is ``period``
      quotations older than the reference, giving a full warm-up period.
    - exactly ``period`` remain: anchor is the reference itself and the EMA
      equals the SMA.
    - in between: anchor is the oldest quotation that still has a full SMA
      window, warming up over whatever history exists.

    From the anchor the EMA is rolled forward to the reference quotation with
    ``ema = multiplier * (close - ema) + ema``; the result is rounded half-up
    to 3 places. Returns 0 if fewer than ``period`` quotations remain.
    """
    index = quotations.index_of(quotation)
    remaining = quotations.remaining(index)
    if period < 1 or remaining < period:
        return ZERO

    if remaining >= 2 * period:
        anchor = index + period
    else:
        anchor = len(quotations) - period

    multiplier = Decimal(2) / Decimal(period + 1)
    ema = _average_close(period, anchor, quotations)
    for position in range(anchor - 1, index - 1, -1):
        close = quotations[position].close
        ema = multiplier * (close - ema) + ema

    return round_half_up(ema, PRICE_DECIMALS)


def simple_moving_average_volume(
    period: int,
    quotation: Quotation,
    quotations: QuotationSequence,
) -> int:
    """Simple moving average of the volume, rounded half-up to a whole number.

    Returns 0 if fewer than ``period`` quotations remain from *quotation*.
    """
    index = quotations.index_of(quotation)
    if period < 1 or quotations.remaining(index) < period:
        return 0
    total = sum(q.volume for q in quotations.window(index, period))
    return round_half_up_int(Decimal(total) / period)

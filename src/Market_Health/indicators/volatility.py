"""Volatility indicators: standard deviation, Bollinger BandWidth and its threshold.

BandWidth is reported in percent of the middle band. Degenerate inputs
(insufficient history, zero deviation, zero average) yield 0.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from Market_Health.indicators.moving_averages import simple_moving_average
from Market_Health.models.market_data import Quotation, QuotationSequence
from Market_Health.utils.rounding import HUNDRED, ZERO, round_half_up, to_decimal

logger = logging.getLogger(__name__)

DEVIATION_DECIMALS: int = 4
BAND_WIDTH_DECIMALS: int = 2


def standard_deviation(values: Iterable[Decimal | int | float]) -> Decimal:
    """Population standard deviation (divides by N), rounded half-up to 4 places.

    Returns 0 for an empty input.
    """
    numbers = [to_decimal(value) for value in values]
    if not numbers:
        return ZERO
    count = len(numbers)
    mean = sum(numbers, ZERO) / count
    variance = sum(((number - mean) ** 2 for number in numbers), ZERO) / count
    return round_half_up(variance.sqrt(), DEVIATION_DECIMALS)


def _band_width_at(
    period: int,
    standard_deviations: Decimal,
    index: int,
    quotations: QuotationSequence,
) -> Decimal:
    if period < 1 or quotations.remaining(index) < period:
        return ZERO
    deviation = standard_deviation(q.close for q in quotations.window(index, period))
    middle = simple_moving_average(period, quotations[index], quotations)
    if deviation == 0 or middle == 0:
        return ZERO
    upper = middle + deviation * standard_deviations
    lower = middle - deviation * standard_deviations
    return round_half_up((upper - lower) / middle * HUNDRED, BAND_WIDTH_DECIMALS)


def bollinger_band_width(
    period: int,
    standard_deviations: Decimal | int,
    quotation: Quotation,
    quotations: QuotationSequence,
) -> Decimal:
    """Bollinger BandWidth of the ``period`` closes starting at *quotation*.

    Middle band = SMA(period); upper/lower = middle +/- k * stddev.
    BandWidth = (upper - lower) / middle * 100, rounded half-up to 2 places.

    Returns 0 if fewer than ``period`` quotations remain, or if the standard
    deviation or the SMA is 0.
    """
    return _band_width_at(
        period, to_decimal(standard_deviations), quotations.index_of(quotation), quotations
    )


def bollinger_band_width_threshold(
    period: int,
    standard_deviations: Decimal | int,
    percent_threshold: int,
    quotation: Quotation,
    quotations: QuotationSequence,
) -> Decimal:
    """BandWidth value below or at which ``percent_threshold`` % of the history lies.

    BandWidth is computed for every quotation from *quotation* back to the
    oldest one with a full window. Zero values are discarded, the rest is
    sorted descending and the value at position
    ``N - N * percent_threshold // 100 - 1`` is returned (N = number of
    non-zero values). A threshold of 100 % selects the largest value.

    Returns 0 if fewer than ``period`` quotations remain from *quotation*.
    """
    index = quotations.index_of(quotation)
    if period < 1 or quotations.remaining(index) < period:
        return ZERO

    k = to_decimal(standard_deviations)
    widths = [
        width
        for position in range(index, len(quotations) - period + 1)
        if (width := _band_width_at(period, k, position, quotations)) > 0
    ]
    if not widths:
        logger.debug("No non-zero BandWidth values from %s", quotation.date)
        return ZERO

    widths.sort(reverse=True)
    count = len(widths)
    position = count - (count * percent_threshold) // 100 - 1
    return widths[max(position, 0)]

"""Composite quotations built from the quotations of component instruments."""

import datetime
import logging
from collections.abc import Sequence
from decimal import Decimal

from Market_Health.models.market_data import Quotation, QuotationSequence
from Market_Health.utils.rounding import ZERO, round_half_up, round_half_up_int

logger = logging.getLogger(__name__)

PRICE_DECIMALS: int = 3


def _mean_price(values: Sequence[Decimal]) -> Decimal:
    return round_half_up(sum(values, ZERO) / len(values), PRICE_DECIMALS)


def _quotations_of_date(
    components: Sequence[QuotationSequence], date: datetime.date
) -> list[Quotation]:
    day: list[Quotation] = []
    for component in components:
        index = component.index_of_date(date)
        if index is not None:
            day.append(component[index])
    return day


def average_quotations(
    components: Sequence[QuotationSequence],
    *,
    instrument_id: int,
    first_id: int = 1,
) -> QuotationSequence:
    """Average the components' quotations date by date.

    Open, high, low and close are averaged and rounded half-up to 3 places,
    volume to a whole number. Only dates every component has a quotation
    for are used. Ids are assigned from *first_id* upward, oldest date first.
    """
    if not components:
        return QuotationSequence()

    common_dates = set.intersection(*({q.date for q in component} for component in components))
    logger.debug(
        "Averaging %d components over %d common dates", len(components), len(common_dates)
    )

    averaged: list[Quotation] = []
    for offset, date in enumerate(sorted(common_dates)):
        day = _quotations_of_date(components, date)
        averaged.append(
            Quotation(
                id=first_id + offset,
                instrument_id=instrument_id,
                date=date,
                open=_mean_price([q.open for q in day]),
                high=_mean_price([q.high for q in day]),
                low=_mean_price([q.low for q in day]),
                close=_mean_price([q.close for q in day]),
                volume=round_half_up_int(Decimal(sum(q.volume for q in day)) / len(day)),
                currency=day[0].currency,
            )
        )
    return QuotationSequence(averaged)

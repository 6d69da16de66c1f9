"""Shared test fixtures for the Market Health test suite.

Provides realistic sample instances of the core models and a factory for
quotation sequences so tests don't need to inline large construction
blocks.
"""

import datetime
from collections.abc import Callable, Sequence
from decimal import Decimal

import pandas as pd
import pytest

from Market_Health.config import EngineConfig
from Market_Health.models import (
    Instrument,
    InstrumentHistory,
    InstrumentType,
    MovingAverageSnapshot,
    Quotation,
    QuotationSequence,
)

QuotationFactory = Callable[..., QuotationSequence]

FIRST_TRADING_DAY = datetime.date(2024, 1, 2)


def build_quotations(
    closes: Sequence[Decimal | int | str],
    *,
    volumes: Sequence[int] | None = None,
    instrument_id: int = 1,
    first_id: int = 1,
    start: datetime.date = FIRST_TRADING_DAY,
) -> QuotationSequence:
    """Quotations on consecutive business days, *closes* given oldest first.

    Open equals close, high and low are one unit above and below.
    """
    dates = pd.bdate_range(start, periods=len(closes))
    volumes = volumes or [1_000_000] * len(closes)
    quotations = []
    for offset, (day, close, volume) in enumerate(zip(dates, closes, volumes, strict=True)):
        price = Decimal(str(close))
        quotations.append(
            Quotation(
                id=first_id + offset,
                instrument_id=instrument_id,
                date=day.date(),
                open=price,
                high=price + 1,
                low=price - 1,
                close=price,
                volume=volume,
            )
        )
    return QuotationSequence(quotations)


@pytest.fixture()
def make_quotations() -> QuotationFactory:
    """Factory building a QuotationSequence from closes, oldest first."""
    return build_quotations


@pytest.fixture()
def engine_config() -> EngineConfig:
    """The default engine configuration."""
    return EngineConfig()


@pytest.fixture()
def sample_quotation() -> Quotation:
    """A valid daily quotation with realistic AAPL data."""
    return Quotation(
        id=1,
        instrument_id=1,
        date=datetime.date(2025, 1, 15),
        open=Decimal("185.50"),
        high=Decimal("187.25"),
        low=Decimal("184.10"),
        close=Decimal("186.75"),
        volume=52_340_000,
    )


@pytest.fixture()
def sample_instrument() -> Instrument:
    """A stock instrument."""
    return Instrument(id=1, symbol="AAPL", name="Apple Inc.", type=InstrumentType.STOCK)


@pytest.fixture()
def rising_history(sample_instrument: Instrument) -> InstrumentHistory:
    """300 trading days of steadily rising closes."""
    closes = [Decimal(100) + Decimal("0.5") * i for i in range(300)]
    return InstrumentHistory(instrument=sample_instrument, quotations=build_quotations(closes))


@pytest.fixture()
def volume_snapshot() -> MovingAverageSnapshot:
    """Moving averages with a 30-day volume average of 1,000,000."""
    return MovingAverageSnapshot(
        sma50=Decimal(100),
        sma200=Decimal(90),
        sma30_volume=1_000_000,
    )

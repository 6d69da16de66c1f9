"""Market data models: instruments, daily quotations and quotation sequences.

All price fields use Decimal with custom serializers to prevent silent float
conversion in JSON roundtrips. A QuotationSequence is always ordered by date
descending: index 0 is the most recent quotation and higher indices walk
toward older history.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import overload

import pandas as pd
from pydantic import BaseModel, ConfigDict, field_serializer, field_validator

from Market_Health.models.enums import InstrumentType

logger = logging.getLogger(__name__)

FRAME_COLUMNS: tuple[str, ...] = (
    "id",
    "instrument_id",
    "date",
    "open",
    "high",
    "low",
    "close",
    "volume",
)


class Instrument(BaseModel):
    """Metadata of a tradable instrument.

    Frozen because instrument metadata is a snapshot supplied by persistence.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    symbol: str
    name: str
    type: InstrumentType


class Quotation(BaseModel):
    """A single daily OHLCV quotation of an instrument.

    Frozen because historical market data is never mutated after creation.
    Derived values (moving averages, relative strength) live in separate
    snapshot tables keyed by the quotation id.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    instrument_id: int
    date: datetime.date
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: int
    currency: str = "USD"

    @field_validator("date", mode="before")
    @classmethod
    def strip_intraday(cls, value: object) -> object:
        """Drop the time component when a datetime is supplied."""
        if isinstance(value, datetime.datetime):
            return value.date()
        return value

    @field_validator("volume")
    @classmethod
    def validate_volume(cls, value: int) -> int:
        """Volume must be non-negative."""
        if value < 0:
            msg = f"volume must be >= 0, got {value}"
            raise ValueError(msg)
        return value

    @field_serializer("open", "high", "low", "close")
    def serialize_decimal(self, value: Decimal) -> str:
        """Serialize Decimal fields as strings to preserve precision."""
        return str(value)


class QuotationSequence(Sequence[Quotation]):
    """Date-descending quotations of one instrument.

    The constructor sorts its input newest-first and rejects two quotations
    sharing a calendar date.
    """

    def __init__(self, quotations: Iterable[Quotation] = ()) -> None:
        ordered = sorted(quotations, key=lambda q: q.date, reverse=True)
        self._index_by_date: dict[datetime.date, int] = {}
        for index, quotation in enumerate(ordered):
            if quotation.date in self._index_by_date:
                msg = f"duplicate quotation date {quotation.date.isoformat()}"
                raise ValueError(msg)
            self._index_by_date[quotation.date] = index
        self._quotations: tuple[Quotation, ...] = tuple(ordered)

    @overload
    def __getitem__(self, index: int) -> Quotation: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[Quotation, ...]: ...

    def __getitem__(self, index: int | slice) -> Quotation | tuple[Quotation, ...]:
        return self._quotations[index]

    def __len__(self) -> int:
        return len(self._quotations)

    def __iter__(self) -> Iterator[Quotation]:
        return iter(self._quotations)

    def __repr__(self) -> str:
        if not self._quotations:
            return "QuotationSequence([])"
        return (
            f"QuotationSequence({len(self)} quotations, "
            f"{self._quotations[-1].date.isoformat()}..{self._quotations[0].date.isoformat()})"
        )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def newest(self) -> Quotation | None:
        """The most recent quotation, or None for an empty sequence."""
        return self._quotations[0] if self._quotations else None

    def index_of(self, quotation: Quotation) -> int:
        """Position of *quotation*, matched by its date.

        Raises:
            ValueError: If no quotation of that date is part of the sequence.
        """
        index = self._index_by_date.get(quotation.date)
        if index is None or self._quotations[index].id != quotation.id:
            msg = f"quotation {quotation.id} of {quotation.date.isoformat()} is not in the sequence"
            raise ValueError(msg)
        return index

    def index_of_date(self, date: datetime.date) -> int | None:
        """Position of the quotation on *date*, or None."""
        return self._index_by_date.get(date)

    def index_of_date_at_or_after(self, date: datetime.date) -> int:
        """Index of the oldest quotation dated on or after *date*, -1 if none."""
        found = -1
        for index, quotation in enumerate(self._quotations):
            if quotation.date >= date:
                found = index
        return found

    def contains_date(self, date: datetime.date) -> bool:
        return date in self._index_by_date

    def previous(self, index: int) -> Quotation | None:
        """The quotation one trading day older than *index*, or None."""
        if index + 1 < len(self._quotations):
            return self._quotations[index + 1]
        return None

    def remaining(self, index: int) -> int:
        """Number of quotations from *index* (inclusive) to the oldest one."""
        return len(self._quotations) - index

    def window(self, index: int, size: int) -> tuple[Quotation, ...]:
        """Up to *size* quotations starting at *index* and walking back in time."""
        return self._quotations[index : index + size]

    def within_year(self, index: int, years: int = 1) -> Iterator[tuple[int, Quotation]]:
        """Quotations dated within *years* before the quotation at *index*.

        Yields ``(position, quotation)`` pairs from *index* toward older
        history, stopping at the first quotation older than the cutoff.
        """
        end = self._quotations[index].date
        try:
            cutoff = end.replace(year=end.year - years)
        except ValueError:
            # 29 February
            cutoff = end.replace(year=end.year - years, day=28)
        for position in range(index, len(self._quotations)):
            quotation = self._quotations[position]
            if quotation.date < cutoff:
                break
            yield position, quotation

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def price_high(self) -> Decimal:
        """Highest high of the sequence; 0 when empty."""
        return max((q.high for q in self._quotations), default=Decimal(0))

    def price_low(self) -> Decimal:
        """Lowest low of the sequence; 0 when empty."""
        return min((q.low for q in self._quotations), default=Decimal(0))

    def newest_age_in_days(self, today: datetime.date) -> int:
        """Calendar days between the newest quotation and *today*; 0 when empty."""
        if not self._quotations:
            return 0
        return (today - self._quotations[0].date).days

    def to_frame(self) -> pd.DataFrame:
        """Quotations as a DataFrame indexed by date, oldest row first.

        Price columns keep their Decimal values (object dtype).
        """
        rows = [
            {column: getattr(q, column) for column in FRAME_COLUMNS}
            for q in reversed(self._quotations)
        ]
        frame = pd.DataFrame(rows, columns=list(FRAME_COLUMNS))
        return frame.set_index("date", drop=False)

    def weekly(self) -> QuotationSequence:
        """Aggregate daily quotations into weekly bars (Monday to Sunday).

        A weekly bar takes date and open of the first trading day of the
        week, close of the last one, the extreme high and low and the summed
        volume. Its id is the id of the last trading day of the week.
        """
        if not self._quotations:
            return QuotationSequence()

        frame = self.to_frame().reset_index(drop=True)
        week = pd.to_datetime(frame["date"]).dt.to_period("W")
        bars = frame.groupby(week, sort=True).agg(
            id=("id", "last"),
            instrument_id=("instrument_id", "last"),
            date=("date", "first"),
            open=("open", "first"),
            high=("high", "max"),
            low=("low", "min"),
            close=("close", "last"),
            volume=("volume", "sum"),
        )
        currency = self._quotations[0].currency
        weekly = [
            Quotation(
                id=int(row.id),
                instrument_id=int(row.instrument_id),
                date=row.date,
                open=row.open,
                high=row.high,
                low=row.low,
                close=row.close,
                volume=int(row.volume),
                currency=currency,
            )
            for row in bars.itertuples(index=False)
        ]
        logger.debug("Aggregated %d daily quotations into %d weeks", len(self), len(weekly))
        return QuotationSequence(weekly)


@dataclass(frozen=True)
class InstrumentHistory:
    """An instrument together with its quotation sequence."""

    instrument: Instrument
    quotations: QuotationSequence

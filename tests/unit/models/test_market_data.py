"""Tests for the market data models: Instrument, Quotation, QuotationSequence."""

import datetime
from collections.abc import Callable
from decimal import Decimal

import pytest
from pydantic import ValidationError

from Market_Health.models import Instrument, InstrumentType, Quotation, QuotationSequence

QuotationFactory = Callable[..., QuotationSequence]


def _quotation(day: datetime.date, close: str = "100", quotation_id: int = 1) -> Quotation:
    price = Decimal(close)
    return Quotation(
        id=quotation_id,
        instrument_id=1,
        date=day,
        open=price,
        high=price,
        low=price,
        close=price,
        volume=1000,
    )


class TestQuotation:
    """Tests for the Quotation model."""

    def test_valid_construction(self, sample_quotation: Quotation) -> None:
        assert sample_quotation.close == Decimal("186.75")
        assert sample_quotation.currency == "USD"

    def test_frozen(self, sample_quotation: Quotation) -> None:
        with pytest.raises(ValidationError):
            sample_quotation.close = Decimal(1)  # type: ignore[misc]

    def test_negative_volume_rejected(self) -> None:
        with pytest.raises(ValidationError, match="volume must be >= 0"):
            Quotation(
                id=1,
                instrument_id=1,
                date=datetime.date(2025, 1, 15),
                open=Decimal(1),
                high=Decimal(1),
                low=Decimal(1),
                close=Decimal(1),
                volume=-1,
            )

    def test_datetime_is_reduced_to_date(self) -> None:
        quotation = _quotation(datetime.datetime(2025, 1, 15, 22, 0))  # type: ignore[arg-type]
        assert quotation.date == datetime.date(2025, 1, 15)

    def test_decimal_serialized_as_string(self, sample_quotation: Quotation) -> None:
        dumped = sample_quotation.model_dump(mode="json")
        assert dumped["close"] == "186.75"
        assert Quotation.model_validate_json(sample_quotation.model_dump_json()) == sample_quotation


class TestInstrument:
    """Tests for the Instrument model."""

    def test_type_is_enum(self, sample_instrument: Instrument) -> None:
        assert sample_instrument.type is InstrumentType.STOCK

    def test_invalid_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Instrument(id=1, symbol="X", name="X", type="bond")  # type: ignore[arg-type]


class TestQuotationSequenceOrdering:
    """The sequence is always newest first and unique per date."""

    def test_sorted_newest_first(self) -> None:
        older = _quotation(datetime.date(2025, 1, 14), quotation_id=1)
        newer = _quotation(datetime.date(2025, 1, 15), quotation_id=2)
        sequence = QuotationSequence([older, newer])
        assert sequence[0] is newer
        assert sequence.newest is newer

    def test_duplicate_date_rejected(self) -> None:
        day = datetime.date(2025, 1, 15)
        with pytest.raises(ValueError, match="duplicate quotation date"):
            QuotationSequence([_quotation(day, quotation_id=1), _quotation(day, quotation_id=2)])

    def test_empty(self) -> None:
        sequence = QuotationSequence()
        assert len(sequence) == 0
        assert sequence.newest is None
        assert sequence.price_high() == Decimal(0)
        assert sequence.price_low() == Decimal(0)
        assert "[]" in repr(sequence)


class TestQuotationSequenceLookup:
    """Tests for index and window helpers."""

    def test_index_of(self, make_quotations: QuotationFactory) -> None:
        sequence = make_quotations([100, 101, 102])
        assert sequence.index_of(sequence[2]) == 2

    def test_index_of_foreign_quotation(self, make_quotations: QuotationFactory) -> None:
        sequence = make_quotations([100, 101, 102])
        other = make_quotations([100, 101, 102], first_id=50)
        with pytest.raises(ValueError, match="not in the sequence"):
            sequence.index_of(other[0])

    def test_index_of_date_at_or_after(self, make_quotations: QuotationFactory) -> None:
        # Tue 2 Jan .. Thu 4 Jan 2024
        sequence = make_quotations([100, 101, 102])
        assert sequence.index_of_date_at_or_after(datetime.date(2024, 1, 3)) == 1
        assert sequence.index_of_date_at_or_after(datetime.date(2023, 12, 30)) == 2
        assert sequence.index_of_date_at_or_after(datetime.date(2024, 1, 5)) == -1

    def test_price_extremes(self, make_quotations: QuotationFactory) -> None:
        sequence = make_quotations([100, 105, 103])
        assert sequence.price_high() == Decimal(106)
        assert sequence.price_low() == Decimal(99)

    def test_contains_date(self, make_quotations: QuotationFactory) -> None:
        sequence = make_quotations([100, 101])
        assert sequence.contains_date(datetime.date(2024, 1, 3))
        assert not sequence.contains_date(datetime.date(2024, 1, 4))

    def test_previous_and_remaining(self, make_quotations: QuotationFactory) -> None:
        sequence = make_quotations([100, 101, 102])
        assert sequence.previous(0) is sequence[1]
        assert sequence.previous(2) is None
        assert sequence.remaining(1) == 2

    def test_window_is_clipped(self, make_quotations: QuotationFactory) -> None:
        sequence = make_quotations([100, 101, 102])
        assert len(sequence.window(1, 5)) == 2

    def test_within_year_stops_at_cutoff(self) -> None:
        dates = [
            datetime.date(2024, 1, 10),
            datetime.date(2024, 6, 3),
            datetime.date(2025, 1, 10),
            datetime.date(2025, 1, 9),
        ]
        sequence = QuotationSequence(
            _quotation(day, quotation_id=i) for i, day in enumerate(dates, start=1)
        )
        positions = [position for position, _ in sequence.within_year(0)]
        # 2024-01-10 is exactly one year back and still included
        assert positions == [0, 1, 2, 3]
        assert [position for position, _ in sequence.within_year(1)] == [1, 2, 3]

    def test_within_year_leap_day(self) -> None:
        sequence = QuotationSequence(
            [
                _quotation(datetime.date(2024, 2, 29), quotation_id=1),
                _quotation(datetime.date(2023, 2, 27), quotation_id=2),
            ]
        )
        assert [position for position, _ in sequence.within_year(0)] == [0]

    def test_newest_age_in_days(self, make_quotations: QuotationFactory) -> None:
        sequence = make_quotations([100, 101])  # newest is Wed 3 Jan 2024
        assert sequence.newest_age_in_days(datetime.date(2024, 1, 10)) == 7


class TestQuotationSequenceFrames:
    """Tests for the pandas conversions."""

    def test_to_frame_oldest_first(self, make_quotations: QuotationFactory) -> None:
        frame = make_quotations([100, 101, 102]).to_frame()
        assert list(frame["close"]) == [Decimal(100), Decimal(101), Decimal(102)]
        assert frame.index[0] == datetime.date(2024, 1, 2)

    def test_weekly_bars(self, make_quotations: QuotationFactory) -> None:
        # Tue 2 Jan .. Fri 5 Jan, Mon 8 Jan .. Thu 11 Jan 2024
        closes = [100, 104, 98, 101, 102, 103, 107, 105]
        volumes = [10, 20, 30, 40, 50, 60, 70, 80]
        sequence = make_quotations(closes, volumes=volumes)
        weekly = sequence.weekly()

        assert len(weekly) == 2
        newest_week, first_week = weekly[0], weekly[1]
        assert first_week.date == datetime.date(2024, 1, 2)
        assert first_week.open == Decimal(100)
        assert first_week.close == Decimal(101)
        assert first_week.high == Decimal(105)
        assert first_week.low == Decimal(97)
        assert first_week.volume == 100
        assert first_week.id == 4
        assert newest_week.date == datetime.date(2024, 1, 8)
        assert newest_week.close == Decimal(105)
        assert newest_week.id == 8

    def test_weekly_of_empty(self) -> None:
        assert len(QuotationSequence().weekly()) == 0

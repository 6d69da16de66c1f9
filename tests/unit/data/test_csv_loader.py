"""Tests for loading quotations from CSV files."""

from __future__ import annotations

import datetime
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

from Market_Health.data.csv_loader import (
    CsvQuotationProvider,
    frame_to_quotations,
    load_histories,
    load_history,
    read_quotation_frame,
)
from Market_Health.models import InstrumentType
from Market_Health.utils.exceptions import QuotationDataError

HEADER: str = "Date,Open,High,Low,Close,Volume"

ROWS: list[str] = [
    "2024-01-02,185.50,187.25,184.10,186.75,52340000",
    "2024-01-03,186.00,188.00,185.00,187.10,48000000",
    "2024-01-04,187.00,187.50,183.90,184.25,61000000",
]


def _write_csv(path: Path, rows: list[str], header: str = HEADER) -> Path:
    path.write_text("\n".join([header, *rows]) + "\n")
    return path


# ---------------------------------------------------------------------------
# read_quotation_frame
# ---------------------------------------------------------------------------


class TestReadQuotationFrame:
    """Tests for read_quotation_frame()."""

    def test_columns_lowercased(self, tmp_path: Path) -> None:
        df = read_quotation_frame(_write_csv(tmp_path / "aapl.csv", ROWS), "AAPL")
        assert list(df.columns) == ["date", "open", "high", "low", "close", "volume"]
        assert len(df) == 3

    def test_missing_columns(self, tmp_path: Path) -> None:
        path = _write_csv(tmp_path / "aapl.csv", ["2024-01-02,1,2"], header="Date,Open,Close")
        with pytest.raises(QuotationDataError, match="Missing columns.*high, low, volume") as exc:
            read_quotation_frame(path, "AAPL")
        assert exc.value.symbol == "AAPL"
        assert exc.value.source == "csv"

    def test_header_only(self, tmp_path: Path) -> None:
        with pytest.raises(QuotationDataError, match="No quotations"):
            read_quotation_frame(_write_csv(tmp_path / "aapl.csv", []), "AAPL")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.csv"
        path.write_text("")
        with pytest.raises(QuotationDataError, match="Cannot read"):
            read_quotation_frame(path, "EMPTY")

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(QuotationDataError, match="Cannot read"):
            read_quotation_frame(tmp_path / "missing.csv", "MISSING")


# ---------------------------------------------------------------------------
# frame_to_quotations / load_history
# ---------------------------------------------------------------------------


class TestFrameToQuotations:
    """Tests for frame_to_quotations()."""

    def test_newest_first_with_exact_prices(self, tmp_path: Path) -> None:
        df = read_quotation_frame(_write_csv(tmp_path / "aapl.csv", ROWS), "AAPL")
        quotations = frame_to_quotations(df, instrument_id=7, symbol="AAPL", first_id=10)

        newest = quotations[0]
        assert newest.date == datetime.date(2024, 1, 4)
        assert newest.close == Decimal("184.25")
        assert newest.volume == 61_000_000
        assert newest.instrument_id == 7
        # Ids follow file order
        assert [q.id for q in quotations] == [12, 11, 10]

    def test_malformed_rows_skipped(self, tmp_path: Path) -> None:
        rows = [
            *ROWS,
            "2024-01-05,abc,1,1,1,100",
            "not-a-date,1,2,0.5,1,100",
            "2024-01-08,1,2,0.5,1,",
        ]
        df = read_quotation_frame(_write_csv(tmp_path / "aapl.csv", rows), "AAPL")
        quotations = frame_to_quotations(df, instrument_id=1, symbol="AAPL")
        assert len(quotations) == 3

    def test_duplicate_dates(self) -> None:
        df = pd.DataFrame(
            {
                "date": ["2024-01-02", "2024-01-02"],
                "open": ["1", "1"],
                "high": ["2", "2"],
                "low": ["0.5", "0.5"],
                "close": ["1", "1"],
                "volume": ["100", "100"],
            }
        )
        with pytest.raises(QuotationDataError, match="duplicate quotation date"):
            frame_to_quotations(df, instrument_id=1, symbol="DUP")


class TestLoadHistory:
    """Tests for load_history() and load_histories()."""

    def test_symbol_from_file_name(self, tmp_path: Path) -> None:
        history = load_history(_write_csv(tmp_path / "msft.csv", ROWS))
        assert history.instrument.symbol == "MSFT"
        assert history.instrument.type is InstrumentType.STOCK
        assert len(history.quotations) == 3

    def test_explicit_symbol_and_type(self, tmp_path: Path) -> None:
        history = load_history(
            _write_csv(tmp_path / "spy.csv", ROWS),
            instrument_id=3,
            instrument_type=InstrumentType.ETF,
            symbol="SPY",
        )
        assert history.instrument.id == 3
        assert history.instrument.symbol == "SPY"
        assert history.instrument.type is InstrumentType.ETF

    def test_no_valid_rows(self, tmp_path: Path) -> None:
        path = _write_csv(tmp_path / "bad.csv", ["garbage,1,2,0.5,1,100"])
        with pytest.raises(QuotationDataError, match="No valid quotations"):
            load_history(path)

    def test_ids_unique_across_files(self, tmp_path: Path) -> None:
        paths = [
            _write_csv(tmp_path / "aapl.csv", ROWS),
            _write_csv(tmp_path / "msft.csv", ROWS[:2]),
        ]
        histories = load_histories(paths)
        assert [h.instrument.id for h in histories] == [1, 2]
        ids = [q.id for h in histories for q in h.quotations]
        assert sorted(ids) == [1, 2, 3, 4, 5]


class TestCsvQuotationProvider:
    """Tests for CsvQuotationProvider."""

    @pytest.mark.asyncio()
    async def test_serves_loaded_histories(self, tmp_path: Path) -> None:
        provider = CsvQuotationProvider.from_paths(
            [_write_csv(tmp_path / "aapl.csv", ROWS), _write_csv(tmp_path / "msft.csv", ROWS)]
        )
        assert provider.instrument_ids == (1, 2)
        history = await provider.get_history(2)
        assert history.instrument.symbol == "MSFT"

    @pytest.mark.asyncio()
    async def test_unknown_instrument(self, tmp_path: Path) -> None:
        provider = CsvQuotationProvider.from_paths([_write_csv(tmp_path / "aapl.csv", ROWS)])
        with pytest.raises(QuotationDataError, match="instrument 5"):
            await provider.get_history(5)

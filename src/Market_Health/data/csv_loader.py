"""Load daily quotations from CSV files.

Expected columns (case-insensitive): date, open, high, low, close, volume.
Prices are read as text so they reach Decimal without float rounding.
"""

from __future__ import annotations

import logging
from decimal import InvalidOperation
from pathlib import Path

import pandas as pd
from pydantic import ValidationError

from Market_Health.models.enums import InstrumentType
from Market_Health.models.market_data import (
    Instrument,
    InstrumentHistory,
    Quotation,
    QuotationSequence,
)
from Market_Health.utils.exceptions import QuotationDataError
from Market_Health.utils.rounding import to_decimal

logger = logging.getLogger(__name__)

CSV_SOURCE: str = "csv"
REQUIRED_COLUMNS: tuple[str, ...] = ("date", "open", "high", "low", "close", "volume")


def read_quotation_frame(path: Path, symbol: str) -> pd.DataFrame:
    """Read and validate the raw CSV of one instrument."""
    try:
        df = pd.read_csv(path, dtype=str)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise QuotationDataError(
            f"Cannot read quotations of {symbol} from {path}: {exc}",
            source=CSV_SOURCE,
            symbol=symbol,
        ) from exc

    df.columns = [str(column).strip().lower() for column in df.columns]
    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise QuotationDataError(
            f"Missing columns in {path}: {', '.join(missing)}",
            source=CSV_SOURCE,
            symbol=symbol,
        )
    if df.empty:
        raise QuotationDataError(f"No quotations in {path}", source=CSV_SOURCE, symbol=symbol)
    return df


def frame_to_quotations(
    df: pd.DataFrame, *, instrument_id: int, symbol: str, first_id: int = 1
) -> QuotationSequence:
    """Convert a quotation frame into a QuotationSequence.

    Malformed rows are skipped with a warning. Ids are assigned in file
    order starting at *first_id*.
    """
    quotations: list[Quotation] = []
    next_id = first_id
    for row in df.itertuples(index=False):
        try:
            quotation = Quotation(
                id=next_id,
                instrument_id=instrument_id,
                date=pd.Timestamp(str(row.date).strip()).date(),
                open=to_decimal(row.open.strip()),
                high=to_decimal(row.high.strip()),
                low=to_decimal(row.low.strip()),
                close=to_decimal(row.close.strip()),
                volume=int(to_decimal(row.volume.strip())),
            )
        except (AttributeError, ValueError, InvalidOperation, ValidationError):
            logger.warning("Skipping malformed quotation row for %s: %s", symbol, row)
            continue
        quotations.append(quotation)
        next_id += 1

    try:
        return QuotationSequence(quotations)
    except ValueError as exc:
        raise QuotationDataError(str(exc), source=CSV_SOURCE, symbol=symbol) from exc


def load_history(
    path: Path,
    *,
    instrument_id: int = 1,
    instrument_type: InstrumentType = InstrumentType.STOCK,
    symbol: str | None = None,
    first_quotation_id: int = 1,
) -> InstrumentHistory:
    """Load the history of one instrument; the symbol defaults to the file name."""
    resolved_symbol = symbol or path.stem.upper()
    df = read_quotation_frame(path, resolved_symbol)
    quotations = frame_to_quotations(
        df, instrument_id=instrument_id, symbol=resolved_symbol, first_id=first_quotation_id
    )
    if len(quotations) == 0:
        raise QuotationDataError(
            f"No valid quotations in {path}", source=CSV_SOURCE, symbol=resolved_symbol
        )
    logger.debug("Loaded %d quotations of %s from %s", len(quotations), resolved_symbol, path)
    return InstrumentHistory(
        instrument=Instrument(
            id=instrument_id,
            symbol=resolved_symbol,
            name=resolved_symbol,
            type=instrument_type,
        ),
        quotations=quotations,
    )


def load_histories(
    paths: list[Path], instrument_type: InstrumentType = InstrumentType.STOCK
) -> list[InstrumentHistory]:
    """Load several instruments with ids that are unique across all files."""
    histories: list[InstrumentHistory] = []
    next_quotation_id = 1
    for instrument_id, path in enumerate(paths, start=1):
        history = load_history(
            path,
            instrument_id=instrument_id,
            instrument_type=instrument_type,
            first_quotation_id=next_quotation_id,
        )
        next_quotation_id += len(history.quotations)
        histories.append(history)
    return histories


class CsvQuotationProvider:
    """QuotationProvider serving histories loaded from CSV files."""

    def __init__(self, histories: list[InstrumentHistory]) -> None:
        self._histories = {history.instrument.id: history for history in histories}

    @classmethod
    def from_paths(
        cls, paths: list[Path], instrument_type: InstrumentType = InstrumentType.STOCK
    ) -> CsvQuotationProvider:
        return cls(load_histories(paths, instrument_type))

    @property
    def instrument_ids(self) -> tuple[int, ...]:
        return tuple(self._histories)

    async def get_history(self, instrument_id: int) -> InstrumentHistory:
        try:
            return self._histories[instrument_id]
        except KeyError:
            msg = f"No quotations loaded for instrument {instrument_id}"
            raise QuotationDataError(msg, source=CSV_SOURCE) from None

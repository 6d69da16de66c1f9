"""Custom exception hierarchy for the Market Health engine.

All domain-specific exceptions inherit from MarketHealthError, which carries
contextual information about which component raised it and, where known,
which instrument was involved.
"""

import datetime


class MarketHealthError(Exception):
    """Base exception for all engine failures.

    Attributes:
        source: The component that raised the error (e.g., "statistics", "scan").
        symbol: The instrument symbol involved in the failure, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        source: str,
        symbol: str | None = None,
    ) -> None:
        self.source = source
        self.symbol = symbol
        super().__init__(message)


class DuplicateStatisticError(MarketHealthError):
    """Raised when a Statistic for an existing (date, instrument type) is inserted."""

    def __init__(self, instrument_type: str, date: datetime.date) -> None:
        self.instrument_type = instrument_type
        self.date = date
        super().__init__(
            f"A statistic for instrument type '{instrument_type}' on {date.isoformat()} "
            "already exists",
            source="statistics",
        )


class NoQuotationsExistError(MarketHealthError):
    """Raised when no quotation exists at or after the start date of a health check."""

    def __init__(self, start_date: datetime.date, *, symbol: str | None = None) -> None:
        self.start_date = start_date
        super().__init__(
            f"No quotations exist at or after {start_date.isoformat()}",
            source="protocol",
            symbol=symbol,
        )


class ScanAlreadyRunningError(MarketHealthError):
    """Raised when a scan is triggered while it is already in progress."""

    def __init__(self, scan_id: int) -> None:
        self.scan_id = scan_id
        super().__init__(f"Scan {scan_id} is already in progress", source="scan")


class QuotationDataError(MarketHealthError):
    """Raised when quotation data handed to the engine is malformed."""

"""StrEnum types for the market health domain.

Use enum members in business logic, never raw strings.
"""

from enum import StrEnum


class InstrumentType(StrEnum):
    """Kind of tradable instrument; statistics are kept per type."""

    STOCK = "stock"
    ETF = "etf"
    SECTOR = "sector"
    INDUSTRY_GROUP = "industry_group"
    INDEX = "index"
    RATIO = "ratio"


class ProtocolEntryCategory(StrEnum):
    """How a health-check finding relates to the current trend."""

    CONFIRMATION = "confirmation"
    VIOLATION = "violation"
    UNCERTAIN = "uncertain"


class HealthCheckProfile(StrEnum):
    """Named selection of health checks evaluated together."""

    ALL = "all"
    CONFIRMATIONS = "confirmations"
    SELLING_INTO_WEAKNESS = "selling_into_weakness"
    SELLING_INTO_STRENGTH = "selling_into_strength"
    ALL_WITHOUT_COUNTING = "all_without_counting"
    CONFIRMATIONS_WITHOUT_COUNTING = "confirmations_without_counting"
    WEAKNESS_WITHOUT_COUNTING = "weakness_without_counting"
    AFTER_BREAKOUT = "after_breakout"
    REVERSAL_ALERT = "reversal_alert"
    INSTITUTIONS = "institutions"


class ScanExecutionStatus(StrEnum):
    """Lifecycle state of a scan run."""

    NOT_EXECUTED = "not_executed"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class ScanCompletionStatus(StrEnum):
    """Whether the last scan run processed every instrument successfully."""

    COMPLETE = "complete"
    INCOMPLETE = "incomplete"

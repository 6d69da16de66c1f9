"""Pydantic v2 models, enums, and type definitions.

Re-exports all public models so consumers can import directly:
    from Market_Health.models import Quotation, QuotationSequence, Statistic
"""

from Market_Health.models.enums import (
    HealthCheckProfile,
    InstrumentType,
    ProtocolEntryCategory,
    ScanCompletionStatus,
    ScanExecutionStatus,
)
from Market_Health.models.market_data import (
    Instrument,
    InstrumentHistory,
    Quotation,
    QuotationSequence,
)
from Market_Health.models.protocol import (
    DateBasedProtocolEntry,
    Protocol,
    ProtocolEntry,
    SimpleProtocolEntry,
)
from Market_Health.models.scan import InstrumentList, Scan
from Market_Health.models.snapshots import (
    IndicatorSnapshot,
    MovingAverageSnapshot,
    RelativeStrengthSnapshot,
    SnapshotTable,
)
from Market_Health.models.statistic import Statistic

__all__ = [
    # Enums
    "HealthCheckProfile",
    "InstrumentType",
    "ProtocolEntryCategory",
    "ScanCompletionStatus",
    "ScanExecutionStatus",
    # Market data
    "Instrument",
    "InstrumentHistory",
    "Quotation",
    "QuotationSequence",
    # Snapshots
    "IndicatorSnapshot",
    "MovingAverageSnapshot",
    "RelativeStrengthSnapshot",
    "SnapshotTable",
    # Statistic
    "Statistic",
    # Protocol
    "DateBasedProtocolEntry",
    "Protocol",
    "ProtocolEntry",
    "SimpleProtocolEntry",
    # Scan
    "InstrumentList",
    "Scan",
]

"""Scan sequencing: state machine and the async scan pipeline."""

from Market_Health.scan.pipeline import (
    CancelFlag,
    QuotationProvider,
    ScanComplete,
    ScanProgress,
    ScanWorkspace,
    run_scan,
)
from Market_Health.scan.state import ScanStateMachine

__all__ = [
    "CancelFlag",
    "QuotationProvider",
    "ScanComplete",
    "ScanProgress",
    "ScanStateMachine",
    "ScanWorkspace",
    "run_scan",
]

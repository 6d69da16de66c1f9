"""Scan models: instrument lists and the scan definition with its run state."""

import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from Market_Health.models.enums import ScanCompletionStatus, ScanExecutionStatus

PROGRESS_MIN: int = 0
PROGRESS_MAX: int = 100


class InstrumentList(BaseModel):
    """A named list of instruments that scans can reference."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    instrument_ids: tuple[int, ...] = ()


class Scan(BaseModel):
    """A batch job recomputing indicators and statistics over instrument lists.

    Frozen: every state change produced by the ScanStateMachine is a new
    instance created with ``model_copy``.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str = ""
    list_ids: tuple[int, ...]
    execution_status: ScanExecutionStatus = ScanExecutionStatus.NOT_EXECUTED
    completion_status: ScanCompletionStatus = ScanCompletionStatus.COMPLETE
    progress: int = 0
    last_scan: datetime.datetime | None = None
    incomplete_instrument_ids: frozenset[int] = frozenset()

    @field_validator("list_ids")
    @classmethod
    def validate_list_ids(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        """A scan must reference at least one instrument list."""
        if not value:
            msg = "a scan must reference at least one instrument list"
            raise ValueError(msg)
        return value

    @field_validator("progress")
    @classmethod
    def validate_progress(cls, value: int) -> int:
        """Progress is a percentage between 0 and 100."""
        if not PROGRESS_MIN <= value <= PROGRESS_MAX:
            msg = f"progress must be between {PROGRESS_MIN} and {PROGRESS_MAX}, got {value}"
            raise ValueError(msg)
        return value

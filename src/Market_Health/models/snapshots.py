"""Derived per-quotation annotations and the side-table that holds them.

Snapshots are recomputable: they are stored next to the quotations, keyed by
quotation id, instead of being written onto the quotation records. Storing a
snapshot for an id that already has one replaces it.
"""

from __future__ import annotations

from collections.abc import Iterator
from decimal import Decimal
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, field_serializer

from Market_Health.models.market_data import Quotation

ZERO = Decimal(0)


class MovingAverageSnapshot(BaseModel):
    """Moving averages of one quotation. 0 means not computable."""

    model_config = ConfigDict(frozen=True)

    ema10: Decimal = ZERO
    ema21: Decimal = ZERO
    sma10: Decimal = ZERO
    sma20: Decimal = ZERO
    sma50: Decimal = ZERO
    sma150: Decimal = ZERO
    sma200: Decimal = ZERO
    sma30_volume: int = 0

    @field_serializer("ema10", "ema21", "sma10", "sma20", "sma50", "sma150", "sma200")
    def serialize_decimal(self, value: Decimal) -> str:
        """Serialize Decimal fields as strings to preserve precision."""
        return str(value)


class RelativeStrengthSnapshot(BaseModel):
    """Ranking inputs and resulting 0-100 ranks of one quotation.

    The three ``rs_number*`` fields are filled in by the relative strength
    ranking, each from its own criterion.
    """

    model_config = ConfigDict(frozen=True)

    rs_percent_sum: Decimal = ZERO
    distance_to_52_week_high: Decimal = ZERO
    acc_dis_ratio_63_days: Decimal = ZERO
    rs_number: int = 0
    rs_number_distance_52_week_high: int = 0
    rs_number_acc_dis_ratio: int = 0

    @field_serializer("rs_percent_sum", "distance_to_52_week_high", "acc_dis_ratio_63_days")
    def serialize_decimal(self, value: Decimal) -> str:
        """Serialize Decimal fields as strings to preserve precision."""
        return str(value)


class IndicatorSnapshot(BaseModel):
    """Indicators computed for the most recent quotation of an instrument."""

    model_config = ConfigDict(frozen=True)

    distance_to_52_week_high: Decimal = ZERO
    distance_to_52_week_low: Decimal = ZERO
    bollinger_band_width_10_days: Decimal = ZERO
    bollinger_band_width_10_weeks: Decimal = ZERO
    bbw10_threshold_25_percent: Decimal = ZERO
    acc_dis_ratio_30_days: Decimal = ZERO
    acc_dis_ratio_63_days: Decimal = ZERO
    up_down_volume_ratio: Decimal = ZERO
    performance_5_days: Decimal = ZERO
    liquidity_20_days: Decimal = ZERO

    @field_serializer("*")
    def serialize_decimal(self, value: Decimal) -> str:
        """Serialize Decimal fields as strings to preserve precision."""
        return str(value)


SnapshotT = TypeVar("SnapshotT", bound=BaseModel)


class SnapshotTable(Generic[SnapshotT]):
    """Mapping of quotation id to a derived snapshot."""

    def __init__(self) -> None:
        self._snapshots: dict[int, SnapshotT] = {}

    def get(self, quotation: Quotation) -> SnapshotT | None:
        return self._snapshots.get(quotation.id)

    def put(self, quotation: Quotation, snapshot: SnapshotT) -> None:
        self._snapshots[quotation.id] = snapshot

    def discard(self, quotation: Quotation) -> None:
        self._snapshots.pop(quotation.id, None)

    def __contains__(self, quotation: object) -> bool:
        return isinstance(quotation, Quotation) and quotation.id in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)

    def items(self) -> Iterator[tuple[int, SnapshotT]]:
        return iter(self._snapshots.items())

"""Cross-sectional market statistic of one instrument type on one date."""

import datetime

from pydantic import BaseModel, ConfigDict, computed_field

from Market_Health.models.enums import InstrumentType
from Market_Health.utils.rounding import HUNDRED, round_half_up_int


def _percent_above(above: int, at_or_below: int) -> int:
    total = above + at_or_below
    if total == 0:
        return 0
    return round_half_up_int(HUNDRED * above / total)


class Statistic(BaseModel):
    """Counters summed across a universe of instruments for one trading day.

    Frozen: a corrected statistic is a new instance (``model_copy``) handed
    to the StatisticStore's update operation.
    """

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    date: datetime.date
    instrument_type: InstrumentType
    number_of_instruments: int = 0
    number_advance: int = 0
    number_decline: int = 0
    number_above_sma50: int = 0
    number_at_or_below_sma50: int = 0
    number_above_sma200: int = 0
    number_at_or_below_sma200: int = 0
    number_ritter_market_trend: int = 0
    number_up_on_volume: int = 0
    number_down_on_volume: int = 0
    number_bearish_reversal: int = 0
    number_bullish_reversal: int = 0
    number_churning: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def advance_decline_number(self) -> int:
        """Advancing minus declining instruments."""
        return self.number_advance - self.number_decline

    @computed_field  # type: ignore[prop-decorator]
    @property
    def percent_above_sma50(self) -> int:
        """Share of instruments closing above their SMA(50), 0 without data."""
        return _percent_above(self.number_above_sma50, self.number_at_or_below_sma50)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def percent_above_sma200(self) -> int:
        """Share of instruments closing above their SMA(200), 0 without data."""
        return _percent_above(self.number_above_sma200, self.number_at_or_below_sma200)

    def has_same_values(self, other: "Statistic") -> bool:
        """True if *other* carries the same counters, ignoring the id."""
        return self.model_dump(exclude={"id"}) == other.model_dump(exclude={"id"})

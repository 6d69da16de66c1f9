"""Technical indicators over date-descending quotation sequences.

Pure math module: quotations in, Decimal values or snapshots out.
No I/O, no persistence, no shared state.
"""

from Market_Health.indicators.composite import average_quotations
from Market_Health.indicators.moving_averages import (
    exponential_moving_average,
    simple_moving_average,
    simple_moving_average_volume,
)
from Market_Health.indicators.performance import (
    distance_to_52_week_high,
    distance_to_52_week_low,
    price_performance,
    price_performance_for_days,
    quotation_performance,
    rs_percent_sum,
)
from Market_Health.indicators.snapshots import (
    compute_moving_averages,
    indicator_snapshot,
    moving_average_snapshot,
    relative_strength_snapshot,
)
from Market_Health.indicators.volatility import (
    bollinger_band_width,
    bollinger_band_width_threshold,
    standard_deviation,
)
from Market_Health.indicators.volume import (
    accumulation_distribution_ratio,
    liquidity,
    up_down_volume_ratio,
)

__all__ = [
    "accumulation_distribution_ratio",
    "average_quotations",
    "bollinger_band_width",
    "bollinger_band_width_threshold",
    "compute_moving_averages",
    "distance_to_52_week_high",
    "distance_to_52_week_low",
    "exponential_moving_average",
    "indicator_snapshot",
    "liquidity",
    "moving_average_snapshot",
    "price_performance",
    "price_performance_for_days",
    "quotation_performance",
    "relative_strength_snapshot",
    "rs_percent_sum",
    "simple_moving_average",
    "simple_moving_average_volume",
    "standard_deviation",
    "up_down_volume_ratio",
]

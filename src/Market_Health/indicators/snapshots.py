"""Builders that compute the cached snapshots of a quotation sequence."""

from __future__ import annotations

import logging

from Market_Health.config import EngineConfig, MovingAverageSettings
from Market_Health.indicators.moving_averages import (
    exponential_moving_average,
    simple_moving_average,
    simple_moving_average_volume,
)
from Market_Health.indicators.performance import (
    distance_to_52_week_high,
    distance_to_52_week_low,
    price_performance_for_days,
    rs_percent_sum,
)
from Market_Health.indicators.volatility import (
    bollinger_band_width,
    bollinger_band_width_threshold,
)
from Market_Health.indicators.volume import (
    accumulation_distribution_ratio,
    liquidity,
    up_down_volume_ratio,
)
from Market_Health.models.market_data import Quotation, QuotationSequence
from Market_Health.models.snapshots import (
    IndicatorSnapshot,
    MovingAverageSnapshot,
    RelativeStrengthSnapshot,
    SnapshotTable,
)
from Market_Health.utils.rounding import ZERO

logger = logging.getLogger(__name__)


def moving_average_snapshot(
    quotation: Quotation,
    quotations: QuotationSequence,
    settings: MovingAverageSettings,
) -> MovingAverageSnapshot | None:
    """All cached moving averages of *quotation*.

    Returns None if fewer than ``settings.min_history`` quotations remain
    from *quotation*; averages whose own window is not covered are 0.
    """
    if quotations.remaining(quotations.index_of(quotation)) < settings.min_history:
        return None
    return MovingAverageSnapshot(
        ema10=exponential_moving_average(settings.ema_short, quotation, quotations),
        ema21=exponential_moving_average(settings.ema_medium, quotation, quotations),
        sma10=simple_moving_average(settings.sma_short, quotation, quotations),
        sma20=simple_moving_average(settings.sma_medium, quotation, quotations),
        sma50=simple_moving_average(settings.sma_intermediate, quotation, quotations),
        sma150=simple_moving_average(settings.sma_long, quotation, quotations),
        sma200=simple_moving_average(settings.sma_very_long, quotation, quotations),
        sma30_volume=simple_moving_average_volume(settings.sma_volume, quotation, quotations),
    )


def compute_moving_averages(
    quotations: QuotationSequence,
    settings: MovingAverageSettings,
    table: SnapshotTable[MovingAverageSnapshot] | None = None,
) -> SnapshotTable[MovingAverageSnapshot]:
    """Fill *table* (or a new one) with the snapshots of every eligible quotation.

    Running it twice over the same sequence leaves the table unchanged.
    """
    result: SnapshotTable[MovingAverageSnapshot] = SnapshotTable() if table is None else table
    for quotation in quotations:
        snapshot = moving_average_snapshot(quotation, quotations, settings)
        if snapshot is None:
            result.discard(quotation)
        else:
            result.put(quotation, snapshot)
    return result


def relative_strength_snapshot(
    quotation: Quotation,
    quotations: QuotationSequence,
    config: EngineConfig,
) -> RelativeStrengthSnapshot:
    """Ranking inputs of *quotation*; the ranks themselves start at 0."""
    return RelativeStrengthSnapshot(
        rs_percent_sum=rs_percent_sum(quotation, quotations),
        distance_to_52_week_high=distance_to_52_week_high(quotation, quotations),
        acc_dis_ratio_63_days=accumulation_distribution_ratio(
            config.indicators.acc_dis_ratio_long_days, quotation, quotations
        ),
    )


def indicator_snapshot(
    quotation: Quotation,
    quotations: QuotationSequence,
    config: EngineConfig,
) -> IndicatorSnapshot:
    """Indicators of the most recent quotation of an instrument."""
    bollinger = config.bollinger
    indicators = config.indicators

    weekly = quotations.weekly()
    if weekly.newest is not None:
        band_width_weeks = bollinger_band_width(
            bollinger.weeks, bollinger.standard_deviations, weekly.newest, weekly
        )
    else:
        band_width_weeks = ZERO

    return IndicatorSnapshot(
        distance_to_52_week_high=distance_to_52_week_high(quotation, quotations),
        distance_to_52_week_low=distance_to_52_week_low(quotation, quotations),
        bollinger_band_width_10_days=bollinger_band_width(
            bollinger.days, bollinger.standard_deviations, quotation, quotations
        ),
        bollinger_band_width_10_weeks=band_width_weeks,
        bbw10_threshold_25_percent=bollinger_band_width_threshold(
            bollinger.days,
            bollinger.standard_deviations,
            bollinger.threshold_percent,
            quotation,
            quotations,
        ),
        acc_dis_ratio_30_days=accumulation_distribution_ratio(
            indicators.acc_dis_ratio_short_days, quotation, quotations
        ),
        acc_dis_ratio_63_days=accumulation_distribution_ratio(
            indicators.acc_dis_ratio_long_days, quotation, quotations
        ),
        up_down_volume_ratio=up_down_volume_ratio(
            indicators.up_down_volume_ratio_days, quotation, quotations
        ),
        performance_5_days=price_performance_for_days(
            indicators.performance_days, quotation, quotations
        ),
        liquidity_20_days=liquidity(indicators.liquidity_days, quotation, quotations),
    )

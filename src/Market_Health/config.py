"""Engine configuration.

One frozen ``EngineConfig`` is built at startup (``load_config``) and handed
explicitly to the components that need it. Nothing in the engine reads a
module-level configuration instance.

Environment overrides use the form ``MARKET_HEALTH_<SECTION>__<FIELD>``,
for example ``MARKET_HEALTH_BOLLINGER__THRESHOLD_PERCENT=20``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX: str = "MARKET_HEALTH_"
TRADING_DAYS_PER_MONTH: int = 21
TRADING_DAYS_PER_YEAR: int = 252


class MovingAverageSettings(BaseModel):
    """Periods of the cached moving averages."""

    model_config = ConfigDict(frozen=True)

    ema_short: int = 10
    ema_medium: int = 21
    sma_short: int = 10
    sma_medium: int = 20
    sma_intermediate: int = 50
    sma_long: int = 150
    sma_very_long: int = 200
    sma_volume: int = 30
    min_history: int = 10

    @field_validator("*")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Every period must be at least 1."""
        if value < 1:
            msg = f"moving average periods must be >= 1, got {value}"
            raise ValueError(msg)
        return value


class BollingerSettings(BaseModel):
    """Bollinger BandWidth parameters."""

    model_config = ConfigDict(frozen=True)

    days: int = 10
    weeks: int = 10
    standard_deviations: Decimal = Decimal(2)
    threshold_percent: int = 25

    @field_validator("threshold_percent")
    @classmethod
    def validate_threshold(cls, value: int) -> int:
        """Threshold is a percentage between 0 and 100."""
        if not 0 <= value <= 100:
            msg = f"threshold_percent must be between 0 and 100, got {value}"
            raise ValueError(msg)
        return value


class IndicatorSettings(BaseModel):
    """Windows of the indicators computed for the most recent quotation."""

    model_config = ConfigDict(frozen=True)

    acc_dis_ratio_short_days: int = 30
    acc_dis_ratio_long_days: int = 63
    up_down_volume_ratio_days: int = 50
    performance_days: int = 5
    liquidity_days: int = 20


class PatternThresholds(BaseModel):
    """Price/volume pattern thresholds, in percent or fractions of the daily range."""

    model_config = ConfigDict(frozen=True)

    up_on_volume_percent: Decimal = Decimal("3.0")
    down_on_volume_percent: Decimal = Decimal("-3.0")
    churning_upper_percent: Decimal = Decimal("1.0")
    churning_lower_percent: Decimal = Decimal("-1.0")
    bearish_reversal_range: Decimal = Decimal("0.4")
    bullish_reversal_range: Decimal = Decimal("0.6")
    gap_up_percent: Decimal = Decimal(1)
    close_near_high_range: Decimal = Decimal("0.9")
    close_near_low_range: Decimal = Decimal("0.1")


class ClimaxThresholds(BaseModel):
    """Thresholds of the climax-run checks."""

    model_config = ConfigDict(frozen=True)

    one_week_days: int = 5
    one_week_percent: Decimal = Decimal(25)
    three_weeks_days: int = 15
    three_weeks_percent: Decimal = Decimal(50)
    time_climax_days: int = 10
    time_climax_up_days: int = 7


class HealthCheckSettings(BaseModel):
    """Parameters of the average-based health checks."""

    model_config = ConfigDict(frozen=True)

    extended_above_sma200_percent: Decimal = Decimal(100)
    extended_above_sma50_top_percent: int = 95
    extremum_lookback_years: int = 1


class EngineConfig(BaseModel):
    """Complete engine configuration, passed explicitly to each component."""

    model_config = ConfigDict(frozen=True)

    moving_averages: MovingAverageSettings = Field(default_factory=MovingAverageSettings)
    bollinger: BollingerSettings = Field(default_factory=BollingerSettings)
    indicators: IndicatorSettings = Field(default_factory=IndicatorSettings)
    patterns: PatternThresholds = Field(default_factory=PatternThresholds)
    climax: ClimaxThresholds = Field(default_factory=ClimaxThresholds)
    health_checks: HealthCheckSettings = Field(default_factory=HealthCheckSettings)


def _env_overrides(environ: Mapping[str, str]) -> dict[str, dict[str, Any]]:
    """Collect ``MARKET_HEALTH_<SECTION>__<FIELD>`` values into nested dicts."""
    overrides: dict[str, dict[str, Any]] = {}
    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        section, sep, field = key[len(ENV_PREFIX) :].lower().partition("__")
        if not sep or section not in EngineConfig.model_fields:
            logger.debug("Ignoring unrecognised config variable %s", key)
            continue
        overrides.setdefault(section, {})[field] = value
    return overrides


def load_config(
    overrides: Mapping[str, Mapping[str, Any]] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> EngineConfig:
    """Build an EngineConfig from defaults, environment and explicit overrides.

    Priority: explicit *overrides* > environment variables > defaults.

    Raises:
        pydantic.ValidationError: If a value does not validate.
    """
    merged = _env_overrides(os.environ if environ is None else environ)
    for section, values in (overrides or {}).items():
        merged.setdefault(section, {}).update(values)
    config = EngineConfig.model_validate(merged)
    logger.debug("Engine configuration loaded: %s", config.model_dump(mode="json"))
    return config

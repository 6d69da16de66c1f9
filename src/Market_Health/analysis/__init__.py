"""Analysis engine for market health.

Re-exports the public API so consumers can import directly:
    from Market_Health.analysis import ProtocolBuilder, rank_relative_strength
"""

from Market_Health.analysis.classifier import DailyBehavior, DailyBehaviorClassifier
from Market_Health.analysis.health_checks import (
    HEALTH_CHECKS,
    PROFILE_CHECKS,
    CheckContext,
    HealthCheck,
    checks_for_profile,
)
from Market_Health.analysis.patterns import (
    Applicable,
    NotApplicable,
    PatternDetector,
    PatternResult,
    occurred,
)
from Market_Health.analysis.protocol import (
    ProtocolBuilder,
    ProtocolConverter,
    health_event_number,
    start_date_for_lookback,
)
from Market_Health.analysis.relative_strength import (
    ACC_DIS_RATIO,
    DISTANCE_TO_52_WEEK_HIGH,
    RANKING_CRITERIA,
    RS_PERCENT_SUM,
    RankingCriterion,
    rank_quotations,
    rank_relative_strength,
)
from Market_Health.analysis.statistics import (
    StatisticAggregator,
    StatisticChanges,
    StatisticStore,
)

__all__ = [
    # Classifier
    "DailyBehavior",
    "DailyBehaviorClassifier",
    # Health checks
    "HEALTH_CHECKS",
    "PROFILE_CHECKS",
    "CheckContext",
    "HealthCheck",
    "checks_for_profile",
    # Patterns
    "Applicable",
    "NotApplicable",
    "PatternDetector",
    "PatternResult",
    "occurred",
    # Protocol
    "ProtocolBuilder",
    "ProtocolConverter",
    "health_event_number",
    "start_date_for_lookback",
    # Relative strength
    "ACC_DIS_RATIO",
    "DISTANCE_TO_52_WEEK_HIGH",
    "RANKING_CRITERIA",
    "RS_PERCENT_SUM",
    "RankingCriterion",
    "rank_quotations",
    "rank_relative_strength",
    # Statistics
    "StatisticAggregator",
    "StatisticChanges",
    "StatisticStore",
]

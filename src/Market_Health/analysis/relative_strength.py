"""Relative strength ranking across an instrument universe.

One generic ranking routine is parameterized by a criterion (a key
extractor plus the snapshot field receiving the rank). Quotations are
sorted best-first; the quotation at position ``i`` of ``N`` receives
``round_half_up((N - i) / N, 2) * 100``, so the best one always gets 100.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from Market_Health.models.market_data import Quotation
from Market_Health.models.snapshots import RelativeStrengthSnapshot, SnapshotTable
from Market_Health.utils.rounding import ratio_percent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankingCriterion:
    """What to sort by and which rank field to write."""

    name: str
    key: Callable[[RelativeStrengthSnapshot], Decimal]
    rank_field: str


RS_PERCENT_SUM = RankingCriterion(
    name="rs_percent_sum",
    key=lambda snapshot: snapshot.rs_percent_sum,
    rank_field="rs_number",
)
DISTANCE_TO_52_WEEK_HIGH = RankingCriterion(
    name="distance_to_52_week_high",
    key=lambda snapshot: snapshot.distance_to_52_week_high,
    rank_field="rs_number_distance_52_week_high",
)
ACC_DIS_RATIO = RankingCriterion(
    name="acc_dis_ratio_63_days",
    key=lambda snapshot: snapshot.acc_dis_ratio_63_days,
    rank_field="rs_number_acc_dis_ratio",
)

RANKING_CRITERIA: tuple[RankingCriterion, ...] = (
    RS_PERCENT_SUM,
    DISTANCE_TO_52_WEEK_HIGH,
    ACC_DIS_RATIO,
)


def rank_quotations(
    quotations: Sequence[Quotation],
    snapshots: SnapshotTable[RelativeStrengthSnapshot],
    criterion: RankingCriterion,
) -> dict[int, int]:
    """Rank *quotations* by *criterion* and store the ranks in *snapshots*.

    Quotations without a snapshot cannot be compared; they are placed after
    all others, still count toward ``N`` and receive no rank.

    Returns:
        Mapping of quotation id to the rank written.
    """
    universe = tuple(quotations)
    count = len(universe)
    ranked: list[tuple[Quotation, RelativeStrengthSnapshot]] = []
    for quotation in universe:
        snapshot = snapshots.get(quotation)
        if snapshot is not None:
            ranked.append((quotation, snapshot))
    ranked.sort(key=lambda pair: criterion.key(pair[1]), reverse=True)

    if len(ranked) < count:
        logger.debug(
            "%d of %d quotations have no relative strength snapshot and are not ranked by %s",
            count - len(ranked),
            count,
            criterion.name,
        )

    ranks: dict[int, int] = {}
    for position, (quotation, snapshot) in enumerate(ranked):
        rank = ratio_percent(count - position, count)
        snapshots.put(quotation, snapshot.model_copy(update={criterion.rank_field: rank}))
        ranks[quotation.id] = rank
    return ranks


def rank_relative_strength(
    quotations: Sequence[Quotation],
    snapshots: SnapshotTable[RelativeStrengthSnapshot],
    criteria: Sequence[RankingCriterion] = RANKING_CRITERIA,
) -> None:
    """Apply every ranking criterion to the same universe."""
    universe = tuple(quotations)
    for criterion in criteria:
        rank_quotations(universe, snapshots, criterion)
    logger.debug("Ranked %d quotations by %d criteria", len(universe), len(criteria))

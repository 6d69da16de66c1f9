"""Tests for the individual health checks and the profile catalogue."""

from collections.abc import Callable

import pytest

from Market_Health.analysis.health_checks import (
    HEALTH_CHECKS,
    PROFILE_CHECKS,
    CheckContext,
    checks_for_profile,
    climax_one_week,
    close_below_sma50,
    count_good_and_bad_closes,
    count_up_and_down_days,
    extended_above_sma50,
    extended_above_sma200,
    gap_up,
    largest_down_day,
    more_bad_than_good_closes,
    more_up_than_down_days,
    new_52_week_high,
    time_climax,
)
from Market_Health.analysis.patterns import PatternDetector
from Market_Health.config import EngineConfig
from Market_Health.models import (
    HealthCheckProfile,
    MovingAverageSnapshot,
    ProtocolEntryCategory,
    QuotationSequence,
    SnapshotTable,
)

QuotationFactory = Callable[..., QuotationSequence]


def _context(
    quotations: QuotationSequence,
    moving_averages: SnapshotTable[MovingAverageSnapshot] | None = None,
    start_index: int | None = None,
) -> CheckContext:
    config = EngineConfig()
    return CheckContext(
        quotations=quotations,
        moving_averages=moving_averages if moving_averages is not None else SnapshotTable(),
        patterns=PatternDetector(config.patterns),
        config=config,
        start_index=len(quotations) - 1 if start_index is None else start_index,
    )


class TestMovingAverageChecks:
    """Tests for the moving average crossing and extension checks."""

    def _crossing(
        self, make_quotations: QuotationFactory, sma30_volume: int
    ) -> CheckContext:
        quotations = make_quotations([100, 95])
        table: SnapshotTable[MovingAverageSnapshot] = SnapshotTable()
        table.put(quotations[1], MovingAverageSnapshot(sma50=98))
        table.put(quotations[0], MovingAverageSnapshot(sma50=97, sma30_volume=sma30_volume))
        return _context(quotations, table)

    def test_close_below_sma50_on_high_volume(self, make_quotations: QuotationFactory) -> None:
        context = self._crossing(make_quotations, 500_000)
        assert close_below_sma50(context, 0) == (
            "Close below SMA(50) on volume above the 30-day average"
        )

    def test_close_below_sma50_on_low_volume(self, make_quotations: QuotationFactory) -> None:
        context = self._crossing(make_quotations, 2_000_000)
        assert close_below_sma50(context, 0) == (
            "Close below SMA(50) on volume below the 30-day average"
        )

    def test_close_below_sma50_without_volume_average(
        self, make_quotations: QuotationFactory
    ) -> None:
        context = self._crossing(make_quotations, 0)
        assert close_below_sma50(context, 0) == "Close below SMA(50)"

    def test_close_below_sma50_needs_previous(self, make_quotations: QuotationFactory) -> None:
        context = self._crossing(make_quotations, 500_000)
        assert close_below_sma50(context, 1) is None

    def test_extended_above_sma200(self, make_quotations: QuotationFactory) -> None:
        quotations = make_quotations([250])
        table: SnapshotTable[MovingAverageSnapshot] = SnapshotTable()
        table.put(quotations[0], MovingAverageSnapshot(sma200=125))
        assert extended_above_sma200(_context(quotations, table), 0) == (
            "Price is 100.00% above the SMA(200)"
        )

    def test_not_extended_above_sma200(self, make_quotations: QuotationFactory) -> None:
        quotations = make_quotations([250])
        table: SnapshotTable[MovingAverageSnapshot] = SnapshotTable()
        table.put(quotations[0], MovingAverageSnapshot(sma200=126))
        assert extended_above_sma200(_context(quotations, table), 0) is None

    def test_extended_above_sma50_needs_history(self, make_quotations: QuotationFactory) -> None:
        """A single distance is its own threshold and never exceeds it."""
        quotations = make_quotations([150])
        table: SnapshotTable[MovingAverageSnapshot] = SnapshotTable()
        table.put(quotations[0], MovingAverageSnapshot(sma50=100))
        assert extended_above_sma50(_context(quotations, table), 0) is None

    def test_missing_snapshot(self, make_quotations: QuotationFactory) -> None:
        context = _context(make_quotations([100, 95]))
        assert close_below_sma50(context, 0) is None
        assert extended_above_sma200(context, 0) is None


class TestPriceChecks:
    """Tests for the highs, gaps and climax checks."""

    def test_new_52_week_high(self, make_quotations: QuotationFactory) -> None:
        context = _context(make_quotations([100, 105, 103, 106]))
        assert new_52_week_high(context, 0) == "New 52-week closing high"
        assert new_52_week_high(context, 1) is None
        assert new_52_week_high(context, 2) == "New 52-week closing high"
        assert new_52_week_high(context, 3) is None

    def test_gap_up(self, make_quotations: QuotationFactory) -> None:
        context = _context(make_quotations([100, 104]))
        assert gap_up(context, 0) == "Gap up of 1.98%"

    def test_no_gap(self, make_quotations: QuotationFactory) -> None:
        context = _context(make_quotations([100, 101]))
        assert gap_up(context, 0) is None

    def test_climax_one_week(self, make_quotations: QuotationFactory) -> None:
        context = _context(make_quotations([100, 100, 100, 100, 100, 130]))
        assert climax_one_week(context, 0) == "Climax move of 30.00% within one week"
        assert climax_one_week(context, 1) is None

    def test_time_climax(self, make_quotations: QuotationFactory) -> None:
        context = _context(make_quotations([100 + i for i in range(11)]))
        assert time_climax(context, 0) == "Time climax: 10 up days out of 10"
        assert time_climax(context, 1) is None

    def test_largest_down_day(self, make_quotations: QuotationFactory) -> None:
        context = _context(make_quotations([100, 90, 95, 93]))
        assert largest_down_day(context, 2) == "Largest down day of the last year: -10.00%"
        assert largest_down_day(context, 0) is None
        assert largest_down_day(context, 3) is None


class TestCountingChecks:
    """Tests for the checks counting days since the protocol start."""

    def test_count_up_and_down_days(self, make_quotations: QuotationFactory) -> None:
        quotations = make_quotations([10, 11, 10, 10, 12])
        # The oldest quotation has no previous day
        assert count_up_and_down_days(quotations, 4, 0) == (2, 1, 4)

    def test_count_good_and_bad_closes(self, make_quotations: QuotationFactory) -> None:
        quotations = make_quotations([10, 11, 12])
        # Every close sits exactly in the middle of the range
        assert count_good_and_bad_closes(quotations, 2, 0) == (0, 3, 3)

    def test_more_up_than_down_days(self, make_quotations: QuotationFactory) -> None:
        context = _context(make_quotations([100, 101, 102, 103, 104]), start_index=3)
        assert more_up_than_down_days(context, 0) == "More up than down days: 4 of 4 days"

    def test_start_index_is_skipped(self, make_quotations: QuotationFactory) -> None:
        context = _context(make_quotations([100, 101, 102, 103, 104]), start_index=3)
        assert more_up_than_down_days(context, 3) is None

    def test_more_bad_than_good_closes(self, make_quotations: QuotationFactory) -> None:
        context = _context(make_quotations([1, 2, 3]), start_index=2)
        assert more_bad_than_good_closes(context, 0) == "More bad than good closes: 3 of 3 closes"


class TestProfiles:
    """Tests for the profile catalogue."""

    def test_every_profile_has_checks(self) -> None:
        for profile in HealthCheckProfile:
            assert checks_for_profile(profile)

    def test_profile_names_exist(self) -> None:
        for names in PROFILE_CHECKS.values():
            assert set(names) <= set(HEALTH_CHECKS)

    @pytest.mark.parametrize(
        "profile",
        [
            HealthCheckProfile.ALL_WITHOUT_COUNTING,
            HealthCheckProfile.CONFIRMATIONS_WITHOUT_COUNTING,
            HealthCheckProfile.WEAKNESS_WITHOUT_COUNTING,
        ],
    )
    def test_without_counting(self, profile: HealthCheckProfile) -> None:
        assert not any(check.counting for check in checks_for_profile(profile))

    def test_confirmations_only_confirm(self) -> None:
        categories = {c.category for c in checks_for_profile(HealthCheckProfile.CONFIRMATIONS)}
        assert categories == {ProtocolEntryCategory.CONFIRMATION}

    def test_all_covers_catalogue(self) -> None:
        assert set(PROFILE_CHECKS[HealthCheckProfile.ALL]) == set(HEALTH_CHECKS)

"""Tests for volatility indicators: standard deviation and Bollinger BandWidth."""

from collections.abc import Callable
from decimal import Decimal

from Market_Health.indicators.volatility import (
    bollinger_band_width,
    bollinger_band_width_threshold,
    standard_deviation,
)
from Market_Health.models import QuotationSequence

QuotationFactory = Callable[..., QuotationSequence]

CLOSES = [100, 102, 99, 101, 103]


class TestStandardDeviation:
    """Tests for the population standard deviation."""

    def test_known_value(self) -> None:
        """Population stddev of [103, 101, 99] = sqrt(8/3) = 1.63299... -> 1.6330."""
        assert standard_deviation([103, 101, 99]) == Decimal("1.6330")

    def test_empty_is_zero(self) -> None:
        assert standard_deviation([]) == Decimal(0)

    def test_order_invariant(self) -> None:
        values = [Decimal("3.5"), Decimal(7), Decimal("1.25"), Decimal(9)]
        assert standard_deviation(values) == standard_deviation(reversed(values))
        assert standard_deviation(values) == standard_deviation(sorted(values))

    def test_constant_values(self) -> None:
        assert standard_deviation([5, 5, 5]) == Decimal(0)

    def test_divides_by_n(self) -> None:
        # Sample stddev would be 1.4142
        assert standard_deviation([1, 3]) == Decimal("1.0000")


class TestBollingerBandWidth:
    """Tests for bollinger_band_width()."""

    def test_known_value(self, make_quotations: QuotationFactory) -> None:
        """4 * 1.6330 / 101.000 * 100 = 6.4673... -> 6.47."""
        quotations = make_quotations(CLOSES)
        assert bollinger_band_width(3, 2, quotations[0], quotations) == Decimal("6.47")

    def test_insufficient_history_is_zero(self, make_quotations: QuotationFactory) -> None:
        quotations = make_quotations(CLOSES)
        assert bollinger_band_width(10, 2, quotations[0], quotations) == Decimal(0)
        assert bollinger_band_width(3, 2, quotations[3], quotations) == Decimal(0)

    def test_flat_prices_are_zero(self, make_quotations: QuotationFactory) -> None:
        quotations = make_quotations([100] * 10)
        assert bollinger_band_width(10, 2, quotations[0], quotations) == Decimal(0)


class TestBollingerBandWidthThreshold:
    """Tests for bollinger_band_width_threshold().

    Widths of period 3 over CLOSES, newest first: 6.47, 4.96, 4.97.
    """

    def test_quarter_threshold(self, make_quotations: QuotationFactory) -> None:
        quotations = make_quotations(CLOSES)
        # sorted [6.47, 4.97, 4.96]; position 3 - 0 - 1 = 2
        assert bollinger_band_width_threshold(3, 2, 25, quotations[0], quotations) == Decimal(
            "4.96"
        )

    def test_half_threshold(self, make_quotations: QuotationFactory) -> None:
        quotations = make_quotations(CLOSES)
        # position 3 - 1 - 1 = 1
        assert bollinger_band_width_threshold(3, 2, 50, quotations[0], quotations) == Decimal(
            "4.97"
        )

    def test_full_threshold_selects_largest(self, make_quotations: QuotationFactory) -> None:
        quotations = make_quotations(CLOSES)
        assert bollinger_band_width_threshold(3, 2, 100, quotations[0], quotations) == Decimal(
            "6.47"
        )

    def test_insufficient_history_is_zero(self, make_quotations: QuotationFactory) -> None:
        quotations = make_quotations(CLOSES)
        assert bollinger_band_width_threshold(10, 2, 25, quotations[0], quotations) == Decimal(0)

    def test_all_degenerate_is_zero(self, make_quotations: QuotationFactory) -> None:
        quotations = make_quotations([100] * 12)
        assert bollinger_band_width_threshold(10, 2, 25, quotations[0], quotations) == Decimal(0)

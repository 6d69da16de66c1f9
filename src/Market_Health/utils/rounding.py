"""Half-up rounding helpers.

Every price, percentage and ratio the engine reports is rounded half-up
(0.5 rounds away from zero). Values are carried as Decimal so results are
reproducible regardless of float representation.
"""

from decimal import ROUND_HALF_UP, Decimal

ZERO: Decimal = Decimal(0)
HUNDRED: Decimal = Decimal(100)


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert *value* to Decimal, going through ``str`` for floats."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_half_up(value: Decimal | int | float | str, places: int) -> Decimal:
    """Round *value* half-up to *places* fractional digits."""
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def round_half_up_int(value: Decimal | int | float | str) -> int:
    """Round *value* half-up to the nearest integer."""
    return int(round_half_up(value, 0))


def ratio_percent(count: int, total: int) -> int:
    """Share of *count* in *total* as a whole percentage.

    The ratio is rounded half-up to two places before scaling, so 1/3
    yields 33 and 2/3 yields 67. Returns 0 when *total* is 0.
    """
    if total == 0:
        return 0
    return int(round_half_up(Decimal(count) / Decimal(total), 2) * HUNDRED)

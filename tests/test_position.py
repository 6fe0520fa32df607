# mypy: ignore-errors
# tests/test_position.py
"""Tests for the fixed-scale position algebra."""

from decimal import Decimal

import pytest

from board_order.core.position import (
    DecimalPosition,
    InvalidBoundsError,
    InvalidPositionError,
    PositionConfig,
    PrecisionExhaustedError,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("1000", "1000.0000000000"),
        (1000, "1000.0000000000"),
        (1000.5, "1000.5000000000"),
        (Decimal("1000.25"), "1000.2500000000"),
        ("-1000", "-1000.0000000000"),
        ("0", "0.0000000000"),
        (" 42.1 ", "42.1000000000"),
    ],
)
def test_normalize_produces_canonical_strings(algebra, value, expected) -> None:
    """Every accepted input collapses to the fixed-scale string form."""
    assert algebra.normalize(value) == expected


def test_normalize_truncates_extra_digits(algebra) -> None:
    """Digits beyond the scale are dropped toward zero, never rounded up."""
    assert algebra.normalize("1.23456789019") == "1.2345678901"
    assert algebra.normalize("-1.23456789019") == "-1.2345678901"


@pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity", True])
def test_normalize_rejects_non_numbers(algebra, value) -> None:
    """Garbage and non-finite values are refused."""
    with pytest.raises(InvalidPositionError):
        algebra.normalize(value)


def test_growth_operations(algebra) -> None:
    """Appends and prepends move exactly one default gap."""
    assert algebra.for_empty_group() == "65535.0000000000"
    assert algebra.after("1000") == "66535.0000000000"
    assert algebra.before("100000") == "34465.0000000000"
    assert algebra.before("0") == "-65535.0000000000"


@pytest.mark.parametrize(
    ("lower", "upper", "expected"),
    [
        ("1000", "2000", "1500.0000000000"),
        ("100", "101", "100.5000000000"),
        ("-100", "100", "0.0000000000"),
        ("65535", "131070", "98302.5000000000"),
        ("100.0000000100", "100.0000000200", "100.0000000150"),
    ],
)
def test_between_exact_returns_midpoint(algebra, lower, upper, expected) -> None:
    """The exact split is the midpoint of the bounds."""
    assert algebra.between_exact(lower, upper) == expected


def test_between_exact_rejects_equal_bounds(algebra) -> None:
    """The deterministic split has no tolerance for equal bounds."""
    with pytest.raises(InvalidBoundsError):
        algebra.between_exact("100", "100")


def test_between_stays_strictly_inside_bounds(algebra) -> None:
    """Randomized splits never touch either bound."""
    for _ in range(10_000):
        value = algebra.between("1000", "2000")
        assert algebra.less_than("1000", value)
        assert algebra.less_than(value, "2000")


def test_between_draws_are_unique(algebra) -> None:
    """Repeated splits of one gap almost never repeat a value."""
    draws = {algebra.between("1000", "2000") for _ in range(1000)}
    assert len(draws) == 1000


def test_between_stays_near_the_midpoint(algebra) -> None:
    """Jitter is limited to a tenth of the gap on each side."""
    for _ in range(500):
        value = Decimal(algebra.between("1000", "2000"))
        assert Decimal(1400) <= value <= Decimal(1600)


def test_between_equal_bounds_appends(algebra) -> None:
    """Neighbours sharing a value resolve to one gap after them."""
    assert algebra.between("100", "100") == "65635.0000000000"


def test_between_inverted_bounds_raise(algebra) -> None:
    """Lower above upper is a caller error."""
    with pytest.raises(InvalidBoundsError, match="Invalid bounds"):
        algebra.between("200", "100")


def test_between_exhausts_precision_at_one_unit(algebra) -> None:
    """Bounds one scale unit apart leave no room."""
    with pytest.raises(PrecisionExhaustedError):
        algebra.between("0", "0.0000000001")


def test_between_uses_the_only_free_value(algebra) -> None:
    """Two units apart, the single value in between is returned."""
    assert algebra.between("0", "0.0000000002") == "0.0000000001"


def test_calculate_covers_every_neighbour_combination(algebra) -> None:
    """Neighbour presence selects empty, append, prepend or split."""
    assert algebra.calculate(None, None) == "65535.0000000000"
    assert algebra.calculate("1000", None) == "66535.0000000000"
    assert algebra.calculate(None, "1000") == "-64535.0000000000"
    middle = algebra.calculate("1000", "2000")
    assert algebra.less_than("1000", middle)
    assert algebra.less_than(middle, "2000")


def test_needs_rebalancing_threshold(algebra) -> None:
    """A gap equal to the minimum is still healthy."""
    assert algebra.needs_rebalancing("1000", "1000.0001") is False
    assert algebra.needs_rebalancing("1000.0000000000", "1000.00009") is True
    assert algebra.is_small_gap("0.00009") is True
    assert algebra.is_small_gap("0.0001") is False


def test_repeated_bisection_reaches_min_gap_in_thirty_steps(algebra) -> None:
    """Halving one default gap about thirty times exhausts it."""
    lower, upper = "65535", "131070"
    steps = 0
    while not algebra.needs_rebalancing(lower, upper):
        upper = algebra.between_exact(lower, upper)
        steps += 1
    assert steps == 30


def test_generate_sequence(algebra) -> None:
    """Fresh layouts start at one gap and step by one gap."""
    assert algebra.generate_sequence(5) == [
        "65535.0000000000",
        "131070.0000000000",
        "196605.0000000000",
        "262140.0000000000",
        "327675.0000000000",
    ]
    assert algebra.generate_sequence(0) == []


def test_generate_between_spreads_values(algebra) -> None:
    """Batch splits are ascending, distinct and roughly evenly spread."""
    for _ in range(100):
        values = algebra.generate_between("0", "100", 4)
        decimals = [Decimal(value) for value in values]
        assert decimals == sorted(decimals)
        assert len(set(values)) == 4
        assert Decimal(10) < decimals[0] < Decimal(30)
        assert Decimal(70) < decimals[-1] < Decimal(90)


@pytest.mark.parametrize("count", [0, -1])
def test_generate_between_without_count_is_empty(algebra, count) -> None:
    """Nothing to generate means no values and no validation."""
    assert algebra.generate_between("0", "100", count) == []


def test_generate_between_needs_room_for_every_value(algebra) -> None:
    """Three values do not fit into three units."""
    with pytest.raises(PrecisionExhaustedError) as excinfo:
        algebra.generate_between("0", "0.0000000003", 3)
    assert excinfo.value.needed == 3


def test_generate_between_rejects_inverted_bounds(algebra) -> None:
    """Batch splits share the strict bound check."""
    with pytest.raises(InvalidBoundsError):
        algebra.generate_between("100", "0", 2)


def test_comparisons_and_gap(algebra) -> None:
    """Comparison works on numeric value, not string form."""
    assert algebra.compare("100", "100.0000000000") == 0
    assert algebra.compare("9", "10") == -1
    assert algebra.compare("10", "9") == 1
    assert algebra.greater_than("100000", "99999.9999999999")
    assert algebra.gap("100", "100.5") == "0.5000000000"


def test_sum_and_divide(algebra) -> None:
    """Aggregates stay at the configured scale."""
    assert algebra.sum_gaps(["1.5", "2.25"]) == "3.7500000000"
    assert algebra.divide("10", 4) == "2.5000000000"
    assert algebra.divide("-1", 3) == "-0.3333333333"


def test_custom_scale_and_gap() -> None:
    """Tuning flows through every operation."""
    algebra = DecimalPosition(PositionConfig(default_gap=Decimal(100), scale=2))
    assert algebra.normalize("1.239") == "1.23"
    assert algebra.for_empty_group() == "100.00"
    assert algebra.after("1.5") == "101.50"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"scale": -1},
        {"default_gap": Decimal(0)},
        {"min_gap": Decimal("-0.1")},
        {"jitter_ratio": Decimal("0.75")},
    ],
)
def test_position_config_validation(kwargs) -> None:
    """Nonsensical tuning is rejected up front."""
    with pytest.raises(ValueError):
        PositionConfig(**kwargs)

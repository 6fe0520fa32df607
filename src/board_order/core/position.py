"""Fixed-scale decimal position arithmetic.

Positions are signed decimals carried as canonical strings with a fixed number
of fractional digits (``"65535.0000000000"`` at the default scale of 10).
All arithmetic happens on integers counted in units of the last fractional
digit, so repeated bisection never accumulates rounding error.

Example:
    from board_order.core.position import DecimalPosition

    algebra = DecimalPosition()
    first = algebra.for_empty_group()          # "65535.0000000000"
    second = algebra.after(first)              # "131070.0000000000"
    middle = algebra.between(first, second)    # somewhere strictly inside
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext
from typing import Final, Union

PositionInput = Union[str, int, float, Decimal]

DEFAULT_GAP: Final[Decimal] = Decimal(65535)
MIN_GAP: Final[Decimal] = Decimal("0.0001")
SCALE: Final[int] = 10
JITTER_RATIO: Final[Decimal] = Decimal("0.1")

# Working precision for conversions; wide enough for any realistic magnitude.
_CONTEXT_PRECISION: Final[int] = 80


class PositionError(ValueError):
    """Base class for position arithmetic failures."""


class InvalidPositionError(PositionError):
    """Raised when a value cannot be read as a decimal position."""


class InvalidBoundsError(PositionError):
    """Raised when a strict split is requested with ``lower >= upper``."""

    def __init__(self, lower: str, upper: str) -> None:
        super().__init__(
            f"Invalid bounds: lower ({lower}) must be less than upper ({upper})"
        )
        self.lower = lower
        self.upper = upper


class PrecisionExhaustedError(PositionError):
    """Raised when no position at the configured scale fits between two bounds."""

    def __init__(self, lower: str, upper: str, needed: int = 1) -> None:
        super().__init__(
            f"No room for {needed} position(s) between {lower} and {upper}; "
            "the column needs rebalancing"
        )
        self.lower = lower
        self.upper = upper
        self.needed = needed


@dataclass(frozen=True)
class PositionConfig:
    """Tuning values shared by the position algebra and the rebalancer.

    Attributes:
        default_gap: Spacing used for appends, prepends and fresh layouts.
        min_gap: Adjacent positions closer than this need rebalancing.
        scale: Number of fractional digits kept in every position.
        jitter_ratio: Fraction of the gap the random displacement may cover
            on each side of the midpoint.
    """

    default_gap: Decimal = DEFAULT_GAP
    min_gap: Decimal = MIN_GAP
    scale: int = SCALE
    jitter_ratio: Decimal = JITTER_RATIO

    def __post_init__(self) -> None:
        if self.scale < 0:
            raise ValueError("scale must be non-negative")
        if self.default_gap <= 0:
            raise ValueError("default_gap must be positive")
        if self.min_gap <= 0:
            raise ValueError("min_gap must be positive")
        if not Decimal(0) <= self.jitter_ratio <= Decimal("0.5"):
            raise ValueError("jitter_ratio must be between 0 and 0.5")


class DecimalPosition:
    """Pure position arithmetic over fixed-scale decimal strings."""

    def __init__(self, config: PositionConfig | None = None) -> None:
        self.config = config or PositionConfig()
        self._unit = 10 ** self.config.scale
        self._default_gap_units = self._to_units(self.config.default_gap)
        self._min_gap_units = self._to_units(self.config.min_gap)

    # --- conversions ----------------------------------------------------------------
    def _to_units(self, value: PositionInput) -> int:
        if isinstance(value, bool):
            raise InvalidPositionError(f"Not a position: {value!r}")
        if isinstance(value, int):
            return value * self._unit
        if isinstance(value, float):
            value = repr(value)
        try:
            number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        except (InvalidOperation, TypeError, ValueError) as err:
            raise InvalidPositionError(f"Not a position: {value!r}") from err
        if not number.is_finite():
            raise InvalidPositionError(f"Not a finite position: {value!r}")
        with localcontext() as ctx:
            ctx.prec = _CONTEXT_PRECISION
            scaled = number.scaleb(self.config.scale)
            return int(scaled.to_integral_value(rounding=ROUND_DOWN))

    def _from_units(self, units: int) -> str:
        sign = "-" if units < 0 else ""
        whole, fraction = divmod(abs(units), self._unit)
        if self.config.scale == 0:
            return f"{sign}{whole}"
        return f"{sign}{whole}.{fraction:0{self.config.scale}d}"

    def normalize(self, value: PositionInput) -> str:
        """Return the canonical fixed-scale string for ``value``."""
        return self._from_units(self._to_units(value))

    def to_decimal(self, value: PositionInput) -> Decimal:
        """Return ``value`` as a ``Decimal`` quantized to the configured scale."""
        return Decimal(self.normalize(value))

    # --- growth -----------------------------------------------------------------------
    def for_empty_group(self) -> str:
        """Position given to the first card of an empty column."""
        return self._from_units(self._default_gap_units)

    def after(self, position: PositionInput) -> str:
        """Position one default gap after ``position``."""
        return self._from_units(self._to_units(position) + self._default_gap_units)

    def before(self, position: PositionInput) -> str:
        """Position one default gap before ``position``; may be negative."""
        return self._from_units(self._to_units(position) - self._default_gap_units)

    # --- splitting --------------------------------------------------------------------
    def between_exact(self, lower: PositionInput, upper: PositionInput) -> str:
        """Return the midpoint of ``lower`` and ``upper`` without jitter.

        Raises:
            InvalidBoundsError: If ``lower >= upper``.
            PrecisionExhaustedError: If the bounds are one scale unit apart.
        """
        low, high = self._ordered_units(lower, upper)
        middle = (low + high) // 2
        if not low < middle < high:
            raise PrecisionExhaustedError(self._from_units(low), self._from_units(high))
        return self._from_units(middle)

    def between(self, lower: PositionInput, upper: PositionInput) -> str:
        """Return a randomized position strictly between ``lower`` and ``upper``.

        The exact midpoint is displaced by a random offset of at most
        ``jitter_ratio`` of the gap, so concurrent callers splitting the same pair
        almost never pick the same value. When the gap is too narrow for that
        window, any value strictly inside the interval is drawn instead.

        Equal bounds are tolerated and resolve to ``after(lower)``; this covers
        neighbours that already share a duplicate position.

        Raises:
            InvalidBoundsError: If ``lower > upper``.
            PrecisionExhaustedError: If no value fits strictly inside the bounds.
        """
        low = self._to_units(lower)
        high = self._to_units(upper)
        if low == high:
            return self._from_units(low + self._default_gap_units)
        if low > high:
            raise InvalidBoundsError(self._from_units(low), self._from_units(high))
        if high - low < 2:
            raise PrecisionExhaustedError(self._from_units(low), self._from_units(high))

        middle = (low + high) // 2
        radius = int((high - low) * self.config.jitter_ratio)
        window_low = max(low + 1, middle - radius)
        window_high = min(high - 1, middle + radius)
        if window_high - window_low < 2:
            window_low, window_high = low + 1, high - 1
        return self._from_units(window_low + secrets.randbelow(window_high - window_low + 1))

    def calculate(self, lower: PositionInput | None, upper: PositionInput | None) -> str:
        """Pick a position for a card dropped between two optional neighbours."""
        if lower is None and upper is None:
            return self.for_empty_group()
        if upper is None:
            return self.after(lower)  # type: ignore[arg-type]
        if lower is None:
            return self.before(upper)
        return self.between(lower, upper)

    # --- gap health -------------------------------------------------------------------
    def needs_rebalancing(self, lower: PositionInput, upper: PositionInput) -> bool:
        """Return True when the gap between two neighbours is below ``min_gap``."""
        return self._to_units(upper) - self._to_units(lower) < self._min_gap_units

    def is_small_gap(self, gap: PositionInput) -> bool:
        """Return True when ``gap`` itself is below ``min_gap``."""
        return self._to_units(gap) < self._min_gap_units

    # --- batch generation -------------------------------------------------------------
    def generate_sequence(self, count: int) -> list[str]:
        """Return ``count`` positions spaced by the default gap, starting at one gap."""
        return [self._from_units(self._default_gap_units * i) for i in range(1, count + 1)]

    def generate_between(
        self, lower: PositionInput, upper: PositionInput, count: int
    ) -> list[str]:
        """Return ``count`` distinct ascending positions strictly inside the bounds.

        Each position sits in its own slot around ``lower + i * gap / (count + 1)``
        and is jittered by at most a quarter of the slot width, which keeps the
        results distinct and roughly evenly spread.

        Raises:
            InvalidBoundsError: If ``lower >= upper``.
            PrecisionExhaustedError: If the interval cannot hold ``count`` values.
        """
        if count < 1:
            return []
        low, high = self._ordered_units(lower, upper)
        span = high - low
        if span < count + 1:
            raise PrecisionExhaustedError(
                self._from_units(low), self._from_units(high), needed=count
            )

        slot = span // (count + 1)
        radius = slot // 4
        positions = []
        for index in range(1, count + 1):
            target = low + span * index // (count + 1)
            offset = secrets.randbelow(2 * radius + 1) - radius if radius else 0
            positions.append(self._from_units(target + offset))
        return positions

    # --- comparisons ------------------------------------------------------------------
    def compare(self, left: PositionInput, right: PositionInput) -> int:
        """Return -1, 0 or 1 like a classic three-way comparison."""
        a = self._to_units(left)
        b = self._to_units(right)
        return (a > b) - (a < b)

    def less_than(self, left: PositionInput, right: PositionInput) -> bool:
        return self.compare(left, right) < 0

    def greater_than(self, left: PositionInput, right: PositionInput) -> bool:
        return self.compare(left, right) > 0

    def gap(self, lower: PositionInput, upper: PositionInput) -> str:
        """Return ``upper - lower`` as a normalized position string."""
        return self._from_units(self._to_units(upper) - self._to_units(lower))

    def sum_gaps(self, gaps: list[str]) -> str:
        return self._from_units(sum(self._to_units(gap) for gap in gaps))

    def divide(self, value: PositionInput, divisor: int) -> str:
        """Divide a position by an integer, truncating to the configured scale."""
        units = self._to_units(value)
        quotient = abs(units) // divisor
        return self._from_units(-quotient if units < 0 else quotient)

    def _ordered_units(self, lower: PositionInput, upper: PositionInput) -> tuple[int, int]:
        low = self._to_units(lower)
        high = self._to_units(upper)
        if low >= high:
            raise InvalidBoundsError(self._from_units(low), self._from_units(high))
        return low, high

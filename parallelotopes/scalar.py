"""
parallelotopes/scalar.py
════════════════════════

Extended numbers and directed-rounding arithmetic.

Every other module of the domain relies on this one for soundness: a
computation that can lose precision must round *outward*, in the direction
that keeps the final abstract value a superset of the concrete set.

    ┌───────────────────────────────────────────────────────────────┐
    │  Bound      — Fraction  ∪  {-∞, +∞}  (finite values are exact) │
    │  NumKind    — RATIONAL (exact)  |  FLOAT (binary64, software)  │
    │  Rounding   — DOWN (toward -∞)  |  UP (toward +∞)              │
    │  BoundArith — add / sub / mul / div / neg / compare            │
    │  Interval   — [lo, hi] over bounds, outward-rounded operations │
    └───────────────────────────────────────────────────────────────┘

The rounding direction is an explicit argument of every call; there is no
ambient floating-point environment to configure.  In ``FLOAT`` mode the
exact rational result is computed first and then rounded to the adjacent
binary64 value with ``math.nextafter``, so the result never depends on the
host FPU rounding mode.
"""

from __future__ import annotations

import enum
import math
import sys
from dataclasses import dataclass
from fractions import Fraction
from typing import Final, Iterable, Union

from .errors import InvalidArgumentError


# ═══════════════════════════════════════════════════════════════════════════
#  PART 0 — BOUNDS
# ═══════════════════════════════════════════════════════════════════════════

NEG_INF: Final[float] = float("-inf")
POS_INF: Final[float] = float("inf")

Bound = Union[Fraction, float]          # float only for ±∞
Number = Union[int, float, Fraction, str]

_ZERO: Final[Fraction] = Fraction(0)
_ONE: Final[Fraction] = Fraction(1)

_INF_SPELLINGS = {
    "inf": POS_INF, "+inf": POS_INF, "oo": POS_INF, "+oo": POS_INF,
    "infinity": POS_INF, "+infinity": POS_INF,
    "-inf": NEG_INF, "-oo": NEG_INF, "-infinity": NEG_INF,
}


class Rounding(enum.Enum):
    """Rounding direction of a bound computation."""
    DOWN = "down"   # toward -∞ : used for lower bounds
    UP = "up"       # toward +∞ : used for upper bounds


class NumKind(enum.Enum):
    """Number representation used for bounds."""
    RATIONAL = "mpq"
    FLOAT = "double"


def to_bound(value: Number) -> Bound:
    """Convert a user-supplied number into a bound.

    ``int``/``Fraction``/finite ``float`` become exact ``Fraction`` values;
    infinite floats and the usual spellings of infinity stay ``±inf``.
    NaN is rejected.
    """
    if isinstance(value, Fraction):
        return value
    if isinstance(value, bool):
        raise InvalidArgumentError(f"not a number: {value!r}")
    if isinstance(value, int):
        return Fraction(value)
    if isinstance(value, float):
        if math.isnan(value):
            raise InvalidArgumentError("NaN is not a valid bound")
        if math.isinf(value):
            return value
        return Fraction(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _INF_SPELLINGS:
            return _INF_SPELLINGS[text]
        try:
            return Fraction(text)
        except (ValueError, ZeroDivisionError) as exc:
            raise InvalidArgumentError(f"cannot read a number from {value!r}") from exc
    raise InvalidArgumentError(f"unsupported number type: {type(value).__name__}")


def is_finite(b: Bound) -> bool:
    return not (isinstance(b, float) and math.isinf(b))


def is_pos_inf(b: Bound) -> bool:
    return isinstance(b, float) and b == POS_INF


def is_neg_inf(b: Bound) -> bool:
    return isinstance(b, float) and b == NEG_INF


def sign(b: Bound) -> int:
    if b > 0:
        return 1
    if b < 0:
        return -1
    return 0


def ceil_bound(b: Bound) -> Bound:
    """Smallest integer ≥ b (infinities unchanged)."""
    if not is_finite(b):
        return b
    return Fraction(math.ceil(b))


def floor_bound(b: Bound) -> Bound:
    """Largest integer ≤ b (infinities unchanged)."""
    if not is_finite(b):
        return b
    return Fraction(math.floor(b))


def format_bound(b: Bound) -> str:
    if is_pos_inf(b):
        return "+∞"
    if is_neg_inf(b):
        return "-∞"
    if b.denominator == 1:
        return str(b.numerator)
    return f"{b.numerator}/{b.denominator}"


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — SOFTWARE ROUNDING TO BINARY64
# ═══════════════════════════════════════════════════════════════════════════

_MAX_DOUBLE: Final[Fraction] = Fraction(sys.float_info.max)


def round_to_double(q: Fraction, rnd: Rounding) -> Bound:
    """Round the exact rational *q* to an adjacent binary64 value.

    The result is ≥ q for ``UP`` and ≤ q for ``DOWN``; it is returned as
    the exact ``Fraction`` of that double, or as ``±inf`` on overflow.
    """
    try:
        f = float(q)
    except OverflowError:
        f = POS_INF if q > 0 else NEG_INF
    if math.isinf(f):
        if f > 0:
            return POS_INF if rnd is Rounding.UP else _MAX_DOUBLE
        return NEG_INF if rnd is Rounding.DOWN else -_MAX_DOUBLE
    exact = Fraction(f)
    if exact == q:
        return exact
    if rnd is Rounding.UP and exact < q:
        f = math.nextafter(f, POS_INF)
    elif rnd is Rounding.DOWN and exact > q:
        f = math.nextafter(f, NEG_INF)
    if math.isinf(f):
        return f
    return Fraction(f)


def float_environment_is_ieee() -> bool:
    """Whether the host ``float`` is IEEE-754 binary64."""
    info = sys.float_info
    return info.radix == 2 and info.mant_dig == 53 and info.max_exp == 1024


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — DIRECTED-ROUNDING BOUND ARITHMETIC
# ═══════════════════════════════════════════════════════════════════════════

class BoundArith:
    """Bound arithmetic for one number kind.

    Every operation takes the rounding direction explicitly.  Undefined
    combinations (``+∞ + -∞``, ``0 · ∞``, ``∞ / ∞``, ``x / 0``) resolve to the
    widest result in the requested direction: ``+∞`` when rounding up,
    ``-∞`` when rounding down.
    """

    __slots__ = ("kind",)

    def __init__(self, kind: NumKind = NumKind.RATIONAL) -> None:
        self.kind = kind

    def __repr__(self) -> str:
        return f"BoundArith({self.kind.name})"

    @staticmethod
    def _widest(rnd: Rounding) -> float:
        return POS_INF if rnd is Rounding.UP else NEG_INF

    def round(self, q: Bound, rnd: Rounding) -> Bound:
        if not is_finite(q) or self.kind is NumKind.RATIONAL:
            return q
        return round_to_double(q, rnd)

    def neg(self, a: Bound) -> Bound:
        return -a

    def add(self, a: Bound, b: Bound, rnd: Rounding) -> Bound:
        fa, fb = is_finite(a), is_finite(b)
        if fa and fb:
            return self.round(a + b, rnd)
        if not fa and not fb and a != b:
            return self._widest(rnd)
        return a if not fa else b

    def sub(self, a: Bound, b: Bound, rnd: Rounding) -> Bound:
        return self.add(a, -b, rnd)

    def mul(self, a: Bound, b: Bound, rnd: Rounding) -> Bound:
        fa, fb = is_finite(a), is_finite(b)
        if fa and fb:
            return self.round(a * b, rnd)
        if a == 0 or b == 0:
            return self._widest(rnd)
        return POS_INF if sign(a) * sign(b) > 0 else NEG_INF

    def div(self, a: Bound, b: Bound, rnd: Rounding) -> Bound:
        if b == 0:
            return self._widest(rnd)
        fa, fb = is_finite(a), is_finite(b)
        if fa and fb:
            return self.round(a / b, rnd)
        if not fa and not fb:
            return self._widest(rnd)
        if not fb:
            return _ZERO
        return POS_INF if sign(a) * sign(b) > 0 else NEG_INF

    @staticmethod
    def compare(a: Bound, b: Bound) -> int:
        """-1, 0 or 1 as a is below, equal to or above b."""
        if a < b:
            return -1
        if a > b:
            return 1
        return 0

    def dot(self, coeffs: Iterable[Fraction], itvs: Iterable["Interval"]) -> "Interval":
        """Σ cᵢ·Iᵢ with outward rounding (zero coefficients are skipped)."""
        lo: Bound = _ZERO
        hi: Bound = _ZERO
        for c, itv in zip(coeffs, itvs):
            if c == 0:
                continue
            term = itv.scale(c, self)
            lo = self.add(lo, term.lo, Rounding.DOWN)
            hi = self.add(hi, term.hi, Rounding.UP)
        return Interval(lo, hi)


EXACT: Final[BoundArith] = BoundArith(NumKind.RATIONAL)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — INTERVALS
# ═══════════════════════════════════════════════════════════════════════════
#
#  [lo, hi] with lo > hi  ⟹  empty.  Operations take an optional
#  BoundArith so that callers in FLOAT mode get outward rounding; the
#  default is exact rational arithmetic.
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class Interval:
    """
    Closed interval ``[lo, hi]`` over extended bounds.

    Examples
    --------
    >>> Interval(0, 5).meet(Interval(3, 10))
    [3, 5]
    >>> Interval(1, 2).mul(Interval(-1, "+inf"))
    [-2, +∞]
    """
    lo: Bound
    hi: Bound

    def __post_init__(self) -> None:
        object.__setattr__(self, "lo", to_bound(self.lo))
        object.__setattr__(self, "hi", to_bound(self.hi))

    # ---- Constructors ----------------------------------------------------

    @classmethod
    def top(cls) -> Interval:
        return cls(NEG_INF, POS_INF)

    @classmethod
    def bottom(cls) -> Interval:
        return cls(_ONE, _ZERO)

    @classmethod
    def point(cls, v: Number) -> Interval:
        b = to_bound(v)
        return cls(b, b)

    @classmethod
    def of(cls, value: Union["Interval", Number, tuple, list]) -> Interval:
        """Coerce a number, a pair or an interval into an ``Interval``."""
        if isinstance(value, Interval):
            return value
        if isinstance(value, (tuple, list)):
            if len(value) != 2:
                raise InvalidArgumentError(f"an interval needs two bounds, got {value!r}")
            return cls(value[0], value[1])
        return cls.point(value)

    # ---- Predicates ------------------------------------------------------

    def is_bottom(self) -> bool:
        return self.lo > self.hi

    def is_top(self) -> bool:
        return is_neg_inf(self.lo) and is_pos_inf(self.hi)

    def is_point(self) -> bool:
        return self.lo == self.hi and is_finite(self.lo)

    def is_zero(self) -> bool:
        return self.lo == 0 and self.hi == 0

    def is_bounded(self) -> bool:
        return is_finite(self.lo) and is_finite(self.hi)

    def contains(self, v: Number) -> bool:
        b = to_bound(v)
        return self.lo <= b <= self.hi

    def __contains__(self, v: Number) -> bool:
        return self.contains(v)

    def leq(self, other: Interval) -> bool:
        """Inclusion ``self ⊆ other``."""
        if self.is_bottom():
            return True
        if other.is_bottom():
            return False
        return other.lo <= self.lo and self.hi <= other.hi

    # ---- Lattice ---------------------------------------------------------

    def meet(self, other: Interval) -> Interval:
        lo = max(self.lo, other.lo)
        hi = min(self.hi, other.hi)
        if lo > hi:
            return Interval.bottom()
        return Interval(lo, hi)

    def join(self, other: Interval) -> Interval:
        if self.is_bottom():
            return other
        if other.is_bottom():
            return self
        return Interval(min(self.lo, other.lo), max(self.hi, other.hi))

    # ---- Arithmetic ------------------------------------------------------

    def neg(self) -> Interval:
        if self.is_bottom():
            return self
        return Interval(-self.hi, -self.lo)

    def add(self, other: Interval, arith: BoundArith = EXACT) -> Interval:
        if self.is_bottom() or other.is_bottom():
            return Interval.bottom()
        return Interval(
            arith.add(self.lo, other.lo, Rounding.DOWN),
            arith.add(self.hi, other.hi, Rounding.UP),
        )

    def sub(self, other: Interval, arith: BoundArith = EXACT) -> Interval:
        return self.add(other.neg(), arith)

    def scale(self, c: Fraction, arith: BoundArith = EXACT) -> Interval:
        """c · [lo, hi] for a finite scalar c."""
        if self.is_bottom():
            return self
        if c == 0:
            return Interval(_ZERO, _ZERO)
        if c > 0:
            return Interval(
                arith.mul(c, self.lo, Rounding.DOWN),
                arith.mul(c, self.hi, Rounding.UP),
            )
        return Interval(
            arith.mul(c, self.hi, Rounding.DOWN),
            arith.mul(c, self.lo, Rounding.UP),
        )

    def mul(self, other: Interval, arith: BoundArith = EXACT) -> Interval:
        """
        [a,b] × [c,d] by sign case split.

        The exact zero interval is handled first so that ``0 · ∞`` never
        occurs in a product of two non-degenerate intervals.
        """
        if self.is_bottom() or other.is_bottom():
            return Interval.bottom()
        if self.is_zero() or other.is_zero():
            return Interval(_ZERO, _ZERO)
        a, b, c, d = self.lo, self.hi, other.lo, other.hi
        m = arith.mul
        down, up = Rounding.DOWN, Rounding.UP
        if a >= 0:
            if c >= 0:
                return Interval(m(a, c, down), m(b, d, up))
            if d <= 0:
                return Interval(m(b, c, down), m(a, d, up))
            return Interval(m(b, c, down), m(b, d, up))
        if b <= 0:
            if c >= 0:
                return Interval(m(a, d, down), m(b, c, up))
            if d <= 0:
                return Interval(m(b, d, down), m(a, c, up))
            return Interval(m(a, d, down), m(a, c, up))
        if c >= 0:
            return Interval(m(a, d, down), m(b, d, up))
        if d <= 0:
            return Interval(m(b, c, down), m(a, c, up))
        return Interval(
            min(m(a, d, down), m(b, c, down)),
            max(m(a, c, up), m(b, d, up)),
        )

    def div(self, other: Interval, arith: BoundArith = EXACT) -> Interval:
        """[a,b] / [c,d]; the full range when 0 ∈ [c,d]."""
        if self.is_bottom() or other.is_bottom():
            return Interval.bottom()
        if other.contains(0):
            return Interval.top()
        recip = Interval(
            arith.div(_ONE, other.hi, Rounding.DOWN),
            arith.div(_ONE, other.lo, Rounding.UP),
        )
        return self.mul(recip, arith)

    def midpoint(self) -> Fraction:
        """A finite point of the interval (0 when it is unbounded on both sides)."""
        lo_f, hi_f = is_finite(self.lo), is_finite(self.hi)
        if lo_f and hi_f:
            return (self.lo + self.hi) / 2
        if lo_f:
            return self.lo
        if hi_f:
            return self.hi
        return _ZERO

    def magnitude(self) -> Bound:
        """max(|lo|, |hi|)."""
        return max(abs(self.lo), abs(self.hi))

    def __repr__(self) -> str:
        if self.is_bottom():
            return "[⊥]"
        return f"[{format_bound(self.lo)}, {format_bound(self.hi)}]"

"""
parallelotopes/texpr.py
═══════════════════════

Tree expressions and their linearisation.

A tree expression is built from constants (intervals), dimensions, unary
and binary operators.  The domain never evaluates trees directly: every
tree is first *linearised* against the abstract value into an
interval-linear expression ``Σ [aᵢ,bᵢ]·xᵢ + [c,d]`` (a ``Linexpr`` with
interval coefficients), which over-approximates the tree on that value.

    Cst / Dim              →  exact
    neg, add, sub          →  exact (on interval-linear forms)
    mul by a constant side →  scale
    div by a constant side →  scale by the reciprocal interval
    anything else          →  replaced by its interval bound on the value

Building trees is helped by operator overloading::

    >>> e = (Dim(0) + 1) * 2 - Dim(1)
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from fractions import Fraction
from typing import Callable, List, Optional, Union

from .errors import InvalidArgumentError
from .linear import ConsType, Linexpr
from .scalar import (
    NEG_INF,
    POS_INF,
    Interval,
    Number,
    Rounding,
    floor_bound,
    ceil_bound,
    is_finite,
    round_to_double,
)

BoundFn = Callable[[Linexpr], Interval]


class TexprOp(enum.Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    POW = "^"
    NEG = "neg"
    CAST = "cast"
    SQRT = "sqrt"


_BINARY = {TexprOp.ADD, TexprOp.SUB, TexprOp.MUL, TexprOp.DIV, TexprOp.MOD, TexprOp.POW}
_UNARY = {TexprOp.NEG, TexprOp.CAST, TexprOp.SQRT}


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — TREE NODES
# ═══════════════════════════════════════════════════════════════════════════

TexprLike = Union["Texpr", Number, Interval]


def _lift(x: TexprLike) -> "Texpr":
    if isinstance(x, Texpr):
        return x
    return Cst(Interval.of(x))


class Texpr:
    """Base class of tree-expression nodes."""

    __slots__ = ()

    def dims(self) -> List[int]:
        raise NotImplementedError

    def max_dim(self) -> int:
        return max(self.dims(), default=-1)

    def __add__(self, other: TexprLike) -> "Texpr":
        return Binop(TexprOp.ADD, self, _lift(other))

    def __radd__(self, other: TexprLike) -> "Texpr":
        return Binop(TexprOp.ADD, _lift(other), self)

    def __sub__(self, other: TexprLike) -> "Texpr":
        return Binop(TexprOp.SUB, self, _lift(other))

    def __rsub__(self, other: TexprLike) -> "Texpr":
        return Binop(TexprOp.SUB, _lift(other), self)

    def __mul__(self, other: TexprLike) -> "Texpr":
        return Binop(TexprOp.MUL, self, _lift(other))

    def __rmul__(self, other: TexprLike) -> "Texpr":
        return Binop(TexprOp.MUL, _lift(other), self)

    def __truediv__(self, other: TexprLike) -> "Texpr":
        return Binop(TexprOp.DIV, self, _lift(other))

    def __mod__(self, other: TexprLike) -> "Texpr":
        return Binop(TexprOp.MOD, self, _lift(other))

    def __pow__(self, other: TexprLike) -> "Texpr":
        return Binop(TexprOp.POW, self, _lift(other))

    def __neg__(self) -> "Texpr":
        return Unop(TexprOp.NEG, self)


@dataclass(frozen=True, eq=True)
class Cst(Texpr):
    value: Interval

    def dims(self) -> List[int]:
        return []

    def __repr__(self) -> str:
        return repr(self.value.lo) if self.value.is_point() else repr(self.value)


@dataclass(frozen=True, eq=True)
class Dim(Texpr):
    dim: int

    def __post_init__(self) -> None:
        if not isinstance(self.dim, int) or self.dim < 0:
            raise InvalidArgumentError(f"bad dimension in tree expression: {self.dim!r}")

    def dims(self) -> List[int]:
        return [self.dim]

    def __repr__(self) -> str:
        return f"x{self.dim}"


@dataclass(frozen=True, eq=True)
class Unop(Texpr):
    op: TexprOp
    arg: Texpr

    def __post_init__(self) -> None:
        if self.op not in _UNARY:
            raise InvalidArgumentError(f"{self.op} is not a unary operator")

    def dims(self) -> List[int]:
        return self.arg.dims()

    def __repr__(self) -> str:
        if self.op is TexprOp.NEG:
            return f"-({self.arg!r})"
        return f"{self.op.value}({self.arg!r})"


@dataclass(frozen=True, eq=True)
class Binop(Texpr):
    op: TexprOp
    left: Texpr
    right: Texpr

    def __post_init__(self) -> None:
        if self.op not in _BINARY:
            raise InvalidArgumentError(f"{self.op} is not a binary operator")

    def dims(self) -> List[int]:
        return sorted(set(self.left.dims()) | set(self.right.dims()))

    def __repr__(self) -> str:
        return f"({self.left!r} {self.op.value} {self.right!r})"


def sqrt(arg: TexprLike) -> Texpr:
    return Unop(TexprOp.SQRT, _lift(arg))


def cast(arg: TexprLike) -> Texpr:
    """Conversion to an integer type (rounding direction unspecified)."""
    return Unop(TexprOp.CAST, _lift(arg))


def of_linexpr(expr: Linexpr) -> Texpr:
    """The tree form of a linear expression."""
    tree: Optional[Texpr] = None
    for d in expr.dims():
        c = expr.coeffs[d]
        term: Texpr = Dim(d) if c.is_point() and c.lo == 1 else Binop(TexprOp.MUL, Cst(c), Dim(d))
        tree = term if tree is None else Binop(TexprOp.ADD, tree, term)
    if tree is None:
        return Cst(expr.cst)
    if not expr.cst.is_zero():
        tree = Binop(TexprOp.ADD, tree, Cst(expr.cst))
    return tree


@dataclass(frozen=True)
class Tcons:
    """Tree constraint ``expr ⋈ 0``."""
    expr: Texpr
    constyp: ConsType = ConsType.SUPEQ
    modulo: Optional[Fraction] = None

    def __repr__(self) -> str:
        return f"{self.expr!r} {self.constyp.value} 0"


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — INTERVAL HELPERS FOR NON-LINEAR NODES
# ═══════════════════════════════════════════════════════════════════════════

def _sqrt_down(q: Fraction) -> Fraction:
    r = round_to_double(Fraction(math.sqrt(float(q))), Rounding.DOWN)
    while r > 0 and r * r > q:
        r = Fraction(math.nextafter(float(r), NEG_INF))
    return max(r, Fraction(0))


def _sqrt_up(q: Fraction) -> Fraction:
    r = round_to_double(Fraction(math.sqrt(float(q))), Rounding.UP)
    while r * r < q:
        r = Fraction(math.nextafter(float(r), POS_INF))
    return r


def interval_sqrt(x: Interval) -> Interval:
    if x.is_bottom() or x.hi < 0:
        return Interval.bottom()
    lo = Fraction(0) if x.lo <= 0 else _sqrt_down(x.lo)
    hi = x.hi if not is_finite(x.hi) else _sqrt_up(x.hi)
    return Interval(lo, hi)


def interval_mod(x: Interval, y: Interval) -> Interval:
    """Truncated remainder: sign of the dividend, magnitude below |divisor|."""
    if x.is_bottom() or y.is_bottom():
        return Interval.bottom()
    if y.contains(0):
        return Interval.top()
    m = y.magnitude()
    if x.lo >= 0:
        return Interval(0, min(m, x.hi))
    if x.hi <= 0:
        return Interval(max(-m, x.lo), 0)
    return Interval(-m, m)


def interval_pow(x: Interval, y: Interval) -> Interval:
    if x.is_bottom() or y.is_bottom():
        return Interval.bottom()
    if not (y.is_point() and y.lo.denominator == 1 and y.lo >= 0):
        return Interval.top()
    k = int(y.lo)
    result = Interval.point(1)
    for _ in range(k):
        result = result.mul(x)
    if k % 2 == 0 and k > 0:
        result = result.meet(Interval(0, POS_INF))
    return result


def interval_cast(x: Interval) -> Interval:
    if x.is_bottom():
        return x
    return Interval(floor_bound(x.lo), ceil_bound(x.hi))


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — LINEARISATION
# ═══════════════════════════════════════════════════════════════════════════

def linearize(expr: Texpr, bound: BoundFn) -> Linexpr:
    """Interval-linear over-approximation of *expr*.

    *bound* gives the range of an interval-linear expression on the
    abstract value the tree is evaluated in.
    """
    if isinstance(expr, Cst):
        return Linexpr.constant(expr.value)
    if isinstance(expr, Dim):
        return Linexpr.dim(expr.dim)
    if isinstance(expr, Unop):
        arg = linearize(expr.arg, bound)
        if expr.op is TexprOp.NEG:
            return arg.negate()
        if expr.op is TexprOp.SQRT:
            return Linexpr.constant(interval_sqrt(bound(arg)))
        return Linexpr.constant(interval_cast(bound(arg)))
    if isinstance(expr, Binop):
        left = linearize(expr.left, bound)
        right = linearize(expr.right, bound)
        op = expr.op
        if op is TexprOp.ADD:
            return left.add(right)
        if op is TexprOp.SUB:
            return left.sub(right)
        if op is TexprOp.MUL:
            if right.is_constant():
                return left.scale(right.cst)
            if left.is_constant():
                return right.scale(left.cst)
            return left.scale(bound(right))
        if op is TexprOp.DIV:
            if right.is_constant() and not right.cst.contains(0):
                return left.scale(Interval.point(1).div(right.cst))
            return Linexpr.constant(bound(left).div(bound(right)))
        if op is TexprOp.MOD:
            return Linexpr.constant(interval_mod(bound(left), bound(right)))
        return Linexpr.constant(interval_pow(bound(left), bound(right)))
    raise InvalidArgumentError(f"unknown tree expression node {expr!r}")

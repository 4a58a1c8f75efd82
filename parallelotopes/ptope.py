"""
parallelotopes/ptope.py
═══════════════════════

The parallelotope value and its normalisation.

    ┌──────────────────────────────────────────────────────────────────┐
    │  Bottom  — basis is None                          (empty set)    │
    │  Normal  — basis B (n×n, invertible, exact)                      │
    │            bounds [lᵢ, uᵢ] per row   {x : lᵢ ≤ (B·x)ᵢ ≤ uᵢ}      │
    │  Top     — Normal value whose bounds are all (-∞, +∞)            │
    └──────────────────────────────────────────────────────────────────┘

A Normal value never denotes the empty set: every operation that can
shrink bounds finishes with ``normalize``, which turns a value with an
empty row into Bottom.  Since ``B`` is invertible, a Normal value with
non-empty rows always contains a point.

Operations of the other modules *consume* their first ``Ptope`` operand:
they mutate it and return it.  The manager takes copies when a caller asks
for the non-destructive form.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import List, Optional, Sequence

from . import matrix as mx
from .errors import InvalidArgumentError
from .linear import Dimension
from .scalar import (
    EXACT,
    BoundArith,
    Interval,
    ceil_bound,
    floor_bound,
    format_bound,
)

_log = logging.getLogger(__name__)


@dataclass
class OpContext:
    """Per-call settings and the exactness report of one operation."""
    arith: BoundArith = EXACT
    integer_tightening: bool = True
    max_generator_vertices: int = 1 << 12
    exact: bool = True

    def inexact(self, reason: str) -> None:
        if self.exact:
            _log.debug("precision loss: %s", reason)
        self.exact = False


def ensure_context(ctx: Optional[OpContext]) -> OpContext:
    return ctx if ctx is not None else OpContext()


class Ptope:
    """
    A parallelotope over ``dim.size`` variables.

    Examples
    --------
    >>> p = Ptope.top(Dimension(0, 2))
    >>> p.bounds[0] = Interval(0, 5)
    >>> p
    Ptope(real=2: 0 ≤ x0 ≤ 5)
    """

    __slots__ = ("dim", "basis", "bounds", "_inverse")

    def __init__(
        self,
        dim: Dimension,
        basis: Optional[mx.Matrix],
        bounds: Optional[List[Interval]],
    ) -> None:
        self.dim = dim
        self.basis = basis
        self.bounds = bounds
        self._inverse: Optional[mx.Matrix] = None
        if basis is not None:
            n = dim.size
            if bounds is None or len(basis) != n or len(bounds) != n:
                raise InvalidArgumentError(f"basis/bounds do not match dimension {n}")
            if any(len(row) != n for row in basis):
                raise InvalidArgumentError("basis is not square")

    # ---- Constructors ----------------------------------------------------

    @classmethod
    def bottom(cls, dim: Dimension) -> Ptope:
        return cls(dim, None, None)

    @classmethod
    def top(cls, dim: Dimension) -> Ptope:
        n = dim.size
        return cls(dim, mx.identity(n), [Interval.top() for _ in range(n)])

    @classmethod
    def from_rows(
        cls, dim: Dimension, basis: Sequence[Sequence], bounds: Sequence[Interval]
    ) -> Ptope:
        """Build a Normal value, checking that *basis* is invertible."""
        b = [[Fraction(x) for x in row] for row in basis]
        if not mx.is_invertible(b):
            raise InvalidArgumentError("basis is singular")
        return cls(dim, b, [Interval.of(itv) for itv in bounds])

    def copy(self) -> Ptope:
        if self.basis is None:
            return Ptope.bottom(self.dim)
        out = Ptope(self.dim, mx.copy_matrix(self.basis), list(self.bounds))
        out._inverse = self._inverse
        return out

    def assign(self, other: Ptope) -> Ptope:
        """Take over the content of *other* (used by consuming operations)."""
        self.dim = other.dim
        self.basis = other.basis
        self.bounds = other.bounds
        self._inverse = other._inverse
        return self

    # ---- Variants --------------------------------------------------------

    def is_bottom(self) -> bool:
        return self.basis is None

    def is_top(self) -> bool:
        return self.basis is not None and all(b.is_top() for b in self.bounds)

    def set_bottom(self) -> Ptope:
        self.basis = None
        self.bounds = None
        self._inverse = None
        return self

    @property
    def n(self) -> int:
        return self.dim.size

    # ---- Basis -----------------------------------------------------------

    def inverse(self) -> mx.Matrix:
        """``B⁻¹``, computed on demand and cached until the basis changes."""
        if self.basis is None:
            raise InvalidArgumentError("bottom has no basis")
        if self._inverse is None:
            inv = mx.invert(self.basis)
            if inv is None:
                raise InvalidArgumentError("parallelotope basis became singular")
            self._inverse = inv
        return self._inverse

    def set_row(self, i: int, row: mx.Vector, bound: Interval) -> None:
        self.basis[i] = list(row)
        self.bounds[i] = bound
        self._inverse = None

    def set_basis(self, basis: mx.Matrix, bounds: List[Interval]) -> None:
        self.basis = basis
        self.bounds = bounds
        self._inverse = None

    def coords(self, r: Sequence) -> mx.Vector:
        """``λ`` with ``λ·B = r``: the direction *r* in row coordinates."""
        return mx.vec_mat(r, self.inverse())

    def row_is_integral(self, i: int) -> bool:
        """Row i has integer coefficients on integer dimensions only."""
        intdim = self.dim.intdim
        return all(
            c == 0 or (j < intdim and c.denominator == 1)
            for j, c in enumerate(self.basis[i])
        )

    def size(self) -> int:
        """Number of scalars stored: ``n² + 2n``, or 0 for bottom."""
        if self.basis is None:
            return 0
        n = self.n
        return n * n + 2 * n

    # ---- Pretty form -----------------------------------------------------

    def format(self, names: Optional[Sequence[str]] = None) -> str:
        """One ``lo ≤ row ≤ hi`` line per bounded row."""
        if self.basis is None:
            return "⊥"
        names = list(names) if names is not None else [f"x{j}" for j in range(self.n)]
        lines = []
        for row, itv in zip(self.basis, self.bounds):
            if itv.is_top():
                continue
            terms = []
            for j, c in enumerate(row):
                if c == 0:
                    continue
                mag = abs(c)
                coef = "" if mag == 1 else f"{format_bound(mag)}·"
                terms.append(("- " if c < 0 else "+ ") + coef + names[j])
            text = " ".join(terms)
            text = text[2:] if text.startswith("+ ") else "-" + text[2:]
            if itv.is_point():
                lines.append(f"{text} = {format_bound(itv.lo)}")
            else:
                lines.append(f"{format_bound(itv.lo)} ≤ {text} ≤ {format_bound(itv.hi)}")
        return "; ".join(lines) if lines else "⊤"

    def __repr__(self) -> str:
        parts = []
        if self.dim.intdim:
            parts.append(f"int={self.dim.intdim}")
        if self.dim.realdim or not parts:
            parts.append(f"real={self.dim.realdim}")
        return f"Ptope({','.join(parts)}: {self.format()})"


# ═══════════════════════════════════════════════════════════════════════════
#  NORMALISATION
# ═══════════════════════════════════════════════════════════════════════════

def tighten_row(a: Ptope, i: int, ctx: OpContext) -> Interval:
    """Round row i's bounds inward to integers when the row is integer-valued."""
    itv = a.bounds[i]
    if ctx.integer_tightening and a.dim.intdim and not itv.is_bottom() and a.row_is_integral(i):
        itv = Interval(ceil_bound(itv.lo), floor_bound(itv.hi))
        a.bounds[i] = itv
    return itv


def normalize(a: Ptope, ctx: Optional[OpContext] = None) -> Ptope:
    """Integer tightening and bottom detection (the ``canonicalize`` pass)."""
    ctx = ensure_context(ctx)
    if a.basis is None:
        return a
    for i in range(a.n):
        if tighten_row(a, i, ctx).is_bottom():
            _log.debug("row %d is empty, value becomes bottom", i)
            return a.set_bottom()
    return a


def check_same_dim(a1: Ptope, a2: Ptope) -> None:
    if a1.dim != a2.dim:
        raise InvalidArgumentError(f"dimension mismatch: {a1.dim} vs {a2.dim}")

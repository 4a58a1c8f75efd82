"""
parallelotopes/linear.py
════════════════════════

Linear objects exchanged with the surrounding analyzer.

    Dimension   — (intdim, realdim) descriptor; integer dimensions first
    DimChange   — insertion/removal positions for add/remove_dimensions
    DimPerm     — permutation of dimensions
    Linexpr     — Σ cᵢ·xᵢ + c₀ with scalar or interval coefficients
    Lincons     — ``expr ⋈ 0`` with ⋈ ∈ {=, ≥, >, ≠, ≡ mod}
    Generator   — vertex / ray / line of a convex set

These mirror the APRON level-0 objects.  The domain consumes and produces
them through the converters but attaches no meaning beyond what is
documented here.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import InvalidArgumentError
from .scalar import Interval, Number, format_bound, is_finite, to_bound

Coeff = Union[Number, Interval]


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — DIMENSIONS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class Dimension:
    """Counts of integer and real dimensions."""
    intdim: int
    realdim: int

    def __post_init__(self) -> None:
        if self.intdim < 0 or self.realdim < 0:
            raise InvalidArgumentError(
                f"negative dimension counts ({self.intdim}, {self.realdim})"
            )

    @property
    def size(self) -> int:
        return self.intdim + self.realdim

    def is_int(self, d: int) -> bool:
        return d < self.intdim

    def check(self, d: int) -> int:
        """Validate a dimension index and return it."""
        if not isinstance(d, int) or isinstance(d, bool) or not 0 <= d < self.size:
            raise InvalidArgumentError(f"dimension {d!r} out of range 0..{self.size - 1}")
        return d

    def check_distinct(self, dims: Sequence[int]) -> List[int]:
        out = [self.check(d) for d in dims]
        if len(set(out)) != len(out):
            raise InvalidArgumentError(f"duplicate dimension in {list(dims)}")
        return out

    def __repr__(self) -> str:
        return f"Dimension(int={self.intdim}, real={self.realdim})"


@dataclass(frozen=True)
class DimChange:
    """
    Dimension change descriptor.

    For ``add_dimensions``: ``dim[i] = k`` inserts one new dimension before
    the original dimension ``k`` (``k`` may equal the old size to append).
    For ``remove_dimensions``: ``dim`` lists the dimensions to remove.
    ``intdim``/``realdim`` count the integer/real dimensions added or
    removed; the first ``intdim`` entries of ``dim`` are the integer ones.
    """
    dim: Tuple[int, ...]
    intdim: int
    realdim: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "dim", tuple(self.dim))
        if self.intdim < 0 or self.realdim < 0:
            raise InvalidArgumentError("negative counts in dimension change")
        if len(self.dim) != self.intdim + self.realdim:
            raise InvalidArgumentError(
                f"dimension change lists {len(self.dim)} positions for "
                f"{self.intdim}+{self.realdim} dimensions"
            )
        if any(b < a for a, b in zip(self.dim, self.dim[1:])):
            raise InvalidArgumentError(f"dimension change positions not sorted: {self.dim}")

    @property
    def size(self) -> int:
        return len(self.dim)


@dataclass(frozen=True)
class DimPerm:
    """Permutation: dimension ``i`` moves to position ``perm[i]``."""
    perm: Tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "perm", tuple(self.perm))
        n = len(self.perm)
        if sorted(self.perm) != list(range(n)):
            raise InvalidArgumentError(f"not a permutation of 0..{n - 1}: {self.perm}")

    @property
    def size(self) -> int:
        return len(self.perm)

    def inverse(self) -> DimPerm:
        inv = [0] * len(self.perm)
        for i, p in enumerate(self.perm):
            inv[p] = i
        return DimPerm(tuple(inv))

    @classmethod
    def identity(cls, n: int) -> DimPerm:
        return cls(tuple(range(n)))


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — LINEAR EXPRESSIONS
# ═══════════════════════════════════════════════════════════════════════════

def _as_interval(c: Coeff) -> Interval:
    if isinstance(c, Interval):
        return c
    return Interval.point(c)


class Linexpr:
    """
    Linear expression ``Σ cᵢ·xᵢ + c₀``.

    Coefficients and the constant may be scalars or intervals (an interval
    coefficient denotes any value within it).  Zero coefficients are
    dropped.

    Examples
    --------
    >>> Linexpr({0: 2, 1: -1}, 3)
    2·x0 - x1 + 3
    """

    __slots__ = ("coeffs", "cst")

    def __init__(self, coeffs: Optional[Mapping[int, Coeff]] = None, cst: Coeff = 0) -> None:
        self.coeffs: Dict[int, Interval] = {}
        for d, c in (coeffs or {}).items():
            if not isinstance(d, int) or d < 0:
                raise InvalidArgumentError(f"bad dimension in linear expression: {d!r}")
            itv = _as_interval(c)
            if not itv.is_zero():
                self.coeffs[d] = itv
        self.cst: Interval = _as_interval(cst)

    # ---- Constructors ----------------------------------------------------

    @classmethod
    def dim(cls, d: int, coeff: Coeff = 1) -> Linexpr:
        return cls({d: coeff})

    @classmethod
    def constant(cls, c: Coeff) -> Linexpr:
        return cls({}, c)

    @classmethod
    def from_dense(cls, coeffs: Sequence[Number], cst: Coeff = 0) -> Linexpr:
        return cls({i: c for i, c in enumerate(coeffs)}, cst)

    # ---- Queries ---------------------------------------------------------

    def is_scalar(self) -> bool:
        """All coefficients are points (the constant may be an interval)."""
        return all(c.is_point() for c in self.coeffs.values())

    def is_constant(self) -> bool:
        return not self.coeffs

    def dims(self) -> List[int]:
        return sorted(self.coeffs)

    def max_dim(self) -> int:
        return max(self.coeffs, default=-1)

    def coeff(self, d: int) -> Interval:
        return self.coeffs.get(d, Interval.point(0))

    def dense(self, n: int) -> List[Fraction]:
        """Scalar coefficient vector of length *n* (requires ``is_scalar``)."""
        if not self.is_scalar():
            raise InvalidArgumentError("expression has interval coefficients")
        if self.max_dim() >= n:
            raise InvalidArgumentError(
                f"expression mentions dimension {self.max_dim()} in a space of size {n}"
            )
        v = [Fraction(0)] * n
        for d, c in self.coeffs.items():
            v[d] = c.lo
        return v

    # ---- Algebra ---------------------------------------------------------

    def negate(self) -> Linexpr:
        return Linexpr({d: c.neg() for d, c in self.coeffs.items()}, self.cst.neg())

    def add(self, other: Linexpr) -> Linexpr:
        coeffs = dict(self.coeffs)
        for d, c in other.coeffs.items():
            coeffs[d] = coeffs[d].add(c) if d in coeffs else c
        return Linexpr(coeffs, self.cst.add(other.cst))

    def sub(self, other: Linexpr) -> Linexpr:
        return self.add(other.negate())

    def scale(self, k: Coeff) -> Linexpr:
        kk = _as_interval(k)
        return Linexpr({d: c.mul(kk) for d, c in self.coeffs.items()}, self.cst.mul(kk))

    def remap(self, mapping: Mapping[int, int]) -> Linexpr:
        return Linexpr({mapping[d]: c for d, c in self.coeffs.items()}, self.cst)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Linexpr):
            return NotImplemented
        return self.coeffs == other.coeffs and self.cst == other.cst

    def __hash__(self) -> int:
        return hash((tuple(sorted(self.coeffs.items(), key=lambda kv: kv[0])), self.cst))

    def __repr__(self) -> str:
        parts: List[str] = []
        for d in self.dims():
            c = self.coeffs[d]
            if c.is_point():
                v = c.lo
                mag = abs(v)
                sgn = "-" if v < 0 else "+"
                term = f"x{d}" if mag == 1 else f"{format_bound(mag)}·x{d}"
            else:
                sgn, term = "+", f"{c!r}·x{d}"
            parts.append(f"{sgn} {term}")
        if not self.cst.is_zero() or not parts:
            if self.cst.is_point():
                v = self.cst.lo
                parts.append(f"{'-' if v < 0 else '+'} {format_bound(abs(v))}")
            else:
                parts.append(f"+ {self.cst!r}")
        text = " ".join(parts)
        if text.startswith("+ "):
            text = text[2:]
        elif text.startswith("- "):
            text = "-" + text[2:]
        return text


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — LINEAR CONSTRAINTS
# ═══════════════════════════════════════════════════════════════════════════

class ConsType(enum.Enum):
    EQ = "="          # expr = 0
    SUPEQ = ">="      # expr ≥ 0
    SUP = ">"         # expr > 0
    EQMOD = "%="      # expr ≡ 0 mod k
    DISEQ = "!="      # expr ≠ 0


@dataclass(frozen=True)
class Lincons:
    """Linear constraint ``expr ⋈ 0``."""
    expr: Linexpr
    constyp: ConsType = ConsType.SUPEQ
    modulo: Optional[Fraction] = None

    def __post_init__(self) -> None:
        if self.constyp is ConsType.EQMOD and self.modulo is None:
            raise InvalidArgumentError("an EQMOD constraint needs a modulo")

    # Convenience constructors: ``a·x ⋈ c``
    @classmethod
    def le(cls, coeffs: Mapping[int, Coeff], c: Number) -> Lincons:
        """Σ coeffs·x ≤ c."""
        return cls(Linexpr(coeffs).negate().add(Linexpr.constant(c)), ConsType.SUPEQ)

    @classmethod
    def ge(cls, coeffs: Mapping[int, Coeff], c: Number) -> Lincons:
        """Σ coeffs·x ≥ c."""
        return cls(Linexpr(coeffs).add(Linexpr.constant(c).negate()), ConsType.SUPEQ)

    @classmethod
    def eq(cls, coeffs: Mapping[int, Coeff], c: Number) -> Lincons:
        """Σ coeffs·x = c."""
        return cls(Linexpr(coeffs).add(Linexpr.constant(c).negate()), ConsType.EQ)

    def is_unsat_constant(self) -> bool:
        """Constant constraint that is certainly false."""
        if not self.expr.is_constant():
            return False
        return not constant_constraint_may_hold(self.expr.cst, self.constyp, self.modulo)

    def __repr__(self) -> str:
        tail = f" mod {self.modulo}" if self.modulo is not None else ""
        return f"{self.expr!r} {self.constyp.value} 0{tail}"


def constant_constraint_may_hold(
    cst: Interval, constyp: ConsType, modulo: Optional[Fraction] = None
) -> bool:
    """Whether ``c ⋈ 0`` holds for some ``c`` in *cst*."""
    if cst.is_bottom():
        return False
    if constyp is ConsType.SUPEQ:
        return cst.hi >= 0
    if constyp is ConsType.SUP:
        return cst.hi > 0
    if constyp is ConsType.EQ:
        return cst.contains(0)
    if constyp is ConsType.DISEQ:
        return not (cst.lo == 0 and cst.hi == 0)
    if cst.is_point() and modulo:
        return (cst.lo / modulo).denominator == 1
    return True


def constant_constraint_holds(
    cst: Interval, constyp: ConsType, modulo: Optional[Fraction] = None
) -> bool:
    """Whether ``c ⋈ 0`` holds for every ``c`` in *cst*."""
    if cst.is_bottom():
        return True
    if constyp is ConsType.SUPEQ:
        return cst.lo >= 0
    if constyp is ConsType.SUP:
        return cst.lo > 0
    if constyp is ConsType.EQ:
        return cst.lo == 0 and cst.hi == 0
    if constyp is ConsType.DISEQ:
        return not cst.contains(0)
    if cst.is_point() and modulo:
        return (cst.lo / modulo).denominator == 1
    return False


# ═══════════════════════════════════════════════════════════════════════════
#  PART 4 — GENERATORS
# ═══════════════════════════════════════════════════════════════════════════

class GenType(enum.Enum):
    LINE = "line"
    RAY = "ray"
    VERTEX = "vertex"
    LINEMOD = "linemod"
    RAYMOD = "raymod"


@dataclass(frozen=True)
class Generator:
    """A vertex, ray or line given by its coordinates."""
    gentyp: GenType
    coords: Tuple[Fraction, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        coords = tuple(to_bound(c) for c in self.coords)
        if not all(is_finite(c) for c in coords):
            raise InvalidArgumentError("generator coordinates must be finite")
        object.__setattr__(self, "coords", coords)

    @classmethod
    def vertex(cls, coords: Iterable[Number]) -> Generator:
        return cls(GenType.VERTEX, tuple(coords))

    @classmethod
    def ray(cls, coords: Iterable[Number]) -> Generator:
        return cls(GenType.RAY, tuple(coords))

    @classmethod
    def line(cls, coords: Iterable[Number]) -> Generator:
        return cls(GenType.LINE, tuple(coords))

    def __repr__(self) -> str:
        inner = ", ".join(format_bound(c) for c in self.coords)
        return f"{self.gentyp.value}({inner})"

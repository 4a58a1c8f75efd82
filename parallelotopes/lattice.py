"""
parallelotopes/lattice.py
═════════════════════════

Lattice operations on parallelotopes.

    ┌───────────────────────────────────────────────────────────────────┐
    │  ORDER        is_bottom · is_top · is_leq · is_eq                 │
    │  MEET         meet_direction · meet · meet_array                  │
    │               meet_lincons_array · meet_tcons_array · seeding     │
    │  JOIN         join · join_array · add_ray_array                   │
    │  EXTRAPOLATE  widening · widening_thresholds · narrowing          │
    │               add_epsilon · add_epsilon_bin                       │
    └───────────────────────────────────────────────────────────────────┘

Meeting one constraint ``L ≤ r·x ≤ U`` into a value with basis ``B``
(``λ = r·B⁻¹``):

  1. ``λ`` has a single non-zero entry k  →  tighten row k (exact).
  2. a row k with ``λₖ ≠ 0`` is free       →  replace row k by ``r`` (exact,
     ``B`` stays invertible because ``λₖ ≠ 0``).  The free row with the
     largest ``|λₖ|`` is chosen, lowest index first.
  3. otherwise                             →  interval propagation: each
     row k with ``λₖ ≠ 0`` is tightened to
     ``([L,U] ∩ range(r·x) - Σ_{i≠k} λᵢ[lᵢ,uᵢ]) / λₖ``.  The basis is kept;
     the result contains the exact intersection.

All operations consume their first ``Ptope`` argument and return it.
"""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import Dict, List, Optional, Sequence, Tuple

from . import matrix as mx
from .errors import InvalidArgumentError, NotImplementedOperationError
from .linear import ConsType, GenType, Generator, Lincons, constant_constraint_may_hold
from .ptope import OpContext, Ptope, check_same_dim, ensure_context, normalize
from .properties import (
    bound_direction,
    linearize_texpr,
    max_finite_magnitude,
    quasi_linearize,
)
from .scalar import (
    NEG_INF,
    POS_INF,
    Interval,
    Number,
    Rounding,
    floor_bound,
    is_finite,
    to_bound,
)
from .texpr import Tcons

_log = logging.getLogger(__name__)

Direction = Tuple[mx.Vector, Interval]


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — ORDER
# ═══════════════════════════════════════════════════════════════════════════

def is_bottom(a: Ptope) -> bool:
    return a.is_bottom()


def is_top(a: Ptope) -> bool:
    return a.is_top()


def is_leq(a: Ptope, b: Ptope, ctx: Optional[OpContext] = None) -> bool:
    """Inclusion ``a ⊆ b``: every row of *b* bounds *a* within its interval."""
    check_same_dim(a, b)
    if a.is_bottom():
        return True
    if b.is_bottom():
        return False
    ctx = ensure_context(ctx)
    for row, itv in zip(b.basis, b.bounds):
        if itv.is_top():
            continue
        if not bound_direction(a, row, ctx).leq(itv):
            return False
    return True


def is_eq(a: Ptope, b: Ptope, ctx: Optional[OpContext] = None) -> bool:
    return is_leq(a, b, ctx) and is_leq(b, a, ctx)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — MEET
# ═══════════════════════════════════════════════════════════════════════════

def meet_direction(a: Ptope, r: Sequence[Fraction], itv: Interval,
                   ctx: Optional[OpContext] = None) -> Ptope:
    """Intersect *a* with ``{x : r·x ∈ itv}``."""
    ctx = ensure_context(ctx)
    if a.is_bottom():
        return a
    if itv.is_bottom():
        return a.set_bottom()
    if itv.is_top():
        return a
    if mx.is_zero(r):
        return a if itv.contains(0) else a.set_bottom()
    arith = ctx.arith
    lam = a.coords(r)
    support = mx.nonzero_support(lam)

    if len(support) == 1:
        k = support[0]
        a.bounds[k] = a.bounds[k].meet(itv.scale(1 / lam[k], arith))
        return normalize(a, ctx)

    free = [k for k in support if a.bounds[k].is_top()]
    if free:
        k = max(free, key=lambda i: (abs(lam[i]), -i))
        _log.debug("pivot: row %d replaced by constraint direction", k)
        a.set_row(k, list(r), itv)
        return normalize(a, ctx)

    current = arith.dot(lam, a.bounds)
    target = itv.meet(current)
    if target.is_bottom():
        return a.set_bottom()
    if target == current:
        return a
    ctx.inexact("constraint direction not in the basis, interval propagation")
    for k in support:
        rest = arith.dot(
            (c if i != k else Fraction(0) for i, c in enumerate(lam)), a.bounds
        )
        a.bounds[k] = a.bounds[k].meet(target.sub(rest, arith).scale(1 / lam[k], arith))
        if a.bounds[k].is_bottom():
            return a.set_bottom()
    return normalize(a, ctx)


def meet(a1: Ptope, a2: Ptope, ctx: Optional[OpContext] = None) -> Ptope:
    check_same_dim(a1, a2)
    ctx = ensure_context(ctx)
    if a1.is_bottom():
        return a1
    if a2.is_bottom():
        return a1.set_bottom()
    if a1.basis == a2.basis:
        a1.bounds = [x.meet(y) for x, y in zip(a1.bounds, a2.bounds)]
        return normalize(a1, ctx)
    for row, itv in zip(a2.basis, a2.bounds):
        if itv.is_top():
            continue
        meet_direction(a1, row, itv, ctx)
        if a1.is_bottom():
            break
    return a1


def meet_array(values: Sequence[Ptope], ctx: Optional[OpContext] = None) -> Ptope:
    """Left-to-right meet of a non-empty array (the first value is copied)."""
    if not values:
        raise InvalidArgumentError("meet of an empty array")
    result = values[0].copy()
    for v in values[1:]:
        meet(result, v, ctx)
    return result


# ---- Constraint systems ---------------------------------------------------

def _row_is_integral(dim, r: Sequence[Fraction]) -> bool:
    return all(c == 0 or (j < dim.intdim and c.denominator == 1) for j, c in enumerate(r))


def _direction_of(a: Ptope, cons: Lincons, ctx: OpContext) -> Optional[Direction]:
    """``(r, [L,U])`` with ``L ≤ r·x ≤ U`` implied by *cons*, or None."""
    expr = quasi_linearize(a, cons.expr, ctx)
    r = expr.dense(a.n)
    cst = expr.cst
    constyp = cons.constyp
    if constyp is ConsType.SUPEQ:
        return r, Interval(-cst.hi, POS_INF)
    if constyp is ConsType.SUP:
        lo = -cst.hi
        if ctx.integer_tightening and is_finite(lo) and _row_is_integral(a.dim, r):
            lo = floor_bound(lo) + 1
        return r, Interval(lo, POS_INF)
    if constyp is ConsType.EQ:
        return r, Interval(-cst.hi, -cst.lo)
    ctx.inexact(f"{constyp.name} constraint {cons!r} ignored")
    return None


def merge_directions(dirs: Sequence[Direction],
                     ctx: Optional[OpContext] = None) -> Optional[List[Direction]]:
    """Merge parallel directions, drop zero ones; None when unsatisfiable.

    The result is ordered two-sided first, then one-sided, stable.
    """
    ctx = ensure_context(ctx)
    merged: Dict[Tuple[Fraction, ...], Direction] = {}
    for r, itv in dirs:
        if itv.is_bottom():
            return None
        if mx.is_zero(r):
            if not itv.contains(0):
                return None
            continue
        first = next(c for c in r if c != 0)
        key = tuple(c / first for c in r)
        scaled = itv.scale(1 / first, ctx.arith)
        if key in merged:
            scaled = merged[key][1].meet(scaled)
            if scaled.is_bottom():
                return None
        merged[key] = (list(key), scaled)
    out = [d for d in merged.values() if not d[1].is_top()]

    def sides(d: Direction) -> int:
        return int(is_finite(d[1].lo)) + int(is_finite(d[1].hi))

    out.sort(key=lambda d: -sides(d))
    return out


def constraint_directions(a: Ptope, conss: Sequence[Lincons],
                          ctx: Optional[OpContext] = None) -> Optional[List[Direction]]:
    ctx = ensure_context(ctx)
    raw: List[Direction] = []
    for cons in conss:
        if cons.expr.max_dim() >= a.n:
            raise InvalidArgumentError(
                f"constraint {cons!r} mentions a dimension outside 0..{a.n - 1}"
            )
        if cons.expr.is_constant():
            if not constant_constraint_may_hold(cons.expr.cst, cons.constyp, cons.modulo):
                return None
            continue
        d = _direction_of(a, cons, ctx)
        if d is not None:
            raw.append(d)
    return merge_directions(raw, ctx)


def seed_from_directions(dim, dirs: Sequence[Direction],
                         ctx: Optional[OpContext] = None) -> Ptope:
    """Build a value from constraint directions.

    A maximal independent subset (two-sided directions first) becomes the
    basis, identity rows complete it, the remaining directions are met in.
    """
    ctx = ensure_context(ctx)
    merged = merge_directions(dirs, ctx)
    if merged is None:
        return Ptope.bottom(dim)
    n = dim.size
    echelon = mx.Echelon(n)
    rows: List[mx.Vector] = []
    bounds: List[Interval] = []
    rest: List[Direction] = []
    for r, itv in merged:
        if not echelon.full() and echelon.add(r):
            rows.append(list(r))
            bounds.append(itv)
        else:
            rest.append((r, itv))
    for j in mx.complete_with_identity(rows, n):
        rows.append(mx.unit(n, j))
        bounds.append(Interval.top())
    a = Ptope(dim, rows, bounds)
    normalize(a, ctx)
    for r, itv in rest:
        meet_direction(a, r, itv, ctx)
        if a.is_bottom():
            break
    return a


def meet_lincons_array(a: Ptope, conss: Sequence[Lincons],
                       ctx: Optional[OpContext] = None) -> Ptope:
    ctx = ensure_context(ctx)
    if a.is_bottom():
        return a
    dirs = constraint_directions(a, conss, ctx)
    if dirs is None:
        return a.set_bottom()
    if a.is_top():
        return a.assign(seed_from_directions(a.dim, dirs, ctx))
    for r, itv in dirs:
        meet_direction(a, r, itv, ctx)
        if a.is_bottom():
            break
    return a


def tcons_to_lincons(a: Ptope, cons: Tcons, ctx: Optional[OpContext] = None) -> Lincons:
    return Lincons(linearize_texpr(a, cons.expr, ctx), cons.constyp, cons.modulo)


def meet_tcons_array(a: Ptope, conss: Sequence[Tcons],
                     ctx: Optional[OpContext] = None) -> Ptope:
    ctx = ensure_context(ctx)
    if a.is_bottom():
        return a
    return meet_lincons_array(a, [tcons_to_lincons(a, c, ctx) for c in conss], ctx)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — JOIN
# ═══════════════════════════════════════════════════════════════════════════

def _row_bounds_in(a2: Ptope, a1: Ptope, ctx: OpContext) -> List[Interval]:
    """Range of every row of *a1* over *a2*."""
    return [bound_direction(a2, row, ctx) for row in a1.basis]


def join(a1: Ptope, a2: Ptope, ctx: Optional[OpContext] = None) -> Ptope:
    """Convex hull over-approximated in the basis of *a1*."""
    check_same_dim(a1, a2)
    ctx = ensure_context(ctx)
    if a2.is_bottom():
        return a1
    if a1.is_bottom():
        return a1.assign(a2.copy())
    if not is_leq(a2, a1, ctx):
        ctx.inexact("join hull taken in the left basis")
    other = _row_bounds_in(a2, a1, ctx)
    a1.bounds = [x.join(y) for x, y in zip(a1.bounds, other)]
    return a1


def join_array(values: Sequence[Ptope], ctx: Optional[OpContext] = None) -> Ptope:
    if not values:
        raise InvalidArgumentError("join of an empty array")
    result = values[0].copy()
    for v in values[1:]:
        join(result, v, ctx)
    return result


def add_ray_array(a: Ptope, gens: Sequence[Generator],
                  ctx: Optional[OpContext] = None) -> Ptope:
    """Add rays and lines: rows growing along a ray lose that bound."""
    ctx = ensure_context(ctx)
    for g in gens:
        if g.gentyp is GenType.VERTEX:
            raise InvalidArgumentError("add_ray_array does not accept vertices")
        if g.gentyp in (GenType.LINEMOD, GenType.RAYMOD):
            raise NotImplementedOperationError(f"modular generator {g!r} is not supported")
        if len(g.coords) != a.n:
            raise InvalidArgumentError(f"generator {g!r} has the wrong dimension")
    if a.is_bottom():
        return a
    for g in gens:
        v = mx.mat_vec(a.basis, g.coords)
        touched = mx.nonzero_support(v)
        if len(touched) > 1:
            ctx.inexact(f"{g!r} is not along a single row")
        both = g.gentyp is GenType.LINE
        for i in touched:
            itv = a.bounds[i]
            lo = NEG_INF if both or v[i] < 0 else itv.lo
            hi = POS_INF if both or v[i] > 0 else itv.hi
            a.bounds[i] = Interval(lo, hi)
    return a


# ═══════════════════════════════════════════════════════════════════════════
#  PART 4 — WIDENING / NARROWING
# ═══════════════════════════════════════════════════════════════════════════

def widening(a1: Ptope, a2: Ptope, ctx: Optional[OpContext] = None) -> Ptope:
    """Unstable bounds of the rows of *a1* go to infinity."""
    check_same_dim(a1, a2)
    ctx = ensure_context(ctx)
    if a2.is_bottom():
        return a1
    if a1.is_bottom():
        return a1.assign(a2.copy())
    other = _row_bounds_in(a2, a1, ctx)
    out = []
    for itv, b2 in zip(a1.bounds, other):
        lo = itv.lo if b2.lo >= itv.lo else NEG_INF
        hi = itv.hi if b2.hi <= itv.hi else POS_INF
        out.append(Interval(lo, hi))
    a1.bounds = out
    return a1


def widening_thresholds(a1: Ptope, a2: Ptope, thresholds: Sequence[Number],
                        ctx: Optional[OpContext] = None) -> Ptope:
    """Like ``widening`` but unstable bounds stop at the next threshold."""
    check_same_dim(a1, a2)
    ctx = ensure_context(ctx)
    ts = sorted(t for t in (to_bound(x) for x in thresholds) if is_finite(t))
    if a2.is_bottom():
        return a1
    if a1.is_bottom():
        return a1.assign(a2.copy())
    other = _row_bounds_in(a2, a1, ctx)
    out = []
    for itv, b2 in zip(a1.bounds, other):
        lo, hi = itv.lo, itv.hi
        if b2.lo < lo:
            lo = max((t for t in ts if t <= b2.lo), default=NEG_INF)
        if b2.hi > hi:
            hi = min((t for t in ts if t >= b2.hi), default=POS_INF)
        out.append(Interval(lo, hi))
    a1.bounds = out
    return a1


def narrowing(a1: Ptope, a2: Ptope, ctx: Optional[OpContext] = None) -> Ptope:
    """Only infinite bounds of *a1* may be refined, from *a2*."""
    check_same_dim(a1, a2)
    ctx = ensure_context(ctx)
    if a1.is_bottom():
        return a1
    if a2.is_bottom():
        return a1.set_bottom()
    other = _row_bounds_in(a2, a1, ctx)
    out = []
    for itv, b2 in zip(a1.bounds, other):
        lo = b2.lo if not is_finite(itv.lo) else itv.lo
        hi = b2.hi if not is_finite(itv.hi) else itv.hi
        out.append(Interval(lo, hi))
    a1.bounds = out
    return normalize(a1, ctx)


def _enlarge(itv: Interval, delta: Fraction, lower: bool, upper: bool,
             ctx: OpContext) -> Interval:
    lo, hi = itv.lo, itv.hi
    if lower and is_finite(lo):
        lo = ctx.arith.sub(lo, delta, Rounding.DOWN)
    if upper and is_finite(hi):
        hi = ctx.arith.add(hi, delta, Rounding.UP)
    return Interval(lo, hi)


def _epsilon(eps: Number) -> Fraction:
    e = to_bound(eps)
    if not is_finite(e) or e < 0:
        raise InvalidArgumentError(f"epsilon must be a finite non-negative number, got {eps!r}")
    return e


def add_epsilon(a: Ptope, eps: Number, ctx: Optional[OpContext] = None) -> Ptope:
    """Enlarge every finite bound by ``eps·m``, ``m`` the largest finite |bound|."""
    ctx = ensure_context(ctx)
    e = _epsilon(eps)
    m = max_finite_magnitude(a)
    if m is None:
        return a
    delta = ctx.arith.mul(e, m, Rounding.UP)
    a.bounds = [_enlarge(itv, delta, True, True, ctx) for itv in a.bounds]
    return a


def add_epsilon_bin(a1: Ptope, a2: Ptope, eps: Number,
                    ctx: Optional[OpContext] = None) -> Ptope:
    """Enlarge the bounds of *a1* that *a2* exceeds, by ``eps·m(a2)``."""
    check_same_dim(a1, a2)
    ctx = ensure_context(ctx)
    e = _epsilon(eps)
    if a2.is_bottom():
        return a1
    if a1.is_bottom():
        return a1.assign(a2.copy())
    m = max_finite_magnitude(a2)
    if m is None:
        return a1
    delta = ctx.arith.mul(e, m, Rounding.UP)
    other = _row_bounds_in(a2, a1, ctx)
    a1.bounds = [
        _enlarge(itv, delta, b2.lo < itv.lo, b2.hi > itv.hi, ctx)
        for itv, b2 in zip(a1.bounds, other)
    ]
    return a1


def closure(a: Ptope) -> Ptope:
    """Values are topologically closed already."""
    return a

"""
Property extraction: bounds of expressions, satisfaction tests, boxes.

Every query direction ``r`` is expressed in row coordinates ``λ = r·B⁻¹``
(exact), and the range of ``r·x`` is the interval combination
``Σ λᵢ·[lᵢ, uᵢ]`` evaluated with outward rounding.  In rational mode the
result is the exact extremum; in float mode it encloses it.
"""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import List, Optional, Tuple

from .errors import InvalidArgumentError
from .linear import Lincons, Linexpr, constant_constraint_holds
from .ptope import OpContext, Ptope, ensure_context
from .scalar import Interval, ceil_bound, floor_bound, is_finite
from .texpr import Tcons, Texpr, linearize

_log = logging.getLogger(__name__)


def _check_expr(a: Ptope, expr: Linexpr) -> None:
    if expr.max_dim() >= a.n:
        raise InvalidArgumentError(
            f"expression mentions dimension {expr.max_dim()} in a space of size {a.n}"
        )


def bound_direction(a: Ptope, r, ctx: Optional[OpContext] = None) -> Interval:
    """Range of ``r·x`` over *a* for a dense scalar direction *r*."""
    ctx = ensure_context(ctx)
    if a.is_bottom():
        return Interval.bottom()
    lam = a.coords(r)
    return ctx.arith.dot(lam, a.bounds)


def bound_linexpr(a: Ptope, expr: Linexpr, ctx: Optional[OpContext] = None) -> Interval:
    """Sound enclosure of *expr* over *a* (interval coefficients allowed)."""
    ctx = ensure_context(ctx)
    _check_expr(a, expr)
    if a.is_bottom():
        return Interval.bottom()
    arith = ctx.arith
    r = [Fraction(0)] * a.n
    extra = expr.cst
    for d, c in expr.coeffs.items():
        if c.is_point():
            r[d] = c.lo
            continue
        m = c.midpoint()
        r[d] = m
        residual = c.sub(Interval.point(m), arith)
        extra = extra.add(residual.mul(bound_dimension(a, d, ctx), arith), arith)
    return bound_direction(a, r, ctx).add(extra, arith)


def bound_dimension(a: Ptope, d: int, ctx: Optional[OpContext] = None) -> Interval:
    a.dim.check(d)
    if a.is_bottom():
        return Interval.bottom()
    ctx = ensure_context(ctx)
    # λ = e_d·B⁻¹ is row d of the inverse
    itv = ctx.arith.dot(a.inverse()[d], a.bounds)
    if a.dim.is_int(d) and ctx.integer_tightening:
        itv = Interval(ceil_bound(itv.lo), floor_bound(itv.hi))
    return itv


def linearize_texpr(a: Ptope, expr: Texpr, ctx: Optional[OpContext] = None) -> Linexpr:
    """Interval-linear form of *expr* over *a*."""
    ctx = ensure_context(ctx)
    if expr.max_dim() >= a.n:
        raise InvalidArgumentError(
            f"tree expression mentions dimension {expr.max_dim()} in a space of size {a.n}"
        )
    return linearize(expr, lambda e: bound_linexpr(a, e, ctx))


def quasi_linearize(a: Ptope, expr: Linexpr, ctx: Optional[OpContext] = None) -> Linexpr:
    """Scalar coefficients, the interval residuals moved into the constant.

    ``[a,b]·xⱼ`` becomes ``m·xⱼ + ([a,b] - m)·bound(xⱼ)`` with ``m`` the
    midpoint of ``[a,b]``.
    """
    ctx = ensure_context(ctx)
    _check_expr(a, expr)
    if expr.is_scalar():
        return expr
    coeffs = {}
    cst = expr.cst
    for d, c in expr.coeffs.items():
        if c.is_point():
            coeffs[d] = c
            continue
        m = c.midpoint()
        coeffs[d] = m
        residual = c.sub(Interval.point(m), ctx.arith)
        cst = cst.add(residual.mul(bound_dimension(a, d, ctx), ctx.arith), ctx.arith)
    ctx.inexact("interval coefficients quasi-linearised")
    return Linexpr(coeffs, cst)


def bound_texpr(a: Ptope, expr: Texpr, ctx: Optional[OpContext] = None) -> Interval:
    ctx = ensure_context(ctx)
    if a.is_bottom():
        return Interval.bottom()
    return bound_linexpr(a, linearize_texpr(a, expr, ctx), ctx)


def to_box(a: Ptope, ctx: Optional[OpContext] = None) -> List[Interval]:
    """Interval of every dimension (all empty for bottom)."""
    ctx = ensure_context(ctx)
    if a.is_bottom():
        return [Interval.bottom() for _ in range(a.n)]
    return [bound_dimension(a, d, ctx) for d in range(a.n)]


# ═══════════════════════════════════════════════════════════════════════════
#  SATISFACTION TESTS
# ═══════════════════════════════════════════════════════════════════════════

def sat_interval(a: Ptope, d: int, itv: Interval, ctx: Optional[OpContext] = None) -> bool:
    """Whether every point of *a* has ``x_d`` in *itv*."""
    a.dim.check(d)
    if a.is_bottom():
        return True
    return bound_dimension(a, d, ctx).leq(itv)


def sat_lincons(a: Ptope, cons: Lincons, ctx: Optional[OpContext] = None) -> bool:
    """Whether *cons* provably holds on *a*; False when unknown."""
    _check_expr(a, cons.expr)
    if a.is_bottom():
        return True
    return constant_constraint_holds(bound_linexpr(a, cons.expr, ctx), cons.constyp, cons.modulo)


def sat_tcons(a: Ptope, cons: Tcons, ctx: Optional[OpContext] = None) -> bool:
    if a.is_bottom():
        return True
    itv = bound_texpr(a, cons.expr, ctx)
    return constant_constraint_holds(itv, cons.constyp, cons.modulo)


def is_dimension_unconstrained(a: Ptope, d: int) -> bool:
    """Every row mentioning ``x_d`` is free."""
    a.dim.check(d)
    if a.is_bottom():
        return False
    return all(
        itv.is_top() for row, itv in zip(a.basis, a.bounds) if row[d] != 0
    )


def value_hash(a: Ptope, ctx: Optional[OpContext] = None) -> int:
    """Hash compatible with set equality: dimension, bottom flag and the
    infinite-bound pattern of the bounding box."""
    if a.is_bottom():
        return hash((a.dim.intdim, a.dim.realdim, True))
    pattern: Tuple[Tuple[bool, bool], ...] = tuple(
        (is_finite(itv.lo), is_finite(itv.hi)) for itv in to_box(a, ctx)
    )
    return hash((a.dim.intdim, a.dim.realdim, False, pattern))


def max_finite_magnitude(a: Ptope) -> Optional[Fraction]:
    """Largest ``|bound|`` over the finite bounds of *a*."""
    if a.is_bottom():
        return None
    mags = [abs(b) for itv in a.bounds for b in (itv.lo, itv.hi) if is_finite(b)]
    return max(mags) if mags else None

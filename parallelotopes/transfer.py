"""
parallelotopes/transfer.py
══════════════════════════

Parallel assignment and substitution of dimensions.

A parallel assignment ``x_{d_j} := e_j`` is the affine map
``x' = M·x + b`` where ``M`` is the identity with rows ``d_j`` replaced by
the coefficients of ``e_j`` and ``b`` holds the (interval) constants.

    ┌───────────────────────────┬──────────────────────────────────────┐
    │ M invertible              │ basis B·M⁻¹, bounds [l,u] + B·M⁻¹·b   │
    │ M singular, e_j free of   │ forget d_j, meet x_{d_j} = e_j        │
    │   every assigned d        │   (pivots on the freed rows, exact)   │
    │ otherwise                 │ temporaries t_j = e_j, remove d_j,    │
    │                           │   move t_j into place                 │
    └───────────────────────────┴──────────────────────────────────────┘

Substitution maps row i to ``B_i·M`` with bounds ``[l_i,u_i] - B_i·b``;
when ``M`` is singular the rows are rebuilt into a basis with the
constraint-seeding algorithm.

Assignment linearises tree expressions and interval coefficients over the
input value.  Substitution linearises them over the input with the assigned
dimensions forgotten: the expressions read the pre-state, which agrees
with the input only on the dimensions left untouched.  ``dest``, when
given, is met into the result.
"""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import List, Optional, Sequence, Tuple

from . import matrix as mx
from .dimensions import add_dimensions, forget_array, remove_dimensions
from .errors import InvalidArgumentError
from .lattice import meet, meet_direction, seed_from_directions
from .linear import DimChange, Linexpr
from .properties import linearize_texpr, quasi_linearize
from .ptope import OpContext, Ptope, check_same_dim, ensure_context, normalize
from .scalar import Interval
from .texpr import Texpr

_log = logging.getLogger(__name__)


def _check_arguments(a: Ptope, dims: Sequence[int], exprs: Sequence,
                     dest: Optional[Ptope]) -> List[int]:
    if len(dims) != len(exprs):
        raise InvalidArgumentError(
            f"{len(dims)} dimensions for {len(exprs)} expressions"
        )
    dims = a.dim.check_distinct(dims)
    for e in exprs:
        if e.max_dim() >= a.n:
            raise InvalidArgumentError(
                f"expression {e!r} mentions a dimension outside 0..{a.n - 1}"
            )
    if dest is not None:
        check_same_dim(a, dest)
    return dims


def _affine_map(a: Ptope, dims: Sequence[int], exprs: Sequence[Linexpr],
                ctx: OpContext) -> Tuple[mx.Matrix, List[Interval], List[Linexpr]]:
    """``M``, ``b`` and the quasi-linearised expressions."""
    n = a.n
    m = mx.identity(n)
    b = [Interval(0, 0) for _ in range(n)]
    lin = []
    for d, e in zip(dims, exprs):
        e = quasi_linearize(a, e, ctx)
        lin.append(e)
        m[d] = e.dense(n)
        b[d] = e.cst
    return m, b, lin


def _finish(a: Ptope, dest: Optional[Ptope], ctx: OpContext) -> Ptope:
    if dest is not None:
        meet(a, dest, ctx)
    return normalize(a, ctx)


# ═══════════════════════════════════════════════════════════════════════════
#  ASSIGNMENT
# ═══════════════════════════════════════════════════════════════════════════

def _assign_invertible(a: Ptope, minv: mx.Matrix, b: Sequence[Interval],
                       ctx: OpContext) -> Ptope:
    arith = ctx.arith
    basis = mx.mat_mul(a.basis, minv)
    bounds = [
        itv.add(arith.dot(row, b), arith) for row, itv in zip(basis, a.bounds)
    ]
    if not all(c.is_point() for c in b):
        ctx.inexact("assignment with an interval constant")
    a.set_basis(basis, bounds)
    return a


def _assign_with_temporaries(a: Ptope, dims: Sequence[int], lin: Sequence[Linexpr],
                             ctx: OpContext) -> Ptope:
    n, k = a.n, len(dims)
    dim = a.dim
    add_dimensions(a, DimChange((n,) * k, 0, k), False, ctx)
    for j, e in enumerate(lin):
        r = [-c for c in e.dense(n)] + [Fraction(0)] * k
        r[n + j] = Fraction(1)
        meet_direction(a, r, e.cst, ctx)
    removed = sorted(dims)
    n_int = sum(1 for d in removed if dim.is_int(d))
    remove_dimensions(a, DimChange(tuple(removed), n_int, k - n_int), ctx)
    if a.is_bottom():
        a.dim = dim
        return a
    # survivors keep their order, temporaries go back to the assigned slots
    assigned = set(dims)
    targets = [d for d in range(n) if d not in assigned] + list(dims)
    basis: List[mx.Vector] = [None] * n
    bounds: List[Interval] = [None] * n
    for i, row in enumerate(a.basis):
        new_row = mx.zeros(n)
        for j, c in enumerate(row):
            new_row[targets[j]] = c
        basis[targets[i]] = new_row
        bounds[targets[i]] = a.bounds[i]
    a.dim = dim
    a.set_basis(basis, bounds)
    return a


def assign_linexpr_array(a: Ptope, dims: Sequence[int], exprs: Sequence[Linexpr],
                         dest: Optional[Ptope] = None,
                         ctx: Optional[OpContext] = None) -> Ptope:
    """Forward image of ``x_{dims[j]} := exprs[j]`` (all in parallel)."""
    ctx = ensure_context(ctx)
    dims = _check_arguments(a, dims, exprs, dest)
    if not dims or a.is_bottom():
        return _finish(a, dest, ctx)
    m, b, lin = _affine_map(a, dims, exprs, ctx)
    minv = mx.invert(m)
    if minv is not None:
        _assign_invertible(a, minv, b, ctx)
    elif not any(d in e.coeffs for e in lin for d in dims):
        forget_array(a, dims, False, ctx)
        for d, e in zip(dims, lin):
            r = [-c for c in e.dense(a.n)]
            r[d] += 1
            meet_direction(a, r, e.cst, ctx)
    else:
        _log.debug("assignment to %s goes through temporaries", dims)
        _assign_with_temporaries(a, dims, lin, ctx)
    return _finish(a, dest, ctx)


def assign_texpr_array(a: Ptope, dims: Sequence[int], exprs: Sequence[Texpr],
                       dest: Optional[Ptope] = None,
                       ctx: Optional[OpContext] = None) -> Ptope:
    ctx = ensure_context(ctx)
    _check_arguments(a, dims, exprs, dest)
    if a.is_bottom():
        return _finish(a, dest, ctx)
    lin = [linearize_texpr(a, e, ctx) for e in exprs]
    return assign_linexpr_array(a, dims, lin, dest, ctx)


# ═══════════════════════════════════════════════════════════════════════════
#  SUBSTITUTION
# ═══════════════════════════════════════════════════════════════════════════

def _pre_state(a: Ptope, dims: Sequence[int], ctx: OpContext) -> Ptope:
    """Range of the values a substituted expression reads: *a* without *dims*."""
    scratch = OpContext(ctx.arith, ctx.integer_tightening, ctx.max_generator_vertices)
    return forget_array(a.copy(), dims, False, scratch)


def substitute_linexpr_array(a: Ptope, dims: Sequence[int], exprs: Sequence[Linexpr],
                             dest: Optional[Ptope] = None,
                             ctx: Optional[OpContext] = None) -> Ptope:
    """Backward image: the points whose assigned image lies in *a*."""
    ctx = ensure_context(ctx)
    dims = _check_arguments(a, dims, exprs, dest)
    if not dims or a.is_bottom():
        return _finish(a, dest, ctx)
    arith = ctx.arith
    src = a if all(e.is_scalar() for e in exprs) else _pre_state(a, dims, ctx)
    m, b, _ = _affine_map(src, dims, exprs, ctx)
    rows = mx.mat_mul(a.basis, m)
    bounds = [itv.sub(arith.dot(brow, b), arith) for brow, itv in zip(a.basis, a.bounds)]
    if mx.is_invertible(rows):
        a.set_basis(rows, bounds)
    else:
        _log.debug("substitution of %s collapses the basis, reseeding", dims)
        ctx.inexact("substitution with a singular map")
        a.assign(seed_from_directions(a.dim, list(zip(rows, bounds)), ctx))
    return _finish(a, dest, ctx)


def substitute_texpr_array(a: Ptope, dims: Sequence[int], exprs: Sequence[Texpr],
                           dest: Optional[Ptope] = None,
                           ctx: Optional[OpContext] = None) -> Ptope:
    ctx = ensure_context(ctx)
    checked = _check_arguments(a, dims, exprs, dest)
    if not checked or a.is_bottom():
        return _finish(a, dest, ctx)
    pre = _pre_state(a, checked, ctx)
    lin = [linearize_texpr(pre, e, ctx) for e in exprs]
    return substitute_linexpr_array(a, dims, lin, dest, ctx)

"""
Dimension management: forget, add, remove, permute, expand, fold.

Forgetting ``x_d`` eliminates it from every row that mentions it.  Among
those rows ``R`` a pivot ``p`` is chosen (smallest ``width/|B_pd|``,
unbounded rows last, lowest index on ties); every other row of ``R``
becomes ``row_i - (B_id/B_pd)·row_p`` with the matching interval bounds,
and row ``p`` becomes ``e_d`` with bounds ``(-∞,+∞)`` (or ``[0,0]`` when
projecting).  The other rows no longer mention ``x_d``, so the new basis
stays invertible.  With at most two rows in ``R`` the elimination is exact
(it is the Fourier–Motzkin combination); beyond that it is sound only.
"""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import List, Optional, Sequence

from . import matrix as mx
from .errors import InvalidArgumentError
from .lattice import join_array
from .linear import DimChange, Dimension, DimPerm
from .ptope import OpContext, Ptope, ensure_context, normalize
from .scalar import Interval

_log = logging.getLogger(__name__)


def _pivot(a: Ptope, d: int, rows: Sequence[int]) -> int:
    def key(i: int):
        itv = a.bounds[i]
        if itv.is_bounded():
            return (0, (itv.hi - itv.lo) / abs(a.basis[i][d]), i)
        return (1, 0, i)

    return min(rows, key=key)


def _forget_one(a: Ptope, d: int, project: bool, ctx: OpContext) -> int:
    """Forget ``x_d`` in place and return the row that now reads ``e_d``."""
    arith = ctx.arith
    rows = [i for i, row in enumerate(a.basis) if row[d] != 0]
    p = _pivot(a, d, rows)
    if len(rows) > 2:
        ctx.inexact(f"forgetting x{d} touches {len(rows)} rows")
    prow, pbound = a.basis[p], a.bounds[p]
    cp = prow[d]
    for i in rows:
        if i == p:
            continue
        f = a.basis[i][d] / cp
        a.basis[i] = [x - f * y for x, y in zip(a.basis[i], prow)]
        a.bounds[i] = a.bounds[i].sub(pbound.scale(f, arith), arith)
    a.set_row(p, mx.unit(a.n, d), Interval(0, 0) if project else Interval.top())
    return p


def forget_array(a: Ptope, dims: Sequence[int], project: bool = False,
                 ctx: Optional[OpContext] = None) -> Ptope:
    ctx = ensure_context(ctx)
    dims = a.dim.check_distinct(dims)
    if a.is_bottom():
        return a
    for d in dims:
        _forget_one(a, d, project, ctx)
    return normalize(a, ctx)


def add_dimensions(a: Ptope, change: DimChange, project: bool = False,
                   ctx: Optional[OpContext] = None) -> Ptope:
    """Insert ``change.size`` dimensions, new dimension i before old ``dim[i]``."""
    ctx = ensure_context(ctx)
    n = a.n
    for i, pos in enumerate(change.dim):
        if not 0 <= pos <= n:
            raise InvalidArgumentError(f"insertion position {pos} out of range 0..{n}")
        is_int = i < change.intdim
        if (is_int and pos > a.dim.intdim) or (not is_int and pos < a.dim.intdim):
            raise InvalidArgumentError(
                f"{'integer' if is_int else 'real'} dimension inserted at {pos} "
                f"crosses the integer/real boundary {a.dim.intdim}"
            )
    new_dim = Dimension(a.dim.intdim + change.intdim, a.dim.realdim + change.realdim)
    if change.size == 0:
        return a
    if a.is_bottom():
        a.dim = new_dim
        return a
    m = new_dim.size
    fresh = [pos + i for i, pos in enumerate(change.dim)]
    old_to_new = [j + sum(1 for pos in change.dim if pos <= j) for j in range(n)]
    basis: List[mx.Vector] = [None] * m
    bounds: List[Interval] = [None] * m
    for i, row in enumerate(a.basis):
        new_row = mx.zeros(m)
        for j, c in enumerate(row):
            new_row[old_to_new[j]] = c
        basis[old_to_new[i]] = new_row
        bounds[old_to_new[i]] = a.bounds[i]
    for t in fresh:
        basis[t] = mx.unit(m, t)
        bounds[t] = Interval(0, 0) if project else Interval.top()
    a.dim = new_dim
    a.set_basis(basis, bounds)
    return normalize(a, ctx)


def remove_dimensions(a: Ptope, change: DimChange,
                      ctx: Optional[OpContext] = None) -> Ptope:
    """Forget the listed dimensions, then drop their rows and columns."""
    ctx = ensure_context(ctx)
    dims = a.dim.check_distinct(change.dim)
    n_int = sum(1 for d in dims if a.dim.is_int(d))
    if n_int != change.intdim:
        raise InvalidArgumentError(
            f"dimension change announces {change.intdim} integer dimensions, lists {n_int}"
        )
    new_dim = Dimension(a.dim.intdim - change.intdim, a.dim.realdim - change.realdim)
    if not dims:
        return a
    if a.is_bottom():
        a.dim = new_dim
        return a
    drop_rows = {_forget_one(a, d, False, ctx) for d in dims}
    drop_cols = set(dims)
    basis = [
        [c for j, c in enumerate(row) if j not in drop_cols]
        for i, row in enumerate(a.basis) if i not in drop_rows
    ]
    bounds = [itv for i, itv in enumerate(a.bounds) if i not in drop_rows]
    a.dim = new_dim
    a.set_basis(basis, bounds)
    return normalize(a, ctx)


def _permute(a: Ptope, perm: Sequence[int]) -> Ptope:
    n = a.n
    basis: List[mx.Vector] = [None] * n
    bounds: List[Interval] = [None] * n
    for i, row in enumerate(a.basis):
        new_row = mx.zeros(n)
        for j, c in enumerate(row):
            new_row[perm[j]] = c
        basis[perm[i]] = new_row
        bounds[perm[i]] = a.bounds[i]
    a.set_basis(basis, bounds)
    return a


def permute_dimensions(a: Ptope, perm: DimPerm,
                       ctx: Optional[OpContext] = None) -> Ptope:
    """Dimension ``i`` becomes dimension ``perm[i]``."""
    if perm.size != a.n:
        raise InvalidArgumentError(
            f"permutation of size {perm.size} for a space of size {a.n}"
        )
    if a.is_bottom():
        return a
    return _permute(a, perm.perm)


def expand(a: Ptope, d: int, k: int, ctx: Optional[OpContext] = None) -> Ptope:
    """Add *k* copies of ``x_d``, each related to the other dimensions as ``x_d``.

    The copies go after the last dimension of the same kind.  Each copy
    duplicates the row ``x_d`` would pivot on when forgotten; the copies are
    unrelated to each other and to ``x_d``.
    """
    ctx = ensure_context(ctx)
    a.dim.check(d)
    if k < 0:
        raise InvalidArgumentError(f"cannot expand into {k} dimensions")
    if k == 0:
        return a
    is_int = a.dim.is_int(d)
    pos = a.dim.intdim if is_int else a.n
    change = DimChange((pos,) * k, k if is_int else 0, 0 if is_int else k)
    was_bottom = a.is_bottom()
    if not was_bottom:
        rows = [i for i, row in enumerate(a.basis) if row[d] != 0]
        if len(rows) > 1:
            ctx.inexact(f"expanding x{d} keeps one of its {len(rows)} relations")
    add_dimensions(a, change, False, ctx)
    if was_bottom:
        return a
    rows = [i for i, row in enumerate(a.basis) if row[d] != 0]
    p = _pivot(a, d, rows)
    prow, pbound = a.basis[p], a.bounds[p]
    for t in range(pos, pos + k):
        row = list(prow)
        row[t] = row[d]
        row[d] = Fraction(0)
        a.set_row(t, row, pbound)
    return normalize(a, ctx)


def fold(a: Ptope, dims: Sequence[int], ctx: Optional[OpContext] = None) -> Ptope:
    """Fold ``dims`` into ``dims[0]``: the hull of each of them renamed to it."""
    ctx = ensure_context(ctx)
    if len(dims) < 1:
        raise InvalidArgumentError("fold needs at least one dimension")
    dims = a.dim.check_distinct(dims)
    kinds = {a.dim.is_int(d) for d in dims}
    if len(kinds) > 1:
        raise InvalidArgumentError("fold mixes integer and real dimensions")
    if len(dims) == 1:
        return a
    d0, rest = dims[0], dims[1:]
    removed = sorted(rest)
    n_int = sum(1 for d in removed if a.dim.is_int(d))
    change = DimChange(tuple(removed), n_int, len(removed) - n_int)
    if a.is_bottom():
        return remove_dimensions(a, change, ctx)
    parts = [remove_dimensions(a.copy(), change, ctx)]
    for dj in rest:
        v = forget_array(a.copy(), [d0], False, ctx)
        swap = list(range(a.n))
        swap[d0], swap[dj] = dj, d0
        _permute(v, swap)
        parts.append(remove_dimensions(v, change, ctx))
    return a.assign(join_array(parts, ctx))

"""
Converters between parallelotopes and boxes, constraints and generators.

    of_box                 identity basis, exact
    of_lincons_array       constraint seeding (lattice.seed_from_directions)
    of_tcons_array         linearise over top, then as above
    of_generator_array     box hull of the vertices, then rays and lines
    to_box                 per-dimension bounds through B⁻¹
    to_lincons_array       one equality or up to two inequalities per row
    to_tcons_array         tree form of to_lincons_array
    to_generator_array     endpoint combinations mapped through B⁻¹
"""

from __future__ import annotations

import itertools
import logging
from fractions import Fraction
from typing import List, Optional, Sequence

from . import matrix as mx
from .errors import InvalidArgumentError
from .lattice import add_ray_array, meet_lincons_array, meet_tcons_array
from .linear import ConsType, Dimension, GenType, Generator, Lincons, Linexpr
from .properties import to_box
from .ptope import OpContext, Ptope, ensure_context, normalize
from .scalar import Interval, is_finite
from .texpr import Tcons, of_linexpr

_log = logging.getLogger(__name__)

__all__ = [
    "of_box", "of_lincons_array", "of_tcons_array", "of_generator_array",
    "to_box", "to_lincons_array", "to_tcons_array", "to_generator_array",
]


def of_box(dim: Dimension, box: Sequence, ctx: Optional[OpContext] = None) -> Ptope:
    ctx = ensure_context(ctx)
    if len(box) != dim.size:
        raise InvalidArgumentError(f"box of {len(box)} intervals for {dim.size} dimensions")
    itvs = [Interval.of(b) for b in box]
    if any(itv.is_bottom() for itv in itvs):
        return Ptope.bottom(dim)
    return normalize(Ptope(dim, mx.identity(dim.size), itvs), ctx)


def of_lincons_array(dim: Dimension, conss: Sequence[Lincons],
                     ctx: Optional[OpContext] = None) -> Ptope:
    return meet_lincons_array(Ptope.top(dim), conss, ctx)


def of_tcons_array(dim: Dimension, conss: Sequence[Tcons],
                   ctx: Optional[OpContext] = None) -> Ptope:
    return meet_tcons_array(Ptope.top(dim), conss, ctx)


def to_lincons_array(a: Ptope) -> List[Lincons]:
    if a.is_bottom():
        return [Lincons(Linexpr.constant(-1), ConsType.SUPEQ)]
    out: List[Lincons] = []
    for row, itv in zip(a.basis, a.bounds):
        if itv.is_point():
            out.append(Lincons(Linexpr.from_dense(row, -itv.lo), ConsType.EQ))
            continue
        if is_finite(itv.lo):
            out.append(Lincons(Linexpr.from_dense(row, -itv.lo), ConsType.SUPEQ))
        if is_finite(itv.hi):
            out.append(Lincons(Linexpr.from_dense([-c for c in row], itv.hi), ConsType.SUPEQ))
    return out


def to_tcons_array(a: Ptope) -> List[Tcons]:
    return [Tcons(of_linexpr(c.expr), c.constyp, c.modulo) for c in to_lincons_array(a)]


def of_generator_array(dim: Dimension, gens: Sequence[Generator],
                       ctx: Optional[OpContext] = None) -> Ptope:
    """Box hull of the vertices, extended by the rays and lines."""
    ctx = ensure_context(ctx)
    for g in gens:
        if len(g.coords) != dim.size:
            raise InvalidArgumentError(f"generator {g!r} has the wrong dimension")
    vertices = [g for g in gens if g.gentyp is GenType.VERTEX]
    if not vertices:
        return Ptope.bottom(dim)
    if len(vertices) > 1:
        ctx.inexact("generator hull approximated by a box")
    box = [
        Interval(min(v.coords[j] for v in vertices), max(v.coords[j] for v in vertices))
        for j in range(dim.size)
    ]
    a = of_box(dim, box, ctx)
    rays = [g for g in gens if g.gentyp is not GenType.VERTEX]
    return add_ray_array(a, rays, ctx)


def to_generator_array(a: Ptope, ctx: Optional[OpContext] = None) -> List[Generator]:
    """Vertices, rays and lines of *a*.

    A row bounded on both sides offers its two endpoints, a one-sided row
    its finite endpoint plus a ray, a free row the coordinate 0 plus a line.
    Vertices are all endpoint combinations mapped through ``B⁻¹``.
    """
    ctx = ensure_context(ctx)
    if a.is_bottom():
        return []
    inv = a.inverse()
    choices: List[List[Fraction]] = []
    extra: List[Generator] = []
    for i, itv in enumerate(a.bounds):
        col = mx.column(inv, i)
        lo_f, hi_f = is_finite(itv.lo), is_finite(itv.hi)
        if lo_f and hi_f:
            choices.append([itv.lo] if itv.lo == itv.hi else [itv.lo, itv.hi])
        elif lo_f:
            choices.append([itv.lo])
            extra.append(Generator.ray(col))
        elif hi_f:
            choices.append([itv.hi])
            extra.append(Generator.ray([-c for c in col]))
        else:
            choices.append([Fraction(0)])
            extra.append(Generator.line(col))
    count = 1
    for c in choices:
        count *= len(c)
    if count > ctx.max_generator_vertices:
        raise InvalidArgumentError(
            f"{count} vertices exceed the configured limit of {ctx.max_generator_vertices}"
        )
    vertices = [
        Generator.vertex(mx.mat_vec(inv, list(y))) for y in itertools.product(*choices)
    ]
    return vertices + extra

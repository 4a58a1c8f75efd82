# tests/test_transfer.py
"""
Tests for parallel assignment and substitution.
"""

from fractions import Fraction

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from parallelotopes import transfer
from parallelotopes.convert import of_box
from parallelotopes.errors import InvalidArgumentError
from parallelotopes.lattice import is_leq
from parallelotopes.linear import Dimension, Linexpr
from parallelotopes.properties import bound_dimension, bound_linexpr, to_box
from parallelotopes.ptope import Ptope
from parallelotopes.scalar import Interval
from parallelotopes.texpr import Dim


class TestAssign:

    def test_invertible_map_is_exact(self, diamond, ctx):
        a = transfer.assign_linexpr_array(diamond(), [0], [Linexpr({0: 1, 1: 1})], ctx=ctx)
        assert ctx.exact
        assert bound_dimension(a, 0) == Interval(0, 4)
        assert bound_dimension(a, 1) == Interval(Fraction(-3, 2), 2)

    def test_increment(self, box, ctx):
        a = transfer.assign_linexpr_array(box((0, 10)), [0], [Linexpr({0: 1}, 1)], ctx=ctx)
        assert a.bounds == [Interval(1, 11)]
        assert ctx.exact

    def test_constant_assignment(self, diamond, ctx):
        a = transfer.assign_linexpr_array(diamond(), [1], [Linexpr.constant(5)], ctx=ctx)
        assert bound_dimension(a, 1) == Interval(5, 5)
        assert bound_dimension(a, 0) == Interval(0, Fraction(7, 2))

    def test_interval_constant_is_inexact(self, box, ctx):
        a = transfer.assign_linexpr_array(box((0, 1)), [0], [Linexpr({0: 1}, Interval(0, 1))],
                                          ctx=ctx)
        assert a.bounds == [Interval(0, 2)]
        assert not ctx.exact

    def test_parallel_assignment_through_temporaries(self, box):
        a = transfer.assign_linexpr_array(
            box((1, 2), (3, 4)), [0, 1], [Linexpr({1: 1}), Linexpr({1: 1})]
        )
        assert to_box(a) == [Interval(3, 4), Interval(3, 4)]
        assert bound_linexpr(a, Linexpr({0: 1, 1: -1})) == Interval(0, 0)
        assert a.dim == Dimension(0, 2)

    def test_swap(self, box, ctx):
        a = transfer.assign_linexpr_array(
            box((1, 2), (3, 4)), [0, 1], [Linexpr({1: 1}), Linexpr({0: 1})], ctx=ctx
        )
        assert to_box(a) == [Interval(3, 4), Interval(1, 2)]
        assert ctx.exact

    def test_dest_is_met(self, box):
        a = transfer.assign_linexpr_array(
            box((0, 10)), [0], [Linexpr({0: 1}, 1)], dest=box((0, 5))
        )
        assert a.bounds == [Interval(1, 5)]

    def test_bottom_stays_bottom(self):
        a = Ptope.bottom(Dimension(0, 1))
        assert transfer.assign_linexpr_array(a, [0], [Linexpr.constant(1)]).is_bottom()

    def test_empty_assignment(self, box):
        assert transfer.assign_linexpr_array(box((0, 1)), [], []).bounds == [Interval(0, 1)]

    @pytest.mark.parametrize("dims, exprs", [
        ([0], []),
        ([0, 0], [Linexpr.constant(1), Linexpr.constant(2)]),
        ([2], [Linexpr.constant(1)]),
        ([0], [Linexpr({3: 1})]),
    ])
    def test_bad_arguments(self, box, dims, exprs):
        with pytest.raises(InvalidArgumentError):
            transfer.assign_linexpr_array(box((0, 1), (0, 1)), dims, exprs)

    def test_tree_assignment(self, box):
        a = transfer.assign_texpr_array(box((-2, 3)), [0], [Dim(0) * Dim(0)])
        assert Interval(0, 9).leq(bound_dimension(a, 0))

    def test_linear_tree_assignment(self, box, ctx):
        a = transfer.assign_texpr_array(box((0, 10)), [0], [Dim(0) * 2 + 1], ctx=ctx)
        assert bound_dimension(a, 0) == Interval(1, 21)
        assert ctx.exact


class TestSubstitute:

    def test_increment(self, box, ctx):
        a = transfer.substitute_linexpr_array(box((0, 10)), [0], [Linexpr({0: 1}, 1)], ctx=ctx)
        assert bound_dimension(a, 0) == Interval(-1, 9)
        assert ctx.exact

    def test_singular_map_reseeds(self, box, ctx):
        a = transfer.substitute_linexpr_array(box((0, 1), (0, 1)), [0], [Linexpr({1: 1})],
                                              ctx=ctx)
        assert bound_dimension(a, 1) == Interval(0, 1)
        assert bound_dimension(a, 0).is_top()
        assert not ctx.exact

    def test_substitute_then_assign_is_sound(self, box):
        # every point of the pre-image is mapped into the post-condition
        post = box((0, 4), (0, 4))
        pre = transfer.substitute_linexpr_array(post, [0], [Linexpr({0: 1, 1: 1})])
        image = transfer.assign_linexpr_array(pre, [0], [Linexpr({0: 1, 1: 1})])
        assert is_leq(image, box((0, 4), (0, 4)))

    def test_dest(self, box):
        a = transfer.substitute_linexpr_array(
            box((0, 10)), [0], [Linexpr({0: 1}, 1)], dest=box((0, 5))
        )
        assert a.bounds == [Interval(0, 5)]

    def test_tree_substitution(self, box):
        a = transfer.substitute_texpr_array(box((0, 10)), [0], [Dim(0) + 1])
        assert bound_dimension(a, 0) == Interval(-1, 9)

    def test_bottom(self):
        a = Ptope.bottom(Dimension(0, 1))
        assert transfer.substitute_texpr_array(a, [0], [Dim(0) + 1]).is_bottom()

    def test_consumes_its_operand(self):
        a = of_box(Dimension(0, 1), [(0, 10)])
        out = transfer.substitute_linexpr_array(a, [0], [Linexpr({0: 1}, 1)])
        assert out is a

    def test_square_reads_the_pre_state(self, box):
        # x := x*x lands in [5, 6] from x = 23/10, outside [5, 6] itself
        pre = transfer.substitute_texpr_array(box((5, 6)), [0], [Dim(0) * Dim(0)])
        assert to_box(pre)[0].contains(Fraction(23, 10))
        assert to_box(pre)[0].contains(Fraction(-12, 5))

    def test_interval_coefficient_on_assigned_dimension(self, box, ctx):
        # x := c*x with c = 1/100 maps x = 100 to 1
        pre = transfer.substitute_linexpr_array(
            box((1, 1)), [0], [Linexpr({0: Interval(0, 2)})], ctx=ctx
        )
        assert to_box(pre)[0].contains(100)
        assert not ctx.exact

    def test_untouched_dimensions_keep_their_bounds(self, box):
        pre = transfer.substitute_texpr_array(box((0, 4), (1, 2)), [0], [Dim(0) * Dim(1)])
        assert bound_dimension(pre, 1) == Interval(1, 2)
        assert to_box(pre)[0].contains(-3)

    def test_scalar_expressions_stay_exact(self, box, ctx):
        pre = transfer.substitute_texpr_array(box((0, 10), (1, 2)), [0], [Dim(0) + Dim(1)],
                                              ctx=ctx)
        assert ctx.exact
        assert bound_linexpr(pre, Linexpr({0: 1, 1: 1})) == Interval(0, 10)


# ─────────────────────────────────────────────────────────────────────────
#  Backward soundness on random values
# ─────────────────────────────────────────────────────────────────────────

DIM2 = Dimension(0, 2)

coeff = st.integers(min_value=-3, max_value=3)
bases = st.lists(st.lists(coeff, min_size=2, max_size=2), min_size=2, max_size=2).filter(
    lambda m: m[0][0] * m[1][1] != m[0][1] * m[1][0]
)
ends = st.integers(min_value=-12, max_value=12)
points = st.tuples(
    st.integers(min_value=-6, max_value=6), st.integers(min_value=-6, max_value=6)
)


@st.composite
def posts(draw):
    rows = draw(bases)
    bounds = []
    for _ in range(2):
        lo = draw(ends)
        bounds.append(Interval(lo, lo + draw(st.integers(min_value=0, max_value=12))))
    return Ptope.from_rows(DIM2, rows, bounds)


def contains_point(a, p):
    if a.is_bottom():
        return False
    return all(
        itv.contains(sum(Fraction(c) * x for c, x in zip(row, p)))
        for row, itv in zip(a.basis, a.bounds)
    )


TREES = [
    (Dim(0) * Dim(0), lambda p: p[0] * p[0]),
    (Dim(0) * Dim(1) + 1, lambda p: p[0] * p[1] + 1),
    (Dim(1) * Dim(1) - Dim(0), lambda p: p[1] * p[1] - p[0]),
    (Dim(0) * 3 - Dim(1), lambda p: 3 * p[0] - p[1]),
]


class TestBackwardSoundness:

    @settings(max_examples=60)
    @given(posts(), st.sampled_from(TREES), st.lists(points, min_size=1, max_size=12))
    def test_tree_substitution_keeps_preimages(self, post, tree, pts):
        expr, value = tree
        pre = transfer.substitute_texpr_array(post.copy(), [0], [expr])
        for p in pts:
            if contains_point(post, (value(p), p[1])):
                assert contains_point(pre, p)

    @settings(max_examples=60)
    @given(posts(), st.integers(min_value=-2, max_value=2),
           st.integers(min_value=0, max_value=3), st.integers(min_value=-2, max_value=2),
           st.data())
    def test_interval_coefficient_keeps_preimages(self, post, lo, width, c1, data):
        expr = Linexpr({0: Interval(lo, lo + width), 1: c1})
        pre = transfer.substitute_linexpr_array(post.copy(), [0], [expr])
        k = data.draw(st.integers(min_value=lo, max_value=lo + width))
        for p in data.draw(st.lists(points, min_size=1, max_size=12)):
            if contains_point(post, (k * p[0] + c1 * p[1], p[1])):
                assert contains_point(pre, p)

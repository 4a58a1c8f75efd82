# tests/test_properties.py
"""
Tests for the parallelotope value itself and the property queries:
bounds, satisfaction tests, boxes and hashing.
"""

from fractions import Fraction

import pytest

from parallelotopes import properties as props
from parallelotopes.errors import InvalidArgumentError
from parallelotopes.linear import Dimension, Lincons, Linexpr
from parallelotopes.ptope import OpContext, Ptope, normalize
from parallelotopes.scalar import NEG_INF, POS_INF, BoundArith, Interval, NumKind
from parallelotopes.texpr import Dim, Tcons


# ─────────────────────────────────────────────────────────────────────────
#  The value
# ─────────────────────────────────────────────────────────────────────────

class TestPtope:

    def test_variants(self):
        dim = Dimension(0, 2)
        assert Ptope.bottom(dim).is_bottom()
        assert Ptope.top(dim).is_top()
        assert not Ptope.top(dim).is_bottom()

    def test_from_rows_rejects_singular(self):
        with pytest.raises(InvalidArgumentError, match="singular"):
            Ptope.from_rows(Dimension(0, 2), [[1, 2], [2, 4]], [(0, 1), (0, 1)])

    def test_shape_checked(self):
        with pytest.raises(InvalidArgumentError):
            Ptope(Dimension(0, 2), [[1, 0], [0, 1]], [Interval(0, 1)])

    def test_copy_is_independent(self, diamond):
        a = diamond()
        b = a.copy()
        b.bounds[0] = Interval(1, 1)
        b.basis[1][0] = Fraction(5)
        assert a.bounds[0] == Interval(0, 3)
        assert a.basis[1][0] == 1

    def test_size(self, diamond):
        assert diamond().size() == 8
        assert Ptope.bottom(Dimension(0, 2)).size() == 0

    def test_inverse(self, diamond):
        inv = diamond().inverse()
        assert inv == [[Fraction(1, 2), Fraction(1, 2)], [Fraction(-1, 2), Fraction(1, 2)]]

    def test_bottom_has_no_inverse(self):
        with pytest.raises(InvalidArgumentError):
            Ptope.bottom(Dimension(0, 1)).inverse()

    def test_format(self, diamond, box):
        assert diamond().format() == "0 ≤ x0 - x1 ≤ 3; 0 ≤ x0 + x1 ≤ 4"
        assert diamond().format(["i", "j"]) == "0 ≤ i - j ≤ 3; 0 ≤ i + j ≤ 4"
        assert box((2, 2), ("-inf", "+inf")).format() == "x0 = 2"
        assert Ptope.top(Dimension(0, 2)).format() == "⊤"
        assert Ptope.bottom(Dimension(0, 2)).format() == "⊥"

    def test_repr(self, box):
        assert repr(box((0, 5))) == "Ptope(real=1: 0 ≤ x0 ≤ 5)"
        assert repr(box((0, 5), (1, 2), intdim=1)) == "Ptope(int=1,real=1: 0 ≤ x0 ≤ 5; 1 ≤ x1 ≤ 2)"


class TestNormalize:

    def test_integer_rows_tightened(self, box):
        a = box((Fraction(1, 2), Fraction(5, 2)), (0, 1), intdim=1)
        assert a.bounds[0] == Interval(1, 2)
        assert a.bounds[1] == Interval(0, 1)

    def test_empty_integer_row_becomes_bottom(self, box):
        assert box(("1/3", "2/3"), intdim=1).is_bottom()

    def test_tightening_can_be_disabled(self):
        a = Ptope.from_rows(Dimension(1, 0), [[1]], [("1/3", "2/3")])
        normalize(a, OpContext(integer_tightening=False))
        assert a.bounds[0] == Interval(Fraction(1, 3), Fraction(2, 3))

    def test_fractional_row_not_tightened(self):
        a = Ptope.from_rows(Dimension(1, 0), [["1/2"]], [(0, 1)])
        normalize(a)
        assert a.bounds[0] == Interval(0, 1)

    def test_empty_row_becomes_bottom(self):
        a = Ptope(Dimension(0, 1), [[Fraction(1)]], [Interval(2, 1)])
        assert normalize(a).is_bottom()


# ─────────────────────────────────────────────────────────────────────────
#  Queries
# ─────────────────────────────────────────────────────────────────────────

class TestBounds:

    def test_bound_dimension(self, diamond):
        a = diamond()
        assert props.bound_dimension(a, 0) == Interval(0, Fraction(7, 2))
        assert props.bound_dimension(a, 1) == Interval(Fraction(-3, 2), 2)

    def test_bound_dimension_out_of_range(self, diamond):
        with pytest.raises(InvalidArgumentError):
            props.bound_dimension(diamond(), 2)

    def test_bound_linexpr_along_a_row(self, diamond):
        a = diamond()
        assert props.bound_linexpr(a, Linexpr({0: 1, 1: -1})) == Interval(0, 3)
        assert props.bound_linexpr(a, Linexpr({0: 2, 1: 2}, 1)) == Interval(1, 9)

    def test_bound_linexpr_combines_rows(self, diamond):
        # x1 = ((x0+x1) - (x0-x1)) / 2
        assert props.bound_linexpr(diamond(), Linexpr({1: 1})) == Interval(Fraction(-3, 2), 2)

    def test_bound_linexpr_interval_coefficient(self, box):
        a = box((0, 2))
        itv = props.bound_linexpr(a, Linexpr({0: Interval(1, 3)}))
        assert Interval(0, 6).leq(itv)

    def test_bound_linexpr_rejects_large_dimension(self, box):
        with pytest.raises(InvalidArgumentError):
            props.bound_linexpr(box((0, 1)), Linexpr({1: 1}))

    def test_bottom_bounds(self):
        bot = Ptope.bottom(Dimension(0, 2))
        assert props.bound_linexpr(bot, Linexpr({0: 1})).is_bottom()
        assert props.bound_dimension(bot, 1).is_bottom()
        assert all(itv.is_bottom() for itv in props.to_box(bot))

    def test_bound_texpr_square(self, box):
        itv = props.bound_texpr(box((-2, 3)), Dim(0) * Dim(0))
        assert Interval(0, 9).leq(itv)

    def test_to_box(self, diamond):
        assert props.to_box(diamond()) == [
            Interval(0, Fraction(7, 2)), Interval(Fraction(-3, 2), 2)
        ]

    def test_to_box_unbounded(self, box):
        assert props.to_box(box((0, "+inf"), ("-inf", "+inf"))) == [
            Interval(0, POS_INF), Interval(NEG_INF, POS_INF)
        ]

    def test_float_mode_encloses(self, box):
        third = Fraction(1, 3)
        ctx = OpContext(arith=BoundArith(NumKind.FLOAT))
        itv = props.bound_linexpr(box((third, third), (third, third)), Linexpr({0: 1, 1: 1}), ctx)
        assert itv.contains(Fraction(2, 3))
        assert not itv.is_point()


class TestQuasiLinearize:

    def test_scalar_expression_unchanged(self, box, ctx):
        e = Linexpr({0: 2}, 1)
        assert props.quasi_linearize(box((0, 2)), e, ctx) is e
        assert ctx.exact

    def test_interval_coefficient_moves_to_constant(self, box, ctx):
        e = props.quasi_linearize(box((0, 2)), Linexpr({0: Interval(1, 3)}), ctx)
        assert e.coeffs == {0: Interval.point(2)}
        assert e.cst == Interval(-2, 2)
        assert not ctx.exact


class TestSatisfaction:

    def test_sat_interval(self, diamond):
        a = diamond()
        assert props.sat_interval(a, 0, Interval(0, 4))
        assert not props.sat_interval(a, 0, Interval(0, 3))

    def test_sat_lincons(self, diamond):
        a = diamond()
        assert props.sat_lincons(a, Lincons.ge({0: 1}, 0))
        assert props.sat_lincons(a, Lincons.le({0: 1, 1: 1}, 4))
        assert not props.sat_lincons(a, Lincons.le({0: 1}, 3))

    def test_unknown_is_false(self, box):
        a = box((0, 2))
        assert not props.sat_lincons(a, Lincons.ge({0: 1}, 1))
        assert not props.sat_lincons(a, Lincons.le({0: 1}, 1))

    def test_bottom_satisfies_everything(self):
        bot = Ptope.bottom(Dimension(0, 1))
        assert props.sat_lincons(bot, Lincons.ge({0: 1}, 100))
        assert props.sat_interval(bot, 0, Interval(0, 0))

    def test_sat_tcons(self, box):
        a = box((1, 2))
        assert props.sat_tcons(a, Tcons(Dim(0) * Dim(0)))
        assert not props.sat_tcons(a, Tcons(Dim(0) - 2))

    def test_dimension_unconstrained(self, box, diamond):
        a = box((0, 1), ("-inf", "+inf"))
        assert props.is_dimension_unconstrained(a, 1)
        assert not props.is_dimension_unconstrained(a, 0)
        assert not props.is_dimension_unconstrained(diamond(), 1)
        assert not props.is_dimension_unconstrained(Ptope.bottom(Dimension(0, 2)), 0)


class TestHash:

    def test_equal_sets_hash_equal(self, diamond):
        swapped = Ptope.from_rows(
            Dimension(0, 2), [[1, 1], [1, -1]], [Interval(0, 4), Interval(0, 3)]
        )
        assert props.value_hash(diamond()) == props.value_hash(swapped)

    def test_bottom_hash(self):
        dim = Dimension(0, 2)
        assert props.value_hash(Ptope.bottom(dim)) == props.value_hash(Ptope.bottom(dim))

    def test_max_finite_magnitude(self, box):
        assert props.max_finite_magnitude(box((0, 10), (-12, "+inf"))) == 12
        assert props.max_finite_magnitude(box(("-inf", "+inf"))) is None

# tests/test_dimensions.py
"""
Tests for forget, add/remove, permute, expand and fold.
"""

from fractions import Fraction

import pytest

from parallelotopes import dimensions as dims
from parallelotopes.errors import InvalidArgumentError
from parallelotopes.lattice import is_eq
from parallelotopes.linear import DimChange, Dimension, DimPerm
from parallelotopes.properties import bound_dimension, is_dimension_unconstrained, to_box
from parallelotopes.ptope import Ptope
from parallelotopes.scalar import Interval


class TestForget:

    def test_project_sets_zero(self, box):
        a = dims.forget_array(box((1, 2), (3, 4)), [1], project=True)
        assert to_box(a) == [Interval(1, 2), Interval(0, 0)]

    def test_forget_frees(self, box):
        a = dims.forget_array(box((1, 2), (3, 4)), [1])
        assert to_box(a) == [Interval(1, 2), Interval.top()]
        assert is_dimension_unconstrained(a, 1)

    def test_two_rows_is_exact(self, diamond, ctx):
        a = dims.forget_array(diamond(), [1], ctx=ctx)
        assert ctx.exact
        assert bound_dimension(a, 0) == Interval(0, Fraction(7, 2))
        assert bound_dimension(a, 1).is_top()

    def test_three_rows_is_inexact(self, ctx):
        a = Ptope.from_rows(
            Dimension(0, 3),
            [[1, 0, 1], [0, 1, 1], [0, 0, 1]],
            [(0, 1), (0, 1), (0, 1)],
        )
        before = [bound_dimension(a, 0), bound_dimension(a, 1)]
        dims.forget_array(a, [2], ctx=ctx)
        assert not ctx.exact
        assert is_dimension_unconstrained(a, 2)
        assert before[0].leq(bound_dimension(a, 0))
        assert before[1].leq(bound_dimension(a, 1))

    def test_forget_several(self, box):
        a = dims.forget_array(box((1, 2), (3, 4), (5, 6)), [2, 0])
        assert to_box(a) == [Interval.top(), Interval(3, 4), Interval.top()]

    def test_bottom(self):
        assert dims.forget_array(Ptope.bottom(Dimension(0, 2)), [0]).is_bottom()

    def test_duplicates_rejected(self, box):
        with pytest.raises(InvalidArgumentError):
            dims.forget_array(box((1, 2), (3, 4)), [1, 1])


class TestAddRemove:

    def test_insert_in_front(self, box):
        a = dims.add_dimensions(box((1, 2)), DimChange((0,), 0, 1))
        assert a.dim == Dimension(0, 2)
        assert to_box(a) == [Interval.top(), Interval(1, 2)]

    def test_insert_projected(self, box):
        a = dims.add_dimensions(box((1, 2)), DimChange((1,), 0, 1), project=True)
        assert to_box(a) == [Interval(1, 2), Interval(0, 0)]

    def test_insert_several_at_same_position(self, box):
        a = dims.add_dimensions(box((1, 2), (3, 4)), DimChange((1, 1), 0, 2))
        assert to_box(a) == [Interval(1, 2), Interval.top(), Interval.top(), Interval(3, 4)]

    def test_integer_boundary(self, box):
        a = box((0, 3), (5, 6), intdim=1)
        with pytest.raises(InvalidArgumentError, match="boundary"):
            dims.add_dimensions(a, DimChange((2,), 1, 0))
        with pytest.raises(InvalidArgumentError, match="boundary"):
            dims.add_dimensions(a, DimChange((0,), 0, 1))

    def test_add_integer_dimension(self, box):
        a = dims.add_dimensions(box((0, 3), (5, 6), intdim=1), DimChange((1,), 1, 0))
        assert a.dim == Dimension(2, 1)
        assert to_box(a) == [Interval(0, 3), Interval.top(), Interval(5, 6)]

    def test_add_then_remove(self, diamond):
        change = DimChange((1,), 0, 1)
        a = dims.add_dimensions(diamond(), change)
        assert a.basis == [[1, 0, -1], [0, 1, 0], [1, 0, 1]]
        dims.remove_dimensions(a, change)
        assert is_eq(a, diamond())

    def test_bottom_changes_dimension(self):
        a = dims.add_dimensions(Ptope.bottom(Dimension(0, 1)), DimChange((1,), 0, 1))
        assert a.is_bottom() and a.dim == Dimension(0, 2)
        a = dims.remove_dimensions(a, DimChange((0,), 0, 1))
        assert a.is_bottom() and a.dim == Dimension(0, 1)

    def test_remove(self, box):
        a = dims.remove_dimensions(box((1, 2), (3, 4), (0, 5)), DimChange((1,), 0, 1))
        assert to_box(a) == [Interval(1, 2), Interval(0, 5)]

    def test_remove_related_dimension(self, diamond):
        a = dims.remove_dimensions(diamond(), DimChange((1,), 0, 1))
        assert a.dim == Dimension(0, 1)
        assert to_box(a) == [Interval(0, Fraction(7, 2))]

    def test_remove_kind_mismatch(self, box):
        with pytest.raises(InvalidArgumentError):
            dims.remove_dimensions(box((0, 3), (5, 6), intdim=1), DimChange((0,), 0, 1))


class TestPermute:

    def test_box(self, box):
        a = dims.permute_dimensions(box((1, 2), (3, 4), (5, 6)), DimPerm((2, 0, 1)))
        assert to_box(a) == [Interval(3, 4), Interval(5, 6), Interval(1, 2)]

    def test_related_dimensions(self, diamond):
        a = dims.permute_dimensions(diamond(), DimPerm((1, 0)))
        assert bound_dimension(a, 0) == Interval(Fraction(-3, 2), 2)
        assert bound_dimension(a, 1) == Interval(0, Fraction(7, 2))

    def test_inverse_restores(self, diamond):
        p = DimPerm((1, 0))
        a = dims.permute_dimensions(dims.permute_dimensions(diamond(), p), p.inverse())
        assert a.basis == diamond().basis

    def test_size_mismatch(self, box):
        with pytest.raises(InvalidArgumentError):
            dims.permute_dimensions(box((1, 2)), DimPerm((1, 0)))


class TestExpandFold:

    def test_expand_box(self, box, ctx):
        a = dims.expand(box((1, 2), (3, 4)), 0, 1, ctx)
        assert to_box(a) == [Interval(1, 2), Interval(3, 4), Interval(1, 2)]
        assert ctx.exact

    def test_expand_integer(self, box):
        a = dims.expand(box((0, 3), (5, 6), intdim=1), 0, 2)
        assert a.dim == Dimension(3, 1)
        assert to_box(a) == [Interval(0, 3), Interval(0, 3), Interval(0, 3), Interval(5, 6)]

    def test_expand_related_dimension(self, diamond, ctx):
        a = dims.expand(diamond(), 1, 1, ctx)
        assert not ctx.exact
        assert bound_dimension(a, 1) == Interval(Fraction(-3, 2), 2)
        assert Interval(Fraction(-3, 2), 2).leq(bound_dimension(a, 2))

    def test_expand_zero_and_negative(self, box):
        a = box((1, 2))
        assert dims.expand(a, 0, 0) is a
        with pytest.raises(InvalidArgumentError):
            dims.expand(a, 0, -1)

    def test_fold(self, box):
        a = dims.fold(box((1, 2), (3, 4), (0, 5)), [0, 2])
        assert a.dim == Dimension(0, 2)
        assert to_box(a) == [Interval(0, 5), Interval(3, 4)]

    def test_fold_after_expand(self, box):
        a = dims.fold(dims.expand(box((1, 2), (3, 4)), 0, 1), [0, 2])
        assert to_box(a) == [Interval(1, 2), Interval(3, 4)]

    def test_fold_single(self, box):
        assert to_box(dims.fold(box((1, 2), (3, 4)), [1])) == [Interval(1, 2), Interval(3, 4)]

    def test_fold_mixed_kinds(self, box):
        with pytest.raises(InvalidArgumentError, match="mixes"):
            dims.fold(box((0, 3), (5, 6), intdim=1), [0, 1])

    def test_fold_empty(self, box):
        with pytest.raises(InvalidArgumentError):
            dims.fold(box((1, 2)), [])

    def test_fold_bottom(self):
        a = dims.fold(Ptope.bottom(Dimension(0, 3)), [0, 1])
        assert a.is_bottom() and a.dim == Dimension(0, 2)

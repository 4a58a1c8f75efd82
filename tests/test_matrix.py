# tests/test_matrix.py
"""
Tests for the exact rational linear algebra helpers.
"""

from fractions import Fraction

from hypothesis import given
from hypothesis import strategies as st

from parallelotopes import matrix as mx


def F(rows):
    return [[Fraction(x) for x in row] for row in rows]


small = st.integers(min_value=-5, max_value=5)
square3 = st.lists(st.lists(small, min_size=3, max_size=3), min_size=3, max_size=3)


class TestBasics:

    def test_identity_and_unit(self):
        assert mx.identity(2) == F([[1, 0], [0, 1]])
        assert mx.unit(3, 1) == F([[0, 1, 0]])[0]

    def test_products(self):
        m = F([[1, 2], [3, 4]])
        assert mx.vec_mat(F([[1, 1]])[0], m) == [4, 6]
        assert mx.mat_vec(m, F([[1, 1]])[0]) == [3, 7]
        assert mx.mat_mul(m, mx.identity(2)) == m
        assert mx.column(m, 1) == [2, 4]

    def test_copy_is_deep(self):
        m = F([[1, 2], [3, 4]])
        c = mx.copy_matrix(m)
        c[0][0] = Fraction(9)
        assert m[0][0] == 1

    def test_support(self):
        assert mx.nonzero_support(F([[0, 2, 0, -1]])[0]) == [1, 3]
        assert mx.is_zero(mx.zeros(3))


class TestInverse:

    def test_invert_2x2(self):
        m = F([[1, -1], [1, 1]])
        inv = mx.invert(m)
        assert inv == F([["1/2", "1/2"], ["-1/2", "1/2"]])
        assert mx.mat_mul(m, inv) == mx.identity(2)

    def test_singular(self):
        assert mx.invert(F([[1, 2], [2, 4]])) is None
        assert not mx.is_invertible(F([[1, 2], [2, 4]]))

    @given(square3)
    def test_inverse_roundtrip(self, rows):
        m = F(rows)
        inv = mx.invert(m)
        if inv is None:
            assert mx.rank(m) < 3
        else:
            assert mx.mat_mul(inv, m) == mx.identity(3)


class TestEchelon:

    def test_rank(self):
        assert mx.rank(F([[1, 0, 1], [2, 0, 2], [0, 1, 0]])) == 2

    def test_independence(self):
        e = mx.Echelon(3)
        assert e.add(F([[1, 1, 0]])[0])
        assert not e.add(F([[2, 2, 0]])[0])
        assert e.is_independent(F([[0, 0, 1]])[0])
        assert not e.full()

    def test_complete_with_identity(self):
        picked = mx.complete_with_identity(F([[1, 1, 0]]), 3)
        rows = F([[1, 1, 0]]) + [mx.unit(3, j) for j in picked]
        assert len(picked) == 2
        assert mx.is_invertible(rows)

    def test_parallel_ratio(self):
        assert mx.parallel_ratio(F([[1, -2]])[0], F([[-3, 6]])[0]) == -3
        assert mx.parallel_ratio(F([[1, 0]])[0], F([[1, 1]])[0]) is None

    def test_normalize_direction(self):
        assert mx.normalize_direction(F([[0, -2, 4]])[0]) == [0, 1, -2]

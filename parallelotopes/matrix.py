"""
Exact rational linear algebra for parallelotope bases.

All basis computations are carried out over ``Fraction`` so that the basis
stays exactly invertible whatever the number kind used for bounds.  The
matrices involved are ``n × n`` with ``n`` the number of program variables,
so plain Gauss–Jordan elimination is adequate.
"""

from __future__ import annotations

from fractions import Fraction
from typing import List, Optional, Sequence

Vector = List[Fraction]
Matrix = List[List[Fraction]]

_ZERO = Fraction(0)
_ONE = Fraction(1)


def zeros(n: int) -> Vector:
    return [_ZERO] * n


def unit(n: int, i: int) -> Vector:
    v = [_ZERO] * n
    v[i] = _ONE
    return v


def identity(n: int) -> Matrix:
    return [unit(n, i) for i in range(n)]


def copy_matrix(m: Sequence[Sequence[Fraction]]) -> Matrix:
    return [list(row) for row in m]


def is_zero(v: Sequence[Fraction]) -> bool:
    return all(x == 0 for x in v)


def nonzero_support(v: Sequence[Fraction]) -> List[int]:
    return [i for i, x in enumerate(v) if x != 0]


def vec_mat(v: Sequence[Fraction], m: Sequence[Sequence[Fraction]]) -> Vector:
    """Row vector times matrix: ``v · m``."""
    if not m:
        return []
    cols = len(m[0])
    out = [_ZERO] * cols
    for vi, row in zip(v, m):
        if vi == 0:
            continue
        for j in range(cols):
            if row[j] != 0:
                out[j] += vi * row[j]
    return out


def mat_vec(m: Sequence[Sequence[Fraction]], v: Sequence[Fraction]) -> Vector:
    """Matrix times column vector: ``m · v``."""
    return [sum((a * b for a, b in zip(row, v) if a != 0 and b != 0), _ZERO) for row in m]


def mat_mul(a: Sequence[Sequence[Fraction]], b: Sequence[Sequence[Fraction]]) -> Matrix:
    return [vec_mat(row, b) for row in a]


def column(m: Sequence[Sequence[Fraction]], j: int) -> Vector:
    return [row[j] for row in m]


def invert(m: Sequence[Sequence[Fraction]]) -> Optional[Matrix]:
    """Inverse of a square matrix, or ``None`` when it is singular."""
    n = len(m)
    work = [list(row) + unit(n, i) for i, row in enumerate(m)]
    for col in range(n):
        pivot = next((r for r in range(col, n) if work[r][col] != 0), None)
        if pivot is None:
            return None
        if pivot != col:
            work[col], work[pivot] = work[pivot], work[col]
        p = work[col][col]
        if p != 1:
            work[col] = [x / p for x in work[col]]
        prow = work[col]
        for r in range(n):
            if r == col:
                continue
            f = work[r][col]
            if f != 0:
                work[r] = [x - f * y for x, y in zip(work[r], prow)]
    return [row[n:] for row in work]


def is_invertible(m: Sequence[Sequence[Fraction]]) -> bool:
    return len(m) == 0 or rank(m) == len(m)


def rank(rows: Sequence[Sequence[Fraction]]) -> int:
    echelon = Echelon(len(rows[0]) if rows else 0)
    return sum(1 for r in rows if echelon.add(r))


class Echelon:
    """Incrementally maintained row-echelon form.

    ``add(row)`` returns ``True`` and records the row when it is linearly
    independent from the rows added so far.
    """

    def __init__(self, n: int) -> None:
        self.n = n
        self._rows: List[Vector] = []
        self._pivots: List[int] = []

    def __len__(self) -> int:
        return len(self._rows)

    def reduce(self, row: Sequence[Fraction]) -> Vector:
        v = list(row)
        for prow, pcol in zip(self._rows, self._pivots):
            f = v[pcol]
            if f != 0:
                v = [x - f * y for x, y in zip(v, prow)]
        return v

    def add(self, row: Sequence[Fraction]) -> bool:
        v = self.reduce(row)
        pcol = next((j for j, x in enumerate(v) if x != 0), None)
        if pcol is None:
            return False
        p = v[pcol]
        v = [x / p for x in v]
        self._rows.append(v)
        self._pivots.append(pcol)
        return True

    def is_independent(self, row: Sequence[Fraction]) -> bool:
        return not is_zero(self.reduce(row))

    def full(self) -> bool:
        return len(self._rows) == self.n


def complete_with_identity(rows: Sequence[Sequence[Fraction]], n: int) -> List[int]:
    """Indices of unit vectors that extend *rows* (independent) to a basis."""
    echelon = Echelon(n)
    for r in rows:
        echelon.add(r)
    picked = []
    for i in range(n):
        if echelon.full():
            break
        if echelon.add(unit(n, i)):
            picked.append(i)
    return picked


def parallel_ratio(a: Sequence[Fraction], b: Sequence[Fraction]) -> Optional[Fraction]:
    """The scalar ``k`` with ``b = k·a``, or ``None`` when not parallel."""
    k: Optional[Fraction] = None
    for x, y in zip(a, b):
        if x == 0:
            if y != 0:
                return None
            continue
        r = y / x
        if k is None:
            k = r
        elif r != k:
            return None
    if k is None or k == 0:
        return None
    return k


def normalize_direction(v: Sequence[Fraction]) -> Vector:
    """Scale *v* so that its first non-zero entry is ``1``."""
    first = next((x for x in v if x != 0), None)
    if first is None or first == 1:
        return list(v)
    return [x / first for x in v]

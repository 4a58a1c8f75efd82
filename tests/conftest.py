# tests/conftest.py
"""
Shared fixtures: managers in both number kinds and small value factories.
"""

import pytest

from parallelotopes import (
    Dimension,
    Interval,
    ManagerConfig,
    NumKind,
    ParallelotopeManager,
    Ptope,
)
from parallelotopes.convert import of_box
from parallelotopes.ptope import OpContext


@pytest.fixture
def man():
    """A rational-mode manager."""
    return ParallelotopeManager()


@pytest.fixture
def float_man():
    return ParallelotopeManager(ManagerConfig(num=NumKind.FLOAT))


@pytest.fixture
def ctx():
    return OpContext()


@pytest.fixture
def box():
    """Factory: ``box((0, 1), (2, 3), intdim=0)`` → identity-basis value."""
    def make(*bounds, intdim=0):
        dim = Dimension(intdim, len(bounds) - intdim)
        return of_box(dim, list(bounds))
    return make


@pytest.fixture
def diamond():
    """Factory for ``0 ≤ x0 - x1 ≤ 3, 0 ≤ x0 + x1 ≤ 4`` over two reals."""
    def make():
        return Ptope.from_rows(
            Dimension(0, 2),
            [[1, -1], [1, 1]],
            [Interval(0, 3), Interval(0, 4)],
        )
    return make

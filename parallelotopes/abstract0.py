"""
Manager-tagged abstract values.

``Abstract0`` pairs a value with the manager that created it, so that an
analyzer can call operations as methods.  Every operation involving two
wrapped values checks that they share the same manager and raises
``ManagerMismatchError`` otherwise.

    >>> from parallelotopes import ParallelotopeManager
    >>> man = ParallelotopeManager()
    >>> a = Abstract0.of_box(man, 0, 1, [(0, 10)])
    >>> a.bound_dimension(0)
    [0, 10]
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from .errors import InvalidArgumentError, ManagerMismatchError
from .linear import DimChange, Dimension, DimPerm, Generator, Lincons, Linexpr
from .manager import NumericalDomain
from .scalar import Interval, Number
from .texpr import Tcons, Texpr

__all__ = ["Abstract0"]


class Abstract0:
    """A value owned by *manager*."""

    __slots__ = ("manager", "value")

    def __init__(self, manager: NumericalDomain, value: Any) -> None:
        self.manager = manager
        self.value = value

    # ---- Boundary checks ---------------------------------------------------

    def _unwrap(self, other: "Abstract0") -> Any:
        if not isinstance(other, Abstract0):
            raise InvalidArgumentError(f"expected an Abstract0, got {type(other).__name__}")
        if other.manager is not self.manager:
            raise ManagerMismatchError(
                f"value belongs to {other.manager!r}, not to {self.manager!r}"
            )
        return other.value

    def _dest(self, dest: Optional["Abstract0"]) -> Any:
        return None if dest is None else self._unwrap(dest)

    def _wrap(self, value: Any, destructive: bool = False) -> "Abstract0":
        if destructive:
            self.value = value
            return self
        return Abstract0(self.manager, value)

    @staticmethod
    def _common_manager(values: Sequence["Abstract0"]) -> NumericalDomain:
        if not values:
            raise InvalidArgumentError("empty array of abstract values")
        man = values[0].manager
        for v in values[1:]:
            values[0]._unwrap(v)
        return man

    # ---- Constructors ------------------------------------------------------

    @classmethod
    def bottom(cls, manager: NumericalDomain, intdim: int, realdim: int) -> "Abstract0":
        return cls(manager, manager.bottom(intdim, realdim))

    @classmethod
    def top(cls, manager: NumericalDomain, intdim: int, realdim: int) -> "Abstract0":
        return cls(manager, manager.top(intdim, realdim))

    @classmethod
    def of_box(cls, manager: NumericalDomain, intdim: int, realdim: int,
               box: Sequence) -> "Abstract0":
        return cls(manager, manager.of_box(intdim, realdim, box))

    @classmethod
    def of_lincons_array(cls, manager: NumericalDomain, intdim: int, realdim: int,
                         conss: Sequence[Lincons]) -> "Abstract0":
        return cls(manager, manager.of_lincons_array(intdim, realdim, conss))

    @classmethod
    def of_tcons_array(cls, manager: NumericalDomain, intdim: int, realdim: int,
                       conss: Sequence[Tcons]) -> "Abstract0":
        return cls(manager, manager.of_tcons_array(intdim, realdim, conss))

    @classmethod
    def of_generator_array(cls, manager: NumericalDomain, intdim: int, realdim: int,
                           gens: Sequence[Generator]) -> "Abstract0":
        return cls(manager, manager.of_generator_array(intdim, realdim, gens))

    @classmethod
    def deserialize(cls, manager: NumericalDomain, buf: bytes) -> "Abstract0":
        value, _ = manager.deserialize(buf)
        return cls(manager, value)

    @classmethod
    def meet_array(cls, values: Sequence["Abstract0"]) -> "Abstract0":
        man = cls._common_manager(values)
        return cls(man, man.meet_array([v.value for v in values]))

    @classmethod
    def join_array(cls, values: Sequence["Abstract0"]) -> "Abstract0":
        man = cls._common_manager(values)
        return cls(man, man.join_array([v.value for v in values]))

    # ---- Queries -----------------------------------------------------------

    def copy(self) -> "Abstract0":
        return Abstract0(self.manager, self.manager.copy(self.value))

    def size(self) -> int:
        return self.manager.size(self.value)

    def dimension(self) -> Dimension:
        return self.manager.dimension(self.value)

    def is_bottom(self) -> bool:
        return self.manager.is_bottom(self.value)

    def is_top(self) -> bool:
        return self.manager.is_top(self.value)

    def is_leq(self, other: "Abstract0") -> bool:
        return self.manager.is_leq(self.value, self._unwrap(other))

    def is_eq(self, other: "Abstract0") -> bool:
        return self.manager.is_eq(self.value, self._unwrap(other))

    def __le__(self, other: "Abstract0") -> bool:
        return self.is_leq(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Abstract0):
            return NotImplemented
        return self.is_eq(other)

    def __hash__(self) -> int:
        return self.manager.hash(self.value)

    def is_minimal(self) -> bool:
        return self.manager.is_minimal(self.value)

    def is_canonical(self) -> bool:
        return self.manager.is_canonical(self.value)

    def is_dimension_unconstrained(self, d: int) -> bool:
        return self.manager.is_dimension_unconstrained(self.value, d)

    def sat_interval(self, d: int, itv: Interval) -> bool:
        return self.manager.sat_interval(self.value, d, itv)

    def sat_lincons(self, cons: Lincons) -> bool:
        return self.manager.sat_lincons(self.value, cons)

    def sat_tcons(self, cons: Tcons) -> bool:
        return self.manager.sat_tcons(self.value, cons)

    def bound_dimension(self, d: int) -> Interval:
        return self.manager.bound_dimension(self.value, d)

    def bound_linexpr(self, expr: Linexpr) -> Interval:
        return self.manager.bound_linexpr(self.value, expr)

    def bound_texpr(self, expr: Texpr) -> Interval:
        return self.manager.bound_texpr(self.value, expr)

    def to_box(self) -> List[Interval]:
        return self.manager.to_box(self.value)

    def to_lincons_array(self) -> List[Lincons]:
        return self.manager.to_lincons_array(self.value)

    def to_tcons_array(self) -> List[Tcons]:
        return self.manager.to_tcons_array(self.value)

    def to_generator_array(self) -> List[Generator]:
        return self.manager.to_generator_array(self.value)

    def serialize(self) -> bytes:
        return self.manager.serialize(self.value)

    def format(self, names: Optional[Sequence[str]] = None) -> str:
        return self.manager.format(self.value, names)

    def __repr__(self) -> str:
        return f"Abstract0({self.manager!r}, {self.format()})"

    # ---- Operations --------------------------------------------------------

    def canonicalize(self, destructive: bool = False) -> "Abstract0":
        return self._wrap(self.manager.canonicalize(self.value, destructive), destructive)

    def minimize(self, destructive: bool = False) -> "Abstract0":
        return self._wrap(self.manager.minimize(self.value, destructive), destructive)

    def approximate(self, algorithm: int = 0, destructive: bool = False) -> "Abstract0":
        return self._wrap(self.manager.approximate(self.value, algorithm, destructive),
                          destructive)

    def meet(self, other: "Abstract0", destructive: bool = False) -> "Abstract0":
        v = self.manager.meet(self.value, self._unwrap(other), destructive)
        return self._wrap(v, destructive)

    def join(self, other: "Abstract0", destructive: bool = False) -> "Abstract0":
        v = self.manager.join(self.value, self._unwrap(other), destructive)
        return self._wrap(v, destructive)

    def meet_lincons_array(self, conss: Sequence[Lincons],
                           destructive: bool = False) -> "Abstract0":
        return self._wrap(self.manager.meet_lincons_array(self.value, conss, destructive),
                          destructive)

    def meet_tcons_array(self, conss: Sequence[Tcons],
                         destructive: bool = False) -> "Abstract0":
        return self._wrap(self.manager.meet_tcons_array(self.value, conss, destructive),
                          destructive)

    def add_ray_array(self, gens: Sequence[Generator],
                      destructive: bool = False) -> "Abstract0":
        return self._wrap(self.manager.add_ray_array(self.value, gens, destructive),
                          destructive)

    def widening(self, other: "Abstract0") -> "Abstract0":
        return self._wrap(self.manager.widening(self.value, self._unwrap(other)))

    def widening_thresholds(self, other: "Abstract0",
                            thresholds: Optional[Sequence[Number]] = None) -> "Abstract0":
        return self._wrap(
            self.manager.widening_thresholds(self.value, self._unwrap(other), thresholds)
        )

    def narrowing(self, other: "Abstract0") -> "Abstract0":
        return self._wrap(self.manager.narrowing(self.value, self._unwrap(other)))

    def closure(self, destructive: bool = False) -> "Abstract0":
        return self._wrap(self.manager.closure(self.value, destructive), destructive)

    def add_epsilon(self, eps: Number) -> "Abstract0":
        return self._wrap(self.manager.add_epsilon(self.value, eps))

    def add_epsilon_bin(self, other: "Abstract0", eps: Number,
                        destructive: bool = False) -> "Abstract0":
        v = self.manager.add_epsilon_bin(self.value, self._unwrap(other), eps, destructive)
        return self._wrap(v, destructive)

    def assign_linexpr_array(self, dims: Sequence[int], exprs: Sequence[Linexpr],
                             dest: Optional["Abstract0"] = None,
                             destructive: bool = False) -> "Abstract0":
        v = self.manager.assign_linexpr_array(
            self.value, dims, exprs, self._dest(dest), destructive
        )
        return self._wrap(v, destructive)

    def substitute_linexpr_array(self, dims: Sequence[int], exprs: Sequence[Linexpr],
                                 dest: Optional["Abstract0"] = None,
                                 destructive: bool = False) -> "Abstract0":
        v = self.manager.substitute_linexpr_array(
            self.value, dims, exprs, self._dest(dest), destructive
        )
        return self._wrap(v, destructive)

    def assign_texpr_array(self, dims: Sequence[int], exprs: Sequence[Texpr],
                           dest: Optional["Abstract0"] = None,
                           destructive: bool = False) -> "Abstract0":
        v = self.manager.assign_texpr_array(
            self.value, dims, exprs, self._dest(dest), destructive
        )
        return self._wrap(v, destructive)

    def substitute_texpr_array(self, dims: Sequence[int], exprs: Sequence[Texpr],
                               dest: Optional["Abstract0"] = None,
                               destructive: bool = False) -> "Abstract0":
        v = self.manager.substitute_texpr_array(
            self.value, dims, exprs, self._dest(dest), destructive
        )
        return self._wrap(v, destructive)

    def forget_array(self, dims: Sequence[int], project: bool = False,
                     destructive: bool = False) -> "Abstract0":
        return self._wrap(self.manager.forget_array(self.value, dims, project, destructive),
                          destructive)

    def add_dimensions(self, change: DimChange, project: bool = False,
                       destructive: bool = False) -> "Abstract0":
        return self._wrap(
            self.manager.add_dimensions(self.value, change, project, destructive), destructive
        )

    def remove_dimensions(self, change: DimChange, destructive: bool = False) -> "Abstract0":
        return self._wrap(self.manager.remove_dimensions(self.value, change, destructive),
                          destructive)

    def permute_dimensions(self, perm: DimPerm, destructive: bool = False) -> "Abstract0":
        return self._wrap(self.manager.permute_dimensions(self.value, perm, destructive),
                          destructive)

    def expand(self, d: int, n: int, destructive: bool = False) -> "Abstract0":
        return self._wrap(self.manager.expand(self.value, d, n, destructive), destructive)

    def fold(self, dims: Sequence[int], destructive: bool = False) -> "Abstract0":
        return self._wrap(self.manager.fold(self.value, dims, destructive), destructive)

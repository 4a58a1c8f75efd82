"""
parallelotopes/manager.py
═════════════════════════

The domain manager: the one object an analyzer talks to.

    ┌──────────────────────────────────────────────────────────────────┐
    │  NumericalDomain       — interface, one method per operation    │
    │  ParallelotopeManager  — its implementation for parallelotopes  │
    │  ManagerConfig         — number kind and tuning knobs           │
    │  ManagerResult         — exactness flags of the last operation  │
    │  FunId                 — operation identifiers for ``call``     │
    └──────────────────────────────────────────────────────────────────┘

Mutating operations come in two forms selected by ``destructive``: with
``destructive=True`` the first operand is consumed and returned as the
result; with ``destructive=False`` (the default) a copy is consumed
instead and the operands are left untouched.

A manager keeps ``result`` between calls and is meant to be used by one
thread at a time; give each thread its own manager.
"""

from __future__ import annotations

import abc
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

from . import convert, dimensions, lattice, properties, serialize as ser, transfer
from .errors import InvalidArgumentError, PtopeError
from .linear import DimChange, Dimension, DimPerm, Generator, Lincons, Linexpr
from .ptope import OpContext, Ptope, normalize
from .scalar import BoundArith, Interval, Number, NumKind, float_environment_is_ieee, to_bound
from .texpr import Tcons, Texpr

_log = logging.getLogger(__name__)


class FunId(enum.Enum):
    """Operation identifiers (the value is the manager method name)."""
    COPY = "copy"
    SIZE = "size"
    MINIMIZE = "minimize"
    CANONICALIZE = "canonicalize"
    HASH = "hash"
    APPROXIMATE = "approximate"
    FPRINT = "format"
    SERIALIZE_RAW = "serialize"
    DESERIALIZE_RAW = "deserialize"
    BOTTOM = "bottom"
    TOP = "top"
    OF_BOX = "of_box"
    OF_LINCONS_ARRAY = "of_lincons_array"
    OF_TCONS_ARRAY = "of_tcons_array"
    OF_GENERATOR_ARRAY = "of_generator_array"
    DIMENSION = "dimension"
    IS_BOTTOM = "is_bottom"
    IS_TOP = "is_top"
    IS_LEQ = "is_leq"
    IS_EQ = "is_eq"
    IS_MINIMAL = "is_minimal"
    IS_CANONICAL = "is_canonical"
    IS_DIMENSION_UNCONSTRAINED = "is_dimension_unconstrained"
    SAT_INTERVAL = "sat_interval"
    SAT_LINCONS = "sat_lincons"
    SAT_TCONS = "sat_tcons"
    BOUND_DIMENSION = "bound_dimension"
    BOUND_LINEXPR = "bound_linexpr"
    BOUND_TEXPR = "bound_texpr"
    TO_BOX = "to_box"
    TO_LINCONS_ARRAY = "to_lincons_array"
    TO_TCONS_ARRAY = "to_tcons_array"
    TO_GENERATOR_ARRAY = "to_generator_array"
    MEET = "meet"
    MEET_ARRAY = "meet_array"
    MEET_LINCONS_ARRAY = "meet_lincons_array"
    MEET_TCONS_ARRAY = "meet_tcons_array"
    JOIN = "join"
    JOIN_ARRAY = "join_array"
    ADD_RAY_ARRAY = "add_ray_array"
    ASSIGN_LINEXPR_ARRAY = "assign_linexpr_array"
    SUBSTITUTE_LINEXPR_ARRAY = "substitute_linexpr_array"
    ASSIGN_TEXPR_ARRAY = "assign_texpr_array"
    SUBSTITUTE_TEXPR_ARRAY = "substitute_texpr_array"
    ADD_DIMENSIONS = "add_dimensions"
    REMOVE_DIMENSIONS = "remove_dimensions"
    PERMUTE_DIMENSIONS = "permute_dimensions"
    FORGET_ARRAY = "forget_array"
    EXPAND = "expand"
    FOLD = "fold"
    WIDENING = "widening"
    WIDENING_THRESHOLDS = "widening_thresholds"
    NARROWING = "narrowing"
    CLOSURE = "closure"
    ADD_EPSILON = "add_epsilon"
    ADD_EPSILON_BIN = "add_epsilon_bin"


@dataclass
class ManagerResult:
    """Outcome of the last operation run through a manager.

    ``flag_exact``: the result is the exact image of the operation.
    ``flag_best``: the result is the best representable approximation.
    ``exception``: the error raised by the operation, if any.
    """
    flag_exact: bool = True
    flag_best: bool = True
    exception: Optional[PtopeError] = None


@dataclass
class ManagerConfig:
    """Tuning knobs for a parallelotope manager."""
    num: NumKind = NumKind.RATIONAL
    integer_tightening: bool = True
    max_generator_vertices: int = 1 << 12
    widening_thresholds: Tuple[Number, ...] = field(default_factory=tuple)

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if not isinstance(self.num, NumKind):
            warnings.append(f"num must be a NumKind, got {self.num!r}")
        if self.max_generator_vertices <= 0:
            warnings.append("max_generator_vertices must be positive")
        for t in self.widening_thresholds:
            try:
                to_bound(t)
            except InvalidArgumentError as exc:
                warnings.append(f"widening threshold {t!r}: {exc}")
        return warnings


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — INTERFACE
# ═══════════════════════════════════════════════════════════════════════════

class NumericalDomain(abc.ABC):
    """Operations a numerical abstract domain offers to an analyzer.

    Values are opaque to the analyzer; they are created and consumed only
    through these methods.  ``call(funid, ...)`` dispatches by identifier.
    """

    result: ManagerResult

    def call(self, funid: FunId, *args: Any, **kwargs: Any) -> Any:
        """Run the operation named by *funid*."""
        return getattr(self, funid.value)(*args, **kwargs)

    # ---- Memory ------------------------------------------------------------

    @abc.abstractmethod
    def copy(self, a): ...

    @abc.abstractmethod
    def size(self, a) -> int: ...

    # ---- Representation ----------------------------------------------------

    @abc.abstractmethod
    def minimize(self, a, destructive: bool = False): ...

    @abc.abstractmethod
    def canonicalize(self, a, destructive: bool = False): ...

    @abc.abstractmethod
    def hash(self, a) -> int: ...

    @abc.abstractmethod
    def approximate(self, a, algorithm: int = 0, destructive: bool = False): ...

    @abc.abstractmethod
    def format(self, a, names: Optional[Sequence[str]] = None) -> str: ...

    @abc.abstractmethod
    def serialize(self, a) -> bytes: ...

    @abc.abstractmethod
    def deserialize(self, buf: bytes) -> Tuple[Any, int]: ...

    # ---- Constructors ------------------------------------------------------

    @abc.abstractmethod
    def bottom(self, intdim: int, realdim: int): ...

    @abc.abstractmethod
    def top(self, intdim: int, realdim: int): ...

    @abc.abstractmethod
    def of_box(self, intdim: int, realdim: int, box: Sequence): ...

    @abc.abstractmethod
    def of_lincons_array(self, intdim: int, realdim: int, conss: Sequence[Lincons]): ...

    @abc.abstractmethod
    def of_tcons_array(self, intdim: int, realdim: int, conss: Sequence[Tcons]): ...

    @abc.abstractmethod
    def of_generator_array(self, intdim: int, realdim: int, gens: Sequence[Generator]): ...

    # ---- Tests -------------------------------------------------------------

    @abc.abstractmethod
    def dimension(self, a) -> Dimension: ...

    @abc.abstractmethod
    def is_bottom(self, a) -> bool: ...

    @abc.abstractmethod
    def is_top(self, a) -> bool: ...

    @abc.abstractmethod
    def is_leq(self, a1, a2) -> bool:
        """Inclusion test.

        Parameters
        ----------
        a1, a2
            Values over the same dimensions.

        Returns
        -------
        bool
            ``True`` only when ``a1 ⊆ a2`` is proven.
        """

    @abc.abstractmethod
    def is_eq(self, a1, a2) -> bool: ...

    @abc.abstractmethod
    def is_minimal(self, a) -> bool: ...

    @abc.abstractmethod
    def is_canonical(self, a) -> bool: ...

    @abc.abstractmethod
    def is_dimension_unconstrained(self, a, d: int) -> bool: ...

    @abc.abstractmethod
    def sat_interval(self, a, d: int, itv: Interval) -> bool: ...

    @abc.abstractmethod
    def sat_lincons(self, a, cons: Lincons) -> bool:
        """Whether *cons* holds on every point of *a*.

        Returns ``False`` when satisfaction cannot be proven.
        """

    @abc.abstractmethod
    def sat_tcons(self, a, cons: Tcons) -> bool: ...

    # ---- Extraction --------------------------------------------------------

    @abc.abstractmethod
    def bound_dimension(self, a, d: int) -> Interval: ...

    @abc.abstractmethod
    def bound_linexpr(self, a, expr: Linexpr) -> Interval: ...

    @abc.abstractmethod
    def bound_texpr(self, a, expr: Texpr) -> Interval: ...

    @abc.abstractmethod
    def to_box(self, a) -> List[Interval]: ...

    @abc.abstractmethod
    def to_lincons_array(self, a) -> List[Lincons]: ...

    @abc.abstractmethod
    def to_tcons_array(self, a) -> List[Tcons]: ...

    @abc.abstractmethod
    def to_generator_array(self, a) -> List[Generator]: ...

    # ---- Lattice -----------------------------------------------------------

    @abc.abstractmethod
    def meet(self, a1, a2, destructive: bool = False): ...

    @abc.abstractmethod
    def meet_array(self, values: Sequence): ...

    @abc.abstractmethod
    def meet_lincons_array(self, a, conss: Sequence[Lincons], destructive: bool = False): ...

    @abc.abstractmethod
    def meet_tcons_array(self, a, conss: Sequence[Tcons], destructive: bool = False): ...

    @abc.abstractmethod
    def join(self, a1, a2, destructive: bool = False): ...

    @abc.abstractmethod
    def join_array(self, values: Sequence): ...

    @abc.abstractmethod
    def add_ray_array(self, a, gens: Sequence[Generator], destructive: bool = False): ...

    @abc.abstractmethod
    def widening(self, a1, a2): ...

    @abc.abstractmethod
    def widening_thresholds(self, a1, a2, thresholds: Optional[Sequence[Number]] = None): ...

    @abc.abstractmethod
    def narrowing(self, a1, a2): ...

    @abc.abstractmethod
    def closure(self, a, destructive: bool = False): ...

    @abc.abstractmethod
    def add_epsilon(self, a, eps: Number): ...

    @abc.abstractmethod
    def add_epsilon_bin(self, a1, a2, eps: Number, destructive: bool = False): ...

    # ---- Transfer ----------------------------------------------------------

    @abc.abstractmethod
    def assign_linexpr_array(self, a, dims: Sequence[int], exprs: Sequence[Linexpr],
                             dest=None, destructive: bool = False):
        """Parallel assignment ``x_{dims[j]} := exprs[j]``.

        Parameters
        ----------
        a
            Input value.
        dims, exprs
            Assigned dimensions and their expressions, same length.
        dest
            Optional value intersected into the result.
        destructive
            Consume *a* instead of copying it.
        """

    @abc.abstractmethod
    def substitute_linexpr_array(self, a, dims: Sequence[int], exprs: Sequence[Linexpr],
                                 dest=None, destructive: bool = False): ...

    @abc.abstractmethod
    def assign_texpr_array(self, a, dims: Sequence[int], exprs: Sequence[Texpr],
                           dest=None, destructive: bool = False): ...

    @abc.abstractmethod
    def substitute_texpr_array(self, a, dims: Sequence[int], exprs: Sequence[Texpr],
                               dest=None, destructive: bool = False): ...

    # ---- Dimensions --------------------------------------------------------

    @abc.abstractmethod
    def forget_array(self, a, dims: Sequence[int], project: bool = False,
                     destructive: bool = False): ...

    @abc.abstractmethod
    def add_dimensions(self, a, change: DimChange, project: bool = False,
                       destructive: bool = False): ...

    @abc.abstractmethod
    def remove_dimensions(self, a, change: DimChange, destructive: bool = False): ...

    @abc.abstractmethod
    def permute_dimensions(self, a, perm: DimPerm, destructive: bool = False): ...

    @abc.abstractmethod
    def expand(self, a, d: int, n: int, destructive: bool = False): ...

    @abc.abstractmethod
    def fold(self, a, dims: Sequence[int], destructive: bool = False): ...


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — PARALLELOTOPE MANAGER
# ═══════════════════════════════════════════════════════════════════════════

class ParallelotopeManager(NumericalDomain):
    """Parallelotope domain manager.

    Examples
    --------
    >>> man = ParallelotopeManager()
    >>> a = man.of_box(0, 2, [(0, 5), (0, 3)])
    >>> man.to_box(a)
    [[0, 5], [0, 3]]
    """

    library = "parallelotopes"

    def __init__(self, config: Optional[ManagerConfig] = None) -> None:
        self.config = config or ManagerConfig()
        for warning in self.config.validate():
            _log.warning("manager config: %s", warning)
        if not float_environment_is_ieee():
            _log.warning(
                "host float type is not IEEE binary64; float bounds may be less tight"
            )
        self.arith = BoundArith(self.config.num)
        self.result = ManagerResult()

    def __repr__(self) -> str:
        return f"ParallelotopeManager(num={self.config.num.value})"

    # ---- Plumbing ----------------------------------------------------------

    def _context(self) -> OpContext:
        return OpContext(
            arith=self.arith,
            integer_tightening=self.config.integer_tightening,
            max_generator_vertices=self.config.max_generator_vertices,
        )

    def _run(self, funid: FunId, fn: Callable[[OpContext], Any]) -> Any:
        ctx = self._context()
        try:
            out = fn(ctx)
        except PtopeError as exc:
            exc.with_funid(funid)
            self.result = ManagerResult(False, False, exc)
            raise
        self.result = ManagerResult(ctx.exact, ctx.exact, None)
        return out

    def _consume(self, funid: FunId, a: Ptope, destructive: bool,
                 op: Callable[..., Ptope], *args: Any) -> Ptope:
        """Run a consuming operation on *a* or on a copy of it."""
        def body(ctx: OpContext) -> Ptope:
            target = a if destructive else a.copy()
            return op(target, *args, ctx=ctx)
        return self._run(funid, body)

    @staticmethod
    def _dim(intdim: int, realdim: int) -> Dimension:
        return Dimension(intdim, realdim)

    # ---- Memory ------------------------------------------------------------

    def copy(self, a: Ptope) -> Ptope:
        return self._run(FunId.COPY, lambda ctx: a.copy())

    def size(self, a: Ptope) -> int:
        return self._run(FunId.SIZE, lambda ctx: a.size())

    # ---- Representation ----------------------------------------------------

    def minimize(self, a: Ptope, destructive: bool = False) -> Ptope:
        return self._consume(FunId.MINIMIZE, a, destructive, normalize)

    def canonicalize(self, a: Ptope, destructive: bool = False) -> Ptope:
        return self._consume(FunId.CANONICALIZE, a, destructive, normalize)

    def hash(self, a: Ptope) -> int:
        return self._run(FunId.HASH, lambda ctx: properties.value_hash(a, ctx))

    def approximate(self, a: Ptope, algorithm: int = 0, destructive: bool = False) -> Ptope:
        return self._consume(FunId.APPROXIMATE, a, destructive, normalize)

    def format(self, a: Ptope, names: Optional[Sequence[str]] = None) -> str:
        return self._run(FunId.FPRINT, lambda ctx: a.format(names))

    def serialize(self, a: Ptope) -> bytes:
        return self._run(FunId.SERIALIZE_RAW, lambda ctx: ser.serialize(a))

    def deserialize(self, buf: bytes) -> Tuple[Ptope, int]:
        return self._run(FunId.DESERIALIZE_RAW, lambda ctx: ser.deserialize(buf))

    # ---- Constructors ------------------------------------------------------

    def bottom(self, intdim: int, realdim: int) -> Ptope:
        return self._run(FunId.BOTTOM, lambda ctx: Ptope.bottom(self._dim(intdim, realdim)))

    def top(self, intdim: int, realdim: int) -> Ptope:
        return self._run(FunId.TOP, lambda ctx: Ptope.top(self._dim(intdim, realdim)))

    def of_box(self, intdim: int, realdim: int, box: Sequence) -> Ptope:
        return self._run(
            FunId.OF_BOX, lambda ctx: convert.of_box(self._dim(intdim, realdim), box, ctx)
        )

    def of_lincons_array(self, intdim: int, realdim: int, conss: Sequence[Lincons]) -> Ptope:
        return self._run(
            FunId.OF_LINCONS_ARRAY,
            lambda ctx: convert.of_lincons_array(self._dim(intdim, realdim), conss, ctx),
        )

    def of_tcons_array(self, intdim: int, realdim: int, conss: Sequence[Tcons]) -> Ptope:
        return self._run(
            FunId.OF_TCONS_ARRAY,
            lambda ctx: convert.of_tcons_array(self._dim(intdim, realdim), conss, ctx),
        )

    def of_generator_array(self, intdim: int, realdim: int,
                           gens: Sequence[Generator]) -> Ptope:
        return self._run(
            FunId.OF_GENERATOR_ARRAY,
            lambda ctx: convert.of_generator_array(self._dim(intdim, realdim), gens, ctx),
        )

    # ---- Tests -------------------------------------------------------------

    def dimension(self, a: Ptope) -> Dimension:
        return self._run(FunId.DIMENSION, lambda ctx: a.dim)

    def is_bottom(self, a: Ptope) -> bool:
        return self._run(FunId.IS_BOTTOM, lambda ctx: lattice.is_bottom(a))

    def is_top(self, a: Ptope) -> bool:
        return self._run(FunId.IS_TOP, lambda ctx: lattice.is_top(a))

    def is_leq(self, a1: Ptope, a2: Ptope) -> bool:
        return self._run(FunId.IS_LEQ, lambda ctx: lattice.is_leq(a1, a2, ctx))

    def is_eq(self, a1: Ptope, a2: Ptope) -> bool:
        return self._run(FunId.IS_EQ, lambda ctx: lattice.is_eq(a1, a2, ctx))

    def is_minimal(self, a: Ptope) -> bool:
        return self._run(FunId.IS_MINIMAL, lambda ctx: a.is_bottom() or a.is_top())

    def is_canonical(self, a: Ptope) -> bool:
        return self._run(FunId.IS_CANONICAL, lambda ctx: a.is_bottom() or a.is_top())

    def is_dimension_unconstrained(self, a: Ptope, d: int) -> bool:
        return self._run(
            FunId.IS_DIMENSION_UNCONSTRAINED,
            lambda ctx: properties.is_dimension_unconstrained(a, d),
        )

    def sat_interval(self, a: Ptope, d: int, itv: Interval) -> bool:
        return self._run(
            FunId.SAT_INTERVAL, lambda ctx: properties.sat_interval(a, d, Interval.of(itv), ctx)
        )

    def sat_lincons(self, a: Ptope, cons: Lincons) -> bool:
        return self._run(FunId.SAT_LINCONS, lambda ctx: properties.sat_lincons(a, cons, ctx))

    def sat_tcons(self, a: Ptope, cons: Tcons) -> bool:
        return self._run(FunId.SAT_TCONS, lambda ctx: properties.sat_tcons(a, cons, ctx))

    # ---- Extraction --------------------------------------------------------

    def bound_dimension(self, a: Ptope, d: int) -> Interval:
        return self._run(FunId.BOUND_DIMENSION, lambda ctx: properties.bound_dimension(a, d, ctx))

    def bound_linexpr(self, a: Ptope, expr: Linexpr) -> Interval:
        return self._run(FunId.BOUND_LINEXPR, lambda ctx: properties.bound_linexpr(a, expr, ctx))

    def bound_texpr(self, a: Ptope, expr: Texpr) -> Interval:
        return self._run(FunId.BOUND_TEXPR, lambda ctx: properties.bound_texpr(a, expr, ctx))

    def to_box(self, a: Ptope) -> List[Interval]:
        return self._run(FunId.TO_BOX, lambda ctx: properties.to_box(a, ctx))

    def to_lincons_array(self, a: Ptope) -> List[Lincons]:
        return self._run(FunId.TO_LINCONS_ARRAY, lambda ctx: convert.to_lincons_array(a))

    def to_tcons_array(self, a: Ptope) -> List[Tcons]:
        return self._run(FunId.TO_TCONS_ARRAY, lambda ctx: convert.to_tcons_array(a))

    def to_generator_array(self, a: Ptope) -> List[Generator]:
        return self._run(
            FunId.TO_GENERATOR_ARRAY, lambda ctx: convert.to_generator_array(a, ctx)
        )

    # ---- Lattice -----------------------------------------------------------

    def meet(self, a1: Ptope, a2: Ptope, destructive: bool = False) -> Ptope:
        return self._consume(FunId.MEET, a1, destructive, lattice.meet, a2)

    def meet_array(self, values: Sequence[Ptope]) -> Ptope:
        return self._run(FunId.MEET_ARRAY, lambda ctx: lattice.meet_array(values, ctx))

    def meet_lincons_array(self, a: Ptope, conss: Sequence[Lincons],
                           destructive: bool = False) -> Ptope:
        return self._consume(
            FunId.MEET_LINCONS_ARRAY, a, destructive, lattice.meet_lincons_array, conss
        )

    def meet_tcons_array(self, a: Ptope, conss: Sequence[Tcons],
                         destructive: bool = False) -> Ptope:
        return self._consume(
            FunId.MEET_TCONS_ARRAY, a, destructive, lattice.meet_tcons_array, conss
        )

    def join(self, a1: Ptope, a2: Ptope, destructive: bool = False) -> Ptope:
        return self._consume(FunId.JOIN, a1, destructive, lattice.join, a2)

    def join_array(self, values: Sequence[Ptope]) -> Ptope:
        return self._run(FunId.JOIN_ARRAY, lambda ctx: lattice.join_array(values, ctx))

    def add_ray_array(self, a: Ptope, gens: Sequence[Generator],
                      destructive: bool = False) -> Ptope:
        return self._consume(FunId.ADD_RAY_ARRAY, a, destructive, lattice.add_ray_array, gens)

    def widening(self, a1: Ptope, a2: Ptope) -> Ptope:
        return self._consume(FunId.WIDENING, a1, False, lattice.widening, a2)

    def widening_thresholds(self, a1: Ptope, a2: Ptope,
                            thresholds: Optional[Sequence[Number]] = None) -> Ptope:
        if thresholds is None:
            thresholds = self.config.widening_thresholds
        return self._consume(
            FunId.WIDENING_THRESHOLDS, a1, False, lattice.widening_thresholds, a2, thresholds
        )

    def narrowing(self, a1: Ptope, a2: Ptope) -> Ptope:
        return self._consume(FunId.NARROWING, a1, False, lattice.narrowing, a2)

    def closure(self, a: Ptope, destructive: bool = False) -> Ptope:
        return self._run(
            FunId.CLOSURE, lambda ctx: lattice.closure(a if destructive else a.copy())
        )

    def add_epsilon(self, a: Ptope, eps: Number) -> Ptope:
        return self._consume(FunId.ADD_EPSILON, a, False, lattice.add_epsilon, eps)

    def add_epsilon_bin(self, a1: Ptope, a2: Ptope, eps: Number,
                        destructive: bool = False) -> Ptope:
        return self._consume(
            FunId.ADD_EPSILON_BIN, a1, destructive, lattice.add_epsilon_bin, a2, eps
        )

    # ---- Transfer ----------------------------------------------------------

    def assign_linexpr_array(self, a: Ptope, dims: Sequence[int], exprs: Sequence[Linexpr],
                             dest: Optional[Ptope] = None,
                             destructive: bool = False) -> Ptope:
        return self._consume(
            FunId.ASSIGN_LINEXPR_ARRAY, a, destructive,
            transfer.assign_linexpr_array, dims, exprs, dest,
        )

    def substitute_linexpr_array(self, a: Ptope, dims: Sequence[int],
                                 exprs: Sequence[Linexpr], dest: Optional[Ptope] = None,
                                 destructive: bool = False) -> Ptope:
        return self._consume(
            FunId.SUBSTITUTE_LINEXPR_ARRAY, a, destructive,
            transfer.substitute_linexpr_array, dims, exprs, dest,
        )

    def assign_texpr_array(self, a: Ptope, dims: Sequence[int], exprs: Sequence[Texpr],
                           dest: Optional[Ptope] = None,
                           destructive: bool = False) -> Ptope:
        return self._consume(
            FunId.ASSIGN_TEXPR_ARRAY, a, destructive,
            transfer.assign_texpr_array, dims, exprs, dest,
        )

    def substitute_texpr_array(self, a: Ptope, dims: Sequence[int], exprs: Sequence[Texpr],
                               dest: Optional[Ptope] = None,
                               destructive: bool = False) -> Ptope:
        return self._consume(
            FunId.SUBSTITUTE_TEXPR_ARRAY, a, destructive,
            transfer.substitute_texpr_array, dims, exprs, dest,
        )

    # ---- Dimensions --------------------------------------------------------

    def forget_array(self, a: Ptope, dims: Sequence[int], project: bool = False,
                     destructive: bool = False) -> Ptope:
        return self._consume(
            FunId.FORGET_ARRAY, a, destructive, dimensions.forget_array, dims, project
        )

    def add_dimensions(self, a: Ptope, change: DimChange, project: bool = False,
                       destructive: bool = False) -> Ptope:
        return self._consume(
            FunId.ADD_DIMENSIONS, a, destructive, dimensions.add_dimensions, change, project
        )

    def remove_dimensions(self, a: Ptope, change: DimChange,
                          destructive: bool = False) -> Ptope:
        return self._consume(
            FunId.REMOVE_DIMENSIONS, a, destructive, dimensions.remove_dimensions, change
        )

    def permute_dimensions(self, a: Ptope, perm: DimPerm,
                           destructive: bool = False) -> Ptope:
        return self._consume(
            FunId.PERMUTE_DIMENSIONS, a, destructive, dimensions.permute_dimensions, perm
        )

    def expand(self, a: Ptope, d: int, n: int, destructive: bool = False) -> Ptope:
        return self._consume(FunId.EXPAND, a, destructive, dimensions.expand, d, n)

    def fold(self, a: Ptope, dims: Sequence[int], destructive: bool = False) -> Ptope:
        return self._consume(FunId.FOLD, a, destructive, dimensions.fold, dims)

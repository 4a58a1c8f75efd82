"""
parallelotopes — Abstract Domain of Parallelotopes
==================================================

A numerical abstract domain for static analysis.  A parallelotope over
``n`` variables is ``{x | l ≤ B·x ≤ u}`` for an invertible basis ``B``
and bound vectors ``l``, ``u`` (possibly infinite): a box in a skewed
coordinate system.  It captures relations such as ``0 ≤ x - y ≤ 3``
at interval-like cost.

Core modules
------------
scalar
    Extended-rational bounds, directed rounding, intervals.
matrix
    Exact rational linear algebra (inverse, rank, echelon independence).
linear
    Dimensions, linear expressions, constraints and generators.
texpr
    Tree expressions and their interval linearisation.
ptope
    The ``Ptope`` value and its normalisation.
lattice
    Order, meet, join, widening, narrowing and epsilon enlargement.
transfer
    Assignment and substitution of linear and tree expressions.
dimensions
    Forget, add, remove, permute, expand and fold dimensions.
properties
    Bounds, satisfaction tests and box projection.
convert
    Conversions to and from boxes, constraints and generators.
serialize
    Framed binary serialisation.
manager
    The ``NumericalDomain`` interface and ``ParallelotopeManager``.
abstract0
    Manager-tagged values with operation methods.

Addon modules
-------------
parser
    Textual constraints (``"x + 2*y <= 10"``), built on parsimonious.

Quick start
-----------
>>> from parallelotopes import ParallelotopeManager, parse_lincons, parse_linexpr
>>> man = ParallelotopeManager()
>>> a = man.of_lincons_array(0, 2, [parse_lincons("0 <= x0 - x1"),
...                                 parse_lincons("x0 - x1 <= 3")])
>>> man.bound_linexpr(a, parse_linexpr("x0 - x1"))
[0, 3]

Package layout
--------------
::

    parallelotopes/
    ├── __init__.py            ← this file
    ├── errors.py
    ├── scalar.py
    ├── matrix.py
    ├── linear.py
    ├── texpr.py
    ├── ptope.py
    ├── properties.py
    ├── lattice.py
    ├── dimensions.py
    ├── transfer.py
    ├── convert.py
    ├── serialize.py
    ├── manager.py
    ├── abstract0.py
    └── parser.py
"""

from __future__ import annotations

import importlib
import logging
import sys
import warnings
from typing import List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__all__: List[str] = []          # populated below

_log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal registry: (module_name, list_of_names_to_import)
#
#   CORE  — always imported; failure is fatal
#   ADDON — failure only warns; the rest of the package stays usable
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "PtopeError",
        "InvalidArgumentError",
        "NotImplementedOperationError",
        "ManagerMismatchError",
        "DeserializationError",
        "ParseError",
    ],
    "scalar": [
        "Interval",
        "NumKind",
        "Rounding",
        "NEG_INF",
        "POS_INF",
    ],
    "linear": [
        "Dimension",
        "DimChange",
        "DimPerm",
        "Linexpr",
        "Lincons",
        "ConsType",
        "Generator",
        "GenType",
    ],
    "texpr": [
        "Texpr",
        "TexprOp",
        "Cst",
        "Dim",
        "Unop",
        "Binop",
        "Tcons",
        "sqrt",
        "cast",
    ],
    "matrix": [],
    "ptope": [
        "Ptope",
        "OpContext",
    ],
    "properties": [],
    "lattice": [],
    "dimensions": [],
    "transfer": [],
    "convert": [],
    "serialize": [],
    "manager": [
        "NumericalDomain",
        "ParallelotopeManager",
        "ManagerConfig",
        "ManagerResult",
        "FunId",
    ],
    "abstract0": [
        "Abstract0",
    ],
}

_ADDON_MODULES = {
    "parser": [
        "ConstraintParser",
        "parse_lincons",
        "parse_linexpr",
        "parse_tcons",
        "parse_texpr",
    ],
}

# ---------------------------------------------------------------------------
# Import helper
# ---------------------------------------------------------------------------

def _import_names(
    module_rel_name: str,
    names: List[str],
    *,
    fatal: bool = True,
) -> None:
    """Import *names* from a submodule and bind them in the package namespace.

    If *fatal* is false, an ``ImportError`` only warns and the names are
    left unbound.
    """
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        if fatal:
            raise ImportError(
                f"parallelotopes: required submodule '{module_rel_name}' "
                f"failed to import: {exc}"
            ) from exc
        warnings.warn(
            f"parallelotopes: optional submodule '{module_rel_name}' "
            f"could not be imported ({exc}); related symbols will be unavailable.",
            ImportWarning,
            stacklevel=2,
        )
        _log.debug("Skipped optional module %s: %s", module_rel_name, exc)
        return

    current_module = sys.modules[__name__]
    for name in names:
        if not hasattr(mod, name):
            raise AttributeError(f"parallelotopes.{module_rel_name} does not export '{name}'")
        setattr(current_module, name, getattr(mod, name))
        __all__.append(name)

    setattr(current_module, module_rel_name, mod)
    if module_rel_name not in __all__:
        __all__.append(module_rel_name)


for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names, fatal=True)

for _mod, _names in _ADDON_MODULES.items():
    _import_names(_mod, _names, fatal=False)

del _mod, _names

# ---------------------------------------------------------------------------
# Package-level utilities
# ---------------------------------------------------------------------------

def list_submodules() -> List[str]:
    """Return the names of all registered submodules (core + addon)."""
    return sorted(set(_CORE_MODULES) | set(_ADDON_MODULES))


def substrate_info() -> dict:
    """Metadata about the loaded package, for diagnostics."""
    loaded = []
    missing = []
    for mod_name in list_submodules():
        if f"{__name__}.{mod_name}" in sys.modules:
            loaded.append(mod_name)
        else:
            missing.append(mod_name)
    return {
        "version": __version__,
        "python": sys.version,
        "loaded_modules": loaded,
        "missing_modules": missing,
        "float_environment_ieee": scalar.float_environment_is_ieee(),  # noqa: F821
    }


__all__ += ["list_submodules", "substrate_info"]

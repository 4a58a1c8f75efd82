"""
parallelotopes.errors
=====================

Exception hierarchy for the parallelotope domain.

Error kinds
-----------
``InvalidArgumentError``
    Zero-size array reductions, out-of-range or duplicate dimensions,
    mismatched array sizes, non-bijective permutations, malformed inputs.
``NotImplementedOperationError``
    An operation the domain explicitly does not support.
``ManagerMismatchError``
    A value tagged with one manager was handed to another one.

Precision loss is *not* an error: it is reported through
``ParallelotopeManager.result`` and logged at DEBUG level.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .manager import FunId


class PtopeError(Exception):
    """Base exception for all parallelotope-domain errors.

    Carries the identifier of the failing operation when the error was
    raised through a manager.
    """

    def __init__(self, message: str, funid: Optional["FunId"] = None) -> None:
        super().__init__(message)
        self.message = message
        self.funid = funid

    def with_funid(self, funid: "FunId") -> "PtopeError":
        """Attach the operation identifier (first one wins)."""
        if self.funid is None:
            self.funid = funid
        return self

    def __str__(self) -> str:
        if self.funid is not None:
            return f"{self.funid.value}: {self.message}"
        return self.message


class InvalidArgumentError(PtopeError, ValueError):
    """Bad arguments: sizes, dimensions, permutations, empty reductions."""


class NotImplementedOperationError(PtopeError, NotImplementedError):
    """The requested operation is not supported by this domain."""


class ManagerMismatchError(PtopeError, TypeError):
    """An ``Abstract0`` was used with a manager other than its owner."""


class DeserializationError(InvalidArgumentError):
    """A serialized buffer could not be decoded."""


class ParseError(InvalidArgumentError):
    """A textual constraint or expression could not be parsed."""

    def __init__(self, message: str, text: str = "", position: int = -1) -> None:
        super().__init__(message)
        self.text = text
        self.position = position

    def __str__(self) -> str:
        base = super().__str__()
        if self.position >= 0:
            return f"{base} (at column {self.position + 1} of {self.text!r})"
        return base

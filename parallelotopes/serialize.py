"""
Binary serialization of parallelotopes.

Frame layout::

    +--------+----------------+---------------------------+
    | "PTOP" | u32 big-endian | UTF-8 JSON payload        |
    | magic  | payload length | {"v": 1, "intdim": ...}   |
    +--------+----------------+---------------------------+

Rationals are written as ``"p/q"`` strings, infinities as ``"-inf"`` and
``"+inf"``, so the round trip is exact in both number kinds.
"""

from __future__ import annotations

import json
import logging
import struct
from fractions import Fraction
from typing import Any, Dict, Tuple

from . import matrix as mx
from .errors import DeserializationError, InvalidArgumentError
from .linear import Dimension
from .ptope import Ptope
from .scalar import Bound, Interval, is_finite, is_pos_inf, to_bound

_log = logging.getLogger(__name__)

MAGIC = b"PTOP"
VERSION = 1
_HEADER = struct.Struct(">4sI")


def _dump_bound(b: Bound) -> str:
    if not is_finite(b):
        return "+inf" if is_pos_inf(b) else "-inf"
    return f"{b.numerator}/{b.denominator}"


def _load_bound(text: Any) -> Bound:
    if not isinstance(text, str):
        raise DeserializationError(f"bound must be a string, got {text!r}")
    try:
        return to_bound(text)
    except InvalidArgumentError as exc:
        raise DeserializationError(f"bad bound {text!r}") from exc


def serialize(a: Ptope) -> bytes:
    payload: Dict[str, Any] = {
        "v": VERSION,
        "intdim": a.dim.intdim,
        "realdim": a.dim.realdim,
        "bottom": a.is_bottom(),
    }
    if not a.is_bottom():
        payload["basis"] = [[_dump_bound(c) for c in row] for row in a.basis]
        payload["bounds"] = [[_dump_bound(i.lo), _dump_bound(i.hi)] for i in a.bounds]
    body = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return _HEADER.pack(MAGIC, len(body)) + body


def deserialize(buf: bytes) -> Tuple[Ptope, int]:
    """Decode one value from the start of *buf*; returns it and the bytes used."""
    if len(buf) < _HEADER.size:
        raise DeserializationError("buffer shorter than the frame header")
    magic, length = _HEADER.unpack_from(buf, 0)
    if magic != MAGIC:
        raise DeserializationError(f"bad magic {magic!r}")
    end = _HEADER.size + length
    if len(buf) < end:
        raise DeserializationError(f"truncated payload: need {length} bytes")
    try:
        payload = json.loads(bytes(buf[_HEADER.size:end]).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DeserializationError(f"payload is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict) or payload.get("v") != VERSION:
        raise DeserializationError("unsupported payload version")
    try:
        dim = Dimension(int(payload["intdim"]), int(payload["realdim"]))
        if payload["bottom"]:
            return Ptope.bottom(dim), end
        basis = [[_load_bound(c) for c in row] for row in payload["basis"]]
        bounds = [Interval(_load_bound(lo), _load_bound(hi)) for lo, hi in payload["bounds"]]
    except (KeyError, TypeError, ValueError) as exc:
        raise DeserializationError(f"malformed payload: {exc}") from exc
    if any(not is_finite(c) for row in basis for c in row):
        raise DeserializationError("basis entries must be finite")
    basis = [[Fraction(c) for c in row] for row in basis]
    if len(basis) != dim.size or any(len(r) != dim.size for r in basis) \
            or len(bounds) != dim.size or not mx.is_invertible(basis):
        raise DeserializationError("basis is not an invertible square matrix of the right size")
    if any(itv.is_bottom() for itv in bounds):
        return Ptope.bottom(dim), end
    return Ptope(dim, basis, bounds), end

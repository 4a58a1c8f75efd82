"""
parallelotopes/parser.py
════════════════════════

Textual constraints and expressions.

    x0 + 2*x1 <= 10
    3*y - [0, 1/2] >= x
    i % 2 = 0
    x + y = 1 mod 4
    sqrt(x) < 3

Variables are ``x<k>`` for dimension k by default, or any identifier when
a list of names is given.  ``a ⋈ b`` becomes the constraint ``a - b ⋈ 0``
(``b - a`` for ``<=`` and ``<``).  Constants are integers, decimals,
fractions ``p/q`` (written without spaces) or intervals ``[lo, hi]``.

Parsing uses a PEG grammar (parsimonious) and a ``NodeVisitor`` that
builds ``Texpr`` trees; linear forms are extracted from the trees.
"""

from __future__ import annotations

import logging
import re
from fractions import Fraction
from typing import Dict, Optional, Sequence

from parsimonious.exceptions import ParseError as PegParseError
from parsimonious.exceptions import VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

from .errors import InvalidArgumentError, ParseError
from .linear import ConsType, Lincons, Linexpr
from .scalar import Interval, to_bound
from .texpr import Binop, Cst, Dim, Tcons, Texpr, TexprOp, Unop, linearize

_log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — GRAMMAR
# ═══════════════════════════════════════════════════════════════════════════

CONSTRAINT_GRAMMAR = Grammar(r'''
    constraint  = _ sum _ relop _ sum _ modulo? _
    expression  = _ sum _

    modulo      = "mod" _ number
    relop       = "<=" / ">=" / "==" / "!=" / "=" / "<" / ">"

    sum         = product (_ addop _ product)*
    product     = unary (_ mulop _ unary)*
    unary       = negation / power
    negation    = "-" _ unary
    power       = atom (_ "^" _ unary)?
    atom        = call / interval / number / variable / group
    call        = func _ "(" _ sum _ ")"
    group       = "(" _ sum _ ")"
    interval    = "[" _ bound _ "," _ bound _ "]"
    bound       = ~r"[+-]?\s*(inf|oo|[0-9]+(\.[0-9]+|/[0-9]+)?)"

    func        = "sqrt" / "cast"
    addop       = "+" / "-"
    mulop       = "*" / "/" / "%"
    number      = ~r"[0-9]+(\.[0-9]+|/[0-9]+)?"
    variable    = ~r"[A-Za-z_][A-Za-z_0-9]*"
    _           = ~r"\s*"
''')

_RELOPS = {
    "<=": (ConsType.SUPEQ, True),
    "<": (ConsType.SUP, True),
    ">=": (ConsType.SUPEQ, False),
    ">": (ConsType.SUP, False),
    "=": (ConsType.EQ, False),
    "==": (ConsType.EQ, False),
    "!=": (ConsType.DISEQ, False),
}

_BINOPS = {
    "+": TexprOp.ADD, "-": TexprOp.SUB, "*": TexprOp.MUL,
    "/": TexprOp.DIV, "%": TexprOp.MOD, "^": TexprOp.POW,
}

_DEFAULT_VAR = re.compile(r"x([0-9]+)$")


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — PARSE TREE → TEXPR
# ═══════════════════════════════════════════════════════════════════════════

class _TreeBuilder(NodeVisitor):
    """Turns a parse tree into ``Texpr`` nodes and constraint parts."""

    def __init__(self, names: Optional[Dict[str, int]]) -> None:
        self.names = names

    def generic_visit(self, node: Node, visited_children):
        # Lists stay unflattened: a one-match repetition keeps its nesting.
        return visited_children or node.text

    def visit_constraint(self, node, visited_children):
        _, left, _, relop, _, right, _, modulo, _ = visited_children
        modulo = modulo[0] if isinstance(modulo, list) else None
        return left, relop, right, modulo

    def visit_expression(self, node, visited_children):
        return visited_children[1]

    def visit_modulo(self, node, visited_children):
        return visited_children[2].value.lo

    def visit_relop(self, node, visited_children):
        return node.text

    def _fold_chain(self, first: Texpr, rest) -> Texpr:
        tree = first
        for _, op, _, operand in (rest or []):
            tree = Binop(_BINOPS[op], tree, operand)
        return tree

    def visit_sum(self, node, visited_children):
        first, rest = visited_children
        return self._fold_chain(first, rest if isinstance(rest, list) else [])

    def visit_product(self, node, visited_children):
        first, rest = visited_children
        return self._fold_chain(first, rest if isinstance(rest, list) else [])

    def visit_addop(self, node, visited_children):
        return node.text

    def visit_mulop(self, node, visited_children):
        return node.text

    def visit_unary(self, node, visited_children):
        return visited_children[0]

    def visit_negation(self, node, visited_children):
        return Unop(TexprOp.NEG, visited_children[2])

    def visit_power(self, node, visited_children):
        base, exponent = visited_children
        if isinstance(exponent, list) and exponent:
            return Binop(TexprOp.POW, base, exponent[0][3])
        return base

    def visit_atom(self, node, visited_children):
        return visited_children[0]

    def visit_call(self, node, visited_children):
        func, _, _, _, arg, _, _ = visited_children
        op = TexprOp.SQRT if func == "sqrt" else TexprOp.CAST
        return Unop(op, arg)

    def visit_group(self, node, visited_children):
        return visited_children[2]

    def visit_interval(self, node, visited_children):
        _, _, lo, _, _, _, hi, _, _ = visited_children
        return Cst(Interval(lo, hi))

    def visit_bound(self, node, visited_children):
        return to_bound(re.sub(r"\s+", "", node.text))

    def visit_number(self, node, visited_children):
        return Cst(Interval.point(Fraction(node.text)))

    def visit_func(self, node, visited_children):
        return node.text

    def visit_variable(self, node, visited_children):
        name = node.text
        if self.names is not None:
            if name not in self.names:
                raise InvalidArgumentError(f"unknown variable {name!r}")
            return Dim(self.names[name])
        m = _DEFAULT_VAR.match(name)
        if m is None:
            raise InvalidArgumentError(f"variable {name!r} is not of the form x<k>")
        return Dim(int(m.group(1)))


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — PUBLIC API
# ═══════════════════════════════════════════════════════════════════════════

class _Nonlinear(Exception):
    pass


def _refuse(_expr: Linexpr) -> Interval:
    raise _Nonlinear()


class ConstraintParser:
    """
    Parser for textual constraints over named or numbered variables.

    Examples
    --------
    >>> p = ConstraintParser(["x", "y"])
    >>> p.parse_lincons("x + 2*y <= 10")
    -x0 - 2·x1 + 10 >= 0
    """

    def __init__(self, names: Optional[Sequence[str]] = None) -> None:
        self.names = None if names is None else {n: i for i, n in enumerate(names)}
        if self.names is not None and len(self.names) != len(names):
            raise InvalidArgumentError(f"duplicate variable names in {list(names)}")

    def _parse(self, text: str, rule: str):
        try:
            tree = CONSTRAINT_GRAMMAR[rule].parse(text)
        except PegParseError as exc:
            raise ParseError(f"syntax error: {exc}", text, exc.pos) from exc
        try:
            return _TreeBuilder(self.names).visit(tree)
        except VisitationError as exc:
            _log.debug("visitation failed on %r (%s)", text, exc.original_class.__name__)
            raise ParseError(f"cannot build expression: {exc.args[0].splitlines()[0]}", text) from exc

    def parse_texpr(self, text: str) -> Texpr:
        return self._parse(text, "expression")

    def parse_linexpr(self, text: str) -> Linexpr:
        """Parse a linear expression; non-linear input is rejected."""
        return self._linear(self.parse_texpr(text), text)

    def parse_tcons(self, text: str) -> Tcons:
        left, relop, right, modulo = self._parse(text, "constraint")
        constyp, flip = _RELOPS[relop]
        if modulo is not None:
            if constyp is not ConsType.EQ:
                raise ParseError("'mod' is only allowed with '='", text)
            constyp = ConsType.EQMOD
        expr = Binop(TexprOp.SUB, right, left) if flip else Binop(TexprOp.SUB, left, right)
        return Tcons(expr, constyp, modulo)

    def parse_lincons(self, text: str) -> Lincons:
        tcons = self.parse_tcons(text)
        return Lincons(self._linear(tcons.expr, text), tcons.constyp, tcons.modulo)

    @staticmethod
    def _linear(tree: Texpr, text: str) -> Linexpr:
        try:
            return linearize(tree, _refuse)
        except _Nonlinear:
            raise ParseError("expression is not linear", text) from None


def parse_lincons(text: str, names: Optional[Sequence[str]] = None) -> Lincons:
    return ConstraintParser(names).parse_lincons(text)


def parse_linexpr(text: str, names: Optional[Sequence[str]] = None) -> Linexpr:
    return ConstraintParser(names).parse_linexpr(text)


def parse_tcons(text: str, names: Optional[Sequence[str]] = None) -> Tcons:
    return ConstraintParser(names).parse_tcons(text)


def parse_texpr(text: str, names: Optional[Sequence[str]] = None) -> Texpr:
    return ConstraintParser(names).parse_texpr(text)

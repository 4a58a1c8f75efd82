# tests/test_parser.py
"""
Tests for the textual constraint grammar and the expression builder.
"""

from fractions import Fraction

import pytest
from parsimonious.exceptions import IncompleteParseError
from parsimonious.exceptions import ParseError as PegParseError

from parallelotopes.errors import InvalidArgumentError, ParseError
from parallelotopes.linear import ConsType, Linexpr
from parallelotopes.parser import (
    CONSTRAINT_GRAMMAR,
    ConstraintParser,
    parse_lincons,
    parse_linexpr,
    parse_tcons,
    parse_texpr,
)
from parallelotopes.scalar import NEG_INF, Interval
from parallelotopes.texpr import Binop, Cst, Dim, TexprOp, Unop


class TestGrammar:

    def test_rules_present(self):
        for rule in ("constraint", "expression", "sum", "product", "atom",
                     "interval", "relop", "modulo"):
            assert rule in CONSTRAINT_GRAMMAR

    @pytest.mark.parametrize("op", ["<=", ">=", "==", "!=", "=", "<", ">"])
    def test_relops(self, op):
        assert CONSTRAINT_GRAMMAR["relop"].parse(op).text == op

    @pytest.mark.parametrize("lit", ["0", "42", "3.25", "7/2"])
    def test_numbers(self, lit):
        assert CONSTRAINT_GRAMMAR["number"].parse(lit).text == lit

    def test_rejects_trailing_garbage(self):
        with pytest.raises((PegParseError, IncompleteParseError)):
            CONSTRAINT_GRAMMAR["expression"].parse("x0 + ")


class TestLinear:

    def test_le_is_flipped(self):
        c = parse_lincons("x0 + 2*x1 <= 10")
        assert c.constyp is ConsType.SUPEQ
        assert c.expr == Linexpr({0: -1, 1: -2}, 10)

    def test_ge(self):
        c = parse_lincons("x0 - x1 >= -3")
        assert c.expr == Linexpr({0: 1, 1: -1}, 3)

    def test_strict_and_equalities(self):
        assert parse_lincons("x0 > 1").constyp is ConsType.SUP
        assert parse_lincons("x0 < 1").expr == Linexpr({0: -1}, 1)
        assert parse_lincons("x0 == x1").constyp is ConsType.EQ
        assert parse_lincons("x0 = x1").expr == Linexpr({0: 1, 1: -1})
        assert parse_lincons("x0 != 0").constyp is ConsType.DISEQ

    def test_modulo(self):
        c = parse_lincons("x0 + x1 = 1 mod 4")
        assert c.constyp is ConsType.EQMOD
        assert c.modulo == 4
        assert c.expr == Linexpr({0: 1, 1: 1}, -1)

    def test_modulo_needs_equality(self):
        with pytest.raises(ParseError, match="mod"):
            parse_lincons("x0 <= 1 mod 4")

    def test_decimal_and_fraction_constants(self):
        e = parse_linexpr("0.5*x0 + 1/3")
        assert e == Linexpr({0: Fraction(1, 2)}, Fraction(1, 3))

    def test_division_by_constant(self):
        assert parse_linexpr("x0 / 4") == Linexpr({0: Fraction(1, 4)})

    def test_parentheses_and_negation(self):
        assert parse_linexpr("-(x0 - 2) * 3") == Linexpr({0: -3}, 6)

    def test_interval_constant(self):
        e = parse_linexpr("x0 + [0, 1/2]")
        assert e.cst == Interval(0, Fraction(1, 2))

    def test_infinite_interval(self):
        e = parse_linexpr("[-inf, 0]")
        assert e.cst == Interval(NEG_INF, 0)

    def test_nonlinear_rejected(self):
        with pytest.raises(ParseError, match="not linear"):
            parse_linexpr("x0 * x1")


class TestTrees:

    def test_precedence(self):
        t = parse_texpr("x0 + x1 * 2")
        assert t == Binop(TexprOp.ADD, Dim(0),
                          Binop(TexprOp.MUL, Dim(1), Cst(Interval.point(2))))

    def test_left_associative(self):
        t = parse_texpr("x0 - x1 - x2")
        assert t == Binop(TexprOp.SUB, Binop(TexprOp.SUB, Dim(0), Dim(1)), Dim(2))

    def test_power_binds_tighter_than_negation(self):
        t = parse_texpr("-x0^2")
        assert t == Unop(TexprOp.NEG, Binop(TexprOp.POW, Dim(0), Cst(Interval.point(2))))

    def test_functions(self):
        t = parse_texpr("sqrt(x0) + cast(x1)")
        assert t.left == Unop(TexprOp.SQRT, Dim(0))
        assert t.right == Unop(TexprOp.CAST, Dim(1))

    def test_tcons_mod(self):
        c = parse_tcons("x0 % 2 = 0")
        assert c.constyp is ConsType.EQ
        assert c.expr == Binop(TexprOp.SUB,
                               Binop(TexprOp.MOD, Dim(0), Cst(Interval.point(2))),
                               Cst(Interval.point(0)))


class TestNames:

    def test_named_variables(self):
        p = ConstraintParser(["x", "y"])
        assert p.parse_lincons("x + 2*y <= 10").expr == Linexpr({0: -1, 1: -2}, 10)
        assert repr(p.parse_lincons("x + 2*y <= 10")) == "-x0 - 2·x1 + 10 >= 0"

    def test_unknown_name(self):
        with pytest.raises(ParseError, match="unknown variable"):
            ConstraintParser(["x"]).parse_linexpr("x + z")

    def test_default_names_only(self):
        with pytest.raises(ParseError):
            parse_linexpr("y + 1")

    def test_duplicate_names(self):
        with pytest.raises(InvalidArgumentError):
            ConstraintParser(["x", "x"])


class TestErrors:

    def test_syntax_error_position(self):
        with pytest.raises(ParseError) as info:
            parse_lincons("x0 <= ")
        assert info.value.text == "x0 <= "
        assert info.value.position >= 0
        assert "column" in str(info.value)

    def test_missing_relop(self):
        with pytest.raises(ParseError):
            parse_lincons("x0 + 1")

    def test_parse_error_is_invalid_argument(self):
        with pytest.raises(InvalidArgumentError):
            parse_linexpr("x0 +* 1")

"""
Tests for interval bound estimation.

Soundness is checked by brute force: every concrete value of an expression
over small operand ranges must lie inside its computed bound.
"""

import itertools

import pytest

from symalu.errors import ALUError
from symalu.semantics.instructions import Opcode, Register
from symalu.symbolic.bounds import DIGIT_BOUND, Bound, bounds, div_bound, mod_bound
from symalu.symbolic.expr import Node, evaluate, inp, lit, reg

X, Z = Register.X, Register.Z


class TestBound:
    def test_empty_interval_rejected(self):
        with pytest.raises(ValueError):
            Bound(3, 2)

    def test_str(self):
        assert str(Bound(1, 9)) == "[1, 9]"
        assert str(Bound(None, 4)) == "[-inf, 4]"
        assert str(Bound.unbounded()) == "[-inf, +inf]"

    def test_add(self):
        assert Bound(1, 9) + Bound(-2, 3) == Bound(-1, 12)
        assert Bound(1, None) + Bound(1, 9) == Bound(2, None)

    def test_mul_is_sign_aware(self):
        assert Bound(1, 9) * Bound.exact(26) == Bound(26, 234)
        assert Bound(1, 9) * Bound.exact(-2) == Bound(-18, -2)
        assert Bound(-3, 2) * Bound(-4, 5) == Bound(-15, 12)

    def test_mul_with_open_ends(self):
        assert Bound(0, None) * Bound(1, 26) == Bound(0, None)
        assert Bound(0, None) * Bound(-1, 1) == Bound(None, None)
        assert Bound.exact(0) * Bound.unbounded() == Bound.exact(0)

    def test_disjoint(self):
        assert Bound(10, 35).is_disjoint(DIGIT_BOUND)
        assert not Bound(-11, 14).is_disjoint(DIGIT_BOUND)
        assert not Bound(None, None).is_disjoint(DIGIT_BOUND)

    def test_excludes_zero(self):
        assert Bound(1, 9).excludes_zero()
        assert not Bound(0, 9).excludes_zero()
        assert not Bound(None, 5).excludes_zero()


class TestLeafBounds:
    def test_literal(self):
        assert bounds(lit(-7)) == Bound(-7, -7)

    def test_input_uses_digit_domain(self):
        assert bounds(inp(3)) == DIGIT_BOUND
        assert bounds(inp(3), digit_bound=Bound(0, 9)) == Bound(0, 9)

    def test_register_unbounded_unless_given(self):
        assert bounds(reg(Z)) == Bound.unbounded()
        assert bounds(reg(Z), {Z: Bound(0, 25)}) == Bound(0, 25)


class TestOperatorBounds:
    def test_eql_is_zero_or_one(self):
        assert bounds(Node(Opcode.EQL, reg(Z), inp(0))) == Bound(0, 1)

    def test_mod_by_literal(self):
        assert bounds(Node(Opcode.MOD, reg(Z), lit(26))) == Bound(0, 25)

    def test_mod_by_unbounded_uses_dividend(self):
        expr = Node(Opcode.MOD, inp(0), reg(X))
        assert bounds(expr) == Bound(0, 9)
        assert bounds(Node(Opcode.MOD, reg(Z), reg(X))) == Bound(0, None)

    def test_div_by_positive_constant(self):
        assert div_bound(Bound(0, 675), Bound.exact(26)) == Bound(0, 25)
        assert div_bound(Bound(-30, 30), Bound.exact(26)) == Bound(-1, 1)

    def test_div_by_negative_constant(self):
        assert div_bound(Bound(-30, 55), Bound.exact(-26)) == Bound(-2, 1)

    def test_push_stage_shape(self):
        expr = Node(Opcode.ADD, Node(Opcode.MUL, reg(Z), lit(26)), Node(Opcode.ADD, inp(0), lit(6)))
        assert bounds(expr, {Z: Bound.exact(0)}) == Bound(7, 15)

    def test_mod_bound_of_non_positive_modulus(self):
        assert mod_bound(Bound(0, 10), Bound(None, 0)) == Bound(0, 0)


RANGES = {
    "digit": range(1, 10),
    "small": range(-4, 5),
    "positive": range(1, 6),
}


@pytest.mark.parametrize("op", [Opcode.ADD, Opcode.MUL, Opcode.DIV, Opcode.MOD, Opcode.EQL])
@pytest.mark.parametrize("left_range,right_range", [
    ("small", "small"),
    ("small", "positive"),
    ("digit", "small"),
    ("positive", "digit"),
])
def test_bounds_enclose_every_concrete_value(op, left_range, right_range):
    left, right = RANGES[left_range], RANGES[right_range]
    leaf_bounds = {
        X: Bound(min(left), max(left)),
        Z: Bound(min(right), max(right)),
    }
    expr = Node(op, reg(X), reg(Z))
    enclosure = bounds(expr, leaf_bounds)

    for a, b in itertools.product(left, right):
        try:
            value = evaluate(expr, (), {X: a, Z: b})
        except ALUError:
            continue
        assert enclosure.contains(value), f"{a} {op.symbol} {b} = {value} escapes {enclosure}"


def test_nested_bounds_enclose_concrete_values():
    # (([0] * -3) + z) / 2 % 7 over digits and z in [-5, 5]
    expr = Node(
        Opcode.MOD,
        Node(Opcode.DIV, Node(Opcode.ADD, Node(Opcode.MUL, inp(0), lit(-3)), reg(Z)), lit(2)),
        lit(7),
    )
    enclosure = bounds(expr, {Z: Bound(-5, 5)})
    for d, z in itertools.product(range(1, 10), range(-5, 6)):
        try:
            value = evaluate(expr, [d], {Z: z})
        except ALUError:
            continue
        assert enclosure.contains(value)

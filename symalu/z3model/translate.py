"""
Translation of ALU expression trees into Z3 integer terms.

Naming follows the stage structure used by the constraint bridge:
- input leaf [i]           -> I_i
- linked register in stage -> <REG>_<stage>   (e.g. Z_3)

Integer semantics are matched exactly, including truncating division. Side
conditions under which the concrete ALU would fail (zero divisor, negative
modulo operand) are collected as guards; asserting them excludes models that
do not correspond to a successful concrete execution.
"""

from typing import Dict, List, Mapping, Optional

import z3

from ..errors import UnsupportedExpression
from ..semantics.instructions import InputRef, Literal, Opcode, Register
from ..symbolic.bounds import DIGIT_BOUND, Bound, bounds
from ..symbolic.expr import Expr, Leaf


def input_var(index: int, ctx: Optional[z3.Context] = None) -> z3.ArithRef:
    return z3.Int(f"I_{index}", ctx)


def register_var(register: Register, stage: int, ctx: Optional[z3.Context] = None) -> z3.ArithRef:
    return z3.Int(f"{register.name}_{stage}", ctx)


class ExprTranslator:
    """
    Translates expressions of one stage into Z3 terms.

    Args:
        stage: Stage index, used to name the linked register variable
        linked: The only register leaf a stage expression may reference
        leaf_bounds: Bounds of register leaves, used to pick the cheaper
            division encoding when operands are provably non-negative
        digit_bound: Domain of input leaves
        ctx: Z3 context (main context when None)
    """

    def __init__(self, stage: int, linked: Register = Register.Z,
                 leaf_bounds: Optional[Mapping[Register, Bound]] = None,
                 digit_bound: Bound = DIGIT_BOUND,
                 ctx: Optional[z3.Context] = None):
        self.stage = stage
        self.linked = linked
        self.leaf_bounds = dict(leaf_bounds or {})
        self.digit_bound = digit_bound
        self.ctx = ctx
        self.guards: List[z3.BoolRef] = []
        self._memo: Dict[int, z3.ArithRef] = {}

    def _bound(self, expr: Expr) -> Bound:
        return bounds(expr, self.leaf_bounds, self.digit_bound)

    def translate(self, expr: Expr) -> z3.ArithRef:
        if isinstance(expr, Leaf):
            return self._leaf(expr)
        key = id(expr)
        if key in self._memo:
            return self._memo[key]

        a = self.translate(expr.left)
        b = self.translate(expr.right)
        if expr.op is Opcode.ADD:
            result = a + b
        elif expr.op is Opcode.MUL:
            result = a * b
        elif expr.op is Opcode.DIV:
            self.guards.append(b != 0)
            result = self._div(expr, a, b)
        elif expr.op is Opcode.MOD:
            self.guards.append(a >= 0)
            self.guards.append(b > 0)
            result = a % b
        else:
            one = z3.IntVal(1, self.ctx)
            zero = z3.IntVal(0, self.ctx)
            result = z3.If(a == b, one, zero)

        self._memo[key] = result
        return result

    def _leaf(self, expr: Leaf) -> z3.ArithRef:
        operand = expr.operand
        if isinstance(operand, Literal):
            return z3.IntVal(operand.value, self.ctx)
        if isinstance(operand, InputRef):
            return input_var(operand.index, self.ctx)
        if operand is self.linked:
            return register_var(operand, self.stage, self.ctx)
        raise UnsupportedExpression(
            f"stage {self.stage} expression references register {operand}; "
            f"only {self.linked} is chained between stages"
        )

    def _div(self, expr, a: z3.ArithRef, b: z3.ArithRef) -> z3.ArithRef:
        left, right = self._bound(expr.left), self._bound(expr.right)
        if left.lower is not None and left.lower >= 0 and right.lower is not None and right.lower >= 1:
            # Z3 division is Euclidean; it agrees with truncation here.
            return a / b
        abs_a = z3.If(a >= 0, a, -a)
        abs_b = z3.If(b >= 0, b, -b)
        q = abs_a / abs_b
        return z3.If((a >= 0) == (b >= 0), q, -q)


def to_z3(expr: Expr, stage: int = 0, linked: Register = Register.Z,
          leaf_bounds: Optional[Mapping[Register, Bound]] = None):
    """
    Convenience: translate `expr` and return (term, guards).
    """
    translator = ExprTranslator(stage, linked, leaf_bounds)
    term = translator.translate(expr)
    return term, translator.guards

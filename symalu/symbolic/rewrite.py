"""
Algebraic term rewriting for ALU expressions.

simplify(op, left, right) builds the node `left op right` in normal form.
Rules are grouped per opcode and tried in priority order; each rule returns a
rewritten expression or None to fall through. When no rule fires a plain
Node is built.

The rewriter is not a fixed-point engine. Callers (the abstract interpreter,
normalize()) build trees bottom-up, invoking simplify once per node, which is
enough to keep every subtree in normal form: every tree simplify returns is
left unchanged by normalize(). Rules that recurse (reassociation,
distribution) only recurse on strictly smaller operands, so every call
terminates.

Rules that consult bounds (MOD identity, EQL short-circuit, DIV cancellation)
only fire when the Bound Estimator proves their side condition.
"""

import logging
from typing import Callable, Dict, Mapping, Optional, Sequence

from ..errors import ALUError
from ..semantics.concrete_vm import apply_binary
from ..semantics.instructions import Opcode, Register
from .bounds import DIGIT_BOUND, Bound, bounds
from .expr import Expr, Leaf, Node, is_literal, is_node, lit, literal_value

logger = logging.getLogger(__name__)

Rule = Callable[['Rewriter', Expr, Expr], Optional[Expr]]


class Rewriter:
    """
    Term rewriter parameterised by the bound assumptions used for the
    bound-based rules.

    Args:
        leaf_bounds: Assumed bounds of register leaves (unbounded if absent)
        digit_bound: Domain of input leaves
    """

    def __init__(self, leaf_bounds: Optional[Mapping[Register, Bound]] = None,
                 digit_bound: Bound = DIGIT_BOUND):
        self.leaf_bounds = dict(leaf_bounds or {})
        self.digit_bound = digit_bound

    def bound(self, expr: Expr) -> Bound:
        return bounds(expr, self.leaf_bounds, self.digit_bound)

    def simplify(self, op: Opcode, left: Expr, right: Expr) -> Expr:
        """Build `left op right`, applying the first matching rule."""
        for rule in RULES[op]:
            result = rule(self, left, right)
            if result is not None:
                return result
        return Node(op, left, right)

    def normalize(self, expr: Expr) -> Expr:
        """Rebuild `expr` bottom-up through simplify()."""
        memo: Dict[int, Expr] = {}

        def walk(e: Expr) -> Expr:
            if isinstance(e, Leaf):
                return e
            key = id(e)
            if key not in memo:
                memo[key] = self.simplify(e.op, walk(e.left), walk(e.right))
            return memo[key]

        return walk(expr)


# ---------------------------------------------------------------------------
# Shared rules
# ---------------------------------------------------------------------------

def _folder(op: Opcode) -> Rule:
    """Constant folding for `op`. Leaves failing operations (x/0) unfolded."""
    def fold(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
        va, vb = literal_value(a), literal_value(b)
        if va is None or vb is None:
            return None
        try:
            return lit(apply_binary(op, va, vb))
        except ALUError:
            return None
    fold.__name__ = f"fold_{op.value}"
    return fold


# ---------------------------------------------------------------------------
# MUL
# ---------------------------------------------------------------------------

def mul_by_zero(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
    if is_literal(a, 0) or is_literal(b, 0):
        return lit(0)
    return None


def mul_by_one(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
    if is_literal(a, 1):
        return b
    if is_literal(b, 1):
        return a
    return None


def mul_reassociate(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
    """
    k * (y * x) -> (k*x) * y when x is a literal (symmetrically for y),
    otherwise (k * y) * x or (k * x) * y, whichever is shallower.

    The product built in the last case has a non-literal on each side, so no
    rule rewrites it again.
    """
    if not (is_literal(a) and is_node(b, Opcode.MUL)):
        return None
    y, x = b.left, b.right
    if is_literal(x):
        return rw.simplify(Opcode.MUL, rw.simplify(Opcode.MUL, a, x), y)
    if is_literal(y):
        return rw.simplify(Opcode.MUL, rw.simplify(Opcode.MUL, a, y), x)
    ny = rw.simplify(Opcode.MUL, a, y)
    nx = rw.simplify(Opcode.MUL, a, x)
    if ny.depth < nx.depth:
        return Node(Opcode.MUL, ny, x)
    return Node(Opcode.MUL, nx, y)


def mul_literal_left(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
    """(p * q) * k -> k * (p * q), handing over to reassociation."""
    if is_node(a, Opcode.MUL) and is_literal(b):
        return rw.simplify(Opcode.MUL, b, a)
    return None


def mul_distribute(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
    """(y + x) * k -> k*y + k*x"""
    if is_node(a, Opcode.ADD) and is_literal(b):
        ny = rw.simplify(Opcode.MUL, b, a.left)
        nx = rw.simplify(Opcode.MUL, b, a.right)
        return rw.simplify(Opcode.ADD, ny, nx)
    return None


def mul_literal_over_sum(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
    """k * (y + x) -> (y + x) * k, handing over to distribution."""
    if is_literal(a) and is_node(b, Opcode.ADD):
        return rw.simplify(Opcode.MUL, b, a)
    return None


# ---------------------------------------------------------------------------
# ADD
# ---------------------------------------------------------------------------

def add_zero(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
    if is_literal(a, 0):
        return b
    if is_literal(b, 0):
        return a
    return None


def add_reassociate(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
    """k + (y + x): literals merge, otherwise same depth criterion as MUL."""
    if not (is_literal(a) and is_node(b, Opcode.ADD)):
        return None
    y, x = b.left, b.right
    if is_literal(x):
        return rw.simplify(Opcode.ADD, rw.simplify(Opcode.ADD, a, x), y)
    if is_literal(y):
        return rw.simplify(Opcode.ADD, rw.simplify(Opcode.ADD, a, y), x)
    ny = rw.simplify(Opcode.ADD, a, y)
    nx = rw.simplify(Opcode.ADD, a, x)
    if ny.depth < nx.depth:
        return Node(Opcode.ADD, ny, x)
    return Node(Opcode.ADD, nx, y)


def add_literal_left(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
    """(p + q) + k -> k + (p + q), handing over to reassociation."""
    if is_node(a, Opcode.ADD) and is_literal(b):
        return rw.simplify(Opcode.ADD, b, a)
    return None


# ---------------------------------------------------------------------------
# DIV
# ---------------------------------------------------------------------------

def div_by_one(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
    if is_literal(b, 1):
        return a
    return None


def div_cancel(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
    """(y * x) / x -> y when x is provably non-zero."""
    if not is_node(a, Opcode.MUL):
        return None
    if a.right == b:
        kept = a.left
    elif a.left == b:
        kept = a.right
    else:
        return None
    if not rw.bound(b).excludes_zero():
        return None
    return kept


# ---------------------------------------------------------------------------
# MOD
# ---------------------------------------------------------------------------

def mod_identity(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
    """x % m -> x when 0 <= x < m is proven."""
    bm = rw.bound(b)
    if bm.lower is None or bm.lower <= 0:
        return None
    bx = rw.bound(a)
    if bx.lower is None or bx.lower < 0 or bx.upper is None:
        return None
    if bx.upper < bm.lower:
        return a
    return None


# ---------------------------------------------------------------------------
# EQL
# ---------------------------------------------------------------------------

def eql_disjoint(rw: Rewriter, a: Expr, b: Expr) -> Optional[Expr]:
    """a == b -> 0 when the operand ranges cannot meet."""
    ba, bb = rw.bound(a), rw.bound(b)
    if ba.is_disjoint(bb):
        logger.debug("eql short-circuit: %s vs %s", ba, bb)
        return lit(0)
    return None


RULES: Dict[Opcode, Sequence[Rule]] = {
    Opcode.MUL: (
        mul_by_zero,
        mul_by_one,
        _folder(Opcode.MUL),
        mul_reassociate,
        mul_literal_left,
        mul_distribute,
        mul_literal_over_sum,
    ),
    Opcode.ADD: (
        add_zero,
        _folder(Opcode.ADD),
        add_reassociate,
        add_literal_left,
    ),
    Opcode.DIV: (
        div_by_one,
        _folder(Opcode.DIV),
        div_cancel,
    ),
    Opcode.MOD: (
        _folder(Opcode.MOD),
        mod_identity,
    ),
    Opcode.EQL: (
        _folder(Opcode.EQL),
        eql_disjoint,
    ),
}


def simplify(op: Opcode, left: Expr, right: Expr,
             leaf_bounds: Optional[Mapping[Register, Bound]] = None,
             digit_bound: Bound = DIGIT_BOUND) -> Expr:
    """Module-level convenience around Rewriter.simplify."""
    return Rewriter(leaf_bounds, digit_bound).simplify(op, left, right)


def normalize(expr: Expr,
              leaf_bounds: Optional[Mapping[Register, Bound]] = None,
              digit_bound: Bound = DIGIT_BOUND) -> Expr:
    return Rewriter(leaf_bounds, digit_bound).normalize(expr)

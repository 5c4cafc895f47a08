"""
Interval bound estimation for symbolic ALU expressions.

bounds(expr) computes a sound [lower, upper] enclosure of every value the
expression can take, given:
- the input digit domain (default [1, 9]) for input leaves,
- caller-supplied bounds for register leaves (unbounded when absent).

Soundness is required (the rewriter removes EQL and MOD nodes on the strength
of these bounds); tightness is not. Unbounded ends are represented with None,
never with sentinel integers.
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from ..semantics.concrete_vm import trunc_div
from ..semantics.instructions import DIGIT_MAX, DIGIT_MIN, InputRef, Literal, Opcode, Register
from .expr import Expr, Leaf


@dataclass(frozen=True)
class Bound:
    """
    Integer interval [lower, upper].

    - lower is None: unbounded below
    - upper is None: unbounded above
    """
    lower: Optional[int] = None
    upper: Optional[int] = None

    def __post_init__(self):
        if self.lower is not None and self.upper is not None and self.lower > self.upper:
            raise ValueError(f"empty bound [{self.lower}, {self.upper}]")

    @staticmethod
    def exact(value: int) -> 'Bound':
        return Bound(value, value)

    @staticmethod
    def unbounded() -> 'Bound':
        return Bound(None, None)

    @property
    def is_constant(self) -> bool:
        return self.lower is not None and self.lower == self.upper

    @property
    def is_finite(self) -> bool:
        return self.lower is not None and self.upper is not None

    def contains(self, value: int) -> bool:
        if self.lower is not None and value < self.lower:
            return False
        if self.upper is not None and value > self.upper:
            return False
        return True

    def excludes_zero(self) -> bool:
        return not self.contains(0)

    def is_disjoint(self, other: 'Bound') -> bool:
        """True if no integer lies in both intervals."""
        if self.lower is not None and other.upper is not None and self.lower > other.upper:
            return True
        if self.upper is not None and other.lower is not None and self.upper < other.lower:
            return True
        return False

    def __add__(self, other: 'Bound') -> 'Bound':
        lower = None if self.lower is None or other.lower is None else self.lower + other.lower
        upper = None if self.upper is None or other.upper is None else self.upper + other.upper
        return Bound(lower, upper)

    def __mul__(self, other: 'Bound') -> 'Bound':
        corners = [
            _ext_mul(a, b)
            for a in (_lower_key(self.lower), _upper_key(self.upper))
            for b in (_lower_key(other.lower), _upper_key(other.upper))
        ]
        lo, hi = min(corners), max(corners)
        return Bound(
            lo[1] if lo[0] == 0 else None,
            hi[1] if hi[0] == 0 else None,
        )

    def __str__(self):
        lo = "-inf" if self.lower is None else str(self.lower)
        hi = "+inf" if self.upper is None else str(self.upper)
        return f"[{lo}, {hi}]"


# Extended-integer endpoints as sortable keys: (-1, 0) is -inf, (1, 0) is
# +inf, (0, v) is the finite value v.
_Key = Tuple[int, int]


def _lower_key(value: Optional[int]) -> _Key:
    return (-1, 0) if value is None else (0, value)


def _upper_key(value: Optional[int]) -> _Key:
    return (1, 0) if value is None else (0, value)


def _sign(key: _Key) -> int:
    if key[0] != 0:
        return key[0]
    return (key[1] > 0) - (key[1] < 0)


def _ext_mul(a: _Key, b: _Key) -> _Key:
    if a[0] == 0 and b[0] == 0:
        return (0, a[1] * b[1])
    s = _sign(a) * _sign(b)
    return (s, 0)


DIGIT_BOUND = Bound(DIGIT_MIN, DIGIT_MAX)
UNBOUNDED = Bound.unbounded()


def div_bound(a: Bound, b: Bound) -> Bound:
    """Enclosure of trunc(a / b) over all non-zero divisors in b."""
    if b.is_constant and b.lower != 0:
        k = b.lower
        lo = None if a.lower is None else trunc_div(a.lower, k)
        hi = None if a.upper is None else trunc_div(a.upper, k)
        if k < 0:
            lo, hi = (None if a.upper is None else trunc_div(a.upper, k),
                      None if a.lower is None else trunc_div(a.lower, k))
        return Bound(lo, hi)
    if b.lower is not None and b.lower >= 1:
        return Bound(
            None if a.lower is None else min(a.lower, 0),
            None if a.upper is None else max(a.upper, 0),
        )
    if b.upper is not None and b.upper <= -1:
        return Bound(
            None if a.upper is None else -max(a.upper, 0),
            None if a.lower is None else -min(a.lower, 0),
        )
    if a.is_finite:
        m = max(abs(a.lower), abs(a.upper))
        return Bound(-m, m)
    return UNBOUNDED


def mod_bound(a: Bound, b: Bound) -> Bound:
    """
    Enclosure of a % b over executions that do not fail.

    MOD fails concretely unless a >= 0 and b > 0, so results are never
    negative and stay below the largest modulus.
    """
    if b.upper is not None:
        if b.upper <= 0:
            return Bound(0, 0)
        return Bound(0, b.upper - 1)
    if a.upper is not None:
        return Bound(0, max(a.upper, 0))
    return Bound(0, None)


def bounds(expr: Expr,
           leaf_bounds: Optional[Mapping[Register, Bound]] = None,
           digit_bound: Bound = DIGIT_BOUND) -> Bound:
    """
    Compute a sound bound for `expr`.

    Args:
        expr: Expression to bound
        leaf_bounds: Assumed bounds of register leaves (unbounded if absent)
        digit_bound: Domain of input leaves

    Returns:
        Bound enclosing every concrete value of `expr`
    """
    leaf_bounds = leaf_bounds or {}
    memo: Dict[int, Bound] = {}

    def walk(e: Expr) -> Bound:
        if isinstance(e, Leaf):
            operand = e.operand
            if isinstance(operand, Literal):
                return Bound.exact(operand.value)
            if isinstance(operand, InputRef):
                return digit_bound
            return leaf_bounds.get(operand, UNBOUNDED)

        key = id(e)
        if key in memo:
            return memo[key]

        if e.op is Opcode.EQL:
            result = Bound(0, 1)
        elif e.op is Opcode.MOD:
            right = walk(e.right)
            left = walk(e.left) if right.upper is None else UNBOUNDED
            result = mod_bound(left, right)
        elif e.op is Opcode.ADD:
            result = walk(e.left) + walk(e.right)
        elif e.op is Opcode.MUL:
            result = walk(e.left) * walk(e.right)
        else:
            result = div_bound(walk(e.left), walk(e.right))

        memo[key] = result
        return result

    return walk(expr)

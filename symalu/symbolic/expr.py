"""
Symbolic expression trees for the abstract ALU.

An expression is either a Leaf wrapping an operand (register, literal or input
reference) or a binary Node labelled with one of the binary opcodes. Both are
frozen dataclasses, so equality is structural and trees are never mutated;
the rewriter always builds new nodes.

Trees built by the abstract interpreter reuse child objects (e.g. X and Z
may hold the same subtree). Walks that may revisit shared subtrees
(evaluation, size) memoise on object identity for the duration of one call.
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence, Set, Union

from ..semantics.concrete_vm import apply_binary
from ..semantics.instructions import (
    BINARY_OPCODES, InputRef, Literal, Opcode, Operand, Register,
)


@dataclass(frozen=True)
class Leaf:
    """A leaf: a register reference, a literal or an input reference."""
    operand: Operand

    @property
    def depth(self) -> int:
        return 0

    def __str__(self):
        return str(self.operand)


@dataclass(frozen=True)
class Node:
    """A binary operation over two exclusively owned subtrees."""
    op: Opcode
    left: 'Expr'
    right: 'Expr'
    depth: int = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.op not in BINARY_OPCODES:
            raise ValueError(f"not a binary opcode: {self.op}")
        object.__setattr__(self, "depth", 1 + max(self.left.depth, self.right.depth))

    def __str__(self):
        return f"({self.op.symbol} {self.left} {self.right})"


Expr = Union[Leaf, Node]


def lit(value: int) -> Leaf:
    return Leaf(Literal(value))


def reg(register: Register) -> Leaf:
    return Leaf(register)


def inp(index: int) -> Leaf:
    return Leaf(InputRef(index))


def literal_value(expr: Expr) -> Optional[int]:
    """The value of a literal leaf, or None for anything else."""
    if isinstance(expr, Leaf) and isinstance(expr.operand, Literal):
        return expr.operand.value
    return None


def is_literal(expr: Expr, value: Optional[int] = None) -> bool:
    v = literal_value(expr)
    if v is None:
        return False
    return value is None or v == value


def is_node(expr: Expr, op: Opcode) -> bool:
    return isinstance(expr, Node) and expr.op is op


def size(expr: Expr) -> int:
    """Number of nodes and leaves, counting shared subtrees once per use."""
    memo: Dict[int, int] = {}

    def walk(e: Expr) -> int:
        if isinstance(e, Leaf):
            return 1
        key = id(e)
        if key not in memo:
            memo[key] = 1 + walk(e.left) + walk(e.right)
        return memo[key]

    return walk(expr)


def registers_in(expr: Expr) -> Set[Register]:
    """Registers referenced by leaves of `expr`."""
    found: Set[Register] = set()
    seen: Set[int] = set()

    def walk(e: Expr):
        if id(e) in seen:
            return
        seen.add(id(e))
        if isinstance(e, Leaf):
            if isinstance(e.operand, Register):
                found.add(e.operand)
        else:
            walk(e.left)
            walk(e.right)

    walk(expr)
    return found


def input_indices(expr: Expr) -> Set[int]:
    """Input positions referenced by leaves of `expr`."""
    found: Set[int] = set()
    seen: Set[int] = set()

    def walk(e: Expr):
        if id(e) in seen:
            return
        seen.add(id(e))
        if isinstance(e, Leaf):
            if isinstance(e.operand, InputRef):
                found.add(e.operand.index)
        else:
            walk(e.left)
            walk(e.right)

    walk(expr)
    return found


def evaluate(expr: Expr, digits: Sequence[int] = (),
             registers: Optional[Mapping[Register, int]] = None) -> int:
    """
    Evaluate `expr` concretely.

    Args:
        expr: Expression to evaluate
        digits: Input digits; InputRef(i) reads digits[i]
        registers: Values for register leaves

    Raises the same ALUError subclasses as the concrete interpreter (via
    apply_binary), and ValueError for an unresolved register or input.
    """
    registers = registers or {}
    memo: Dict[int, int] = {}

    def walk(e: Expr) -> int:
        if isinstance(e, Leaf):
            operand = e.operand
            if isinstance(operand, Literal):
                return operand.value
            if isinstance(operand, InputRef):
                if not 0 <= operand.index < len(digits):
                    raise ValueError(f"no digit for input {operand}")
                return digits[operand.index]
            if operand not in registers:
                raise ValueError(f"unresolved register {operand}")
            return registers[operand]
        key = id(e)
        if key not in memo:
            memo[key] = apply_binary(e.op, walk(e.left), walk(e.right))
        return memo[key]

    return walk(expr)

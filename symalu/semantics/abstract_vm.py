"""
Abstract (symbolic) ALU interpreter.

Mirrors ConcreteALU instruction by instruction, but registers hold expression
trees instead of integers:
- INP binds a fresh input leaf [i] and advances the input counter,
- every binary instruction builds its result through the term rewriter.

The interpreter is pure: step() and run() return new AbstractState objects and
never touch their arguments.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Sequence

from ..symbolic.bounds import DIGIT_BOUND, Bound
from ..symbolic.expr import Expr, Leaf, evaluate, lit, reg
from ..symbolic.rewrite import Rewriter
from .instructions import InputRef, Instruction, Opcode, Operand, Register


@dataclass(frozen=True)
class AbstractState:
    """
    Symbolic ALU state: one expression per register plus the position of the
    next input digit an INP instruction will bind.
    """
    registers: Mapping[Register, Expr] = field(default_factory=dict)
    next_input: int = 0

    @staticmethod
    def symbolic(next_input: int = 0) -> 'AbstractState':
        """Every register holds a leaf naming itself (unresolved inputs)."""
        return AbstractState({r: reg(r) for r in Register}, next_input)

    @staticmethod
    def zeroed(next_input: int = 0) -> 'AbstractState':
        """Every register holds literal zero (clean start)."""
        return AbstractState({r: lit(0) for r in Register}, next_input)

    def read(self, register: Register) -> Expr:
        return self.registers[register]

    def with_register(self, register: Register, expr: Expr,
                      next_input: Optional[int] = None) -> 'AbstractState':
        regs = dict(self.registers)
        regs[register] = expr
        return AbstractState(regs, self.next_input if next_input is None else next_input)

    def evaluate(self, digits: Sequence[int],
                 registers: Optional[Mapping[Register, int]] = None) -> Dict[Register, int]:
        """Resolve every register expression against concrete digits."""
        return {r: evaluate(self.registers[r], digits, registers) for r in Register}

    def __str__(self):
        return "\n".join(
            f"{r.name.lower()} ({self.registers[r].depth}) = {self.registers[r]}"
            for r in Register
        )


class AbstractALU:
    """
    Symbolic instruction interpreter.

    Args:
        leaf_bounds: Bounds assumed for register leaves by the rewriter's
            bound-based rules (unbounded if absent)
        digit_bound: Domain of input digits
    """

    def __init__(self, leaf_bounds: Optional[Mapping[Register, Bound]] = None,
                 digit_bound: Bound = DIGIT_BOUND):
        self.rewriter = Rewriter(leaf_bounds, digit_bound)

    def decode(self, state: AbstractState, operand: Operand) -> Expr:
        if isinstance(operand, Register):
            return state.read(operand)
        return Leaf(operand)

    def step(self, state: AbstractState, instruction: Instruction) -> AbstractState:
        """Execute one instruction symbolically, returning the new state."""
        if instruction.opcode is Opcode.INP:
            return state.with_register(
                instruction.dest,
                Leaf(InputRef(state.next_input)),
                next_input=state.next_input + 1,
            )
        a = state.read(instruction.dest)
        b = self.decode(state, instruction.operand)
        return state.with_register(
            instruction.dest,
            self.rewriter.simplify(instruction.opcode, a, b),
        )

    def run(self, program: Iterable[Instruction],
            state: Optional[AbstractState] = None) -> AbstractState:
        """Fold every instruction of `program` over `state` (zeroed by default)."""
        if state is None:
            state = AbstractState.zeroed()
        for instruction in program:
            state = self.step(state, instruction)
        return state

"""
Concrete ALU interpreter.

Executes instructions over literal integers and an input digit list.
Used as the oracle for verification and differential (lockstep) testing:
every candidate produced by the symbolic pipeline is replayed here.
"""

from typing import Iterable, List, Optional

from ..errors import DivisionByZero, InputExhausted, NegativeOperand
from .instructions import Instruction, InputRef, Literal, Opcode, Operand, Register
from .state import ALUState


def trunc_div(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return -q if (a < 0) != (b < 0) else q


def apply_binary(opcode: Opcode, a: int, b: int) -> int:
    """
    The arithmetic of every binary opcode.

    Shared by the concrete interpreter and expression evaluation so that both
    sides of the lockstep check use a single definition.
    """
    if opcode is Opcode.ADD:
        return a + b
    if opcode is Opcode.MUL:
        return a * b
    if opcode is Opcode.DIV:
        if b == 0:
            raise DivisionByZero(f"division by zero: {a} / {b}")
        return trunc_div(a, b)
    if opcode is Opcode.MOD:
        if b == 0:
            raise DivisionByZero(f"modulo by zero: {a} % {b}")
        if a < 0 or b < 0:
            raise NegativeOperand(f"negative modulo operand: {a} % {b}")
        return a % b
    if opcode is Opcode.EQL:
        return 1 if a == b else 0
    raise ValueError(f"not a binary opcode: {opcode}")


class ConcreteALU:
    """
    Concrete instruction interpreter.

    Folds each instruction over an ALUState, mutating it in place. Execution
    errors (InputExhausted, DivisionByZero, NegativeOperand) propagate to the
    caller with the failing instruction index attached.
    """

    def resolve(self, state: ALUState, operand: Operand) -> int:
        if isinstance(operand, Register):
            return state.read(operand)
        if isinstance(operand, Literal):
            return operand.value
        if isinstance(operand, InputRef):
            if not 0 <= operand.index < len(state.digits):
                raise InputExhausted(f"no input digit at position {operand.index}")
            return state.digits[operand.index]
        raise TypeError(f"not an operand: {operand!r}")

    def step(self, state: ALUState, instruction: Instruction) -> ALUState:
        """Execute one instruction. Updates `state` in place and returns it."""
        if instruction.opcode is Opcode.INP:
            if state.remaining <= 0:
                raise InputExhausted(
                    f"input exhausted after {state.cursor} digit(s)"
                )
            state.write(instruction.dest, state.digits[state.cursor])
            state.cursor += 1
            return state

        a = state.read(instruction.dest)
        b = self.resolve(state, instruction.operand)
        state.write(instruction.dest, apply_binary(instruction.opcode, a, b))
        return state

    def run(self, program: Iterable[Instruction], state: ALUState) -> ALUState:
        """Run every instruction of `program` over `state`."""
        for index, instruction in enumerate(program):
            try:
                self.step(state, instruction)
            except (InputExhausted, DivisionByZero, NegativeOperand) as e:
                if e.instruction_index is None:
                    e.instruction_index = index
                raise
        return state


def run_program(program: List[Instruction], digits: Iterable[int],
                registers: Optional[dict] = None) -> ALUState:
    """Convenience: run `program` from a fresh state over `digits`."""
    return ConcreteALU().run(program, ALUState.start(digits, registers))

"""
Exception types raised by the ALU interpreters, the program loader and the
expression translator.

Solver verdicts (unsat, timeout, error) are NOT exceptions: they are reported
as SolveOutcome values by symalu.dse.constraint_solver.
"""

from typing import Optional


class ALUError(Exception):
    """Base class for errors raised while executing an ALU program concretely."""

    def __init__(self, message: str, instruction_index: Optional[int] = None):
        super().__init__(message)
        self.instruction_index = instruction_index


class InputExhausted(ALUError):
    """An INP instruction (or input operand) found no digit to read."""


class DivisionByZero(ALUError):
    """DIV or MOD with a zero divisor."""


class NegativeOperand(ALUError):
    """MOD with a negative dividend or modulus."""


class ProgramParseError(ValueError):
    """A program listing line could not be parsed."""

    def __init__(self, message: str, line_number: int, line: str = ""):
        super().__init__(f"line {line_number}: {message}: {line!r}")
        self.line_number = line_number
        self.line = line


class ProgramShapeError(ValueError):
    """A program cannot be partitioned into equal single-input stages."""


class UnsupportedExpression(ValueError):
    """An expression references something the Z3 translation cannot model."""

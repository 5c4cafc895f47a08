"""
Instruction model for the four-register ALU.

Registers, operands and instructions are immutable values. Programs are plain
lists of Instruction objects supplied by the caller (see
symalu.frontend.loader); the interpreters never mutate them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


# Puzzle domain constants.
DIGIT_MIN = 1
DIGIT_MAX = 9
STAGE_COUNT = 14
SUCCESS_VALUE = 0


class Register(Enum):
    """The four storage slots of the ALU."""
    X = "x"
    Y = "y"
    Z = "z"
    W = "w"

    def __str__(self):
        return self.name

    @staticmethod
    def parse(text: str) -> 'Register':
        return Register(text.strip().lower())


@dataclass(frozen=True)
class Literal:
    """An integer constant operand."""
    value: int

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True)
class InputRef:
    """A reference to the input digit at a fixed position."""
    index: int

    def __str__(self):
        return f"[{self.index}]"


Operand = Union[Register, Literal, InputRef]


def as_operand(value: Union[Operand, int]) -> Operand:
    """Coerce plain ints to Literal; pass operands through."""
    if isinstance(value, bool):
        raise TypeError(f"not an operand: {value!r}")
    if isinstance(value, int):
        return Literal(value)
    if isinstance(value, (Register, Literal, InputRef)):
        return value
    raise TypeError(f"not an operand: {value!r}")


class Opcode(Enum):
    """ALU opcodes. All but INP are binary and also label expression nodes."""
    INP = "inp"
    ADD = "add"
    MUL = "mul"
    DIV = "div"
    MOD = "mod"
    EQL = "eql"

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]

    @property
    def is_binary(self) -> bool:
        return self is not Opcode.INP


_SYMBOLS = {
    Opcode.INP: "inp",
    Opcode.ADD: "+",
    Opcode.MUL: "*",
    Opcode.DIV: "/",
    Opcode.MOD: "%",
    Opcode.EQL: "==",
}

BINARY_OPCODES = (Opcode.ADD, Opcode.MUL, Opcode.DIV, Opcode.MOD, Opcode.EQL)


@dataclass(frozen=True)
class Instruction:
    """
    A single ALU instruction: `opcode dest [operand]`.

    INP carries no operand; every other opcode requires one.
    """
    opcode: Opcode
    dest: Register
    operand: Optional[Operand] = None

    def __post_init__(self):
        if not isinstance(self.dest, Register):
            raise TypeError(f"destination must be a Register, got {self.dest!r}")
        if not self.opcode.is_binary:
            if self.operand is not None:
                raise ValueError("inp takes no operand")
        elif self.operand is None:
            raise ValueError(f"{self.opcode.value} requires an operand")

    @staticmethod
    def inp(dest: Register) -> 'Instruction':
        return Instruction(Opcode.INP, dest)

    @staticmethod
    def add(dest: Register, operand: Union[Operand, int]) -> 'Instruction':
        return Instruction(Opcode.ADD, dest, as_operand(operand))

    @staticmethod
    def mul(dest: Register, operand: Union[Operand, int]) -> 'Instruction':
        return Instruction(Opcode.MUL, dest, as_operand(operand))

    @staticmethod
    def div(dest: Register, operand: Union[Operand, int]) -> 'Instruction':
        return Instruction(Opcode.DIV, dest, as_operand(operand))

    @staticmethod
    def mod(dest: Register, operand: Union[Operand, int]) -> 'Instruction':
        return Instruction(Opcode.MOD, dest, as_operand(operand))

    @staticmethod
    def eql(dest: Register, operand: Union[Operand, int]) -> 'Instruction':
        return Instruction(Opcode.EQL, dest, as_operand(operand))

    def __str__(self):
        if self.opcode is Opcode.INP:
            return f"inp {self.dest.value}"
        operand = self.operand.value if isinstance(self.operand, Register) else str(self.operand)
        return f"{self.opcode.value} {self.dest.value} {operand}"

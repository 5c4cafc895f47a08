"""
Loader for textual ALU program listings.

One instruction per line:

    inp w
    add x -11
    mul y x

Blank lines and `#` comments are ignored.
"""

from pathlib import Path
from typing import List, Union

from ..errors import ProgramParseError
from ..semantics.instructions import Instruction, Literal, Opcode, Operand, Register


def _parse_operand(token: str, line_number: int, line: str) -> Operand:
    try:
        return Register.parse(token)
    except ValueError:
        pass
    try:
        return Literal(int(token))
    except ValueError:
        raise ProgramParseError(f"bad operand {token!r}", line_number, line) from None


def parse_line(line: str, line_number: int = 1) -> Instruction:
    """Parse a single non-empty instruction line."""
    tokens = line.split()
    try:
        opcode = Opcode(tokens[0].lower())
    except ValueError:
        raise ProgramParseError(f"unknown opcode {tokens[0]!r}", line_number, line) from None

    expected = 2 if opcode is Opcode.INP else 3
    if len(tokens) != expected:
        raise ProgramParseError(
            f"{opcode.value} takes {expected - 1} argument(s), got {len(tokens) - 1}",
            line_number, line,
        )
    try:
        dest = Register.parse(tokens[1])
    except ValueError:
        raise ProgramParseError(f"bad register {tokens[1]!r}", line_number, line) from None

    if opcode is Opcode.INP:
        return Instruction.inp(dest)
    return Instruction(opcode, dest, _parse_operand(tokens[2], line_number, line))


def parse_program(text: str) -> List[Instruction]:
    """Parse a full program listing."""
    program = []
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        program.append(parse_line(line, line_number))
    return program


def load_program(path: Union[str, Path]) -> List[Instruction]:
    """Read and parse a program listing from disk."""
    return parse_program(Path(path).read_text())


def format_program(program: List[Instruction]) -> str:
    return "\n".join(str(instr) for instr in program) + "\n"

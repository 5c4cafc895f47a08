"""
Machine state datastructures for the concrete ALU.

The abstract (symbolic) counterpart lives in symalu.semantics.abstract_vm.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .instructions import Register


def _zero_registers() -> Dict[Register, int]:
    return {reg: 0 for reg in Register}


@dataclass
class ALUState:
    """
    The complete state of the concrete ALU.

    Four integer registers plus the input digits and a cursor marking how
    many digits INP instructions have consumed so far.
    """
    registers: Dict[Register, int] = field(default_factory=_zero_registers)
    digits: List[int] = field(default_factory=list)
    cursor: int = 0

    @staticmethod
    def start(digits, registers: Optional[Dict[Register, int]] = None) -> 'ALUState':
        """Fresh state over `digits`, registers zeroed unless given."""
        regs = _zero_registers()
        if registers:
            regs.update(registers)
        return ALUState(registers=regs, digits=list(digits), cursor=0)

    def read(self, reg: Register) -> int:
        return self.registers[reg]

    def write(self, reg: Register, value: int) -> None:
        self.registers[reg] = value

    @property
    def remaining(self) -> int:
        return len(self.digits) - self.cursor

    def __repr__(self):
        regs = " ".join(f"{reg.name}={self.registers[reg]}" for reg in Register)
        return f"ALUState({regs}, consumed={self.cursor}/{len(self.digits)})"

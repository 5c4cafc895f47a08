"""
Lockstep concrete + abstract execution (for testing and debugging).

Runs the concrete ALU and the abstract ALU side by side, one instruction at a
time, and after every step resolves the abstract registers against the same
digits. The first register whose values differ pinpoints a rewriter or bound
bug at the instruction that introduced it.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from ..errors import ALUError
from ..semantics.abstract_vm import AbstractALU, AbstractState
from ..semantics.concrete_vm import ConcreteALU
from ..semantics.instructions import Instruction, Register
from ..semantics.state import ALUState


@dataclass
class LockstepResult:
    """
    Outcome of a lockstep run: "ok", "mismatch" at the first diverging
    register, or "error" when the concrete run fails.
    """
    status: str  # "ok" | "mismatch" | "error"
    message: str

    steps: int = 0
    instruction_index: Optional[int] = None
    instruction: Optional[Instruction] = None
    register: Optional[Register] = None
    concrete_value: Optional[int] = None
    symbolic_value: Optional[int] = None


def run_lockstep(
    program: Sequence[Instruction],
    digits: Sequence[int],
    *,
    start: str = "zeroed",
    registers: Optional[Dict[Register, int]] = None,
) -> LockstepResult:
    """
    Execute concretely and abstractly in lockstep and compare every register
    after every instruction.

    Args:
        program: Instructions to run
        digits: Input digits for both runs
        start: "zeroed" (abstract registers start as literal 0) or
            "symbolic" (abstract registers start as their own leaves and are
            resolved with `registers`)
        registers: Initial concrete register values (default all zero)
    """
    initial = {r: 0 for r in Register}
    if registers:
        initial.update(registers)

    if start == "zeroed":
        if any(initial.values()):
            return LockstepResult(status="error", message="zeroed start requires zero registers")
        abstract = AbstractState.zeroed()
    elif start == "symbolic":
        abstract = AbstractState.symbolic()
    else:
        raise ValueError(f"unknown start {start!r}")

    concrete = ALUState.start(digits, initial)
    concrete_vm = ConcreteALU()
    abstract_vm = AbstractALU()

    for index, instruction in enumerate(program):
        try:
            concrete_vm.step(concrete, instruction)
        except ALUError as e:
            return LockstepResult(
                status="error",
                message=f"Concrete execution failed: {type(e).__name__}: {e}",
                steps=index,
                instruction_index=index,
                instruction=instruction,
            )
        abstract = abstract_vm.step(abstract, instruction)

        try:
            resolved = abstract.evaluate(digits, initial)
        except (ALUError, ValueError) as e:
            return LockstepResult(
                status="mismatch",
                message=f"Abstract state cannot be evaluated: {e}",
                steps=index + 1,
                instruction_index=index,
                instruction=instruction,
            )

        for reg in Register:
            if resolved[reg] != concrete.read(reg):
                return LockstepResult(
                    status="mismatch",
                    message=f"{reg} diverges after `{instruction}`",
                    steps=index + 1,
                    instruction_index=index,
                    instruction=instruction,
                    register=reg,
                    concrete_value=concrete.read(reg),
                    symbolic_value=resolved[reg],
                )

    return LockstepResult(
        status="ok",
        message="Concrete and abstract execution agree",
        steps=len(program),
    )

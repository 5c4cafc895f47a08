"""
Stage partitioning for staged ALU programs.

A staged program is a sequence of equal-length segments, each consuming
exactly one input digit. Registers other than the linked one (Z) are reset
inside every stage, so each stage can be abstracted independently from a
symbolic start: its linked-register expression is a function of the incoming
linked value and of its own input digit.
"""

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from ..errors import ProgramShapeError
from ..symbolic.bounds import DIGIT_BOUND, Bound, bounds
from ..symbolic.expr import Expr, size
from .abstract_vm import AbstractALU, AbstractState
from .instructions import STAGE_COUNT, Instruction, Opcode, Register

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageSummary:
    """Result of abstracting one stage."""
    index: int
    instructions: tuple
    state: AbstractState
    linked: Register = Register.Z

    @property
    def expr(self) -> Expr:
        """The linked register's expression at the end of the stage."""
        return self.state.read(self.linked)


def split_stages(program: Sequence[Instruction], stage_count: int = STAGE_COUNT) -> List[List[Instruction]]:
    """
    Partition `program` into `stage_count` equal slices of one INP each.

    Raises:
        ProgramShapeError: if the program does not split evenly, or a slice
            does not contain exactly one INP instruction
    """
    if stage_count <= 0:
        raise ProgramShapeError(f"stage count must be positive, got {stage_count}")
    if not program or len(program) % stage_count:
        raise ProgramShapeError(
            f"{len(program)} instructions cannot be split into {stage_count} equal stages"
        )
    width = len(program) // stage_count
    stages = [list(program[i * width:(i + 1) * width]) for i in range(stage_count)]
    for i, stage in enumerate(stages):
        inputs = sum(1 for instr in stage if instr.opcode is Opcode.INP)
        if inputs != 1:
            raise ProgramShapeError(f"stage {i} contains {inputs} inp instructions, expected 1")
    return stages


def abstract_stages(program: Sequence[Instruction], stage_count: int = STAGE_COUNT,
                    linked: Register = Register.Z,
                    leaf_bounds: Optional[Mapping[Register, Bound]] = None) -> List[StageSummary]:
    """
    Abstractly interpret each stage from a symbolic start.

    Stage i binds input [i], so the per-stage expressions reference the
    digit positions of the whole program.
    """
    vm = AbstractALU(leaf_bounds)
    summaries = []
    for i, stage in enumerate(split_stages(program, stage_count)):
        state = vm.run(stage, AbstractState.symbolic(next_input=i))
        summary = StageSummary(i, tuple(stage), state, linked)
        logger.debug("stage %d: %s = %s (depth %d, size %d)", i, linked, summary.expr,
                     summary.expr.depth, size(summary.expr))
        summaries.append(summary)
    return summaries


def propagate_bounds(stage_exprs: Sequence[Expr], linked: Register = Register.Z,
                     initial: int = 0, digit_bound: Bound = DIGIT_BOUND) -> List[Bound]:
    """
    Bounds of the linked register entering each stage, plus the bound leaving
    the last stage (len(stage_exprs) + 1 entries).
    """
    current = Bound.exact(initial)
    result = [current]
    for expr in stage_exprs:
        current = bounds(expr, {linked: current}, digit_bound)
        result.append(current)
    return result

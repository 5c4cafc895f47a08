"""
Concrete verification of candidate inputs.

Every assignment produced by the constraint bridge is replayed on the concrete
ALU. A candidate that fails here means the symbolic pipeline (rewriter,
bounds or translation) produced an unsound result; callers report that
distinctly from "no solution".
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from ..errors import ALUError
from ..semantics.concrete_vm import run_program
from ..semantics.instructions import DIGIT_MAX, DIGIT_MIN, SUCCESS_VALUE, Instruction, Register
from ..semantics.state import ALUState

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    """Outcome of replaying one candidate."""
    digits: tuple
    ok: bool
    state: Optional[ALUState] = None
    error: Optional[str] = None

    @property
    def number(self) -> str:
        return "".join(str(d) for d in self.digits)


def check_candidate(program: Sequence[Instruction], digits: Sequence[int],
                    target: Register = Register.Z, success: int = SUCCESS_VALUE,
                    digit_min: int = DIGIT_MIN, digit_max: int = DIGIT_MAX) -> VerificationResult:
    """Replay `digits` concretely and report the target register check."""
    digits = tuple(digits)
    bad = [d for d in digits if not digit_min <= d <= digit_max]
    if bad:
        logger.warning("candidate %s has digits outside [%d, %d]: %s", digits, digit_min, digit_max, bad)
        return VerificationResult(digits, False, error=f"digits outside [{digit_min}, {digit_max}]: {bad}")

    try:
        state = run_program(list(program), digits)
    except ALUError as e:
        logger.warning("candidate %s fails concretely at instruction %s: %s", digits, e.instruction_index, e)
        return VerificationResult(digits, False, error=f"{type(e).__name__}: {e}")

    ok = state.read(target) == success
    if not ok:
        logger.warning("candidate %s leaves %s = %d, expected %d", digits, target, state.read(target), success)
    return VerificationResult(digits, ok, state=state)


def verify(program: Sequence[Instruction], digits: Sequence[int],
           target: Register = Register.Z, success: int = SUCCESS_VALUE,
           digit_min: int = DIGIT_MIN, digit_max: int = DIGIT_MAX) -> bool:
    """True iff running `program` on `digits` leaves `target` equal to `success`."""
    return check_candidate(program, digits, target, success, digit_min, digit_max).ok


def verify_all(program: Sequence[Instruction], candidates: Iterable[Sequence[int]],
               target: Register = Register.Z, success: int = SUCCESS_VALUE,
               digit_min: int = DIGIT_MIN, digit_max: int = DIGIT_MAX) -> List[VerificationResult]:
    return [check_candidate(program, c, target, success, digit_min, digit_max) for c in candidates]

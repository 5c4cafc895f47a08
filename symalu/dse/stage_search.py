"""
Solver-free search over per-stage expressions.

Depth-first over stages, trying digits in the requested order and evaluating
each stage expression concretely on the incoming linked value. (stage, value)
pairs that cannot reach the success value are memoised and never revisited.

Exhaustive in the worst case; intended for small programs and as an
independent cross-check of the constraint bridge.
"""

import logging
from typing import List, Optional, Sequence, Set, Tuple

from ..errors import ALUError, UnsupportedExpression
from ..semantics.instructions import DIGIT_MAX, DIGIT_MIN, SUCCESS_VALUE, Register
from ..symbolic.expr import Expr, evaluate, input_indices, registers_in

logger = logging.getLogger(__name__)


def search_stages(
    stage_exprs: Sequence[Expr],
    order: str = "largest",
    linked: Register = Register.Z,
    initial: int = 0,
    success: int = SUCCESS_VALUE,
    digit_min: int = DIGIT_MIN,
    digit_max: int = DIGIT_MAX,
    max_linked_value: Optional[int] = None,
) -> Optional[Tuple[int, ...]]:
    """
    Find the first digit sequence in `order` ("largest" or "smallest") that
    drives the linked register from `initial` to `success`.

    Args:
        max_linked_value: prune branches where |linked value| exceeds this

    Returns:
        The digits, or None if no sequence exists (within the pruning bound)
    """
    if order == "largest":
        candidates = list(range(digit_max, digit_min - 1, -1))
    elif order == "smallest":
        candidates = list(range(digit_min, digit_max + 1))
    else:
        raise ValueError(f"unknown order {order!r}")

    for i, expr in enumerate(stage_exprs):
        if registers_in(expr) - {linked}:
            raise UnsupportedExpression(f"stage {i} references registers other than {linked}")
        if input_indices(expr) - {i}:
            raise UnsupportedExpression(f"stage {i} references inputs other than [{i}]")

    n = len(stage_exprs)
    chosen: List[int] = [digit_min] * n
    dead: Set[Tuple[int, int]] = set()

    def dfs(stage: int, value: int) -> bool:
        if stage == n:
            return value == success
        if (stage, value) in dead:
            return False
        for d in candidates:
            chosen[stage] = d
            try:
                out = evaluate(stage_exprs[stage], chosen, {linked: value})
            except ALUError:
                continue
            if max_linked_value is not None and abs(out) > max_linked_value:
                continue
            if dfs(stage + 1, out):
                return True
        dead.add((stage, value))
        return False

    if dfs(0, initial):
        logger.info("stage search found %s", "".join(map(str, chosen)))
        return tuple(chosen)
    logger.info("stage search exhausted %d dead states", len(dead))
    return None

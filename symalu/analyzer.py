"""
Core analyzer: integrates abstract interpretation, the Z3 bridge and concrete
verification.

This module implements the staged analysis loop:
1. Split the program into equal single-input stages
2. Abstractly interpret each stage from a symbolic start
3. Chain the per-stage linked-register expressions into a Z3 system
4. Search for digit assignments with the configured strategy
5. Replay every candidate on the concrete ALU

Verdicts:
- SOLVED: candidates found and all of them verified concretely
- NO_SOLUTION: the stage system is unsatisfiable
- UNKNOWN: the solver timed out or failed before finding a candidate
- UNSOUND: a candidate failed concrete verification (internal fault of the
  symbolic pipeline, never reported as NO_SOLUTION)
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .dse.constraint_solver import ConstraintBridge, SolveConfig, SolveOutcome
from .dse.verify import VerificationResult, verify_all
from .semantics.instructions import STAGE_COUNT, Instruction
from .semantics.stages import StageSummary, abstract_stages

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """
    Result of analyzing a staged ALU program.
    """
    verdict: str  # "SOLVED", "NO_SOLUTION", "UNKNOWN" or "UNSOUND"
    solutions: List[Tuple[int, ...]] = field(default_factory=list)
    verification: List[VerificationResult] = field(default_factory=list)
    stages: List[StageSummary] = field(default_factory=list)
    outcome: Optional[SolveOutcome] = None
    message: str = ""

    @property
    def best(self) -> Optional[str]:
        """The first verified solution as a digit string."""
        for v in self.verification:
            if v.ok:
                return v.number
        return None

    def summary(self) -> str:
        """Human-readable summary of result."""
        checks = self.outcome.checks if self.outcome else 0
        elapsed = self.outcome.solver_time_sec if self.outcome else 0.0
        stats = f"Solver checks: {checks} ({elapsed:.2f}s)"

        if self.verdict == "SOLVED":
            lines = [f"SOLVED: {len(self.solutions)} verified solution(s)"]
            lines.extend(f"  {v.number}" for v in self.verification)
            if self.outcome and not self.outcome.complete:
                lines.append(f"  (enumeration stopped early: {self.outcome.message})")
            lines.append(stats)
            return "\n".join(lines)
        if self.verdict == "UNSOUND":
            lines = ["UNSOUND: candidate(s) failed concrete verification"]
            for v in self.verification:
                mark = "ok" if v.ok else f"FAILED ({v.error or 'target register mismatch'})"
                lines.append(f"  {v.number}: {mark}")
            lines.append(stats)
            return "\n".join(lines)
        if self.verdict == "NO_SOLUTION":
            return f"NO_SOLUTION: {self.message}\n{stats}"
        return f"UNKNOWN: {self.message}\n{stats}"


class Analyzer:
    """
    Staged ALU analyzer.

    Args:
        config: Constraint bridge configuration
        stage_count: Number of equal stages the program is split into
    """

    def __init__(self, config: Optional[SolveConfig] = None, stage_count: int = STAGE_COUNT):
        self.config = config or SolveConfig()
        self.stage_count = stage_count
        self.bridge = ConstraintBridge(self.config)

    def abstract(self, program: Sequence[Instruction]) -> List[StageSummary]:
        return abstract_stages(program, self.stage_count, self.config.linked)

    def analyze(self, program: Sequence[Instruction]) -> AnalysisResult:
        """
        Run the full pipeline.

        Raises:
            ProgramShapeError: if the program does not split into stages
        """
        stages = self.abstract(program)
        outcome = self.bridge.solve([s.expr for s in stages])
        logger.info("bridge outcome: %s (%s)", outcome.status, outcome.message)

        if not outcome.found:
            verdict = "NO_SOLUTION" if outcome.status == "unsat" else "UNKNOWN"
            return AnalysisResult(verdict=verdict, stages=stages, outcome=outcome, message=outcome.message)

        verification = verify_all(program, outcome.solutions, self.config.linked, self.config.success,
                                  self.config.digit_min, self.config.digit_max)
        failed = [v for v in verification if not v.ok]
        if failed:
            logger.error("%d candidate(s) failed concrete verification", len(failed))
            return AnalysisResult(
                verdict="UNSOUND",
                solutions=list(outcome.solutions),
                verification=verification,
                stages=stages,
                outcome=outcome,
                message=f"{len(failed)} of {len(verification)} candidate(s) failed concrete verification",
            )

        return AnalysisResult(
            verdict="SOLVED",
            solutions=list(outcome.solutions),
            verification=verification,
            stages=stages,
            outcome=outcome,
            message=outcome.message,
        )


def analyze(program: Sequence[Instruction], stage_count: int = STAGE_COUNT, **kwargs) -> AnalysisResult:
    """
    Convenience function: analyze `program` with SolveConfig(**kwargs).
    """
    return Analyzer(SolveConfig(**kwargs), stage_count).analyze(program)

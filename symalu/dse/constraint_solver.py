"""
Constraint bridge between per-stage symbolic expressions and Z3.

This module provides:
1. Construction of the stage system: one digit variable per stage, one
   variable per chained linked-register value, stage equations and guards
2. Search strategies that extract digit assignments from Z3 models
3. Enumeration of further, distinct assignments by excluding earlier ones

The system for stages 0..n-1 with linked register Z:

    1 <= I_i <= 9                 for every stage i
    Z_0 == initial
    stage_i(Z_i, I_i) == Z_{i+1}  for i < n-1
    stage_{n-1}(Z_{n-1}, I_{n-1}) == success

plus the translator's guards and (redundant) propagated bounds on every Z_i.

Solver verdicts are reported as SolveOutcome values, never raised. Results are
candidates only: they must be replayed on the concrete ALU (see
symalu.dse.verify) before being reported.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import z3

from ..errors import UnsupportedExpression
from ..semantics.instructions import (
    DIGIT_MAX, DIGIT_MIN, SUCCESS_VALUE, Register,
)
from ..semantics.stages import propagate_bounds
from ..symbolic.bounds import Bound
from ..symbolic.expr import Expr, input_indices
from ..z3model.translate import ExprTranslator, input_var, register_var

logger = logging.getLogger(__name__)

STRATEGIES = ("largest", "smallest", "ascending", "descending", "any")


@dataclass
class SolveConfig:
    """
    Configuration of the constraint bridge.

    - strategy: search order (see STRATEGIES)
    - max_solutions: stop after this many assignments
    - timeout_ms: Z3 timeout per check; 0 disables it
    - digit_min/digit_max: inclusive input digit domain
    - linked: register chained from stage to stage
    - initial: value of the linked register before the first stage
    - success: required value of the linked register after the last stage
    - assert_bounds: add propagated interval bounds on the linked variables
    """
    strategy: str = "largest"
    max_solutions: int = 1
    timeout_ms: int = 0
    digit_min: int = DIGIT_MIN
    digit_max: int = DIGIT_MAX
    linked: Register = Register.Z
    initial: int = 0
    success: int = SUCCESS_VALUE
    assert_bounds: bool = True

    def __post_init__(self):
        if self.strategy not in STRATEGIES:
            raise ValueError(f"unknown strategy {self.strategy!r}; expected one of {STRATEGIES}")
        if self.max_solutions < 1:
            raise ValueError("max_solutions must be at least 1")
        if self.digit_min > self.digit_max:
            raise ValueError("empty digit domain")
        if self.digit_min < 0 or self.digit_max > 9:
            raise ValueError("digits must lie within 0..9")
        if self.timeout_ms < 0:
            raise ValueError("timeout_ms must not be negative")

    @property
    def digit_bound(self) -> Bound:
        return Bound(self.digit_min, self.digit_max)


@dataclass
class SolveOutcome:
    """
    Result of a bridge run.

    status is one of:
    - "sat": at least one assignment was found
    - "unsat": no assignment exists
    - "timeout": the solver gave up (timeout or cancellation) before finding one
    - "error": the solver failed
    """
    status: str
    solutions: List[Tuple[int, ...]] = field(default_factory=list)
    complete: bool = True
    message: str = ""
    checks: int = 0
    solver_time_sec: float = 0.0

    @property
    def found(self) -> bool:
        return bool(self.solutions)

    @property
    def first(self) -> Optional[Tuple[int, ...]]:
        return self.solutions[0] if self.solutions else None

    @staticmethod
    def unsat(message: str = "no assignment satisfies the stage system") -> 'SolveOutcome':
        return SolveOutcome(status="unsat", message=message)

    @staticmethod
    def timeout(message: str) -> 'SolveOutcome':
        return SolveOutcome(status="timeout", complete=False, message=message)

    @staticmethod
    def error(message: str) -> 'SolveOutcome':
        return SolveOutcome(status="error", complete=False, message=f"Solver error: {message}")


@dataclass
class StageSystem:
    """The Z3 solver loaded with a stage system, plus its variables."""
    solver: z3.Solver
    digits: List[z3.ArithRef]
    links: List[z3.ArithRef]
    stage_bounds: List[Bound]

    def composition(self) -> z3.ArithRef:
        """Base-10 number formed by the digits, most significant first."""
        n = len(self.digits)
        return z3.Sum([d * (10 ** (n - 1 - i)) for i, d in enumerate(self.digits)])

    def read_digits(self, model: z3.ModelRef) -> Tuple[int, ...]:
        return tuple(model.evaluate(d, model_completion=True).as_long() for d in self.digits)


class _SolverStopped(Exception):
    """Internal: a check returned unknown; unwinds the current strategy."""

    def __init__(self, status: str, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


def _as_number(digits: Sequence[int]) -> int:
    return int("".join(str(d) for d in digits))


class ConstraintBridge:
    """
    Builds and solves stage systems.

    Args:
        config: Search and domain configuration (defaults to SolveConfig())
    """

    def __init__(self, config: Optional[SolveConfig] = None):
        self.config = config or SolveConfig()
        self._system: Optional[StageSystem] = None
        self._cancelled = False
        self._checking = False
        self._checks = 0
        self._solver_time = 0.0

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def build(self, stage_exprs: Sequence[Expr]) -> StageSystem:
        """
        Translate the stage expressions into a loaded solver.

        Raises:
            UnsupportedExpression: if a stage references a register other
                than the linked one, or an input outside the stage range
        """
        cfg = self.config
        n = len(stage_exprs)
        if n == 0:
            raise ValueError("no stage expressions to solve")

        solver = z3.Solver()
        if cfg.timeout_ms:
            solver.set("timeout", cfg.timeout_ms)

        digits = [input_var(i) for i in range(n)]
        links = [register_var(cfg.linked, i) for i in range(n)]
        for d in digits:
            solver.add(d >= cfg.digit_min, d <= cfg.digit_max)
        solver.add(links[0] == cfg.initial)

        stage_bounds = propagate_bounds(stage_exprs, cfg.linked, cfg.initial, cfg.digit_bound)
        for i, expr in enumerate(stage_exprs):
            stray = {idx for idx in input_indices(expr) if not 0 <= idx < n}
            if stray:
                raise UnsupportedExpression(f"stage {i} references inputs {sorted(stray)} outside 0..{n - 1}")

            translator = ExprTranslator(i, cfg.linked, {cfg.linked: stage_bounds[i]}, cfg.digit_bound)
            term = translator.translate(expr)
            if translator.guards:
                solver.add(*translator.guards)
            target = cfg.success if i == n - 1 else links[i + 1]
            solver.add(term == target)

            if cfg.assert_bounds and i > 0:
                bound = stage_bounds[i]
                if bound.lower is not None:
                    solver.add(links[i] >= bound.lower)
                if bound.upper is not None:
                    solver.add(links[i] <= bound.upper)

        logger.debug("stage system: %d stages, %d assertions", n, len(solver.assertions()))
        system = StageSystem(solver, digits, links, stage_bounds)
        self._system = system
        return system

    # ------------------------------------------------------------------
    # Solving
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Interrupt a running check (safe to call from another thread)."""
        self._cancelled = True
        # Only a running check may be interrupted; the context is shared.
        if self._checking and self._system is not None:
            self._system.solver.ctx.interrupt()

    def solve(self, stage_exprs: Sequence[Expr]) -> SolveOutcome:
        """
        Search for up to config.max_solutions digit assignments.

        Returns:
            SolveOutcome; solutions are ordered by the configured strategy
        """
        cfg = self.config
        self._cancelled = False
        self._checks = 0
        self._solver_time = 0.0

        solutions: List[Tuple[int, ...]] = []
        try:
            system = self.build(stage_exprs)
            next_solution, exclude = self._strategy(cfg.strategy)
            while len(solutions) < cfg.max_solutions:
                digits = next_solution(system)
                if digits is None:
                    break
                logger.info("candidate %d: %s", len(solutions) + 1, "".join(map(str, digits)))
                solutions.append(digits)
                exclude(system, digits)
        except _SolverStopped as stop:
            return self._finish(solutions, stop.status, stop.message, complete=False)
        except z3.Z3Exception as e:
            return self._finish(solutions, "error", f"Solver error: {e}", complete=False)

        if not solutions:
            outcome = SolveOutcome.unsat()
            outcome.checks = self._checks
            outcome.solver_time_sec = self._solver_time
            return outcome
        return self._finish(solutions, "sat", f"{len(solutions)} assignment(s) found", complete=True)

    def _finish(self, solutions, status: str, message: str, complete: bool) -> SolveOutcome:
        if solutions:
            # Partial enumeration still reports the assignments found so far.
            status = "sat"
        return SolveOutcome(
            status=status,
            solutions=list(solutions),
            complete=complete,
            message=message,
            checks=self._checks,
            solver_time_sec=self._solver_time,
        )

    def _check(self, system: StageSystem) -> bool:
        """One satisfiability check: True for sat, False for unsat."""
        if self._cancelled:
            raise _SolverStopped("timeout", "Solver check cancelled")
        start = time.time()
        self._checking = True
        try:
            result = system.solver.check()
        finally:
            self._checking = False
        elapsed = time.time() - start
        self._checks += 1
        self._solver_time += elapsed
        logger.debug("check #%d: %s (%.3fs)", self._checks, result, elapsed)

        if result == z3.sat:
            return True
        if result == z3.unsat:
            return False
        reason = system.solver.reason_unknown()
        if self._cancelled or "cancel" in reason:
            raise _SolverStopped("timeout", "Solver check cancelled")
        if "timeout" in reason:
            raise _SolverStopped("timeout", f"Solver timed out after {self.config.timeout_ms} ms")
        raise _SolverStopped("error", f"Solver returned unknown: {reason}")

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _strategy(self, name: str):
        """(next_solution, exclude) pair for a strategy name."""
        if name == "largest":
            return (lambda s: self._greedy(s, maximize=True)), self._exclude_not_below
        if name == "smallest":
            return (lambda s: self._greedy(s, maximize=False)), self._exclude_not_above
        if name == "ascending":
            return self._any_model, self._exclude_not_above
        if name == "descending":
            return self._any_model, self._exclude_not_below
        return self._any_model, self._exclude_exact

    def _any_model(self, system: StageSystem) -> Optional[Tuple[int, ...]]:
        if not self._check(system):
            return None
        return system.read_digits(system.solver.model())

    def _greedy(self, system: StageSystem, maximize: bool) -> Optional[Tuple[int, ...]]:
        """
        Digit-by-digit optimisation, most significant digit first.

        Each digit is pushed past the current model value until the solver
        reports unsat, then fixed. Fixings live in a scope popped on return.
        """
        if not self._check(system):
            return None
        current = list(system.read_digits(system.solver.model()))
        limit = self.config.digit_max if maximize else self.config.digit_min
        solver = system.solver

        solver.push()
        try:
            for k, var in enumerate(system.digits):
                while current[k] != limit:
                    solver.push()
                    solver.add(var > current[k] if maximize else var < current[k])
                    improved = self._check(system)
                    if improved:
                        current = list(system.read_digits(solver.model()))
                    solver.pop()
                    if not improved:
                        break
                solver.add(var == current[k])
        finally:
            solver.pop()
        return tuple(current)

    def _exclude_exact(self, system: StageSystem, digits: Tuple[int, ...]) -> None:
        system.solver.add(z3.Or([d != v for d, v in zip(system.digits, digits)]))

    def _exclude_not_above(self, system: StageSystem, digits: Tuple[int, ...]) -> None:
        """Require strictly larger solutions from now on."""
        system.solver.add(system.composition() > _as_number(digits))

    def _exclude_not_below(self, system: StageSystem, digits: Tuple[int, ...]) -> None:
        """Require strictly smaller solutions from now on."""
        system.solver.add(system.composition() < _as_number(digits))


def solve(stage_exprs: Sequence[Expr], **kwargs) -> SolveOutcome:
    """
    Convenience function: solve stage expressions with SolveConfig(**kwargs).
    """
    return ConstraintBridge(SolveConfig(**kwargs)).solve(stage_exprs)

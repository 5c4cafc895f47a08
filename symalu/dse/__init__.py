"""
Solving and checking staged ALU programs.

1. **Constraint Bridge** (constraint_solver.py): Z3 stage system + search strategies
2. **Verification** (verify.py): concrete replay of every candidate
3. **Lockstep** (lockstep.py): concrete vs abstract execution, step by step
4. **Stage Search** (stage_search.py): solver-free DFS over stage expressions
"""

from .constraint_solver import ConstraintBridge, SolveConfig, SolveOutcome, solve
from .lockstep import LockstepResult, run_lockstep
from .stage_search import search_stages
from .verify import VerificationResult, check_candidate, verify, verify_all

__all__ = [
    "ConstraintBridge",
    "SolveConfig",
    "SolveOutcome",
    "solve",
    "LockstepResult",
    "run_lockstep",
    "search_stages",
    "VerificationResult",
    "check_candidate",
    "verify",
    "verify_all",
]

"""
symalu: Symbolic abstract interpretation for a four-register ALU.

A small analysis toolchain that produces, for a staged ALU program:
1. SOLVED: input digit sequences found by Z3 and re-verified concretely
2. NO_SOLUTION: the constraint system is unsatisfiable
3. UNKNOWN: the solver timed out or failed
4. UNSOUND: a Z3 candidate failed on the concrete interpreter

Every reported solution has been replayed on the concrete interpreter.
"""

__version__ = "0.1.0"

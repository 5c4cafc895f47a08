"""
End-to-end analyzer tests: abstraction, Z3 bridge and concrete verification.
"""

import pytest

from symalu.analyzer import AnalysisResult, Analyzer, analyze
from symalu.dse.constraint_solver import SolveConfig, SolveOutcome
from symalu.dse.verify import VerificationResult
from symalu.errors import ProgramShapeError
from symalu.frontend.loader import parse_program


def test_pair_program_solved(pair_program):
    result = analyze(pair_program, stage_count=2)
    assert result.verdict == "SOLVED"
    assert result.best == "89"
    assert len(result.stages) == 2
    assert all(v.ok for v in result.verification)


def test_pair_program_enumeration(pair_program):
    result = analyze(pair_program, stage_count=2, strategy="smallest", max_solutions=4)
    assert result.verdict == "SOLVED"
    assert result.solutions == [(1, 2), (2, 3), (3, 4), (4, 5)]
    summary = result.summary()
    assert summary.startswith("SOLVED: 4 verified solution(s)")
    assert "  12" in summary


def test_zero_in_digit_domain_is_verified_in_that_domain(pair_program):
    result = analyze(pair_program, stage_count=2, digit_min=0, digit_max=9, strategy="smallest")
    assert result.verdict == "SOLVED"
    assert result.best == "01"
    assert all(v.ok for v in result.verification)


def test_unsat_program(unsat_program):
    result = analyze(unsat_program, stage_count=1)
    assert result.verdict == "NO_SOLUTION"
    assert result.best is None
    assert result.summary().startswith("NO_SOLUTION")


def test_shape_error_propagates():
    program = parse_program("inp w\nadd z w\ninp w\n")
    with pytest.raises(ProgramShapeError):
        Analyzer(stage_count=2).analyze(program)


def test_abstract_only(pair_program):
    stages = Analyzer(SolveConfig(), stage_count=2).abstract(pair_program)
    assert str(stages[0].expr) == "(+ (* Z 26) (+ [0] 6))"


def test_unsound_summary_lists_failures():
    result = AnalysisResult(
        verdict="UNSOUND",
        solutions=[(9, 9)],
        verification=[VerificationResult((9, 9), False)],
        outcome=SolveOutcome(status="sat", solutions=[(9, 9)]),
    )
    summary = result.summary()
    assert summary.startswith("UNSOUND")
    assert "99: FAILED" in summary


def test_unknown_summary():
    result = AnalysisResult(verdict="UNKNOWN", outcome=SolveOutcome.timeout("Solver timed out after 1 ms"),
                            message="Solver timed out after 1 ms")
    assert result.summary().startswith("UNKNOWN: Solver timed out")


@pytest.mark.slow
def test_monad_largest(monad_program):
    result = analyze(monad_program)
    assert result.verdict == "SOLVED"
    assert result.best == "99911993949684"


@pytest.mark.slow
def test_monad_smallest(monad_program):
    result = analyze(monad_program, strategy="smallest")
    assert result.verdict == "SOLVED"
    assert result.best == "62911941716111"

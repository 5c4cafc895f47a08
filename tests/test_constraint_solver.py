"""
Tests for the Z3 translation and the constraint bridge.

Validates that we can:
1. Translate expressions with exact integer semantics (truncating division)
2. Build and solve stage systems under every search strategy
3. Report unsat and unsupported inputs as such
"""

import itertools

import pytest
import z3

from symalu.dse.constraint_solver import ConstraintBridge, SolveConfig, SolveOutcome, solve
from symalu.errors import UnsupportedExpression
from symalu.semantics.concrete_vm import trunc_div
from symalu.semantics.instructions import Opcode, Register
from symalu.semantics.stages import abstract_stages
from symalu.symbolic.bounds import Bound
from symalu.symbolic.expr import Node, inp, lit, reg
from symalu.z3model.translate import ExprTranslator, input_var, register_var, to_z3

X, Z = Register.X, Register.Z


def _eval(term, **assignments):
    solver = z3.Solver()
    for name, value in assignments.items():
        solver.add(z3.Int(name) == value)
    assert solver.check() == z3.sat
    return solver.model().evaluate(term, model_completion=True).as_long()


class TestTranslation:
    def test_variable_names(self):
        assert str(input_var(3)) == "I_3"
        assert str(register_var(Z, 5)) == "Z_5"

    def test_linked_register_is_named_by_stage(self):
        term, guards = to_z3(Node(Opcode.ADD, reg(Z), inp(2)), stage=2)
        assert _eval(term, Z_2=10, I_2=4) == 14
        assert guards == []

    def test_eql_is_zero_or_one(self):
        term, _ = to_z3(Node(Opcode.EQL, inp(0), lit(4)))
        assert _eval(term, I_0=4) == 1
        assert _eval(term, I_0=5) == 0

    def test_division_truncates_toward_zero(self):
        # ([0] - 10) / 3 is negative for every digit.
        expr = Node(Opcode.DIV, Node(Opcode.ADD, inp(0), lit(-10)), lit(3))
        term, guards = to_z3(expr)
        assert len(guards) == 1
        for d in range(1, 10):
            assert _eval(term, I_0=d) == trunc_div(d - 10, 3)

    def test_division_by_negative_register(self):
        expr = Node(Opcode.DIV, Node(Opcode.ADD, inp(0), lit(20)), reg(Z))
        term, _ = to_z3(expr)
        for d, z in itertools.product((1, 5, 9), (-7, -3, 4)):
            assert _eval(term, I_0=d, Z_0=z) == trunc_div(d + 20, z)

    def test_mod_adds_guards(self):
        term, guards = to_z3(Node(Opcode.MOD, reg(Z), lit(26)))
        assert len(guards) == 2
        assert _eval(term, Z_0=57) == 5

    def test_foreign_register_is_unsupported(self):
        with pytest.raises(UnsupportedExpression):
            to_z3(Node(Opcode.ADD, reg(X), lit(1)))

    def test_shared_subtrees_translate_once(self):
        shared = Node(Opcode.MOD, reg(Z), lit(26))
        translator = ExprTranslator(0, leaf_bounds={Z: Bound(0, None)})
        translator.translate(Node(Opcode.ADD, shared, shared))
        assert len(translator.guards) == 2


def _stage_exprs(program, stage_count):
    return [s.expr for s in abstract_stages(program, stage_count)]


class TestConstraintBridge:
    def test_largest(self, pair_program):
        outcome = solve(_stage_exprs(pair_program, 2))
        assert outcome.status == "sat"
        assert outcome.first == (8, 9)
        assert outcome.checks > 0

    def test_smallest(self, pair_program):
        outcome = solve(_stage_exprs(pair_program, 2), strategy="smallest")
        assert outcome.first == (1, 2)

    def test_enumerate_all_solutions(self, pair_program):
        outcome = solve(_stage_exprs(pair_program, 2), strategy="any", max_solutions=100)
        assert outcome.status == "sat"
        assert outcome.complete
        assert sorted(outcome.solutions) == [(d, d + 1) for d in range(1, 9)]

    @pytest.mark.parametrize("strategy,increasing,last", [
        ("largest", False, (1, 2)),
        ("smallest", True, (8, 9)),
        ("ascending", True, (8, 9)),
        ("descending", False, (1, 2)),
    ])
    def test_ordered_strategies_run_to_the_end(self, pair_program, strategy, increasing, last):
        outcome = solve(_stage_exprs(pair_program, 2), strategy=strategy, max_solutions=100)
        assert outcome.complete
        pairs = list(zip(outcome.solutions, outcome.solutions[1:]))
        if increasing:
            assert all(a < b for a, b in pairs)
        else:
            assert all(a > b for a, b in pairs)
        assert outcome.solutions[-1] == last

    def test_largest_enumerates_in_descending_order(self, pair_program):
        outcome = solve(_stage_exprs(pair_program, 2), max_solutions=3)
        assert outcome.solutions == [(8, 9), (7, 8), (6, 7)]

    def test_unsat(self, unsat_program):
        outcome = solve(_stage_exprs(unsat_program, 1))
        assert outcome.status == "unsat"
        assert not outcome.found
        assert outcome.first is None

    def test_restricted_digit_domain(self, pair_program):
        outcome = solve(_stage_exprs(pair_program, 2), digit_max=5)
        assert outcome.first == (4, 5)

    def test_success_value(self, pair_program):
        # d1 == d0 + 1 fails exactly when the final z is d1 + 3.
        outcome = solve(_stage_exprs(pair_program, 2), success=12)
        assert outcome.first == (9, 9)

    def test_without_asserted_bounds(self, pair_program):
        outcome = solve(_stage_exprs(pair_program, 2), assert_bounds=False)
        assert outcome.first == (8, 9)

    def test_foreign_register_is_unsupported(self):
        with pytest.raises(UnsupportedExpression):
            solve([Node(Opcode.ADD, reg(X), inp(0))])

    def test_out_of_range_input_is_unsupported(self):
        with pytest.raises(UnsupportedExpression):
            solve([Node(Opcode.ADD, reg(Z), inp(4))])

    def test_build_exposes_stage_system(self, pair_program):
        system = ConstraintBridge().build(_stage_exprs(pair_program, 2))
        assert [str(d) for d in system.digits] == ["I_0", "I_1"]
        assert [str(v) for v in system.links] == ["Z_0", "Z_1"]
        assert system.stage_bounds[1] == Bound(7, 15)


class TestSolveConfig:
    def test_defaults(self):
        config = SolveConfig()
        assert config.strategy == "largest"
        assert config.digit_bound == Bound(1, 9)

    @pytest.mark.parametrize("kwargs", [
        {"strategy": "random"},
        {"max_solutions": 0},
        {"digit_min": 5, "digit_max": 4},
        {"digit_max": 10},
        {"timeout_ms": -1},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            SolveConfig(**kwargs)


def test_outcome_constructors():
    assert SolveOutcome.unsat().status == "unsat"
    timeout = SolveOutcome.timeout("Solver timed out after 5 ms")
    assert timeout.status == "timeout"
    assert not timeout.complete
    assert SolveOutcome.error("boom").message == "Solver error: boom"


class CancellingBridge(ConstraintBridge):
    """Requests cancellation right after each completed check."""

    def _check(self, system):
        result = super()._check(system)
        self.cancel()
        return result


class TestCancel:
    def test_cancel_between_checks_stops_enumeration(self, pair_program):
        bridge = CancellingBridge(SolveConfig(strategy="any", max_solutions=100))
        outcome = bridge.solve(_stage_exprs(pair_program, 2))
        assert outcome.status == "sat"
        assert not outcome.complete
        assert len(outcome.solutions) == 1
        assert outcome.checks == 1
        assert "cancel" in outcome.message

    def test_cancel_during_greedy_search_is_a_timeout(self, pair_program):
        outcome = CancellingBridge().solve(_stage_exprs(pair_program, 2))
        assert outcome.status == "timeout"
        assert not outcome.found
        assert outcome.checks == 1

    def test_solve_resets_cancellation(self, pair_program):
        bridge = ConstraintBridge()
        bridge.build(_stage_exprs(pair_program, 2))
        bridge.cancel()
        outcome = bridge.solve(_stage_exprs(pair_program, 2))
        assert outcome.first == (8, 9)

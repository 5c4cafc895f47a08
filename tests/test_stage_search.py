"""
Tests for the solver-free stage search.
"""

import pytest

from symalu.dse.stage_search import search_stages
from symalu.errors import UnsupportedExpression
from symalu.semantics.instructions import Opcode, Register
from symalu.semantics.stages import abstract_stages
from symalu.symbolic.expr import Node, inp, reg


def _exprs(program, stage_count):
    return [s.expr for s in abstract_stages(program, stage_count)]


def test_largest(pair_program):
    assert search_stages(_exprs(pair_program, 2)) == (8, 9)


def test_smallest(pair_program):
    assert search_stages(_exprs(pair_program, 2), order="smallest") == (1, 2)


def test_no_solution(unsat_program):
    assert search_stages(_exprs(unsat_program, 1)) is None


@pytest.mark.slow
def test_agrees_with_monad_answers(monad_program):
    exprs = _exprs(monad_program, 14)
    # 26**4 caps the stack depth at four pushes, enough for this program.
    largest = search_stages(exprs, max_linked_value=26 ** 4)
    smallest = search_stages(exprs, order="smallest", max_linked_value=26 ** 4)
    assert "".join(map(str, largest)) == "99911993949684"
    assert "".join(map(str, smallest)) == "62911941716111"


def test_unknown_order(pair_program):
    with pytest.raises(ValueError):
        search_stages(_exprs(pair_program, 2), order="sideways")


def test_foreign_register_is_unsupported():
    with pytest.raises(UnsupportedExpression):
        search_stages([Node(Opcode.ADD, reg(Register.X), inp(0))])


def test_foreign_input_is_unsupported():
    with pytest.raises(UnsupportedExpression):
        search_stages([Node(Opcode.ADD, reg(Register.Z), inp(1))])

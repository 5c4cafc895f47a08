"""
Shared fixtures: the fourteen-stage MONAD listing and a builder for small
programs made of MONAD-shaped stages.
"""

from pathlib import Path

import pytest

from symalu.frontend.loader import load_program, parse_program

FIXTURES = Path(__file__).parent / "fixtures"
MONAD_PATH = FIXTURES / "monad.alu"

STAGE_TEMPLATE = """\
inp w
mul x 0
add x z
mod x 26
div z {div}
add x {add_x}
eql x w
eql x 0
mul y 0
add y 25
mul y x
add y 1
mul z y
mul y 0
add y w
add y {add_y}
mul y x
add z y
"""


def stage_source(*params) -> str:
    """Listing of one stage per (div, add_x, add_y) triple."""
    return "".join(STAGE_TEMPLATE.format(div=d, add_x=a, add_y=b) for d, a, b in params)


@pytest.fixture
def monad_path():
    return MONAD_PATH


@pytest.fixture
def monad_program():
    return load_program(MONAD_PATH)


@pytest.fixture
def pair_program():
    """
    Two stages: push d0 + 6, then pop requiring d1 == d0 + 1.
    Solutions are (d, d + 1) for d in 1..8.
    """
    return parse_program(stage_source((1, 12, 6), (26, -5, 3)))


@pytest.fixture
def unsat_program():
    """One pop stage from z = 0: x = -20 never matches a digit."""
    return parse_program(stage_source((26, -20, 3)))

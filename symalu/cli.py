#!/usr/bin/env python3
"""
CLI entrypoint for the symalu analyzer.

Usage:
    symalu <program.alu> [--strategy largest] [--max-solutions N] [--verbose]
    symalu <program.alu> --check 13579246899999

Returns:
    0: SOLVED (or --check passed)
    1: NO_SOLUTION (or --check failed)
    2: UNKNOWN (solver timeout or error)
    3: Error (file not found, malformed program, etc.)
    4: UNSOUND (a candidate failed concrete verification)
"""

import argparse
import logging
import sys
from pathlib import Path

from .analyzer import Analyzer
from .dse.constraint_solver import STRATEGIES, SolveConfig
from .dse.verify import check_candidate
from .errors import ProgramParseError, ProgramShapeError, UnsupportedExpression
from .frontend.loader import load_program
from .semantics.instructions import STAGE_COUNT
from .symbolic.expr import size

EXIT_CODES = {"SOLVED": 0, "NO_SOLUTION": 1, "UNKNOWN": 2, "UNSOUND": 4}


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="symalu",
        description="symalu: symbolic ALU interpreter + Z3 input solver"
    )
    parser.add_argument("file", type=Path, help="ALU program listing")
    parser.add_argument(
        "--strategy",
        choices=STRATEGIES,
        default="largest",
        help="Search order for digit assignments (default: largest)",
    )
    parser.add_argument(
        "--max-solutions",
        type=int,
        default=1,
        help="Number of distinct assignments to enumerate (default: 1)",
    )
    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=0,
        help="Z3 timeout per check in milliseconds (default: 0, no timeout)",
    )
    parser.add_argument(
        "--stages",
        type=int,
        default=STAGE_COUNT,
        help=f"Number of equal single-input stages (default: {STAGE_COUNT})",
    )
    parser.add_argument(
        "--check",
        type=str,
        metavar="DIGITS",
        help="Only run the program concretely on DIGITS and check the result",
    )
    parser.add_argument(
        "--show-stages",
        action="store_true",
        help="Print the simplified linked-register expression of every stage",
    )
    parser.add_argument("--verbose", action="store_true", help="Verbose output")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.file.exists():
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        return 3

    try:
        program = load_program(args.file)
    except ProgramParseError as e:
        print(f"Error: {args.file}: {e}", file=sys.stderr)
        return 3

    print(f"Analyzing: {args.file} ({len(program)} instructions)")

    if args.check is not None:
        if not args.check.isdigit():
            print(f"Error: --check expects a digit string, got {args.check!r}", file=sys.stderr)
            return 3
        result = check_candidate(program, [int(c) for c in args.check])
        if result.state is not None:
            print(f"Final state: {result.state}")
        if result.error:
            print(f"Execution failed: {result.error}")
        print("VALID" if result.ok else "INVALID")
        return 0 if result.ok else 1

    try:
        config = SolveConfig(
            strategy=args.strategy,
            max_solutions=args.max_solutions,
            timeout_ms=args.timeout_ms,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 3

    analyzer = Analyzer(config, stage_count=args.stages)
    try:
        if args.show_stages:
            for stage in analyzer.abstract(program):
                print(f"stage {stage.index:2d} (depth {stage.expr.depth}, size {size(stage.expr)}): "
                      f"{stage.linked} = {stage.expr}")
            print()
        result = analyzer.analyze(program)
    except (ProgramShapeError, UnsupportedExpression) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 3

    print(result.summary())
    return EXIT_CODES[result.verdict]


if __name__ == "__main__":
    sys.exit(main())

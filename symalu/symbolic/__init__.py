"""
Expression trees over ALU operands, interval bounds and the term rewriter.
"""

from .bounds import Bound, bounds
from .expr import Expr, Leaf, Node, evaluate
from .rewrite import Rewriter, normalize, simplify

__all__ = [
    "Bound",
    "bounds",
    "Expr",
    "Leaf",
    "Node",
    "evaluate",
    "Rewriter",
    "normalize",
    "simplify",
]

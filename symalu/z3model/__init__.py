"""
Z3 encoding of ALU expression trees.
"""

from .translate import ExprTranslator, input_var, register_var, to_z3

__all__ = ["ExprTranslator", "input_var", "register_var", "to_z3"]

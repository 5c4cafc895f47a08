"""
ALU semantics: instruction set, concrete interpreter, abstract interpreter and
stage partitioning.
"""

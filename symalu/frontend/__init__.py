"""
Program listing parser.
"""

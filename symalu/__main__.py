"""
Allow running symalu as a module:

    python -m symalu <program> [options]

Delegates to symalu.cli:main().
"""
import sys
from .cli import main

sys.exit(main())

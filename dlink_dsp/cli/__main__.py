"""
CLI package main module for direct execution.

This allows the CLI to be run with: python -m dlink_dsp.cli
"""

import sys

from .main import main

if __name__ == "__main__":
    if sys.argv and sys.argv[0].endswith("__main__.py"):
        sys.argv[0] = "dlink-dsp"

    sys.exit(main() or 0)

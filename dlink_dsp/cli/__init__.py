"""
Command Line Interface Package for the D-Link DSP Client

- args.py: Argument parsing and validation
- formatters.py: Output formatting
- logging_setup.py: Logging configuration
- main.py: Main orchestration and entry point
"""

from .main import main

__all__ = ["main"]

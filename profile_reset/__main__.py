"""
Entry point for running profile_reset as a module.

Usage:
    python -m profile_reset restore
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())

"""
Main entry point for the court scheduling engine.
"""

import sys
from courtsched.cli import main

if __name__ == "__main__":
    sys.exit(main())

"""
Entry point for running oversight as a module.

Usage:
    python -m cli aggregate security.json accessibility.json --config .oversight.yml
    python -m cli config show
    python -m cli serve --port 8000
"""

import sys
from .commands import main

if __name__ == "__main__":
    sys.exit(main())

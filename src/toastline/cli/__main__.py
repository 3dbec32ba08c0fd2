"""
Allow running toastctl as a module: python -m toastline.cli
"""

import sys
from .toastctl import main

if __name__ == "__main__":
    sys.exit(main())

"""
Usage:
    python -m hello_service --profile dev
"""

import sys
from .main import main

if __name__ == "__main__":
    sys.exit(main())

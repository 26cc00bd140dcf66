#!/usr/bin/env python3
"""PyPP Runner Script

This script properly sets up the Python path and runs the preprocessor.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from src.preprocessor.main import main

if __name__ == '__main__':
    sys.exit(main())

#!/usr/bin/env python
"""
Run optimization from project root.
Usage: python run_optimize.py [args]
"""
import sys
import os

# Make the src/ layout importable without installing
project_root = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.join(project_root, "src"))

from greenwave.cli import main

if __name__ == "__main__":
    sys.exit(main())

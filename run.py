#!/usr/bin/env python3
"""
Wrapper that puts src/ on the path and runs the CLI.

    python run.py monitor --tilt 3 --heading 90 --dashboard
    python run.py configure --host 192.168.1.20 --port 8000 --interval 5
    python run.py calibrate-tilt
"""
import os
import sys

# Add src to path FIRST
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

if __name__ == "__main__":
    from main import main

    sys.exit(main())

#!/usr/bin/env python3
"""Entry point for the paper trading engine.

Usage:
    python scripts/run_live.py
    python scripts/run_live.py --symbol SOLUSDT --cycles 20
    python scripts/run_live.py --list-movers
"""
import sys
from pathlib import Path

# Setup paths
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from paper_momentum.cli import main


if __name__ == '__main__':
    main()

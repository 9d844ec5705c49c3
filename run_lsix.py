"""
run_lsix.py - CLI Entry Point

This script serves as the command-line entry point for lsix. It
forwards execution to the CLI logic defined in `src/lsix/cli.py`.

Usage:
    python run_lsix.py [FILES ...] [options]

This wrapper allows you to run the tool directly without needing to
modify PYTHONPATH or install the project as a package.

For help on available options, run:
    python run_lsix.py --help
"""
import sys
# Source code in src/ subdirectory
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

import lsix.cli as lsix_cli

if __name__ == "__main__":
    sys.exit(lsix_cli.main())

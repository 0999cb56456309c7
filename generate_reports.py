#!/usr/bin/env python3
"""Personal finance report generator.

Runs the package CLI straight from a source checkout, without installing.

Usage:
    python generate_reports.py generate --transactions txns.csv -t "Income Statement" -p last-month
    python generate_reports.py list

For all commands and options:
    python generate_reports.py --help
"""

import sys
from pathlib import Path

# Source checkouts keep the package under src/
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from finance_reports.cli import main

if __name__ == "__main__":
    sys.exit(main())

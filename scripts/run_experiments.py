#!/usr/bin/env python3
"""Compare typing with and without prediction using the simulated typist.

Usage:
    python scripts/run_experiments.py                  # 3 iterations, random seed
    python scripts/run_experiments.py --iterations 10  # more iterations
    python scripts/run_experiments.py --seed 42        # reproducible run
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add src to path for imports
SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = SCRIPT_DIR.parent
SRC_DIR = PROJECT_ROOT / "src"
sys.path.insert(0, str(SRC_DIR))

from speakahead.simulation import ExperimentRunner

# Colors for terminal output
GREEN = "\033[0;32m"
RED = "\033[0;31m"
CYAN = "\033[0;36m"
BOLD = "\033[1m"
NC = "\033[0m"  # No Color


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run AAC typing experiments across prediction conditions.",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=3,
        help="Iterations per condition (default: 3)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible runs",
    )
    return parser


def main() -> int:
    args = build_parser().parse_args()
    if args.iterations < 1:
        print(f"{RED}--iterations must be at least 1{NC}")
        return 1

    print(f"{CYAN}Starting AAC experiments...{NC}")
    results = ExperimentRunner(seed=args.seed).run(args.iterations)

    print(f"\n{BOLD}Results Summary:{NC}")
    for result in results:
        avg = result.average_metrics
        std = result.standard_deviation
        print(f"\n  {GREEN}●{NC} {BOLD}{result.condition}{NC}")
        print(f"    WPM: {avg.wpm:.2f} (±{std.wpm:.2f})")
        print(f"    Accuracy: {avg.accuracy * 100:.1f}%")
        print(f"    Prediction Usage: {avg.prediction_acceptance_rate * 100:.1f}%")
        print(f"    Keystrokes Saved: {avg.keystrokes_saved:.0f}")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())

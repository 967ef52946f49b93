#!/usr/bin/env python3
"""Main entry point for project management - CLI driven."""

import argparse
import logging
import subprocess
import sys
from pathlib import Path

# Ensure src directory is in python path
sys.path.append(str(Path(__file__).parent / "src"))

from utils import runners  # noqa: E402
from utils.config import clean_all  # noqa: E402


def start_mlflow_ui(port: int = 5000) -> None:
    """Start the MLflow UI on the local ./mlruns store (blocks until Ctrl+C)."""
    mlruns = (Path.cwd() / "mlruns").as_uri()
    print(f"\nStarting MLflow UI on http://localhost:{port} (backend: {mlruns})")
    try:
        subprocess.run(
            [sys.executable, "-m", "mlflow", "ui", "--backend-store-uri", mlruns, "--port", str(port)],
            check=False,
        )
    except KeyboardInterrupt:
        print("\nMLflow UI stopped.")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Project management for the serial vs parallel batch mapping benchmarks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    actions = parser.add_argument_group("Actions")
    actions.add_argument("--compute", action="store_true", help="Run all compute scripts (sequentially)")
    actions.add_argument("--plot", action="store_true", help="Run all plotting scripts (in parallel)")
    actions.add_argument("--clean", action="store_true", help="Clean all generated files and caches")
    actions.add_argument("--mlflow-ui", action="store_true", help="Start the MLflow UI on ./mlruns")

    if len(sys.argv) == 1:
        parser.print_help()
        sys.exit(1)

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    # Execute commands in logical order
    if args.clean:
        clean_all()

    failed = 0
    if args.compute:
        failed += runners.run_compute_scripts()[1]

    if args.plot:
        failed += runners.run_plot_scripts()[1]

    if args.mlflow_ui:
        start_mlflow_ui()

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()

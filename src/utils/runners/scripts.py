"""Script discovery and execution utilities.

Plot scripts are independent of each other, so they run through the batch
mapper's multithread strategy; compute scripts run one at a time so their
timings do not disturb each other.
"""

import subprocess
import sys
from functools import partial
from pathlib import Path
from typing import List, Optional, Tuple

from BatchMap import map_batch

from ..config import get_repo_root

DEFAULT_INTERPRETER = sys.executable


def discover_scripts(pattern: str, directory: str = "Experiments") -> List[Path]:
    """Find scripts in a directory whose name starts with pattern.

    Parameters
    ----------
    pattern : str
        Script name prefix (e.g., "plot", "compute")
    directory : str, default "Experiments"
        Directory to search in, relative to repo root

    Returns
    -------
    list of Path
        Sorted list of matching script paths
    """
    search_dir = get_repo_root() / directory
    if not search_dir.exists():
        return []

    return sorted(
        p for p in search_dir.rglob(f"{pattern}*.py") if p.is_file()
    )


def _run_single_script(
    script: Path,
    repo_root: Path,
    timeout: int = 180,
    interpreter: str = DEFAULT_INTERPRETER,
) -> Tuple[Path, bool, Optional[str]]:
    """Run a single script and return (display_path, success, error_message)."""
    display_path = script.relative_to(repo_root)

    try:
        result = subprocess.run(
            [interpreter, str(script)],
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=str(repo_root),
        )
    except subprocess.TimeoutExpired:
        return (display_path, False, "timeout")
    except OSError as e:
        return (display_path, False, str(e))

    if result.returncode == 0:
        return (display_path, True, None)
    error_msg = result.stderr[-200:] if result.stderr else ""
    return (display_path, False, f"exit {result.returncode}: {error_msg}")


def _summarise(results) -> Tuple[int, int]:
    success_count = sum(1 for _, ok, _ in results if ok)
    fail_count = len(results) - success_count
    print(f"\n  Summary: {success_count} succeeded, {fail_count} failed\n")
    return success_count, fail_count


def run_scripts_parallel(
    scripts: List[Path],
    timeout: int = 180,
    interpreter: str = DEFAULT_INTERPRETER,
    max_workers: int = None,
) -> Tuple[int, int]:
    """Run scripts concurrently (multithread strategy, one subprocess each).

    Returns
    -------
    tuple
        (success_count, fail_count)
    """
    if not scripts:
        print("  No scripts to run")
        return 0, 0

    repo_root = get_repo_root()
    print(f"\nRunning {len(scripts)} scripts in parallel...\n")

    run_one = partial(
        _run_single_script, repo_root=repo_root, timeout=timeout, interpreter=interpreter
    )
    results = map_batch(scripts, run_one, strategy="multithread", worker_count=max_workers)

    for display_path, success, error_msg in results:
        print(f"  ✓ {display_path}" if success else f"  ✗ {display_path} ({error_msg})")
    return _summarise(results)


def run_scripts_sequential(
    scripts: List[Path],
    timeout: int = 600,
    interpreter: str = DEFAULT_INTERPRETER,
) -> Tuple[int, int]:
    """Run scripts one after another.

    Returns
    -------
    tuple
        (success_count, fail_count)
    """
    if not scripts:
        print("  No scripts to run")
        return 0, 0

    repo_root = get_repo_root()
    print(f"\nRunning {len(scripts)} scripts sequentially...\n")

    results = []
    for script in scripts:
        print(f"  → {script.relative_to(repo_root)}...", end=" ", flush=True)
        result = _run_single_script(script, repo_root, timeout, interpreter)
        print("✓" if result[1] else f"✗ ({result[2]})")
        results.append(result)
    return _summarise(results)


def run_plot_scripts() -> Tuple[int, int]:
    """Run all plot scripts in parallel."""
    return run_scripts_parallel(discover_scripts("plot"), timeout=180)


def run_compute_scripts() -> Tuple[int, int]:
    """Run all compute scripts sequentially."""
    return run_scripts_sequential(discover_scripts("compute"), timeout=600)

#!/usr/bin/env python3
"""
dspolicy test runner

Runs the test suite, or one group of it.
"""

import os
import sys
import subprocess
import argparse
from pathlib import Path

TARGETS = {
    "all": ("tests/", "full test suite"),
    "unit": ("tests/unit/", "unit tests"),
    "core": ("tests/unit/core/", "core policy tests"),
    "observability": ("tests/unit/observability/", "observability tests"),
    "smoke": ("tests/test_policy.py", "end-to-end smoke test"),
}


def run_command(cmd, description):
    """Run one command and report the result"""
    print(f"\n{'='*60}")
    print(f"running: {description}")
    print(f"command: {cmd}")
    print(f"{'='*60}")

    result = subprocess.run(cmd, shell=True, capture_output=True, text=True)

    if result.returncode == 0:
        print("passed")
        if result.stdout:
            print(result.stdout)
    else:
        print("failed")
        if result.stdout:
            print(result.stdout)
        if result.stderr:
            print(result.stderr)
        return False

    return True


def main():
    parser = argparse.ArgumentParser(description="dspolicy test runner")
    parser.add_argument(
        "--type",
        choices=sorted(TARGETS) + ["integration"],
        default="all",
        help="test group to run"
    )
    parser.add_argument("--coverage", action="store_true", help="collect coverage")
    parser.add_argument("--verbose", action="store_true", help="verbose output")

    args = parser.parse_args()

    os.chdir(Path(__file__).parent)

    pytest_opts = []
    if args.verbose:
        pytest_opts.append("-v")
    if args.coverage:
        pytest_opts.extend(["--cov=dspolicy", "--cov-report=term"])

    if args.type == "integration":
        cmd = f"{sys.executable} -m pytest {' '.join(pytest_opts)} -m integration tests/"
        success = run_command(cmd, "integration tests")
    else:
        path, description = TARGETS[args.type]
        cmd = f"{sys.executable} -m pytest {' '.join(pytest_opts)} {path}"
        success = run_command(cmd, description)

    print(f"\n{'='*60}")
    if success:
        print("all tests passed")
    else:
        print("some tests failed")
        sys.exit(1)
    print(f"{'='*60}")


if __name__ == "__main__":
    main()

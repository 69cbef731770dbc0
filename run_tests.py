#!/usr/bin/env python3
"""
Test runner for LinkSprint.
Runs the suite against SQLite with the in-memory cache and queue, so no
Redis server is needed.
"""

import os
import subprocess
import sys


def run_tests():
    """Run the test suite"""
    print("Running LinkSprint tests")
    print("=" * 40)

    os.chdir(os.path.dirname(os.path.abspath(__file__)))

    try:
        subprocess.run([
            sys.executable, "-m", "pytest",
            "tests/",
            "-v",
            "--tb=short",
            *sys.argv[1:],
        ], check=True)

        print("\nAll tests passed!")
        return 0

    except subprocess.CalledProcessError as e:
        print(f"\nTests failed with exit code {e.returncode}")
        return e.returncode
    except FileNotFoundError:
        print("pytest not found. Install with: pip install -e '.[test]'")
        return 1


if __name__ == "__main__":
    sys.exit(run_tests())

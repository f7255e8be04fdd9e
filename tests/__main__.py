#!/usr/bin/env python3
"""
Test runner for llm-request-shaper.

This module allows running the test suite using:
    python -m tests
"""

import sys
from pathlib import Path

import pytest


def main():
    """Run the test suite using pytest."""
    tests_dir = Path(__file__).parent

    # Default pytest arguments, replaced by any given on the command line
    args = [str(tests_dir), "-v", "--tb=short"]
    if len(sys.argv) > 1:
        args = sys.argv[1:]

    exit_code = pytest.main(args)

    if exit_code == 0:
        print("\nAll tests passed!")
    else:
        print(f"\nTests failed with exit code: {exit_code}")

    return exit_code


if __name__ == "__main__":
    sys.exit(main())

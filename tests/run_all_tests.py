#!/usr/bin/env python3
"""
run_all_tests.py - Run All lingalign Tests
==========================================

Runs all test modules in sequence.

Usage:
    python run_all_tests.py

    # Skip some modules
    python run_all_tests.py --skip cli processing
"""

import argparse
import subprocess
import sys
import os
from pathlib import Path


def run_test(test_file: str) -> bool:
    """Run a single test file and return success status."""
    cmd = [sys.executable, test_file]

    print(f"\n{'='*70}")
    print(f"RUNNING: {test_file}")
    print('='*70)

    result = subprocess.run(cmd, cwd=os.path.dirname(test_file))
    return result.returncode == 0


def main():
    parser = argparse.ArgumentParser(description="Run All lingalign Tests")
    parser.add_argument("--skip", nargs='+', default=[], help="Test modules to skip")
    args = parser.parse_args()

    # Find tests directory
    script_dir = Path(__file__).parent
    if script_dir.name != 'tests':
        tests_dir = script_dir / 'tests'
    else:
        tests_dir = script_dir

    # Leaf modules first, engine and command line last
    tests = [
        'test_matrix.py',
        'test_resolver.py',
        'test_similarity.py',
        'test_processing.py',
        'test_comparison.py',
        'test_grouping.py',
        'test_sequential.py',
        'test_dispatch.py',
        'test_core.py',
        'test_cli.py',
    ]

    results = {}

    print("#" * 70)
    print("# LINGALIGN COMPLETE TEST SUITE")
    print("#" * 70)

    for test_file in tests:
        test_name = test_file.replace('.py', '').replace('test_', '')

        if test_name in args.skip:
            print(f"\nSKIPPING: {test_file}")
            results[test_file] = 'SKIPPED'
            continue

        test_path = tests_dir / test_file

        if not test_path.exists():
            print(f"\nNOT FOUND: {test_path}")
            results[test_file] = 'NOT FOUND'
            continue

        success = run_test(str(test_path))
        results[test_file] = 'PASSED' if success else 'FAILED'

    # Summary
    print("\n" + "#" * 70)
    print("# TEST SUMMARY")
    print("#" * 70)

    passed = sum(1 for r in results.values() if r == 'PASSED')
    failed = sum(1 for r in results.values() if r == 'FAILED')
    skipped = sum(1 for r in results.values() if r == 'SKIPPED')

    for test_file, result in results.items():
        status_icon = {'PASSED': '✓', 'FAILED': '✗', 'SKIPPED': '○', 'NOT FOUND': '?'}
        print(f"  {status_icon.get(result, '?')} {test_file}: {result}")

    print(f"\n  Total: {passed} passed, {failed} failed, {skipped} skipped")
    print("#" * 70)

    return 0 if failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())

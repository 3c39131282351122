#!/usr/bin/env python3
# File: tests/run_tests.py
"""
Test runner for the parkflow test suites.

    python tests/run_tests.py                      # everything
    python tests/run_tests.py unit.test_pricing    # one module
    python tests/run_tests.py unit.test_pricing.TestFlatRatePricing
"""

import unittest
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent

# Make both the tests package and the src layout importable
sys.path.insert(0, str(PROJECT_ROOT))
sys.path.insert(0, str(PROJECT_ROOT / 'src'))


def run_all_tests():
    """Run all test suites"""
    test_loader = unittest.TestLoader()

    test_suite = test_loader.discover(
        str(Path(__file__).parent),
        pattern='test_*.py',
        top_level_dir=str(PROJECT_ROOT)
    )

    test_runner = unittest.TextTestRunner(verbosity=2)
    return test_runner.run(test_suite)


def run_specific_test(test_name):
    """Run a specific test module or test case"""
    test_loader = unittest.TestLoader()
    test_suite = test_loader.loadTestsFromName(f'tests.{test_name}')

    test_runner = unittest.TextTestRunner(verbosity=2)
    return test_runner.run(test_suite)


if __name__ == "__main__":
    if len(sys.argv) > 1:
        result = run_specific_test(sys.argv[1])
    else:
        result = run_all_tests()

    sys.exit(0 if result.wasSuccessful() else 1)

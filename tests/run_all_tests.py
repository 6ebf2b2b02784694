#!/usr/bin/env python3
"""
Test runner for the timed quiz engine.
Runs all unit and integration tests and prints a summary report.

Usage:
    python tests/run_all_tests.py            # everything
    python tests/run_all_tests.py session    # one category
"""
import sys
import time
import unittest
from pathlib import Path

# Make the timed_quiz and tests packages importable when run as a script
sys.path.insert(0, str(Path(__file__).parent.parent))

TEST_CATEGORIES = {
    'unit': [
        'tests.test_models',
        'tests.test_scoring',
        'tests.test_countdown',
        'tests.test_quiz_session',
        'tests.test_submitter',
        'tests.test_result_store',
        'tests.test_catalog',
        'tests.test_config_manager',
        'tests.test_logging_config',
        'tests.test_engine',
    ],
    'integration': ['tests.test_integration', 'tests.test_discord_notifier', 'tests.test_engine'],
    'session': ['tests.test_quiz_session', 'tests.test_countdown'],
    'storage': ['tests.test_result_store', 'tests.test_submitter', 'tests.test_catalog'],
    'config': ['tests.test_config_manager', 'tests.test_logging_config', 'tests.test_engine'],
}


def load_suite(module_names):
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    for module_name in module_names:
        try:
            suite.addTest(loader.loadTestsFromName(module_name))
            print(f"✓ Loaded tests from {module_name}")
        except (ImportError, AttributeError) as e:
            print(f"✗ Failed to load {module_name}: {e}")
            return None

    return suite


def run_test_suite(module_names):
    """Run the given test modules and print a summary report."""
    print("=" * 70)
    print("Timed Quiz Engine - Test Suite")
    print("=" * 70)

    suite = load_suite(module_names)
    if suite is None:
        return False

    runner = unittest.TextTestRunner(verbosity=2, stream=sys.stdout, buffer=True)

    start_time = time.time()
    result = runner.run(suite)
    end_time = time.time()

    total_tests = result.testsRun
    failures = len(result.failures)
    errors = len(result.errors)
    skipped = len(result.skipped)
    passed = total_tests - failures - errors - skipped

    print("\n" + "=" * 70)
    print("Test Summary Report")
    print("=" * 70)
    print(f"Total Tests Run: {total_tests}")
    print(f"Passed: {passed}")
    print(f"Failed: {failures}")
    print(f"Errors: {errors}")
    print(f"Skipped: {skipped}")
    print(f"Success Rate: {(passed / total_tests) * 100:.1f}%" if total_tests > 0 else "N/A")
    print(f"Execution Time: {end_time - start_time:.2f} seconds")

    return failures == 0 and errors == 0


if __name__ == '__main__':
    if len(sys.argv) > 1:
        category = sys.argv[1]
        if category not in TEST_CATEGORIES:
            print(f"Unknown category: {category}")
            print(f"Available categories: {', '.join(TEST_CATEGORIES)}")
            sys.exit(1)
        modules = TEST_CATEGORIES[category]
    else:
        modules = TEST_CATEGORIES['unit'] + TEST_CATEGORIES['integration']

    sys.exit(0 if run_test_suite(modules) else 1)

# run_tests.py
"""
Test runner for the entire application
Run this file to execute all tests with detailed reporting
"""
import os
import sys
import django

# Setup Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.test')
django.setup()

from django.core.management import call_command
from django.test.utils import get_runner
from django.conf import settings

TEST_APPS = [
    'apps.core',
    'apps.users',
    'apps.clients',
    'apps.visits',
    'apps.corrective_tasks',
    'apps.reminders',
    'apps.dashboard',
]

# Workflow rules, calendar and visit completion
CRITICAL_APPS = [
    'apps.core',
    'apps.visits',
    'apps.corrective_tasks',
]


def run_suite(title, test_apps):
    print("=" * 80)
    print(title)
    print("=" * 80)
    print()

    TestRunner = get_runner(settings)
    test_runner = TestRunner(verbosity=2, interactive=False)

    failures = test_runner.run_tests(test_apps)

    print()
    print("=" * 80)
    if failures:
        print(f"❌ TESTS FAILED: {failures} failure(s)")
    else:
        print("✅ ALL TESTS PASSED!")
    print("=" * 80)

    return failures


def run_specific_app(app_name):
    """Run tests for a specific app"""
    print(f"🧪 Running tests for {app_name}...")
    call_command('test', f'apps.{app_name}', verbosity=2)


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Run tests for the application')
    parser.add_argument(
        '--app',
        type=str,
        help='Run tests for a specific app (e.g., visits, corrective_tasks, reminders)'
    )
    parser.add_argument(
        '--critical',
        action='store_true',
        help='Run only critical tests (core rules, visits and corrective tasks)'
    )

    args = parser.parse_args()

    if args.critical:
        sys.exit(run_suite("CRITICAL TESTS - Workflow rules, calendar & visit completion", CRITICAL_APPS))
    elif args.app:
        run_specific_app(args.app)
    else:
        sys.exit(run_suite("COMPREHENSIVE TEST SUITE", TEST_APPS))

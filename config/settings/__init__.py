# config/settings/__init__.py
"""
Settings package.

Pick a module through DJANGO_SETTINGS_MODULE:
    - config.settings.development (DEBUG=True, default for manage.py)
    - config.settings.production
    - config.settings.test (used by pytest and run_tests.py)
"""

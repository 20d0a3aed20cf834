# config/settings/test.py
"""
Settings for the test suite.
"""
from .base import *

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

TECHNICIANS = ['Alan Spitel', 'Daniel Galvez', 'Gustavo Fernandez', 'Marco Sotola']
CALENDAR_MAX_VISITS_PER_DAY = 3
DASHBOARD_PREVIEW_SIZE = 5
TIME_ZONE = 'America/Argentina/Buenos_Aires'

# Tests point REMINDERS_FILE at a temporary directory with override_settings
REMINDERS_FILE = str(BASE_DIR / 'var' / 'test-reminders.json')

LOGGING['loggers']['apps']['level'] = 'WARNING'

# config/settings/production.py
"""
Production-specific settings.
"""
from .base import *

DEBUG = False

SECRET_KEY = env('SECRET_KEY')
SIMPLE_JWT['SIGNING_KEY'] = SECRET_KEY

ALLOWED_HOSTS = env.list('ALLOWED_HOSTS', default=['localhost'])

# Security settings
SECURE_SSL_REDIRECT = env.bool('SECURE_SSL_REDIRECT', default=True)
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

# HSTS settings
SECURE_HSTS_SECONDS = 31536000  # 1 year
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True

# Only JSON renderer in production
REST_FRAMEWORK['DEFAULT_RENDERER_CLASSES'] = [
    'rest_framework.renderers.JSONRenderer',
]

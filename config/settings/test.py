# config/settings/test.py
from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CLINIC_FALLBACK_TIMEZONE = None
PARTIAL_EXCEPTION_POLICY = 'override'

LOG_LEVEL = 'WARNING'
for _name in ('apps', 'services', 'core'):
    LOGGING['loggers'][_name]['level'] = LOG_LEVEL  # noqa: F405

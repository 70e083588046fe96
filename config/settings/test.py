"""Test settings.

A file-backed SQLite test database, so that the concurrency tests can open
several connections onto the same data.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'test-db.sqlite3',  # noqa: F405
        'OPTIONS': {
            'transaction_mode': 'IMMEDIATE',
            'timeout': 5,
        },
        'TEST': {
            'NAME': BASE_DIR / 'test-db.sqlite3',  # noqa: F405
        },
    }
}

# The engine's tables are created straight from the models
MIGRATION_MODULES = {
    'inventory': None,
    'bookings': None,
}

BOOKING_ENGINE = {
    'STORE_TIMEOUT_MS': 1000,
    'LOCK_TIMEOUT_MS': 1000,
    'SUGGESTION_WINDOW_DAYS': 90,
    'MAX_SUGGESTIONS': 3,
    'REFERENCE_ATTEMPTS': 5,
}

LOGGING["loggers"]["apps"]["level"] = "WARNING"  # noqa: F405
LOGGING["loggers"]["shared"]["level"] = "WARNING"  # noqa: F405

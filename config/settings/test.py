from .base import *  # noqa
from decouple import config

from .base import BASE_DIR
from .base import REST_FRAMEWORK as BASE_REST_FRAMEWORK

DEBUG = False

# Postgres when DATABASE_ENGINE=postgres (same DATABASE_* variables as base);
# otherwise a file SQLite database. IMMEDIATE transactions take the write lock
# at BEGIN, so concurrent atomic blocks queue instead of failing on upgrade.
if config("DATABASE_ENGINE", default="sqlite").lower() != "postgres":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "test_db.sqlite3",
            "OPTIONS": {"transaction_mode": "IMMEDIATE", "timeout": 30},
            "TEST": {"NAME": BASE_DIR / "test_db.sqlite3"},
        }
    }

# Plain static storage; tests never run collectstatic
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

RESERVATION_TTL_MINUTES = 15
LOW_STOCK_THRESHOLD = 20

# Relax throttling for tests to reduce flakiness
REST_FRAMEWORK = {**BASE_REST_FRAMEWORK}
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {
    **BASE_REST_FRAMEWORK.get("DEFAULT_THROTTLE_RATES", {}),
    "user": "10000/min",
    "anon": "10000/min",
    "catalog": "10000/min",
    "catalog_admin_write": "10000/min",
    "checkout": "10000/min",
    "checkout_write": "10000/min",
    "orders": "10000/min",
    "orders_write": "10000/min",
}

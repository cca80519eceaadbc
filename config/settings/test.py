# config/settings/test.py
from .base import *  # noqa

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CLINIC_ADMISSION_FEE = Decimal("300.00")  # noqa: F405
CLINIC_TX_MAX_RETRIES = 3

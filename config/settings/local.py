# config/settings/local.py
from .base import *  # noqa

DEBUG = True

if os.getenv("DB_ENGINE", "") == "sqlite":  # noqa: F405
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",  # noqa: F405
        }
    }

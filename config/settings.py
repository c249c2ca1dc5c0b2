"""
FieldOps – Django Settings (Infrastructure Only)
=================================================
Django hosts the ORM-backed Entity Store. The view layer itself is
plain Python; it only reads FIELDOPS_VIEWS from here.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("FIELDOPS_SECRET_KEY", "fieldops-dev-key-replace-before-deployment")

DEBUG = os.environ.get("FIELDOPS_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    # ── FieldOps Modules ──────────────────────────────────
    "core.entity_store",
]

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("FIELDOPS_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

# ── Default Primary Key ──────────────────────────────────────
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "loggers": {
        "fieldops": {"handlers": ["console"], "level": "INFO", "propagate": True},
    },
}

# ── Derived Views ─────────────────────────────────────────────
# Read by core.config.ViewSettings.from_django(). Missing keys use defaults.
FIELDOPS_VIEWS = {
    "reference_timezone": "UTC",
    "revenue_window_days": 30,
    "upcoming_jobs_limit": 20,
    "recent_jobs_limit": 8,
    "top_usage_limit": 10,
    "wait_timeout_seconds": None,
}

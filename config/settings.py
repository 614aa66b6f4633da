"""
HotelOps – Django Settings (Infrastructure Only)
=================================================
Django hosts the record store (ORM, transactions, JSON payloads)
and the stock procedure connection. The projection engine itself
never imports these settings directly; it reads HOTELOPS through
core.config.load_settings().
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("HOTELOPS_SECRET_KEY", "hotelops-dev-key-replace-before-deployment")

DEBUG = os.environ.get("HOTELOPS_DEBUG", "1") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    # ── HotelOps ──────────────────────────────────────────
    "core.records",
]

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production points at PostgreSQL, where
# the stock aggregation procedures are installed.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("HOTELOPS_DB_PATH", BASE_DIR / "db.sqlite3"),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ── Default Primary Key ──────────────────────────────────────
# Records use UUIDs explicitly. This is a Django fallback only.
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── HotelOps ──────────────────────────────────────────────────
# Missing keys fall back to HotelOpsSettings defaults.
HOTELOPS = {
    "batch_chunk_size": 50,
    "batch_max_attempts": 3,
    "batch_backoff_seconds": 0.4,
    "config_cache_size": 32,
    "checkout_clearance_statuses": ["clean", "inspected"],
    "default_collection": "Provisions",
    "remote_aggregation_enabled": True,
}

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
        "hotelops": {
            "handlers": ["console"],
            "level": os.environ.get("HOTELOPS_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}

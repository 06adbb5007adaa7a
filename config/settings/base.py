"""
Django settings for the rebalancer project.

Base settings shared by all environments. There are no models: Django supplies
configuration, logging, system checks and the management command.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = os.getenv("SECRET_KEY") or "django-insecure-placeholder-key-for-tests-and-local-dev"

DEBUG = os.getenv("DEBUG", "False") == "True"

# Configure logging early (before Django uses it)
from config.logging import configure_structlog, get_logging_config  # noqa: E402

configure_structlog(debug=DEBUG)

INSTALLED_APPS = [
    "rebalancer.apps.RebalancerConfig",
]

# The book is read directly; Django itself needs no database.
DATABASES = {}


# Internationalization

LANGUAGE_CODE = "en-us"

# Ages and price staleness are measured in this time zone
TIME_ZONE = os.getenv("TIME_ZONE", "UTC")

USE_I18N = False

USE_TZ = True


# ============================================================================
# REBALANCER CONFIGURATION
# ============================================================================

REBALANCER = {
    "BIRTHDAY": os.getenv("REBALANCER_BIRTHDAY", "1985-01-01"),
    "BOOK_PATH": os.getenv("GNUCASH_BOOK", "example/sqlite3.gnucash"),
    "BOOK_FORMAT": os.getenv("GNUCASH_FORMAT", "sqlite3"),
    "UPDATE_PRICES": os.getenv("GNUCASH_UPDATE_PRICES", "False") == "True",
    "CLASSIFICATIONS": os.getenv(
        "ASSET_CLASSIFICATIONS", str(BASE_DIR / "data" / "classified.csv")
    ),
    # "120 minus your age in stocks"
    "STOCKS_FROM_YEARS": os.getenv("STOCKS_FROM_YEARS", "120"),
    "REAL_APY": os.getenv("REAL_APY", "0.07"),
    # Explicit table, e.g. "US_TOTAL=0.6,INTL_STOCKS=0.3,US_BONDS=0.1".
    # Empty means age-based core four targets.
    "TARGETS": os.getenv("REBALANCER_TARGETS", ""),
}

# Logging Configuration
# Using structlog for structured logging with Django's logging system
LOGGING = get_logging_config(debug=DEBUG)

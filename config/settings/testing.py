from .base import *  # noqa: F403

DEBUG = False

TIME_ZONE = "UTC"

# Tests build their own books; never read the developer's .env values
REBALANCER = {
    "BIRTHDAY": "1985-01-01",
    "BOOK_PATH": "example/sqlite3.gnucash",
    "BOOK_FORMAT": "sqlite3",
    "UPDATE_PRICES": False,
    "CLASSIFICATIONS": None,
    "STOCKS_FROM_YEARS": 120,
    "REAL_APY": "0.07",
    "TARGETS": "",
}

# Only failures the suite does not expect should reach stderr
from config.logging import get_logging_config  # noqa: E402

LOGGING = get_logging_config()
LOGGING["loggers"]["rebalancer"]["level"] = "CRITICAL"

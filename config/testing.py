import os

from config.base import db_config_from_env

DB_CONFIG = db_config_from_env()

STORAGE_BACKEND = "memory"

UTC_OFFSET = "+08:00"
HOLIDAYS = ["2025-12-25"]
CLOCK_IN_FUTURE_TOLERANCE_MINUTES = 5

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
LOG_JSON = False

AUTO_INIT_DB = False

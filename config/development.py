import os

from config.base import db_config_from_env, holidays_from_env

DB_CONFIG = db_config_from_env()

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory")

UTC_OFFSET = os.getenv("UTC_OFFSET", "+08:00")
HOLIDAYS = holidays_from_env()
CLOCK_IN_FUTURE_TOLERANCE_MINUTES = int(os.getenv("CLOCK_IN_FUTURE_TOLERANCE_MINUTES", "5"))

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_JSON = bool(int(os.getenv("LOG_JSON", "0")))

# If enabled, schema.sql is applied on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

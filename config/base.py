import os

# Philippine regular holidays (canonical zone is Asia/Manila, UTC+8).
# Override with HOLIDAYS=YYYY-MM-DD,YYYY-MM-DD,...
DEFAULT_HOLIDAYS = [
    "2025-01-01",
    "2025-04-09",
    "2025-04-17",
    "2025-04-18",
    "2025-05-01",
    "2025-06-12",
    "2025-08-25",
    "2025-11-30",
    "2025-12-25",
    "2025-12-30",
    "2026-01-01",
    "2026-04-02",
    "2026-04-03",
    "2026-04-09",
    "2026-05-01",
    "2026-06-12",
    "2026-08-31",
    "2026-11-30",
    "2026-12-25",
    "2026-12-30",
]


def holidays_from_env(default=None):
    raw = os.getenv("HOLIDAYS")
    if raw is None:
        return list(default if default is not None else DEFAULT_HOLIDAYS)
    return [d.strip() for d in raw.split(",") if d.strip()]


def db_config_from_env(default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "workday_tracker"),
    }

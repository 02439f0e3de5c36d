from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from config import get_settings_module

from .common.datetime_utils import parse_iso_date
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_tracker() -> Container:
    """Build the engine from the active settings module (APP_ENV)."""
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    configure_logging(
        getattr(settings, "LOG_LEVEL", "INFO"),
        json_output=bool(getattr(settings, "LOG_JSON", False)),
    )

    backend = getattr(settings, "STORAGE_BACKEND", "memory")
    db_config = getattr(settings, "DB_CONFIG", None)
    logger.info("Starting workday tracker settings=%s backend=%s", settings_module, backend)

    if backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

    return build_container(
        storage_backend=backend,
        db_config=db_config,
        utc_offset=getattr(settings, "UTC_OFFSET", "+08:00"),
        holidays=[parse_iso_date(d) for d in getattr(settings, "HOLIDAYS", [])],
        clock_in_future_tolerance_minutes=int(getattr(settings, "CLOCK_IN_FUTURE_TOLERANCE_MINUTES", 5)),
    )

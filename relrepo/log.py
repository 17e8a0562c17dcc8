"""Logging setup shared by scripts and applications embedding relrepo."""
import logging
from typing import Optional

from relrepo.config import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level)
    logging.getLogger("relrepo").setLevel(level)
    # SQLAlchemy emits statements on this logger at INFO
    if settings.echo_sql:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
    logging.getLogger(__name__).debug(
        "logging_configured: level=%s echo_sql=%s", settings.log_level, settings.echo_sql
    )

"""
Logging Setup
Configures the standard library logging used by every module.
"""

import logging
from typing import Optional

from ledgerlens.config import Settings, settings as default_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(app_settings: Optional[Settings] = None) -> None:
    """
    Configure root logging for scripts and host applications.
    
    Library modules only create loggers; call this once from an entry point.
    
    Args:
        app_settings: Settings to read the debug flag from (defaults to global settings)
    """
    app_settings = app_settings or default_settings
    
    logging.basicConfig(
        level=logging.DEBUG if app_settings.debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
    
    # SQL echo is noise for analysis runs
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

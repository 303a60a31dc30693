import logging
import os
from logging.handlers import RotatingFileHandler

from app.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """Attach console (and optionally rotating file) handlers to the ``app`` logger."""
    logger = logging.getLogger("app")
    logger.setLevel(settings.LOG_LEVEL.upper())

    # create_app may run several times in one process (tests)
    if getattr(logger, "_inkwell_configured", False):
        return

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console)

    if settings.LOG_FILE:
        log_dir = os.path.dirname(settings.LOG_FILE)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        file_handler = RotatingFileHandler(settings.LOG_FILE, maxBytes=10240, backupCount=10)
        file_handler.setFormatter(logging.Formatter(
            LOG_FORMAT + " [in %(pathname)s:%(lineno)d]"))
        logger.addHandler(file_handler)

    logger.propagate = False
    logger._inkwell_configured = True

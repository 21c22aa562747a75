"""Centralized logging configuration for the StudyFlow API."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_configured = False


def configure_logging(log_level: str = "INFO") -> None:
    """Install a single console handler on the ``studyflow`` logger.

    Calling this more than once is a no-op so app factories used by tests do
    not stack handlers.
    """
    global _configured
    if _configured:
        return

    level = _LEVELS.get(log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    package_logger = logging.getLogger("studyflow")
    package_logger.setLevel(level)
    package_logger.addHandler(handler)

    # SQL echo is controlled separately; keep the engine quiet by default
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(max(level, logging.INFO))

    _configured = True

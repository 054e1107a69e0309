import logging
import sys

from .audit_log import AUDIT_LOGGER_NAME

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _reset(logger: logging.Logger, level: str | int, formatter: logging.Formatter) -> None:
    logger.setLevel(level)
    logger.propagate = False
    if logger.handlers:
        logger.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach stdout handlers to the `portal` logger tree and the audit logger.

    Audit records are already JSON, so they are written without a prefix.
    """
    logger = logging.getLogger("portal")
    _reset(logger, level, logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    _reset(logging.getLogger(AUDIT_LOGGER_NAME), logging.INFO, logging.Formatter("%(message)s"))
    return logger

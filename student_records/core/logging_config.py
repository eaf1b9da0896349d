# /student_records/core/logging_config.py

import logging

from .config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """
    Configure the root logger once for the whole process.

    Modules obtain their own logger with `logging.getLogger(__name__)`, so every
    record carries the dotted module path of where it was emitted.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level, logging.INFO))

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)

    # Uvicorn's access log duplicates what the request handlers already report.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    return root_logger

# vatbook/common/logger.py

import logging
from logging.handlers import RotatingFileHandler
import os

from vatbook.logger_config import formatter, logger


def setup_file_logger(log_dir: str = "logs", level: str = "INFO") -> None:
    """Attach a rotating file handler to the application logger (once)."""
    os.makedirs(log_dir, exist_ok=True)

    log_file = os.path.join(log_dir, 'app.log')

    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and handler.baseFilename == os.path.abspath(log_file):
            return

    file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3)
    file_handler.setFormatter(formatter)
    file_handler.setLevel(getattr(logging, level.upper(), logging.INFO))

    logger.addHandler(file_handler)
    logger.info(f"File logging enabled at {log_file}")

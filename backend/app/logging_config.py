"""
Logging setup shared by the API process.

Console logging is always on; a daily log file is added when
ENABLE_FILE_LOGGING is set.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from app.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(enable_file: Optional[bool] = None) -> None:
    """
    Configure the root logger.

    Args:
        enable_file: Force file logging on/off. None uses ENABLE_FILE_LOGGING.
    """
    if enable_file is None:
        enable_file = settings.ENABLE_FILE_LOGGING

    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL.upper())
    formatter = logging.Formatter(LOG_FORMAT)

    if not any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in root.handlers
    ):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if enable_file:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"mealplanner_{datetime.now().strftime('%Y%m%d')}.log"

        already_attached = any(
            isinstance(h, logging.FileHandler)
            and Path(h.baseFilename) == log_file.resolve()
            for h in root.handlers
        )
        if not already_attached:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

    # uvicorn access logs are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

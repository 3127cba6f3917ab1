"""
Console logging setup shared by the API and scripts.
"""

import logging
import sys

from core.config import LOG_LEVEL


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Attach a stdout handler to the root logger (once)."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    if not root_logger.hasHandlers():
        root_logger.addHandler(console_handler)

    # Discovery cache warnings from the Google client are noise
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
    logging.getLogger("httpx").setLevel(logging.WARNING)

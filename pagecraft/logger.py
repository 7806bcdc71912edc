"""Centralized logging configuration for the application."""

import logging
import sys

from pagecraft import config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)

# Request lines from the model SDKs duplicate our own LLM logging
for _noisy in ("httpx", "openai", "urllib3"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)


def get_logger(name: str | None = None):
    base_level = logging.DEBUG if config.DEBUG_MODE else logging.INFO
    root_logger = logging.getLogger()
    root_logger.setLevel(base_level)
    if name is None:
        return root_logger
    logger = logging.getLogger(name)
    logger.setLevel(base_level)
    return logger

"""Logging configuration shared by the API and the worker."""

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Client libraries that log every HTTP request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3")


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging.

    The level comes from ``level`` or the LOG_LEVEL environment variable
    (default INFO). HTTP client loggers never go below WARNING unless
    DEBUG is requested.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=level_name, format=LOG_FORMAT)
    logging.getLogger().setLevel(level_name)

    client_level = logging.DEBUG if level_name == "DEBUG" else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(client_level)

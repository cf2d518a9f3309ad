# event_service/utils/logging_config.py
import logging
import sys

from ..config import settings

# Client libraries that log every retry and token refresh at INFO
NOISY_LOGGERS = ("google.api_core", "google.auth", "urllib3")


def setup_logging():
    """Sends all records to stdout, where the container runtime picks them up."""
    level = logging.getLevelName(settings.LOG_LEVEL)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Event Service logging at {logging.getLevelName(level)}"
    )

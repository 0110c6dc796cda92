"""Process-wide logging for the API and the index cache refresh thread."""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"

# third-party loggers that drown out cache and request logs at INFO
_NOISY_LOGGERS = ("urllib3",)


def setup_logging(level: str = "INFO", quiet_requests: bool = False) -> int:
    """
    Configure root logging to stdout and return the numeric level in effect.

    With quiet_requests the werkzeug per-request lines are dropped to WARNING.
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO

    logging.basicConfig(
        level=numeric,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    noisy = _NOISY_LOGGERS + (("werkzeug",) if quiet_requests else ())
    for name in noisy:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))
    return numeric

# app/core/logging.py
import logging
import sys
import colorlog

LOG_FORMAT = "%(log_color)s%(asctime)s %(levelname)-8s [%(name)s]%(reset)s %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

# Driver/client loggers that are noisy at INFO (connection pools, HTTP requests)
QUIET_LOGGERS = ("pymongo", "motor", "httpx", "httpcore", "openai")


def configure_logging(level=logging.INFO):
    """Single coloured stdout handler on the root logger. Safe to call twice."""
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setFormatter(colorlog.ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    for name in ("uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

import logging
import time
from flask import g, request

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_PREFIX = "printshop"


def get_logger(name):
    """Module-level logger with a single stream handler."""
    logger = logging.getLogger(f"{LOGGER_PREFIX}.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
        logger.setLevel(logging.INFO)
    return logger


def set_log_level(level):
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith(LOGGER_PREFIX) and isinstance(logger, logging.Logger):
            logger.setLevel(level)


def init_request_logging(app):
    request_logger = get_logger("requests")
    set_log_level(app.config.get("LOG_LEVEL", "INFO"))

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        started = getattr(g, "request_started", None)
        elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        request_logger.info("%s %s -> %s (%.1f ms)", request.method, request.path, response.status_code, elapsed_ms)
        return response

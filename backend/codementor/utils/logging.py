import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
HANDLER_NAME = "codementor"

# Client libraries that log every request or model load at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "sentence_transformers", "faiss", "uvicorn.access")


def configure_logging(level: str = "INFO") -> None:
    """Send the service's bracket-tagged logs to stdout and quiet chatty dependencies.

    Safe to call more than once (the app factory runs it per app); only the
    level is updated after the first call.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    quiet_level = max(root_logger.level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    if any(h.get_name() == HANDLER_NAME for h in root_logger.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.set_name(HANDLER_NAME)
    root_logger.addHandler(handler)

# app/core/logging.py
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Third-party loggers that are too chatty at INFO for day-to-day use.
NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "aiosqlite",
    "uvicorn.access",
)


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging for the service.

    A stream handler is only installed when the root logger has none, so
    uvicorn's (or pytest's) own handlers are preserved when present.
    Unknown level names fall back to INFO.
    """
    root_level = getattr(logging, (level or "INFO").upper(), None)
    if not isinstance(root_level, int):
        root_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))

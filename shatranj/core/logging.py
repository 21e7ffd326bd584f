"""Logging setup. Modules log through `logging.getLogger(__name__)`; the entrypoint calls `configure_logging` once."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stream handler to the package logger (idempotent)."""
    package_logger = logging.getLogger("shatranj")
    package_logger.setLevel(level.upper())

    if not any(
        getattr(handler, "_shatranj_handler", False)
        for handler in package_logger.handlers
    ):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._shatranj_handler = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)

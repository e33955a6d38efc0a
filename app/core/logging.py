"""
Logging setup
One console handler for the whole process, installed at startup
Reference: https://docs.python.org/3/library/logging.html
"""
import logging
import sys

APP_LOGGER_PREFIX = "app."


class _ThirdPartyNoiseFilter(logging.Filter):
    """
    Keep application records at the configured level,
    let third-party records (uvicorn, sqlalchemy, ...) through only at WARNING+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "app" or record.name.startswith(APP_LOGGER_PREFIX):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(level: str | int = logging.INFO) -> None:
    """
    Configure the root logger with a single filtered console handler.

    Safe to call more than once: a previously installed handler is replaced.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        if getattr(handler, "_todo_api_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(_ThirdPartyNoiseFilter())
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
    )
    handler._todo_api_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)

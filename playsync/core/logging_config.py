import logging
import os
import sys

LOGGER_NAME = "playsync"


def _level_from_env(default: int) -> int:
    name = os.getenv("LOG_LEVEL")
    if not name:
        return default
    return getattr(logging, name.upper(), default)


def configure_logging(level: int = logging.INFO) -> None:
    """
    Configure root logging for the application.

    - Logs go to stdout
    - Simple, readable format with time, level, and logger name
    - LOG_LEVEL in the environment overrides `level`
    """
    level = _level_from_env(level)
    root = logging.getLogger()

    # Already configured (uvicorn, pytest, ...): only adjust the level.
    if root.handlers:
        logging.getLogger(LOGGER_NAME).setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    root.addHandler(handler)
    root.setLevel(level)

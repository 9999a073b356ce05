"""
Logging configuration for axiom.

Library modules only ask for loggers under the `axiom` tree; handlers are
attached once, by the CLI or by an embedding application, through
`setup_logging`.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = 'axiom'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# HTTP client loggers used underneath the Ollama client; they log every request at INFO
NOISY_LOGGERS = ('httpx', 'httpcore')


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True
) -> logging.Logger:
    """
    Configure the `axiom` logger tree.

    Calling it again replaces the previous handlers.

    Args:
        level: Logging level name, case-insensitive
        log_file: Optional log file path; parent directories are created
        console: Log to stderr, keeping streamed answers on stdout clean

    Returns:
        The `axiom` root logger

    Raises:
        ValueError: for an unknown level name
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console:
        _attach(logger, logging.StreamHandler(sys.stderr), numeric_level)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        _attach(logger, logging.FileHandler(log_file), numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Logger under the `axiom` tree; `name` is prefixed unless already inside it."""
    if name == ROOT_LOGGER_NAME or name.startswith(f'{ROOT_LOGGER_NAME}.'):
        return logging.getLogger(name)
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')

"""
RegCM Post Logging Configuration

All modules log below the 'regcm_post' logger. By default it carries only
a NullHandler at WARNING level, so an application sees nothing unless it
configures logging itself or calls setup_logging.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

PACKAGE_LOGGER = 'regcm_post'

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LevelType = Union[int, str]


def _coerce_level(level: LevelType, fallback: int) -> int:
    """Accept 'debug', 'INFO', logging.WARNING, ..."""
    if isinstance(level, str):
        return getattr(logging, level.upper(), fallback)
    return int(level)


def _build_handlers(log_file: Optional[Union[str, Path]]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path))
    return handlers


def setup_logging(
    level: LevelType = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None,
    date_format: Optional[str] = None
) -> logging.Logger:
    """
    Send regcm_post log records to stdout and, optionally, to a file.

    Replaces any handlers previously attached to the package logger and
    stops propagation to the root logger.

    Args:
        level: Logging level name or constant
        log_file: Optional log file; parent directories are created
        format_string: Record format, DEFAULT_FORMAT when omitted
        date_format: Timestamp format, DEFAULT_DATE_FORMAT when omitted

    Returns:
        The package logger

    Examples:
        >>> from regcm_post import setup_logging
        >>> setup_logging('DEBUG', log_file='/path/to/postproc.log')
    """
    level = _coerce_level(level, logging.INFO)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT,
                                  datefmt=date_format or DEFAULT_DATE_FORMAT)

    logger = logging.getLogger(PACKAGE_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.setLevel(level)

    for handler in _build_handlers(log_file):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False
    if log_file:
        logger.info(f"Writing log records to {log_file}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the package logger, e.g. get_logger('pipeline') -> 'regcm_post.pipeline'."""
    return logging.getLogger(f'{PACKAGE_LOGGER}.{name}')


def set_log_level(level: LevelType) -> None:
    """
    Change the level of the package logger and of its handlers.

    Examples:
        >>> from regcm_post import set_log_level
        >>> set_log_level('DEBUG')
    """
    level = _coerce_level(level, logging.WARNING)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


_package_logger = logging.getLogger(PACKAGE_LOGGER)
if not _package_logger.handlers:
    _package_logger.addHandler(logging.NullHandler())
_package_logger.setLevel(logging.WARNING)

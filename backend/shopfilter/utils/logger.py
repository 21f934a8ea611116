"""
日志 - 包级 logger "shopfilter"，各模块通过 get_logger('catalog') 取子 logger
"""
import logging
import sys

from config import Config

LOGGER_NAME = 'shopfilter'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(LOGGER_NAME)


def _configure(root: logging.Logger) -> None:
    # Re-imports must not stack handlers
    if root.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    root.addHandler(handler)
    root.setLevel(Config.LOG_LEVEL)
    root.propagate = False


_configure(logger)


def get_logger(name: str = None) -> logging.Logger:
    return logging.getLogger(f'{LOGGER_NAME}.{name}') if name else logger

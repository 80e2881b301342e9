"""
Logging for the optiondesk service

All ``optiondesk.*`` module loggers propagate to the ``optiondesk`` root,
which owns the handlers; create_app() reconfigures it from LoggingConfig.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union
from logging.handlers import RotatingFileHandler

ROOT_LOGGER_NAME = "optiondesk"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _rotating_file_handler(log_file: str) -> RotatingFileHandler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding='utf-8'
    )


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    log_file: Optional[str] = None,
    level: Union[int, str] = logging.INFO,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    (重新)配置一个 logger：stdout 输出，给了 log_file 时再加滚动文件

    Args:
        level: 级别数值或名称（"DEBUG"、"info" 等）
    """
    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(_rotating_file_handler(log_file))

    formatter = logging.Formatter(format_string or LOG_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    # 根 logger 自己输出，子模块交给根 logger
    logger.propagate = name != ROOT_LOGGER_NAME
    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """模块级 logger；根 logger 尚未配置时先用默认配置"""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        setup_logger(ROOT_LOGGER_NAME)

    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)

    logger = logging.getLogger(name)
    if not logger.handlers:
        logger = setup_logger(name)
    return logger

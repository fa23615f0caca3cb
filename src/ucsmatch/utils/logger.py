"""
日誌工具模組

所有 logger 都掛在 "ucsmatch" 命名空間下，預設不輸出任何內容，
由使用者透過標準 logging 或 verbose 參數決定是否開啟。

使用方式:
    from ucsmatch.utils.logger import get_logger, TimingContext

    logger = get_logger("matcher")
    with TimingContext("TermMatcher.find_match", logger):
        ...
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable, Optional

ROOT_LOGGER_NAME = "ucsmatch"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_handler: Optional[logging.Handler] = None

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str = "") -> logging.Logger:
    """取得 ucsmatch 命名空間下的 logger"""
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logger(level: int = logging.INFO, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """
    設定根 logger 的輸出

    重複呼叫只會調整等級，不會重複掛上 handler。
    """
    global _handler

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(_handler)
    logger.setLevel(level)
    _handler.setLevel(level)
    return logger


def enable_debug_logging() -> None:
    """開啟 DEBUG 等級日誌（含計時資訊）"""
    setup_logger(level=logging.DEBUG)


def enable_timing_logging() -> None:
    """只開啟計時日誌"""
    setup_logger(level=logging.INFO)
    get_logger("timing").setLevel(logging.DEBUG)


class TimingContext:
    """
    計時上下文管理器

    離開區塊時以指定等級輸出耗時，並呼叫 callback(operation, elapsed_seconds)。
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[logging.Logger] = None,
        level: int = logging.DEBUG,
        callback: Optional[Callable[[str, float], None]] = None,
    ):
        self.operation = operation
        self.logger = logger or get_logger("timing")
        self.level = level
        self.callback = callback
        self.elapsed = 0.0
        self._start = 0.0

    def __enter__(self) -> "TimingContext":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.elapsed = time.perf_counter() - self._start
        if self.logger.isEnabledFor(self.level):
            self.logger.log(self.level, "%s took %.3f ms", self.operation, self.elapsed * 1000)
        if self.callback is not None:
            self.callback(self.operation, self.elapsed)


def log_timing(operation: Optional[str] = None, level: int = logging.DEBUG) -> Callable:
    """計時裝飾器版本"""

    def decorator(func: Callable) -> Callable:
        name = operation or func.__qualname__

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with TimingContext(name, level=level):
                return func(*args, **kwargs)

        return wrapper

    return decorator

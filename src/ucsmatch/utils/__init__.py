"""
工具模組

提供日誌、計時、緩存、延遲導入與文字正規化等通用工具。
"""

from .cache import LRUCache
from .lazy_imports import (
    CHINESE_INSTALL_HINT,
    REMOTE_INSTALL_HINT,
    check_chinese_dependencies,
    check_remote_dependencies,
    is_jieba_available,
    is_requests_available,
)
from .logger import (
    TimingContext,
    get_logger,
    log_timing,
)
from .number_extractor import NumberedName, NumberExtractor, NumberPosition

__all__ = [
    # 日誌工具
    "get_logger",
    "log_timing",
    "TimingContext",

    # 緩存
    "LRUCache",

    # 序號
    "NumberExtractor",
    "NumberedName",
    "NumberPosition",

    # 依賴檢查
    "is_jieba_available",
    "is_requests_available",
    "check_chinese_dependencies",
    "check_remote_dependencies",
    "CHINESE_INSTALL_HINT",
    "REMOTE_INSTALL_HINT",
]

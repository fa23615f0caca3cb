"""
ucsmatch - UCS 音效檔名分類引擎 (Universal Category System Filename Classifier)

核心概念：
- 使用者提供 UCS 詞庫（CSV）與特殊規則（JSON）
- 檔名先經過正規化，再以規則、多詞片語、包含、同義詞與正則等方式收集候選
- 分類器依策略登錄表的順序（AI -> 雙語 -> 詞性 -> 翻譯 -> 多詞 -> 關鍵字）
  逐一嘗試，第一個達到門檻的結果勝出

官方入口（穩定 API）：
- `ucsmatch.ClassificationEngine`
- `ucsmatch.TermMatcher`
- `ucsmatch.Classifier`

安裝中文分詞支援:
    pip install "ucsmatch[zh]"

安裝英文詞性標註支援:
    pip install "ucsmatch[en]"
"""

from __future__ import annotations

import importlib
from typing import Any

# =============================================================================
# Engine 層（官方入口）
# =============================================================================
from ucsmatch.engine import ClassificationEngine

# =============================================================================
# 資料、比對與分類
# =============================================================================
from ucsmatch.data import RuleTable, TermTable
from ucsmatch.matching import MatchStrategyRegistry, StrategyConfig, TermMatcher
from ucsmatch.classification import Classifier
from ucsmatch.analysis import LexiconAnalyzer, PartOfSpeechAnalyzer

# =============================================================================
# 設定與資料模型
# =============================================================================
from ucsmatch.config import EngineConfig, MatchSettings, PosWeights, PriorityWeights, TermColumns
from ucsmatch.core import (
    AIResponseError,
    ClassificationResult,
    FormatError,
    MatchEvent,
    PartOfSpeech,
    PatternError,
    TermRecord,
    UcsMatchError,
    WeightedWord,
)

# =============================================================================
# 日誌工具
# =============================================================================
from ucsmatch.utils.logger import enable_debug_logging, enable_timing_logging, get_logger

# =============================================================================
# 依賴檢查工具
# =============================================================================
from ucsmatch.utils.lazy_imports import (
    check_chinese_dependencies,
    check_english_dependencies,
    check_remote_dependencies,
    is_jieba_available,
    is_nltk_available,
    is_requests_available,
)

# 需要選用依賴的類別（或較少用的進階 API）延遲載入
_LAZY_IMPORTS = {
    "JiebaAnalyzer": ("ucsmatch.analysis.jieba_analyzer", "JiebaAnalyzer"),
    "NltkAnalyzer": ("ucsmatch.analysis.nltk_analyzer", "NltkAnalyzer"),
    "RemoteAnalyzer": ("ucsmatch.analysis.remote", "RemoteAnalyzer"),
    "AIClassifier": ("ucsmatch.classification.ai", "AIClassifier"),
    "NumberExtractor": ("ucsmatch.utils.number_extractor", "NumberExtractor"),
}

__all__ = [
    # Engine
    "ClassificationEngine",
    # Data / matching / classification
    "TermTable",
    "RuleTable",
    "TermMatcher",
    "MatchStrategyRegistry",
    "StrategyConfig",
    "Classifier",
    "AIClassifier",
    # Analyzers
    "PartOfSpeechAnalyzer",
    "LexiconAnalyzer",
    "JiebaAnalyzer",
    "NltkAnalyzer",
    "RemoteAnalyzer",
    # Config / models
    "EngineConfig",
    "MatchSettings",
    "PriorityWeights",
    "PosWeights",
    "TermColumns",
    "TermRecord",
    "WeightedWord",
    "PartOfSpeech",
    "ClassificationResult",
    "MatchEvent",
    "NumberExtractor",
    # Errors
    "UcsMatchError",
    "FormatError",
    "PatternError",
    "AIResponseError",
    # Logging
    "get_logger",
    "enable_debug_logging",
    "enable_timing_logging",
    # Dependency checks
    "is_jieba_available",
    "is_nltk_available",
    "is_requests_available",
    "check_chinese_dependencies",
    "check_english_dependencies",
    "check_remote_dependencies",
]

__version__ = "0.1.0"


def __getattr__(name: str) -> Any:
    if name not in _LAZY_IMPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_path, attr_name = _LAZY_IMPORTS[name]
    module = importlib.import_module(module_path)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list:
    return sorted(set(list(globals().keys()) + list(_LAZY_IMPORTS.keys())))

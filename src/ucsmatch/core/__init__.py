"""
核心模組

資料模型、錯誤分類、事件模型與最小介面。
"""

from .errors import AIResponseError, FormatError, PatternError, UcsMatchError
from .events import MatchEvent, MatchEventHandler
from .models import (
    ClassificationResult,
    MatchCandidate,
    MultiMatchStrategy,
    MultiWordStrategy,
    PartOfSpeech,
    RuleMatchType,
    RuleRecord,
    TermRecord,
    WeightedWord,
)

__all__ = [
    "UcsMatchError",
    "FormatError",
    "PatternError",
    "AIResponseError",
    "MatchEvent",
    "MatchEventHandler",
    "TermRecord",
    "RuleRecord",
    "WeightedWord",
    "MatchCandidate",
    "ClassificationResult",
    "PartOfSpeech",
    "RuleMatchType",
    "MultiMatchStrategy",
    "MultiWordStrategy",
]

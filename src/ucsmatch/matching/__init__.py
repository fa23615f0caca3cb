"""
比對模組

- TermMatcher: 詞條比對（規則、多詞片語、包含、同義詞、正則）
- MultiWordMatcher: 多詞片語的六種子策略
- MatchStrategyRegistry: 分類策略的啟用狀態、優先順序與參數
"""

from .multi_word import MultiWordMatcher, MultiWordResult
from .strategy_registry import STORAGE_KEY, MatchStrategyRegistry, StrategyConfig, default_strategies
from .term_matcher import TermMatcher, best_per_term

__all__ = [
    "TermMatcher",
    "MultiWordMatcher",
    "MultiWordResult",
    "MatchStrategyRegistry",
    "StrategyConfig",
    "STORAGE_KEY",
    "default_strategies",
    "best_per_term",
]

"""
分析器選擇

啟動時依序嘗試候選分析器，第一個 initialize() 成功者勝出；
結果只決定一次，不會在每次分析時重新偵測。
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence, Union

from ucsmatch.config import PosWeights
from ucsmatch.core.events import MatchEventHandler
from ucsmatch.utils.logger import get_logger

from .base import PartOfSpeechAnalyzer
from .jieba_analyzer import JiebaAnalyzer
from .lexicon import LexiconAnalyzer
from .nltk_analyzer import NltkAnalyzer

AnalyzerCandidate = Union[PartOfSpeechAnalyzer, type, Callable[[], PartOfSpeechAnalyzer]]

_logger = get_logger("analysis.selection")


def resolve_analyzer(
    candidates: Sequence[AnalyzerCandidate],
    weights: Optional[PosWeights] = None,
    on_event: Optional[MatchEventHandler] = None,
) -> PartOfSpeechAnalyzer:
    """
    回傳第一個可用的分析器

    Args:
        candidates: 分析器實例、分析器類別（以 weights/on_event 建構）或無參數工廠函數
        weights: 傳給類別候選的詞性權重
        on_event: 傳給類別候選的事件回呼

    Returns:
        已初始化的分析器；全部失敗時為 LexiconAnalyzer
    """
    for candidate in candidates:
        try:
            if isinstance(candidate, PartOfSpeechAnalyzer):
                analyzer = candidate
            elif isinstance(candidate, type):
                analyzer = candidate(weights=weights, on_event=on_event)
            else:
                analyzer = candidate()
            analyzer.initialize()
        except Exception as exc:
            _logger.info("分析器 %r 無法使用，改試下一個: %s", candidate, exc)
            continue
        _logger.debug("使用詞性分析器: %s", analyzer.name)
        return analyzer

    _logger.info("沒有可用的候選分析器，使用 LexiconAnalyzer")
    return LexiconAnalyzer(weights=weights, on_event=on_event)


def default_analyzer(
    weights: Optional[PosWeights] = None,
    on_event: Optional[MatchEventHandler] = None,
) -> PartOfSpeechAnalyzer:
    """
    預設分析器

    英文片段：nltk（含標註模型）可用時用 NltkAnalyzer，否則用詞典分析器；
    jieba 可用時以 JiebaAnalyzer 處理中文並把英文片段交給上述分析器，否則直接回傳該分析器。
    """
    latin = resolve_analyzer([NltkAnalyzer, LexiconAnalyzer], weights=weights, on_event=on_event)
    return resolve_analyzer(
        [lambda: JiebaAnalyzer(weights=weights, on_event=on_event, latin=latin), latin],
        weights=weights,
        on_event=on_event,
    )

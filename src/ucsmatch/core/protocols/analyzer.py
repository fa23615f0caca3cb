"""
Analyzer Protocol

定義詞性分析器的最小介面（text -> weighted words）。
"""

from typing import List, Protocol, runtime_checkable

from ucsmatch.core.models import WeightedWord


@runtime_checkable
class AnalyzerProtocol(Protocol):
    def analyze(self, text: str) -> List[WeightedWord]:
        """分析文字並回傳依權重排序、去重後的詞"""
        ...

"""
詞性分析器抽象基類

定義所有詞性分析器（詞典、分詞器、遠端服務）共用的模板流程：

    text -> tag() -> 正規化 -> 去重（保留第一次出現）-> 依權重排序

analyze() 是盡力而為的加值步驟：任何例外都會被記錄並轉成空序列，
下游策略自然達不到門檻而往下一步退。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ucsmatch.config import PosWeights
from ucsmatch.core.events import MatchEventHandler, emit_event
from ucsmatch.core.models import PartOfSpeech, WeightedWord
from ucsmatch.utils.logger import get_logger


class PartOfSpeechAnalyzer(ABC):
    """
    詞性分析器抽象基類 (Abstract Base Class)

    子類只需要實作 tag()，回傳 (詞, 詞性) 列表；
    權重、去重、排序與錯誤降級都由 analyze() 統一處理。

    可用性:
        initialize() 在選擇分析器時呼叫一次；拋出例外代表此分析器不可用。
    """

    name: str = "base"

    def __init__(
        self,
        weights: Optional[PosWeights] = None,
        on_event: Optional[MatchEventHandler] = None,
    ):
        self.weights = weights or PosWeights()
        self._on_event = on_event
        self._initialized = False
        self._logger = get_logger(f"analysis.{self.name}")

    def initialize(self) -> None:
        """檢查依賴並完成初始化；不可用時拋出例外"""
        self._initialized = True

    def is_initialized(self) -> bool:
        return self._initialized

    @abstractmethod
    def tag(self, text: str) -> List[Tuple[str, PartOfSpeech]]:
        """
        切詞並標註詞性

        Args:
            text: 原始文字（中英皆可）

        Returns:
            (詞, 詞性) 列表，可含重複與空白，由 analyze() 清理
        """
        pass

    def analyze(self, text: str) -> List[WeightedWord]:
        """
        分析文字並回傳去重、依權重排序的詞

        不會拋出例外；失敗時回傳空列表並送出 degraded 事件。
        """
        if not text or not isinstance(text, str) or not text.strip():
            return []

        try:
            tagged = self.tag(text)
        except Exception as exc:
            self._logger.warning("%s 詞性分析失敗，回傳空結果: %s", self.name, exc)
            emit_event(
                self._on_event,
                {
                    "type": "degraded",
                    "component": f"analyzer.{self.name}",
                    "stage": "analyze",
                    "text": text,
                    "degrade_reason": "analysis_error",
                    "exception_type": type(exc).__name__,
                    "exception_message": str(exc),
                },
                self._logger,
            )
            return []

        return self._weigh(tagged)

    def _weigh(self, tagged: List[Tuple[str, PartOfSpeech]]) -> List[WeightedWord]:
        seen = set()
        words: List[WeightedWord] = []
        for raw, pos in tagged:
            word = (raw or "").strip().lower()
            if not word or word in seen:
                continue
            seen.add(word)
            words.append(WeightedWord(word, pos, self.weights.weight_for(pos)))

        # sorted() 為穩定排序，同權重保持出現順序
        return sorted(words, key=lambda w: w.weight, reverse=True)

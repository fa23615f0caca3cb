"""
分詞器式詞性分析器（jieba.posseg）

中文片段交給 jieba 切詞並標註 ICTCLAS 詞性，英文片段交給 latin 分析器（預設為詞典分析）。
需要安裝 `ucsmatch[zh]`。
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from ucsmatch.config import PosWeights
from ucsmatch.core.events import MatchEventHandler
from ucsmatch.core.models import PartOfSpeech
from ucsmatch.utils.lazy_imports import get_jieba_posseg

from .base import PartOfSpeechAnalyzer
from .lexicon import LexiconAnalyzer
from .script_router import ScriptRouter
from .tags import STOPWORDS_ZH, map_tag


class JiebaAnalyzer(PartOfSpeechAnalyzer):
    name = "jieba"

    def __init__(
        self,
        weights: Optional[PosWeights] = None,
        on_event: Optional[MatchEventHandler] = None,
        latin: Optional[PartOfSpeechAnalyzer] = None,
    ):
        super().__init__(weights=weights, on_event=on_event)
        self._posseg: Any = None
        self._router = ScriptRouter()
        self._latin = latin or LexiconAnalyzer(weights=self.weights)

    def initialize(self) -> None:
        if self._posseg is None:
            self._posseg = get_jieba_posseg()
        self._initialized = True

    def tag(self, text: str) -> List[Tuple[str, PartOfSpeech]]:
        if self._posseg is None:
            self.initialize()

        tagged: List[Tuple[str, PartOfSpeech]] = []
        for script, segment in self._router.split_by_script(text):
            if script != "zh":
                tagged.extend(self._latin.tag(segment))
                continue
            for word, flag in self._posseg.lcut(segment):
                word = word.strip()
                if not word or word in STOPWORDS_ZH or flag in ("x", "m", "w", "uj", "ul"):
                    continue
                tagged.append((word, map_tag(flag)))
        return tagged

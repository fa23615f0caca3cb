"""
NLTK 詞性分析器（英文）

英文片段以 nltk.pos_tag 標註 Penn Treebank 詞性，再經 map_tag 轉成 PartOfSpeech；
中文片段沿用詞典分析器的規則。需要安裝 `ucsmatch[en]` 並下載標註模型。

音效檔名多半沒有完整句法，標註器給不出詞性（OTHER）的詞改用詞典判斷，
擬聲動作詞一律視為動詞。
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from ucsmatch.config import PosWeights
from ucsmatch.core.events import MatchEventHandler
from ucsmatch.core.models import PartOfSpeech
from ucsmatch.utils.lazy_imports import get_nltk

from .base import PartOfSpeechAnalyzer
from .lexicon import LexiconAnalyzer, latin_words
from .script_router import ScriptRouter
from .tags import SPECIAL_SOUND_VERBS, map_tag


class NltkAnalyzer(PartOfSpeechAnalyzer):
    name = "nltk"

    def __init__(
        self,
        weights: Optional[PosWeights] = None,
        on_event: Optional[MatchEventHandler] = None,
    ):
        super().__init__(weights=weights, on_event=on_event)
        self._nltk: Any = None
        self._router = ScriptRouter()
        self._lexicon = LexiconAnalyzer(weights=self.weights)

    def initialize(self) -> None:
        if self._nltk is None:
            nltk = get_nltk()
            # 標註模型沒下載時這裡會拋 LookupError，讓選擇鏈改用下一個分析器
            nltk.pos_tag(["sound"])
            self._nltk = nltk
        self._initialized = True

    def tag(self, text: str) -> List[Tuple[str, PartOfSpeech]]:
        if self._nltk is None:
            self.initialize()

        tagged: List[Tuple[str, PartOfSpeech]] = []
        for script, segment in self._router.split_by_script(text):
            if script == "zh":
                tagged.extend(self._lexicon.tag_cjk(segment))
            else:
                tagged.extend(self.tag_latin(segment))
        return tagged

    def tag_latin(self, segment: str) -> List[Tuple[str, PartOfSpeech]]:
        words = latin_words(segment)
        if not words:
            return []
        if self._nltk is None:
            self.initialize()

        out: List[Tuple[str, PartOfSpeech]] = []
        for word, penn in self._nltk.pos_tag(words):
            if word in SPECIAL_SOUND_VERBS:
                out.append((word, PartOfSpeech.VERB))
                continue
            pos = map_tag(penn)
            if pos is PartOfSpeech.OTHER:
                out.append(self._lexicon.tag_word(word))
            else:
                out.append((word, pos))
        return out

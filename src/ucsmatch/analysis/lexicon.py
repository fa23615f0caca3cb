"""
詞典式詞性分析器

不需要任何外部依賴，永遠可用，是分析器選擇鏈的最後一道保底。

- 英文：音效領域詞典 + 字尾規則（-ly 副詞、-ing/-ed 動詞、-ful/-ous/-ble/-al 形容詞）
- 中文：沒有分詞器時整段漢字視為一個詞，預設為名詞，
  以「地/得」「了/过/着」「的」結尾者分別視為副詞、動詞、形容詞
"""

from __future__ import annotations

import re
from typing import Dict, List, Mapping, Optional, Tuple, Union

from ucsmatch.config import PosWeights
from ucsmatch.core.events import MatchEventHandler
from ucsmatch.core.models import PartOfSpeech

from .base import PartOfSpeechAnalyzer
from .script_router import ScriptRouter
from .tags import SOUND_LEXICON, SPECIAL_SOUND_VERBS, STOPWORDS_EN, STOPWORDS_ZH, map_tag

_LATIN_TOKEN_RE = re.compile(r"[^\W_]+(?:'[^\W_]+)*")
_CJK_RUN_RE = re.compile(r"[\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff\u3040-\u30ff]+")

_ZH_SUFFIX_POS = (
    (("地", "得"), PartOfSpeech.ADVERB),
    (("了", "过", "着", "過", "著"), PartOfSpeech.VERB),
    (("的",), PartOfSpeech.ADJECTIVE),
)

_ADJECTIVE_SUFFIXES = ("ful", "ous", "ble", "al")


def latin_words(segment: str) -> List[str]:
    """
    英文片段切詞：小寫，以空白、底線、連字號與標點分隔（保留 don't 這類縮寫），
    去掉純數字與停用詞
    """
    return [
        token
        for token in _LATIN_TOKEN_RE.findall(segment.lower())
        if not token.isdigit() and token not in STOPWORDS_EN
    ]


class LexiconAnalyzer(PartOfSpeechAnalyzer):
    """詞典 + 字尾規則的詞性分析器"""

    name = "lexicon"

    def __init__(
        self,
        weights: Optional[PosWeights] = None,
        on_event: Optional[MatchEventHandler] = None,
        extra_lexicon: Optional[Mapping[str, Union[PartOfSpeech, str]]] = None,
    ):
        super().__init__(weights=weights, on_event=on_event)
        self._lexicon: Dict[str, PartOfSpeech] = dict(SOUND_LEXICON)
        for word, pos in (extra_lexicon or {}).items():
            self._lexicon[word.lower()] = pos if isinstance(pos, PartOfSpeech) else map_tag(pos)
        self._router = ScriptRouter()
        self._initialized = True

    def tag(self, text: str) -> List[Tuple[str, PartOfSpeech]]:
        tagged: List[Tuple[str, PartOfSpeech]] = []
        for script, segment in self._router.split_by_script(text):
            if script == "zh":
                tagged.extend(self.tag_cjk(segment))
            else:
                tagged.extend(self.tag_latin(segment))
        return tagged

    def tag_cjk(self, segment: str) -> List[Tuple[str, PartOfSpeech]]:
        out: List[Tuple[str, PartOfSpeech]] = []
        for run in _CJK_RUN_RE.findall(segment):
            if run in STOPWORDS_ZH:
                continue
            out.append(self._tag_cjk_run(run))
        return out

    @staticmethod
    def _tag_cjk_run(run: str) -> Tuple[str, PartOfSpeech]:
        if len(run) > 1:
            for suffixes, pos in _ZH_SUFFIX_POS:
                if run.endswith(suffixes):
                    return run[:-1], pos
        return run, PartOfSpeech.NOUN

    def tag_latin(self, segment: str) -> List[Tuple[str, PartOfSpeech]]:
        return [self.tag_word(token) for token in latin_words(segment)]

    def tag_word(self, word: str) -> Tuple[str, PartOfSpeech]:
        """單一英文詞（已小寫）"""
        if word in SPECIAL_SOUND_VERBS:
            return word, PartOfSpeech.VERB

        pos = self._lexicon.get(word)
        if pos is not None:
            return word, pos

        if len(word) > 5 and word.endswith("ing"):
            stem = word[:-3]
            for candidate in (stem, stem + "e", stem[:-1] if stem[-1:] == stem[-2:-1] else None):
                if candidate and candidate in self._lexicon:
                    return candidate, PartOfSpeech.VERB
            return word, PartOfSpeech.VERB

        if len(word) > 3 and word.endswith("s") and word[:-1] in self._lexicon:
            return word, self._lexicon[word[:-1]]

        if len(word) > 4 and word.endswith("ly"):
            return word, PartOfSpeech.ADVERB
        if len(word) > 4 and word.endswith("ed"):
            return word, PartOfSpeech.VERB
        if len(word) > 4 and word.endswith(_ADJECTIVE_SUFFIXES):
            return word, PartOfSpeech.ADJECTIVE
        if len(word) > 4 and word.endswith("y") and word[:-1] in self._lexicon:
            return word, PartOfSpeech.ADJECTIVE

        return word, PartOfSpeech.OTHER

"""
多詞片語比對

判斷多詞詞條（例如 "door slam"）的各個詞是否出現在輸入中。
子策略：

- exact: 整個片語連續出現
- partial: 每個詞都出現（可要求保持順序）
- fuzzy: 先 exact、partial，再以字首比對，至少一半的詞命中
- edit_distance: 以 Levenshtein 距離比對輸入中的詞，至少一半的詞命中
- context: 輸入含「sound / sfx ...」等上下文關鍵字，且詞條的詞出現在關鍵字附近
- semantic: exact -> partial -> fuzzy -> edit_distance -> context 依序嘗試（預設）
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, Sequence, Tuple

import Levenshtein

from ucsmatch.config import MatchSettings
from ucsmatch.core.models import MultiWordStrategy
from ucsmatch.utils.cache import LRUCache


@dataclass(frozen=True)
class MultiWordResult:
    matched: bool
    score: float = 0.0
    stage: str = "none"


NO_MATCH = MultiWordResult(False)


class MultiWordMatcher:
    """
    多詞片語比對器

    輸入文字與詞條片語都應已正規化（小寫、空白分隔）。
    結果以 (文字, 詞組, 子策略) 為 key 存入有界 LRU 緩存。
    """

    def __init__(self, settings: MatchSettings):
        self.settings = settings
        self._cache: LRUCache[MultiWordResult] = LRUCache(settings.cache_size)
        self._dispatch: Dict[MultiWordStrategy, Callable[[str, Sequence[str]], MultiWordResult]] = {
            MultiWordStrategy.EXACT: self.exact,
            MultiWordStrategy.PARTIAL: self.partial,
            MultiWordStrategy.FUZZY: self.fuzzy,
            MultiWordStrategy.EDIT_DISTANCE: self.edit_distance,
            MultiWordStrategy.CONTEXT: self.context,
            MultiWordStrategy.SEMANTIC: self.semantic,
        }

    @property
    def cache(self) -> LRUCache:
        return self._cache

    def match(self, text: str, words: Sequence[str]) -> MultiWordResult:
        if not text or not words:
            return NO_MATCH

        strategy = self.settings.multi_word_match_strategy
        key: Tuple[str, Tuple[str, ...], str] = (text, tuple(words), strategy.value)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        result = self._dispatch[strategy](text, words)
        self._cache.put(key, result)
        return result

    def exact(self, text: str, words: Sequence[str]) -> MultiWordResult:
        if " ".join(words) in text:
            return MultiWordResult(True, self.settings.priority_weights.multi_word_match, "exact")
        return NO_MATCH

    def partial(self, text: str, words: Sequence[str]) -> MultiWordResult:
        result = self.exact(text, words)
        if result.matched:
            return result

        respect_order = self.settings.respect_word_order
        per_word = self.settings.priority_weights.partial_match / len(words)
        start = 0
        score = 0.0
        for word in words:
            index = text.find(word, start if respect_order else 0)
            if index == -1:
                return NO_MATCH
            if respect_order:
                start = index + len(word)
            score += per_word
        return MultiWordResult(True, score, "partial")

    def fuzzy(self, text: str, words: Sequence[str]) -> MultiWordResult:
        result = self.partial(text, words)
        if result.matched:
            return result

        prefix_length = self.settings.fuzzy.prefix_length
        per_word = self.settings.priority_weights.partial_match / (2 * len(words))
        hits = 0
        for word in words:
            if len(word) >= prefix_length and word[:prefix_length] in text:
                hits += 1

        if hits >= math.ceil(len(words) / 2):
            return MultiWordResult(True, hits * per_word, "fuzzy")
        return NO_MATCH

    def edit_distance(self, text: str, words: Sequence[str]) -> MultiWordResult:
        fuzzy = self.settings.fuzzy
        weight = self.settings.priority_weights.edit_distance_match
        min_similarity = 1.0 - fuzzy.fuzzy_threshold
        text_words = [w for w in text.split() if len(w) >= fuzzy.min_match_length]

        hits = 0
        score = 0.0
        for word in words:
            if len(word) < fuzzy.min_match_length or not text_words:
                continue
            best_word = min(text_words, key=lambda w: Levenshtein.distance(word, w))
            distance = Levenshtein.distance(word, best_word)
            if distance > fuzzy.max_edit_distance:
                continue
            similarity = 1.0 - distance / max(len(word), len(best_word))
            if similarity < min_similarity:
                continue
            hits += 1
            score += similarity * weight / len(words)

        if hits and hits >= math.ceil(len(words) / 2):
            return MultiWordResult(True, score, "edit_distance")
        return NO_MATCH

    def context(self, text: str, words: Sequence[str]) -> MultiWordResult:
        """
        上下文比對

        分數 = (出現的關鍵字權重和 + 鄰近加分) * context_match / 100，
        鄰近加分 = Σ (1 - 距離 / (max_distance + 1)) * 關鍵字權重。
        詞條的詞至少要有一個出現在輸入中。
        """
        keyword_weights = self.settings.context.keyword_weights
        max_distance = self.settings.context.max_distance

        context_score = sum(w for k, w in keyword_weights.items() if k in text)
        if context_score == 0:
            return NO_MATCH

        text_words = text.split()
        proximity = 0.0
        found_any = False
        for word in words:
            for i, text_word in enumerate(text_words):
                if word not in text_word:
                    continue
                found_any = True
                lo = max(0, i - max_distance)
                hi = min(len(text_words) - 1, i + max_distance)
                for j in range(lo, hi + 1):
                    if j == i:
                        continue
                    for keyword, weight in keyword_weights.items():
                        if keyword in text_words[j]:
                            proximity += (1 - abs(i - j) / (max_distance + 1)) * weight

        if not found_any:
            return NO_MATCH

        total = (context_score + proximity) * self.settings.priority_weights.context_match / 100
        if total <= 0:
            return NO_MATCH
        return MultiWordResult(True, total, "context")

    def semantic(self, text: str, words: Sequence[str]) -> MultiWordResult:
        result = self.fuzzy(text, words)
        if result.matched:
            return result
        result = self.edit_distance(text, words)
        if result.matched:
            return result
        return self.context(text, words)

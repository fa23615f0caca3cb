"""
加權欄位模糊搜尋

對每個詞條的子分類名稱、在地化名稱、主分類與同義詞分別計算 Levenshtein 相似度，
依欄位權重換算後取最高者。與 TermMatcher 的子字串比對不同，拼錯或多出字元的輸入
（"door slm"、"casette"）也能找到詞條。

    scorer = FuseScorer(terms, FuseSettings())
    scorer.search("door slm")   # [(door slam 詞條, 0.94...)]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import Levenshtein

from ucsmatch.config import FuseSettings
from ucsmatch.core.models import TermRecord
from ucsmatch.utils.text import normalize_text


def field_similarity(query: str, value: str, min_length: int = 2, partial_penalty: float = 0.9) -> float:
    """
    兩段（已正規化）文字的相似度，0~1

    整段以 Levenshtein.ratio 比較；較短者長度足夠時，另以較短者對較長者每個
    等長片段比較，乘上 partial_penalty，兩者取高。
    """
    if not query or not value:
        return 0.0
    if query == value:
        return 1.0

    best = Levenshtein.ratio(query, value)
    short, long_ = (query, value) if len(query) <= len(value) else (value, query)
    if len(short) >= min_length and len(short) < len(long_):
        width = len(short)
        window = max(Levenshtein.ratio(short, long_[i:i + width]) for i in range(len(long_) - width + 1))
        best = max(best, window * partial_penalty)
    return best


@dataclass(frozen=True)
class _FuseEntry:
    term: TermRecord
    fields: Tuple[Tuple[str, Tuple[str, ...]], ...]


class FuseScorer:
    """
    詞條模糊搜尋

    欄位在建立時正規化一次；詞庫或設定改變時由呼叫端重新建立。
    """

    def __init__(self, terms: Sequence[TermRecord], settings: FuseSettings, simplify: bool = True):
        self._settings = settings
        weights = settings.field_weights()
        top = max(weights.values())
        self._factors: Dict[str, float] = {name: (w / top if top > 0 else 0.0) for name, w in weights.items()}
        self._simplify = simplify
        self._entries: List[_FuseEntry] = []
        for term in terms:
            fields = (
                ("source", self._normalize_all([term.source])),
                ("target", self._normalize_all([term.target])),
                ("category", self._normalize_all([term.category_name])),
                ("synonyms", self._normalize_all(term.synonyms)),
                ("synonyms_localized", self._normalize_all(term.synonyms_localized)),
            )
            self._entries.append(_FuseEntry(term, fields))

    def _normalize_all(self, values: Sequence[str]) -> Tuple[str, ...]:
        out = (normalize_text(v, self._simplify) for v in values)
        return tuple(dict.fromkeys(v for v in out if v))

    def __len__(self) -> int:
        return len(self._entries)

    def score(self, query: str, entry: _FuseEntry) -> float:
        settings = self._settings
        best = 0.0
        for name, values in entry.fields:
            factor = self._factors[name]
            if factor <= 0:
                continue
            for value in values:
                sim = field_similarity(query, value, settings.min_match_length, settings.partial_penalty) * factor
                if sim > best:
                    best = sim
        return best

    def search(self, text: str) -> List[Tuple[TermRecord, float]]:
        """
        Returns:
            (詞條, 相似度) 依相似度由高到低排序，只包含達到門檻者；同分保持詞庫順序
        """
        query = normalize_text(text, self._simplify)
        if not query:
            return []
        threshold = self._settings.threshold
        hits = []
        for entry in self._entries:
            similarity = self.score(query, entry)
            if similarity > 0 and similarity >= threshold:
                hits.append((entry.term, similarity))
        return sorted(hits, key=lambda hit: hit[1], reverse=True)

"""
詞條片語索引

以 pyahocorasick 一次掃描輸入，找出所有出現在輸入中的詞條片語、同義詞與在地化名稱，
TermMatcher 再依「長者優先」順序產生候選，不必對每個詞條做一次 `in` 測試。
"""

from __future__ import annotations

from typing import Dict, Generic, Iterable, List, Set, Tuple, TypeVar

import ahocorasick

T = TypeVar("T")


class PhraseIndex(Generic[T]):
    """
    片語 → 值 的多模式索引

    同一片語可對應多個值（例如兩個詞條共用同一個同義詞），查詢時全部回傳。
    空片語會被忽略；沒有任何片語時不建立自動機。
    """

    def __init__(self, pairs: Iterable[Tuple[str, T]] = ()):
        grouped: Dict[str, List[T]] = {}
        for phrase, value in pairs:
            if phrase:
                grouped.setdefault(phrase, []).append(value)

        self._size = sum(len(values) for values in grouped.values())
        self._automaton = None
        if grouped:
            automaton = ahocorasick.Automaton()
            # add_word 對同一片語會覆蓋舊值，所以整組一起存
            for phrase, values in grouped.items():
                automaton.add_word(phrase, tuple(values))
            automaton.make_automaton()
            self._automaton = automaton

    def __len__(self) -> int:
        return self._size

    def find_values(self, text: str) -> Set[T]:
        """回傳所有出現在 text 中（子字串）的片語所對應的值"""
        found: Set[T] = set()
        if self._automaton is None or not text:
            return found
        for _end, values in self._automaton.iter(text):
            found.update(values)
        return found

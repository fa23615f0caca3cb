"""
資料模型

詞條、規則、詞性分析結果、比對候選與分類結果。
詞條與規則載入後不可變；WeightedWord / MatchCandidate 為單次呼叫的暫存結果。
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Pattern, Sequence, Tuple

from ucsmatch.utils.text import derive_category_short


class PartOfSpeech(Enum):
    """詞性"""

    NOUN = "noun"
    VERB = "verb"
    ADJECTIVE = "adjective"
    ADVERB = "adverb"
    OTHER = "other"


class RuleMatchType(Enum):
    """規則比對方式"""

    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    EQUALS = "equals"
    REGEX = "regex"


class MultiMatchStrategy(Enum):
    """多個候選同時命中時的取捨方式"""

    HIGHEST_PRIORITY = "highestPriority"
    FIRST_MATCH = "firstMatch"
    ALL_MATCHES = "allMatches"


class MultiWordStrategy(Enum):
    """多詞片語比對方式"""

    EXACT = "exact"
    PARTIAL = "partial"
    FUZZY = "fuzzy"
    EDIT_DISTANCE = "edit_distance"
    CONTEXT = "context"
    SEMANTIC = "semantic"


def _as_tuple(values: Optional[Sequence[str]]) -> Tuple[str, ...]:
    if not values:
        return ()
    return tuple(v.strip() for v in values if v and v.strip())


@dataclass(frozen=True)
class TermRecord:
    """
    詞條（UCS 子分類的一列）

    屬性:
        source: 主要片語（例如英文子分類名稱）
        target: 對應片語（例如中文子分類名稱）
        category_id: CatID，可在多筆詞條間重複
        category_name / category_name_localized: 主分類名稱
        category_short: CatShort，未提供時由 CatID 推導
        synonyms / synonyms_localized: 同義詞
    """

    source: str
    target: str
    category_id: str
    category_name: str = ""
    category_name_localized: str = ""
    category_short: str = ""
    synonyms: Tuple[str, ...] = ()
    synonyms_localized: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("TermRecord.source must be non-empty")
        if not self.target or not self.target.strip():
            raise ValueError("TermRecord.target must be non-empty")
        object.__setattr__(self, "source", self.source.strip())
        object.__setattr__(self, "target", self.target.strip())
        object.__setattr__(self, "category_id", (self.category_id or "").strip())
        object.__setattr__(self, "synonyms", _as_tuple(self.synonyms))
        object.__setattr__(self, "synonyms_localized", _as_tuple(self.synonyms_localized))
        if not self.category_short:
            object.__setattr__(self, "category_short", derive_category_short(self.category_id))

    @property
    def is_multi_word(self) -> bool:
        return len(self.source.split()) > 1


@dataclass(frozen=True)
class RuleRecord:
    """
    特殊規則

    priority 越高越先評估；results 為預先解析好的詞條。
    """

    id: str
    pattern: str
    match_type: RuleMatchType
    priority: int
    results: Tuple[TermRecord, ...]
    compiled: Optional[Pattern[str]] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if not self.results:
            raise ValueError(f"RuleRecord {self.id!r} has no result")
        if self.match_type is RuleMatchType.REGEX and self.compiled is None:
            object.__setattr__(self, "compiled", re.compile(self.pattern, re.IGNORECASE))

    def matches(self, text: str) -> bool:
        """text 應已小寫"""
        if self.match_type is RuleMatchType.CONTAINS:
            return self.pattern in text
        if self.match_type is RuleMatchType.STARTS_WITH:
            return text.startswith(self.pattern)
        if self.match_type is RuleMatchType.EQUALS:
            return text == self.pattern
        return self.compiled is not None and self.compiled.search(text) is not None


@dataclass(frozen=True)
class WeightedWord:
    word: str
    part_of_speech: PartOfSpeech
    weight: float


@dataclass
class MatchCandidate:
    """
    單次比對產生的候選

    score 只在同一次排序內可比較，沒有固定上限。
    """

    term: TermRecord
    score: float
    match_type: str

    def __post_init__(self):
        if self.score < 0:
            raise ValueError(f"Score must be >= 0, got {self.score}")


@dataclass(frozen=True)
class ClassificationResult:
    """
    分類結果

    strategy 與 score 為診斷資訊，不參與相等比較。
    """

    category_id: str
    category_short: str
    category: str
    category_localized: str
    sub_category: str
    sub_category_localized: str
    strategy: str = field(default="", compare=False)
    score: float = field(default=0.0, compare=False)

    @classmethod
    def from_term(cls, term: TermRecord, strategy: str = "", score: float = 0.0) -> "ClassificationResult":
        return cls(
            category_id=term.category_id,
            category_short=term.category_short,
            category=term.category_name,
            category_localized=term.category_name_localized,
            sub_category=term.source,
            sub_category_localized=term.target,
            strategy=strategy,
            score=score,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], strategy: str = "") -> "ClassificationResult":
        """由 AI 格式的 dict（catID / catShort / category / category_zh / subCategory / subCategory_zh）建立"""
        cat_id = str(data.get("catID") or "")
        return cls(
            category_id=cat_id,
            category_short=str(data.get("catShort") or derive_category_short(cat_id)),
            category=str(data.get("category") or ""),
            category_localized=str(data.get("category_zh") or ""),
            sub_category=str(data.get("subCategory") or ""),
            sub_category_localized=str(data.get("subCategory_zh") or ""),
            strategy=strategy,
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "catID": self.category_id,
            "catShort": self.category_short,
            "category": self.category,
            "category_zh": self.category_localized,
            "subCategory": self.sub_category,
            "subCategory_zh": self.sub_category_localized,
        }

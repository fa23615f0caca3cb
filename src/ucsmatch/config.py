"""
全域配置模組

比對相關的權重、模糊比對參數、上下文關鍵字與詞性權重都是 dataclass，
皆可透過 to_dict() / from_dict() 與純 dict（JSON）互轉。

這些分數常數是經驗值，只有相對大小有意義。

使用方式:
    from ucsmatch import ClassificationEngine

    # 簡單開啟 verbose 模式
    engine = ClassificationEngine(terms_text, verbose=True)

    # 進階: 使用標準 logging 控制
    import logging
    logging.getLogger("ucsmatch").setLevel(logging.DEBUG)
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .core.models import MultiMatchStrategy, MultiWordStrategy, PartOfSpeech
from .utils.logger import setup_logger


def configure_logging(verbose: bool = False) -> None:
    """
    根據 verbose 設定配置 logging

    Args:
        verbose: 是否開啟詳細日誌
    """
    if verbose:
        setup_logger(level=logging.DEBUG)


def _known_kwargs(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class PriorityWeights:
    """各比對方式的基礎分數"""

    exact_match: float = 100
    multi_word_match: float = 80
    contains_match: float = 60
    synonym_match: float = 40
    regex_match: float = 30
    partial_match: float = 20
    semantic_match: float = 70
    context_match: float = 65
    edit_distance_match: float = 25
    fuse_match: float = 50
    rule_bonus: float = 10

    @property
    def rule_match(self) -> float:
        return self.exact_match + self.rule_bonus

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PriorityWeights":
        return cls(**_known_kwargs(cls, data))


@dataclass
class FuzzySettings:
    """
    模糊比對參數

    屬性:
        max_edit_distance: 單字可接受的最大編輯距離
        min_match_length: 參與編輯距離比對的最短字長
        fuzzy_threshold: 相似度門檻（0~1，越大越寬鬆）
        prefix_length: 前綴模糊比對所取的字首長度
    """

    max_edit_distance: int = 2
    min_match_length: int = 3
    fuzzy_threshold: float = 0.7
    prefix_length: int = 3

    def __post_init__(self):
        if not 0.0 <= self.fuzzy_threshold <= 1.0:
            raise ValueError(f"fuzzy_threshold must be between 0.0 and 1.0, got {self.fuzzy_threshold}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FuzzySettings":
        return cls(**_known_kwargs(cls, data))


@dataclass
class FuseSettings:
    """
    加權欄位模糊搜尋參數

    每個欄位的相似度（0~1）乘上 欄位權重 / 最大欄位權重，取最高者作為詞條相似度，
    達到 threshold 才算命中。

    屬性:
        source_weight / target_weight: 英文 / 在地化子分類名稱
        category_weight: 主分類名稱
        synonyms_weight / synonyms_localized_weight: 英文 / 在地化同義詞
        threshold: 相似度門檻（0~1）
        min_match_length: 參與片段比對的最短字長
        partial_penalty: 片段比對（較短者對較長者的子字串）的折扣
    """

    source_weight: float = 0.8
    target_weight: float = 0.8
    category_weight: float = 0.5
    synonyms_weight: float = 0.7
    synonyms_localized_weight: float = 0.7
    threshold: float = 0.5
    min_match_length: int = 2
    partial_penalty: float = 0.9

    def __post_init__(self):
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be between 0.0 and 1.0, got {self.threshold}")
        if not 0.0 <= self.partial_penalty <= 1.0:
            raise ValueError(f"partial_penalty must be between 0.0 and 1.0, got {self.partial_penalty}")
        if min(self.field_weights().values()) < 0:
            raise ValueError("field weights must be >= 0")

    def field_weights(self) -> Dict[str, float]:
        return {
            "source": self.source_weight,
            "target": self.target_weight,
            "category": self.category_weight,
            "synonyms": self.synonyms_weight,
            "synonyms_localized": self.synonyms_localized_weight,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FuseSettings":
        return cls(**_known_kwargs(cls, data))


def _default_context_keywords() -> Dict[str, float]:
    return {
        "sound": 1.5,
        "effect": 1.5,
        "audio": 1.5,
        "music": 1.2,
        "voice": 1.2,
        "noise": 1.2,
        "ambience": 1.2,
        "foley": 1.3,
        "sfx": 1.5,
    }


@dataclass
class ContextSettings:
    """上下文關鍵字權重與鄰近距離"""

    keyword_weights: Dict[str, float] = field(default_factory=_default_context_keywords)
    max_distance: int = 3

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContextSettings":
        kwargs = _known_kwargs(cls, data)
        if "keyword_weights" in kwargs:
            kwargs["keyword_weights"] = {str(k).lower(): float(v) for k, v in kwargs["keyword_weights"].items()}
        return cls(**kwargs)


DEFAULT_AUDIO_EXTENSIONS: Tuple[str, ...] = (
    "mp3", "wav", "ogg", "flac", "aac", "m4a", "wma", "aiff",
    "alac", "ape", "opus", "webm", "mid", "midi",
)


@dataclass
class MatchSettings:
    """
    TermMatcher 設定

    multi_match_strategy 決定詞條層級的取捨；multi_word_match_strategy 只決定多詞片語的比對方式，
    兩者互相獨立。
    """

    multi_match_strategy: MultiMatchStrategy = MultiMatchStrategy.HIGHEST_PRIORITY
    multi_word_match_strategy: MultiWordStrategy = MultiWordStrategy.SEMANTIC
    respect_word_order: bool = True
    priority_weights: PriorityWeights = field(default_factory=PriorityWeights)
    fuzzy: FuzzySettings = field(default_factory=FuzzySettings)
    fuse: FuseSettings = field(default_factory=FuseSettings)
    context: ContextSettings = field(default_factory=ContextSettings)
    keyword_sample_size: int = 20
    keyword_min_length: int = 4
    audio_extensions: Tuple[str, ...] = DEFAULT_AUDIO_EXTENSIONS
    extra_keyword_patterns: Dict[str, str] = field(default_factory=dict)
    match_localized: bool = True
    normalize_chinese: bool = True
    cache_size: int = 2048

    def __post_init__(self):
        self.multi_match_strategy = MultiMatchStrategy(self.multi_match_strategy)
        self.multi_word_match_strategy = MultiWordStrategy(self.multi_word_match_strategy)
        self.audio_extensions = tuple(self.audio_extensions)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["multi_match_strategy"] = self.multi_match_strategy.value
        data["multi_word_match_strategy"] = self.multi_word_match_strategy.value
        data["audio_extensions"] = list(self.audio_extensions)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatchSettings":
        kwargs = _known_kwargs(cls, data)
        if "priority_weights" in kwargs:
            kwargs["priority_weights"] = PriorityWeights.from_dict(kwargs["priority_weights"])
        if "fuzzy" in kwargs:
            kwargs["fuzzy"] = FuzzySettings.from_dict(kwargs["fuzzy"])
        if "fuse" in kwargs:
            kwargs["fuse"] = FuseSettings.from_dict(kwargs["fuse"])
        if "context" in kwargs:
            kwargs["context"] = ContextSettings.from_dict(kwargs["context"])
        return cls(**kwargs)

    def copy(self) -> "MatchSettings":
        return MatchSettings.from_dict(self.to_dict())

    def fingerprint(self) -> str:
        """設定內容的穩定字串表示，用於判斷緩存是否仍有效"""
        return json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False)


@dataclass
class PosWeights:
    """詞性權重"""

    noun: float = 100
    adjective: float = 80
    verb: float = 60
    adverb: float = 40
    other: float = 20

    def weight_for(self, pos: PartOfSpeech) -> float:
        return getattr(self, pos.value)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PosWeights":
        return cls(**_known_kwargs(cls, data))


@dataclass
class TermColumns:
    """詞庫 CSV 欄位名稱（source / target / category_id 為必要欄位）"""

    source: str = "SubCategory"
    target: str = "SubCategory_zh"
    category_id: str = "CatID"
    category_short: str = "CatShort"
    category_name: str = "Category"
    category_name_localized: str = "Category_zh"
    synonyms: str = "Synonyms - Comma Separated"
    synonyms_localized: str = "Synonyms_zh"

    @property
    def required(self) -> Tuple[str, str, str]:
        return (self.source, self.target, self.category_id)


@dataclass
class RuleSettings:
    """規則庫設定（規則 JSON 的 settings 區塊）"""

    default_priority: int = 10
    multi_match_strategy: MultiMatchStrategy = MultiMatchStrategy.HIGHEST_PRIORITY

    def __post_init__(self):
        self.multi_match_strategy = MultiMatchStrategy(self.multi_match_strategy)

    @classmethod
    def from_json_dict(cls, data: Optional[Mapping[str, Any]]) -> "RuleSettings":
        """接受 {"defaultPriority": 10, "multiMatchStrategy": "highestPriority"}"""
        if not data:
            return cls()
        if not isinstance(data, Mapping):
            raise TypeError("settings 必須是物件")
        return cls(
            default_priority=int(data.get("defaultPriority", 10)),
            multi_match_strategy=data.get("multiMatchStrategy", MultiMatchStrategy.HIGHEST_PRIORITY.value),
        )


@dataclass
class EngineConfig:
    """
    引擎配置類別 (進階用途)

    一般使用者只需要使用 verbose=True 即可。

    屬性:
        verbose: 是否開啟詳細日誌
        on_timing: 計時回呼函數 (operation: str, elapsed: float) -> None
    """

    verbose: bool = False
    on_timing: Optional[Callable[[str, float], None]] = None

    def __post_init__(self):
        configure_logging(self.verbose)

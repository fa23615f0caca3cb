"""
比對策略登錄表 (MatchStrategyRegistry)

保存分類器每個策略的啟用狀態、優先順序（數字越小越先嘗試）、門檻與策略專屬參數，
以及 TermMatcher 使用的 MatchSettings。

整個登錄表可轉為純 dict / JSON，存放在任何 key-value 儲存（dict、shelve、設定檔）中：

    registry = MatchStrategyRegistry(store=settings_store)   # 每次修改自動存檔
    registry.set_threshold("bilingual", 60)

    restored = MatchStrategyRegistry.load(settings_store)
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, MutableMapping, Optional

from ucsmatch.config import MatchSettings
from ucsmatch.utils.logger import get_logger

STORAGE_KEY = "matching-strategy-config"

_CORE_FIELDS = ("enabled", "priority", "threshold", "description")

_logger = get_logger("matching.registry")


@dataclass
class StrategyConfig:
    """
    單一策略的設定

    屬性:
        key: 穩定識別名稱
        enabled: 是否啟用
        priority: 越小越先嘗試
        threshold: 最佳候選需達到的分數
        params: 策略專屬數值參數（originalWeight、semanticWeight ...）
    """

    key: str
    enabled: bool = True
    priority: int = 0
    threshold: float = 0.0
    description: str = ""
    params: Dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        """扁平記錄：核心欄位與參數放在同一層"""
        data: Dict[str, Any] = {
            "enabled": self.enabled,
            "priority": self.priority,
            "threshold": self.threshold,
            "description": self.description,
        }
        data.update(self.params)
        return data

    def update(self, values: Mapping[str, Any]) -> None:
        for name, value in values.items():
            if name == "key":
                continue
            if name == "enabled":
                self.enabled = bool(value)
            elif name == "priority":
                self.priority = int(value)
            elif name == "threshold":
                self.threshold = float(value)
            elif name == "description":
                self.description = str(value)
            else:
                self.params[name] = value


def default_strategies() -> List[StrategyConfig]:
    """內建預設策略（宣告順序即同優先級時的順序）"""
    return [
        StrategyConfig(
            "ai", True, 0, 0.0,
            "AI 分類結果 - 驗證 AI 提供的 CatID 是否存在於詞庫",
        ),
        StrategyConfig(
            "bilingual", True, 1, 50.0,
            "雙語文本匹配 - 同時使用原始文本和翻譯文本進行匹配",
            {"originalWeight": 3.5, "translatedWeight": 1.0, "posBoost": 1.0},
        ),
        StrategyConfig(
            "pos", True, 2, 20.0,
            "詞性加權匹配 - 以詞性分析結果加權整段與單詞匹配分數",
            {"fuseWeight": 1.0, "semanticWeight": 0.5, "maxWords": 5},
        ),
        StrategyConfig(
            "translated", True, 3, 20.0,
            "翻譯文本匹配 - 只使用翻譯文本進行匹配",
        ),
        StrategyConfig(
            "multiWord", True, 4, 15.0,
            "多詞組合匹配 - 把高權重詞兩兩組合成片語再匹配",
            {"maxWords": 4},
        ),
        StrategyConfig(
            "keyword", True, 5, 10.0,
            "單詞直接匹配 - 只用權重最高的單一詞匹配",
        ),
    ]


class MatchStrategyRegistry:
    """
    比對策略登錄表

    只有登錄表的擁有者（設定層）會修改它；比對與分類在呼叫開始時取 snapshot()。
    """

    def __init__(
        self,
        strategies: Optional[Mapping[str, Mapping[str, Any]]] = None,
        match_settings: Optional[MatchSettings] = None,
        *,
        store: Optional[MutableMapping[str, str]] = None,
        storage_key: str = STORAGE_KEY,
    ):
        self._strategies: Dict[str, StrategyConfig] = {s.key: s for s in default_strategies()}
        if strategies:
            self._merge(strategies)
        self.match_settings = match_settings or MatchSettings()
        self._store = store
        self._storage_key = storage_key

    def _merge(self, overrides: Mapping[str, Mapping[str, Any]]) -> None:
        for key, values in overrides.items():
            config = self._strategies.get(key)
            if config is None:
                _logger.debug("忽略未知策略: %s", key)
                continue
            if isinstance(values, Mapping):
                config.update(values)

    # 查詢

    def __contains__(self, key: str) -> bool:
        return key in self._strategies

    def __iter__(self) -> Iterator[StrategyConfig]:
        return iter(list(self._strategies.values()))

    def __len__(self) -> int:
        return len(self._strategies)

    def keys(self) -> List[str]:
        return list(self._strategies)

    def get(self, key: str) -> Optional[StrategyConfig]:
        return self._strategies.get(key)

    def get_all(self) -> List[StrategyConfig]:
        return list(self._strategies.values())

    def is_enabled(self, key: str) -> bool:
        config = self._strategies.get(key)
        return config is not None and config.enabled

    def get_enabled_strategies_in_order(self) -> List[StrategyConfig]:
        """已啟用的策略，依 priority 由小到大；同分保持宣告順序"""
        enabled = [s for s in self._strategies.values() if s.enabled]
        return sorted(enabled, key=lambda s: s.priority)

    # 修改（key 不存在或值無法轉換時回傳 False，不做任何事）

    def set_enabled(self, key: str, enabled: bool) -> bool:
        return self._set(key, "enabled", enabled)

    def set_priority(self, key: str, priority: int) -> bool:
        return self._set(key, "priority", priority)

    def set_threshold(self, key: str, threshold: float) -> bool:
        return self._set(key, "threshold", threshold)

    def set_param(self, key: str, name: str, value: Any) -> bool:
        return self._set(key, name, value)

    def _set(self, key: str, name: str, value: Any) -> bool:
        config = self._strategies.get(key)
        if config is None:
            return False
        try:
            config.update({name: value})
        except (TypeError, ValueError):
            _logger.warning("策略 %s 的 %s 值無效: %r", key, name, value)
            return False
        self._changed()
        return True

    def reset_to_defaults(self) -> bool:
        self._strategies = {s.key: s for s in default_strategies()}
        self.match_settings = MatchSettings()
        self._changed()
        return True

    # 序列化

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategies": {key: config.to_dict() for key, config in self._strategies.items()},
            "matchSettings": self.match_settings.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        *,
        store: Optional[MutableMapping[str, str]] = None,
        storage_key: str = STORAGE_KEY,
    ) -> "MatchStrategyRegistry":
        """
        由 to_dict() 的結果還原

        也接受只有策略的扁平格式 {key: {...}}。未知的策略 key 會被忽略。
        """
        if "strategies" in data or "matchSettings" in data:
            strategies = data.get("strategies") or {}
            settings_data = data.get("matchSettings")
        else:
            strategies = data
            settings_data = None
        settings = MatchSettings.from_dict(settings_data) if settings_data else None
        return cls(strategies, settings, store=store, storage_key=storage_key)

    def snapshot(self) -> "MatchStrategyRegistry":
        """不綁定儲存的深複本，供單次呼叫使用"""
        clone = MatchStrategyRegistry.__new__(MatchStrategyRegistry)
        clone._strategies = copy.deepcopy(self._strategies)
        clone.match_settings = self.match_settings.copy()
        clone._store = None
        clone._storage_key = self._storage_key
        return clone

    def save(self, store: Optional[MutableMapping[str, str]] = None) -> bool:
        target = store if store is not None else self._store
        if target is None:
            return False
        try:
            target[self._storage_key] = json.dumps(self.to_dict(), ensure_ascii=False)
        except (TypeError, ValueError, OSError):
            _logger.exception("保存匹配策略配置失敗")
            return False
        return True

    @classmethod
    def load(
        cls,
        store: MutableMapping[str, str],
        storage_key: str = STORAGE_KEY,
    ) -> "MatchStrategyRegistry":
        """從儲存載入；沒有資料或資料損壞時回傳預設值（仍綁定該儲存）"""
        raw = store.get(storage_key)
        if raw:
            try:
                return cls.from_dict(json.loads(raw), store=store, storage_key=storage_key)
            except (TypeError, ValueError):
                _logger.exception("載入匹配策略配置失敗，改用預設值")
        return cls(store=store, storage_key=storage_key)

    def _changed(self) -> None:
        if self._store is not None:
            self.save()

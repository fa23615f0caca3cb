"""
規則庫 (RuleTable)

從 JSON 載入特殊規則：

    {
      "settings": {"defaultPriority": 10, "multiMatchStrategy": "highestPriority"},
      "specialPatterns": [
        {"id": "glitch", "matchType": "contains", "pattern": "glitch",
         "priority": 20, "result": {"catID": "DSGNRythm", ...}}
      ]
    }

RuleTable 只負責判斷「哪些規則命中」，多條規則同時命中時的取捨由呼叫端決定。
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ucsmatch.config import RuleSettings
from ucsmatch.core.errors import FormatError, PatternError
from ucsmatch.core.events import MatchEventHandler, emit_event
from ucsmatch.core.models import RuleMatchType, RuleRecord, TermRecord
from ucsmatch.data.term_table import TermTable, parse_synonyms
from ucsmatch.utils.logger import get_logger
from ucsmatch.utils.text import normalize_text

_CATEGORY_ID_KEYS = ("catID", "categoryId", "category_id")
_SOURCE_KEYS = ("subCategory", "source")
_TARGET_KEYS = ("subCategory_zh", "target")


def _first(data: Mapping[str, Any], keys: Tuple[str, ...]) -> str:
    for key in keys:
        value = data.get(key)
        if value:
            return str(value).strip()
    return ""


class RuleTable:
    """
    規則庫

    規則載入後依 priority 由高到低排序（同分保持原順序）。
    """

    def __init__(self, on_event: Optional[MatchEventHandler] = None):
        self._rules: List[RuleRecord] = []
        self._settings = RuleSettings()
        self._loaded = False
        self._on_event = on_event
        self._logger = get_logger("data.rules")

    @property
    def settings(self) -> RuleSettings:
        return self._settings

    @property
    def rules(self) -> Tuple[RuleRecord, ...]:
        return tuple(self._rules)

    @property
    def loaded(self) -> bool:
        return self._loaded

    def __len__(self) -> int:
        return len(self._rules)

    def load(
        self,
        raw: Union[str, bytes, Mapping[str, Any]],
        term_table: Optional[TermTable] = None,
    ) -> List[RuleRecord]:
        """
        載入規則

        Args:
            raw: JSON 字串或已解析的 dict
            term_table: 用來補齊規則結果中缺少的分類名稱（選用）

        Returns:
            排序後的規則

        Raises:
            FormatError: JSON 無法解析或 specialPatterns 不是陣列
        """
        try:
            data = self._decode(raw)
            settings = RuleSettings.from_json_dict(data.get("settings"))
        except (FormatError, ValueError, TypeError) as exc:
            self._rules = []
            self._loaded = False
            self._logger.error("規則庫載入失敗: %s", exc)
            if isinstance(exc, FormatError):
                raise
            raise FormatError(f"規則設定無效: {exc}") from exc

        rules: List[RuleRecord] = []
        for i, entry in enumerate(data.get("specialPatterns") or []):
            rule = self._build_rule(entry, i, settings, term_table)
            if rule is not None:
                rules.append(rule)

        rules.sort(key=lambda r: r.priority, reverse=True)
        self._settings = settings
        self._rules = rules
        self._loaded = True
        self._logger.info("規則庫載入完成: %d 條規則", len(rules))
        return list(rules)

    def _decode(self, raw: Union[str, bytes, Mapping[str, Any]]) -> Mapping[str, Any]:
        if isinstance(raw, Mapping):
            data = raw
        else:
            try:
                data = json.loads(raw)
            except (TypeError, ValueError) as exc:
                raise FormatError(f"規則 JSON 無法解析: {exc}") from exc
        if not isinstance(data, Mapping):
            raise FormatError("規則 JSON 頂層必須是物件")
        patterns = data.get("specialPatterns")
        if patterns is not None and not isinstance(patterns, list):
            raise FormatError("specialPatterns 必須是陣列")
        return data

    def _build_rule(
        self,
        entry: Any,
        index: int,
        settings: RuleSettings,
        term_table: Optional[TermTable],
    ) -> Optional[RuleRecord]:
        if not isinstance(entry, Mapping):
            self._logger.warning("略過第 %d 條規則: 不是物件", index)
            return None

        rule_id = str(entry.get("id") or f"rule-{index}")
        pattern = entry.get("pattern")
        if not isinstance(pattern, str) or not pattern:
            self._logger.warning("略過規則 %s: 缺少 pattern", rule_id)
            return None

        try:
            match_type = RuleMatchType(entry.get("matchType", RuleMatchType.CONTAINS.value))
        except ValueError:
            self._logger.warning("略過規則 %s: 未知的 matchType %r", rule_id, entry.get("matchType"))
            return None

        results = self._build_results(entry.get("result"), term_table)
        if not results:
            self._logger.warning("略過規則 %s: result 缺少 catID", rule_id)
            return None

        priority = entry.get("priority")
        try:
            priority = settings.default_priority if priority is None else int(priority)
        except (TypeError, ValueError):
            priority = settings.default_priority

        compiled = None
        if match_type is RuleMatchType.REGEX:
            try:
                compiled = re.compile(pattern, re.IGNORECASE)
            except re.error as exc:
                error = PatternError(pattern, str(exc), rule_id=rule_id)
                self._logger.warning("%s，已略過", error)
                emit_event(
                    self._on_event,
                    {
                        "type": "pattern_error",
                        "component": "rule_table",
                        "stage": "load",
                        "text": pattern,
                        "exception_type": type(error).__name__,
                        "exception_message": str(error),
                    },
                    self._logger,
                )
                return None
        else:
            pattern = normalize_text(pattern, strip=False)
            if not pattern.strip():
                self._logger.warning("略過規則 %s: pattern 只有空白", rule_id)
                return None

        return RuleRecord(
            id=rule_id,
            pattern=pattern,
            match_type=match_type,
            priority=priority,
            results=results,
            compiled=compiled,
        )

    def _build_results(self, raw: Any, term_table: Optional[TermTable]) -> Tuple[TermRecord, ...]:
        items = raw if isinstance(raw, list) else [raw]
        out: List[TermRecord] = []
        for item in items:
            if not isinstance(item, Mapping):
                continue
            term = self._build_result_term(item, term_table)
            if term is not None:
                out.append(term)
        return tuple(out)

    @staticmethod
    def _build_result_term(data: Mapping[str, Any], term_table: Optional[TermTable]) -> Optional[TermRecord]:
        category_id = _first(data, _CATEGORY_ID_KEYS)
        if not category_id:
            return None

        known = term_table.find_by_category_id(category_id) if term_table is not None else None
        source = _first(data, _SOURCE_KEYS) or (known.source if known else category_id)
        target = _first(data, _TARGET_KEYS) or (known.target if known else source)

        def pick(key: str, fallback: str) -> str:
            value = data.get(key)
            return str(value).strip() if value else fallback

        return TermRecord(
            source=source,
            target=target,
            category_id=category_id,
            category_name=pick("category", known.category_name if known else ""),
            category_name_localized=pick("category_zh", known.category_name_localized if known else ""),
            category_short=pick("catShort", known.category_short if known else ""),
            synonyms=parse_synonyms(data.get("synonyms")) if isinstance(data.get("synonyms"), str) else (),
        )

    def evaluate(self, text: str) -> List[RuleRecord]:
        """
        回傳所有命中的規則（已依 priority 排序）

        比對不分大小寫；空字串不會命中任何規則。
        非正則 pattern 在載入時已正規化（底線轉空白、繁轉簡），
        因此輸入同時以原始小寫與正規化兩種形式比對，任一形式命中即算命中。
        """
        if not text or not self._rules:
            return []
        forms = list(dict.fromkeys((
            text.lower(),
            normalize_text(text, strip=False),
            normalize_text(text),
        )))
        return [rule for rule in self._rules if any(rule.matches(form) for form in forms)]

    def to_dict(self) -> Dict[str, Any]:
        """輸出為可再次載入的 JSON 結構"""
        return {
            "settings": {
                "defaultPriority": self._settings.default_priority,
                "multiMatchStrategy": self._settings.multi_match_strategy.value,
            },
            "specialPatterns": [
                {
                    "id": rule.id,
                    "matchType": rule.match_type.value,
                    "pattern": rule.pattern,
                    "priority": rule.priority,
                    "result": [
                        {
                            "catID": t.category_id,
                            "catShort": t.category_short,
                            "category": t.category_name,
                            "category_zh": t.category_name_localized,
                            "subCategory": t.source,
                            "subCategory_zh": t.target,
                        }
                        for t in rule.results
                    ],
                }
                for rule in self._rules
            ],
        }

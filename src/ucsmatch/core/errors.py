"""
錯誤分類

- FormatError: 詞庫 / 規則庫結構錯誤，載入失敗並回報給呼叫端
- PatternError: 單一正規表達式錯誤，就地略過，不向外傳遞
- AIResponseError: AI 回應無法解析出 JSON

詞性分析失敗與「找不到匹配」都不是例外：前者回傳空序列，後者回傳 None。
"""

from __future__ import annotations

from typing import Optional


class UcsMatchError(Exception):
    """ucsmatch 所有例外的基底類別"""


class FormatError(UcsMatchError, ValueError):
    """資料集缺少必要欄位或格式無法解析"""

    def __init__(self, message: str, *, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class PatternError(UcsMatchError, ValueError):
    """單一規則或關鍵字的正規表達式無法編譯"""

    def __init__(self, pattern: str, reason: str, *, rule_id: Optional[str] = None):
        where = f"規則 {rule_id!r} 的" if rule_id else ""
        super().__init__(f"{where}pattern {pattern!r} 無法編譯: {reason}")
        self.pattern = pattern
        self.reason = reason
        self.rule_id = rule_id


class AIResponseError(UcsMatchError, ValueError):
    """AI 回應中找不到可解析的 JSON"""

"""
檔名序號擷取

音效檔名常帶有序號（"Door Slam 03"、"03_Door Slam"、"Door Slam(3)"），
分類前先把序號拆掉，命名時再接回去。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NumberPosition(Enum):
    """序號位置"""

    SUFFIX = "suffix"
    PREFIX = "prefix"
    BRACKET = "bracket"


@dataclass(frozen=True)
class NumberedName:
    text: str
    number: Optional[str] = None
    position: Optional[NumberPosition] = None

    @property
    def has_number(self) -> bool:
        return self.number is not None


class NumberExtractor:
    """序號拆解與重組（依尾部、開頭、括號的順序嘗試）"""

    _SUFFIX_RE = re.compile(r"^(.*?)[\s_\-\.]+(\d+)$")
    _PREFIX_RE = re.compile(r"^(\d+)[\s_\-\.]+(.*)$")
    _BRACKET_RE = re.compile(r"^(.*?)\((\d+)\)$")

    @classmethod
    def extract(cls, text: Optional[str]) -> NumberedName:
        if not text:
            return NumberedName(text="")

        m = cls._SUFFIX_RE.match(text)
        if m:
            return NumberedName(m.group(1).strip(), m.group(2), NumberPosition.SUFFIX)

        m = cls._PREFIX_RE.match(text)
        if m:
            return NumberedName(m.group(2).strip(), m.group(1), NumberPosition.PREFIX)

        m = cls._BRACKET_RE.match(text)
        if m:
            return NumberedName(m.group(1).strip(), m.group(2), NumberPosition.BRACKET)

        return NumberedName(text=text)

    @staticmethod
    def combine(parts: NumberedName, text: Optional[str] = None) -> str:
        """
        把序號接回（可替換文字部分）

        Args:
            parts: extract() 的結果
            text: 取代 parts.text 的新文字，例如分類後的新名稱
        """
        body = parts.text if text is None else text
        if parts.number is None:
            return body
        if parts.position is NumberPosition.PREFIX:
            return f"{parts.number} {body}"
        if parts.position is NumberPosition.BRACKET:
            return f"{body}({parts.number})"
        return f"{body} {parts.number}"

"""
文字正規化工具

比對前的輸入與詞條都經過同一套正規化：
小寫、繁轉簡、底線轉空白、壓縮空白。
"""

from __future__ import annotations

import re
from typing import List

from .lazy_imports import get_hanziconv

_WHITESPACE_RE = re.compile(r"\s+")
_UNDERSCORE_RE = re.compile(r"_+")
_WORD_SPLIT_RE = re.compile(r"[\s_\-\.]+")
_SHORT_CODE_RE = re.compile(r"^([A-Z]+)")


def is_cjk_char(ch: str) -> bool:
    code = ord(ch)
    return 0x4E00 <= code <= 0x9FFF or 0x3400 <= code <= 0x4DBF or 0xF900 <= code <= 0xFAFF


def contains_cjk(text: str) -> bool:
    return any(is_cjk_char(ch) for ch in text)


def to_simplified(text: str) -> str:
    """繁體轉簡體；不含漢字時直接回傳"""
    if not text or not contains_cjk(text):
        return text
    return get_hanziconv().toSimplified(text)


def normalize_text(text: str, simplify: bool = True, strip: bool = True) -> str:
    """
    比對用正規化

    Args:
        text: 原始輸入
        simplify: 是否做繁轉簡
        strip: 是否去掉頭尾空白（規則 pattern 保留頭尾空白作為詞界）

    Returns:
        正規化後字串（可能為空字串）
    """
    if not text:
        return ""
    value = text.lower()
    if simplify:
        value = to_simplified(value)
    value = _UNDERSCORE_RE.sub(" ", value)
    value = _WHITESPACE_RE.sub(" ", value)
    return value.strip() if strip else value


def split_words(text: str) -> List[str]:
    """以空白、底線、連字號與點號切詞，丟棄空字串"""
    return [w for w in _WORD_SPLIT_RE.split(text) if w]


def derive_category_short(category_id: str) -> str:
    """
    從 CatID 推導 CatShort

    取開頭大寫字母串；若其後緊接小寫字母，最後一個大寫屬於下一段而被移除。
    例: DSGNRythm -> DSGN, SCIMisc -> SCI, UIGlitch -> UI
    """
    if not category_id:
        return ""
    m = _SHORT_CODE_RE.match(category_id)
    if not m:
        return category_id[:4]
    head = m.group(1)
    rest = category_id[len(head):]
    if rest and rest[0].islower() and len(head) > 1:
        head = head[:-1]
    return head

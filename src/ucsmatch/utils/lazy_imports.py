"""
延遲導入工具

可選依賴（jieba、nltk、requests）只在真正使用時才導入，
缺少時拋出帶安裝提示的 ImportError。
"""

from __future__ import annotations

import importlib.util
from typing import Any, Optional

CHINESE_INSTALL_HINT = (
    "需要安裝中文分詞依賴: pip install \"ucsmatch[zh]\"  (jieba)"
)
ENGLISH_INSTALL_HINT = (
    "需要安裝英文詞性標註依賴: pip install \"ucsmatch[en]\"  (nltk)，"
    "並下載標註模型: python -m nltk.downloader averaged_perceptron_tagger_eng"
)
REMOTE_INSTALL_HINT = (
    "需要安裝遠端分析依賴: pip install \"ucsmatch[remote]\"  (requests)"
)
HANZICONV_INSTALL_HINT = (
    "需要安裝繁簡轉換依賴: pip install hanziconv"
)

_jieba_posseg: Optional[Any] = None
_nltk: Optional[Any] = None
_requests: Optional[Any] = None
_hanziconv: Optional[Any] = None


def is_jieba_available() -> bool:
    return importlib.util.find_spec("jieba") is not None


def is_nltk_available() -> bool:
    return importlib.util.find_spec("nltk") is not None


def is_requests_available() -> bool:
    return importlib.util.find_spec("requests") is not None


def check_chinese_dependencies() -> None:
    """檢查中文分詞依賴，缺少時拋出 ImportError"""
    if not is_jieba_available():
        raise ImportError(CHINESE_INSTALL_HINT)


def check_english_dependencies() -> None:
    """檢查英文詞性標註依賴，缺少時拋出 ImportError"""
    if not is_nltk_available():
        raise ImportError(ENGLISH_INSTALL_HINT)


def check_remote_dependencies() -> None:
    """檢查遠端分析依賴，缺少時拋出 ImportError"""
    if not is_requests_available():
        raise ImportError(REMOTE_INSTALL_HINT)


def get_jieba_posseg() -> Any:
    """延遲載入 jieba.posseg"""
    global _jieba_posseg
    if _jieba_posseg is None:
        try:
            import jieba.posseg as posseg
        except ImportError as exc:
            raise ImportError(CHINESE_INSTALL_HINT) from exc
        _jieba_posseg = posseg
    return _jieba_posseg


def get_nltk() -> Any:
    """延遲載入 nltk"""
    global _nltk
    if _nltk is None:
        try:
            import nltk
        except ImportError as exc:
            raise ImportError(ENGLISH_INSTALL_HINT) from exc
        _nltk = nltk
    return _nltk


def get_requests() -> Any:
    """延遲載入 requests"""
    global _requests
    if _requests is None:
        try:
            import requests
        except ImportError as exc:
            raise ImportError(REMOTE_INSTALL_HINT) from exc
        _requests = requests
    return _requests


def get_hanziconv() -> Any:
    """延遲載入 HanziConv（繁簡轉換）"""
    global _hanziconv
    if _hanziconv is None:
        try:
            from hanziconv import HanziConv
        except ImportError as exc:
            raise ImportError(HANZICONV_INSTALL_HINT) from exc
        _hanziconv = HanziConv
    return _hanziconv

"""
Translator Protocol

翻譯服務（Google / Zhipu / OpenRouter / LibreTranslate 等）對核心而言只是一個能力：
translate(text, from, to) -> str。網路重試與錯誤處理由實作方負責。
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TranslatorProtocol(Protocol):
    def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """翻譯文字"""
        ...

"""最小介面定義（Protocol）"""

from .analyzer import AnalyzerProtocol
from .translator import TranslatorProtocol

__all__ = ["AnalyzerProtocol", "TranslatorProtocol"]

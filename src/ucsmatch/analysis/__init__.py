"""
詞性分析模組

所有分析器都滿足同一個契約：analyze(text) -> List[WeightedWord]。
"""

from .base import PartOfSpeechAnalyzer
from .jieba_analyzer import JiebaAnalyzer
from .lexicon import LexiconAnalyzer
from .nltk_analyzer import NltkAnalyzer
from .remote import RemoteAnalyzer
from .script_router import ScriptRouter
from .selection import default_analyzer, resolve_analyzer

__all__ = [
    "PartOfSpeechAnalyzer",
    "LexiconAnalyzer",
    "JiebaAnalyzer",
    "NltkAnalyzer",
    "RemoteAnalyzer",
    "ScriptRouter",
    "resolve_analyzer",
    "default_analyzer",
]

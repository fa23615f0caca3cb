"""分類模組"""

from .ai import AIClassifier, build_batch_prompt, parse_ai_response
from .classifier import Classifier

__all__ = [
    "Classifier",
    "AIClassifier",
    "build_batch_prompt",
    "parse_ai_response",
]

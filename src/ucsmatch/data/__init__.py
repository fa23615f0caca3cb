"""詞庫與規則庫"""

from .rule_table import RuleTable
from .term_table import TermTable

__all__ = ["TermTable", "RuleTable"]

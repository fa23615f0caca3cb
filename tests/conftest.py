"""
共用測試資料
"""

import json

import pytest

from ucsmatch.analysis.lexicon import LexiconAnalyzer
from ucsmatch.data.rule_table import RuleTable
from ucsmatch.data.term_table import TermTable
from ucsmatch.matching.strategy_registry import MatchStrategyRegistry
from ucsmatch.matching.term_matcher import TermMatcher

TERMS_CSV = (
    "CatID,CatShort,Category,Category_zh,SubCategory,SubCategory_zh,Synonyms - Comma Separated,Synonyms_zh\n"
    'OBJImpt,OBJ,OBJECTS,物件,door slam,门撞击,"door bang, door hit",关门\n'
    'OBJTape,OBJ,OBJECTS,物件,cassette tape,卡带,"cassette, tape deck",\n'
    "OBJMisc,OBJ,OBJECTS,物件,tape,胶带,sticky tape,\n"
    "OBJKbrd,OBJ,OBJECTS,物件,键盘,typing keyboard,,\n"
    'SCIMisc,SCI,SCI-FI,科幻,glitch,故障,"digital error, malfunction",\n'
    "WATRSplsh,WATR,WATER,水,water splash,水花,splash,\n"
)

GLITCH_RULES = {
    "settings": {"defaultPriority": 10, "multiMatchStrategy": "highestPriority"},
    "specialPatterns": [
        {
            "id": "glitch-rhythm",
            "matchType": "contains",
            "pattern": "glitch",
            "priority": 20,
            "result": {"catID": "DSGNRythm", "category": "DESIGNED", "subCategory": "RHYTHMIC"},
        }
    ],
}


class EventRecorder:
    """收集 on_event 事件"""

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def of_type(self, event_type):
        return [e for e in self.events if e.get("type") == event_type]


@pytest.fixture
def term_table():
    table = TermTable()
    table.load(TERMS_CSV)
    return table


@pytest.fixture
def rule_table(term_table):
    table = RuleTable()
    table.load(json.dumps(GLITCH_RULES), term_table)
    return table


@pytest.fixture
def events():
    return EventRecorder()


@pytest.fixture
def registry():
    return MatchStrategyRegistry()


@pytest.fixture
def matcher(term_table, rule_table, registry, events):
    return TermMatcher(
        term_table,
        rule_table,
        analyzer=LexiconAnalyzer(),
        registry=registry,
        on_event=events,
    )

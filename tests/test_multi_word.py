"""
多詞片語比對測試
"""

import pytest

from ucsmatch.config import MatchSettings
from ucsmatch.core.models import MultiWordStrategy
from ucsmatch.matching.multi_word import MultiWordMatcher

DOOR_SLAM = ("door", "slam")


def _matcher(strategy, **kwargs):
    return MultiWordMatcher(MatchSettings(multi_word_match_strategy=strategy, **kwargs))


class TestSubStrategies:
    """各子策略"""

    def test_exact(self):
        result = _matcher(MultiWordStrategy.EXACT).match("metal door slam", DOOR_SLAM)
        assert result.matched
        assert result.stage == "exact"
        assert result.score == 80

    def test_exact_requires_contiguous_phrase(self):
        assert not _matcher(MultiWordStrategy.EXACT).match("door loud slam", DOOR_SLAM).matched

    def test_partial(self):
        """每個詞都出現即可，分數按詞數平分 partial_match"""
        result = _matcher(MultiWordStrategy.PARTIAL).match("door loud slam", DOOR_SLAM)
        assert result.matched
        assert result.stage == "partial"
        assert result.score == pytest.approx(20)

    def test_partial_respects_word_order(self):
        matcher = _matcher(MultiWordStrategy.PARTIAL)
        assert not matcher.match("slam the door", DOOR_SLAM).matched

        unordered = _matcher(MultiWordStrategy.PARTIAL, respect_word_order=False)
        assert unordered.match("slam the door", DOOR_SLAM).matched

    def test_fuzzy_prefix(self):
        """字首命中至少一半的詞"""
        result = _matcher(MultiWordStrategy.FUZZY).match("doorway slapping", DOOR_SLAM)
        assert result.matched
        assert result.stage == "fuzzy"
        assert result.score == pytest.approx(10)

    def test_fuzzy_falls_back_to_partial(self):
        result = _matcher(MultiWordStrategy.FUZZY).match("metal door slam", DOOR_SLAM)
        assert result.stage == "exact"

    def test_edit_distance(self):
        result = _matcher(MultiWordStrategy.EDIT_DISTANCE).match("dor slan", DOOR_SLAM)
        assert result.matched
        assert result.stage == "edit_distance"
        # 兩個詞的相似度都是 0.75
        assert result.score == pytest.approx(0.75 * 25)

    def test_edit_distance_too_far(self):
        assert not _matcher(MultiWordStrategy.EDIT_DISTANCE).match("window crash", DOOR_SLAM).matched

    def test_context(self):
        """上下文關鍵字與鄰近加分"""
        result = _matcher(MultiWordStrategy.CONTEXT).match("door sound effect", DOOR_SLAM)
        assert result.matched
        assert result.stage == "context"
        # (1.5 + 1.5 + 0.75 * 1.5 + 0.5 * 1.5) * 65 / 100
        assert result.score == pytest.approx(4.875 * 0.65)

    def test_context_requires_term_word(self):
        """只有關鍵字、沒有詞條的詞時不算命中"""
        assert not _matcher(MultiWordStrategy.CONTEXT).match("sound effect", DOOR_SLAM).matched

    def test_context_requires_keyword(self):
        assert not _matcher(MultiWordStrategy.CONTEXT).match("door", DOOR_SLAM).matched

    def test_semantic_chain(self):
        """semantic 依序嘗試 exact -> partial -> fuzzy -> edit_distance -> context"""
        matcher = _matcher(MultiWordStrategy.SEMANTIC)
        assert matcher.match("metal door slam", DOOR_SLAM).stage == "exact"
        assert matcher.match("door loud slam", DOOR_SLAM).stage == "partial"
        assert matcher.match("doorway slapping", DOOR_SLAM).stage == "fuzzy"
        assert matcher.match("rain sound", ("heavy", "rain", "storm")).stage == "context"
        assert not matcher.match("xyz", DOOR_SLAM).matched


class TestMultiWordCache:
    """結果緩存"""

    def test_repeated_calls_hit_cache(self):
        matcher = _matcher(MultiWordStrategy.SEMANTIC)
        first = matcher.match("metal door slam", DOOR_SLAM)
        second = matcher.match("metal door slam", DOOR_SLAM)

        assert first == second
        assert matcher.cache.stats()["hits"] == 1

    def test_cache_can_be_disabled(self):
        matcher = _matcher(MultiWordStrategy.SEMANTIC, cache_size=0)
        matcher.match("metal door slam", DOOR_SLAM)
        matcher.match("metal door slam", DOOR_SLAM)
        assert len(matcher.cache) == 0

    def test_empty_input(self):
        matcher = _matcher(MultiWordStrategy.SEMANTIC)
        assert not matcher.match("", DOOR_SLAM).matched
        assert not matcher.match("door slam", ()).matched

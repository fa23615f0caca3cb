"""
詞條比對器測試

涵蓋：冪等、大小寫無關、完全相同優先、長子字串優先、規則優先、
空輸入 / 未載入安全，以及錯誤降級。
"""

import pytest

from ucsmatch.config import MatchSettings, PriorityWeights
from ucsmatch.core.models import MultiMatchStrategy, PartOfSpeech, TermRecord, WeightedWord
from ucsmatch.data.rule_table import RuleTable
from ucsmatch.data.term_table import TermTable
from ucsmatch.matching.strategy_registry import MatchStrategyRegistry
from ucsmatch.matching.term_matcher import TermMatcher, best_per_term

from conftest import GLITCH_RULES, TERMS_CSV, EventRecorder


class TestFindMatchProperties:
    """findMatch 的基本性質"""

    @pytest.fixture(autouse=True)
    def setup(self, matcher):
        self.matcher = matcher

    def test_idempotent(self):
        first = self.matcher.find_match("old cassette tape hiss")
        second = self.matcher.find_match("old cassette tape hiss")
        assert first == second

    def test_case_invariance(self):
        text = "Old Cassette Tape Hiss"
        expected = self.matcher.find_match(text)
        assert self.matcher.find_match(text.upper()) == expected
        assert self.matcher.find_match(text.lower()) == expected

    def test_exact_match_precedence(self):
        """完全相同的詞條勝過子字串、同義詞與正則命中"""
        match = self.matcher.find_match("TAPE")
        assert match.source == "tape"

    def test_longest_substring_precedence(self):
        """"cassette tape" 勝過 "tape\""""
        match = self.matcher.find_match("old cassette tape hiss")
        assert match.source == "cassette tape"

    def test_rule_precedence(self):
        """規則結果勝過一般詞條（分數為 exact + 10）"""
        match = self.matcher.find_match("glitchy robot sound")
        assert match.category_id == "DSGNRythm"

    def test_rule_outranks_exact_term(self):
        """規則 pattern 與詞條來源相同時，規則結果仍勝出"""
        match = self.matcher.find_match("glitch")
        assert match.category_id == "DSGNRythm"

    def test_empty_and_none(self):
        assert self.matcher.find_match("") is None
        assert self.matcher.find_match(None) is None
        assert self.matcher.find_match("   ") is None

    def test_unloaded_table(self):
        matcher = TermMatcher(TermTable())
        assert matcher.find_match("door slam") is None

    def test_no_candidates(self):
        assert self.matcher.find_match("xyzxyzxyz123") is None


class TestScenarios:
    """典型檔名"""

    @pytest.fixture(autouse=True)
    def setup(self, matcher):
        self.matcher = matcher

    def test_trailing_number_is_irrelevant(self):
        match = self.matcher.find_match("Metal Door Slam 03")
        assert match.category_id == "OBJImpt"

    def test_chinese_source(self):
        """沒有英文對照時，中文來源片語以子字串比對成功"""
        match = self.matcher.find_match("键盘打字")
        assert match.category_id == "OBJKbrd"

    def test_traditional_chinese_input(self):
        """繁體輸入先轉簡體再比對"""
        match = self.matcher.find_match("鍵盤打字")
        assert match.category_id == "OBJKbrd"

    def test_synonym(self):
        candidates = self.matcher.collect_candidates("malfunction")
        assert [c.match_type for c in candidates if c.term.category_id == "SCIMisc"][0] == "synonym_exact"
        assert self.matcher.find_match("malfunction").category_id == "SCIMisc"

    def test_localized_name(self):
        """在地化名稱（target）也參與比對"""
        assert self.matcher.find_match("水花四溅").category_id == "WATRSplsh"

    def test_underscores_are_spaces(self):
        assert self.matcher.find_match("METAL_DOOR_SLAM_03").category_id == "OBJImpt"


class TestCandidates:
    """候選收集與計分"""

    @pytest.fixture(autouse=True)
    def setup(self, matcher):
        self.matcher = matcher

    def test_candidate_scores(self):
        candidates = self.matcher.collect_candidates("old cassette tape hiss")
        by_type = {(c.term.source, c.match_type): c.score for c in candidates}

        assert by_type[("cassette tape", "multi_word_exact")] == 80
        assert by_type[("cassette tape", "contains_match")] == pytest.approx(13 / 22 * 60)
        assert by_type[("tape", "contains_match")] == pytest.approx(4 / 22 * 60)
        assert all(c.score >= 0 for c in candidates)

    def test_exact_excluded_from_contains(self):
        """完全相同的詞條不再以子字串重複計分"""
        candidates = self.matcher.collect_candidates("tape")
        tape = [c.match_type for c in candidates if c.term.source == "tape"]
        assert "exact_match" in tape
        assert "contains_match" not in tape

    def test_rank_is_sorted(self):
        ranked = self.matcher.rank("old cassette tape hiss")
        scores = [c.score for c in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_first_match_strategy(self, registry):
        """firstMatch 回傳最先收集的候選（規則最先收集）"""
        registry.match_settings.multi_match_strategy = MultiMatchStrategy.FIRST_MATCH
        assert self.matcher.find_match("glitch").category_id == "DSGNRythm"

    def test_all_matches_strategy(self, registry):
        registry.match_settings.multi_match_strategy = MultiMatchStrategy.ALL_MATCHES
        matches = self.matcher.find_match("old cassette tape hiss")

        assert isinstance(matches, list)
        sources = {t.source for t in matches}
        assert {"cassette tape", "tape"} <= sources

    def test_configurable_weights(self, registry):
        """分數常數可設定"""
        registry.match_settings.priority_weights = PriorityWeights(exact_match=500)
        ranked = self.matcher.rank("tape")
        assert ranked[0].score == 500

    def test_settings_without_registry(self, term_table):
        matcher = TermMatcher(term_table, settings=MatchSettings(match_localized=False))
        assert matcher.find_match("水花") is None

    def test_best_per_term(self):
        best = best_per_term(self.matcher.collect_candidates("old cassette tape hiss"))
        sources = [t.source for t in best]
        assert len(sources) == len(set(sources))
        assert best[self.matcher.term_table.find_by_category_id("OBJTape")].score == 80


class TestWordScoring:
    """詞性加權與詞組組合"""

    @pytest.fixture(autouse=True)
    def setup(self, matcher):
        self.matcher = matcher

    def test_score_words(self):
        words = [
            WeightedWord("glitch", PartOfSpeech.NOUN, 100),
            WeightedWord("tape", PartOfSpeech.NOUN, 100),
        ]
        scored = {c.term.category_id: c.score for c in self.matcher.score_words(words)}

        assert scored["DSGNRythm"] == pytest.approx(110)
        assert scored["OBJMisc"] == pytest.approx(100)
        assert all(c.match_type == "pos_weighted" for c in self.matcher.score_words(words))

    def test_score_words_uses_weight(self):
        words = [WeightedWord("tape", PartOfSpeech.VERB, 60)]
        scored = {c.term.category_id: c.score for c in self.matcher.score_words(words)}
        assert scored["OBJMisc"] == pytest.approx(60)

    def test_score_word_pairs(self):
        words = [
            WeightedWord("door", PartOfSpeech.NOUN, 100),
            WeightedWord("slam", PartOfSpeech.VERB, 60),
        ]
        best = self.matcher.score_word_pairs(words)[0]

        assert best.term.category_id == "OBJImpt"
        assert best.match_type == "word_pair"
        # "door slam" 完全相同（100）乘上平均權重 0.8
        assert best.score == pytest.approx(80)

    def test_analyze_uses_analyzer(self):
        words = self.matcher.analyze("Heavy Door Slam")
        assert [w.word for w in words][:2] == ["door", "heavy"]

    def test_analyze_without_analyzer(self, term_table):
        assert TermMatcher(term_table).analyze("door") == []


class TestFuseSearch:
    """加權欄位模糊搜尋"""

    @pytest.fixture(autouse=True)
    def setup(self, matcher):
        self.matcher = matcher

    def test_typo_candidates(self):
        """拼錯的輸入收集不到候選，模糊搜尋仍能找到"""
        assert self.matcher.rank("casette") == []

        best = self.matcher.fuse_search("casette")[0]
        assert best.term.category_id == "OBJTape"
        assert best.match_type == "fuse"
        # 同義詞 cassette：相似度 14/15，欄位權重 0.7 / 0.8
        assert best.score == pytest.approx(14 / 15 * 0.875 * 50)

    def test_phrase_typo(self):
        best = self.matcher.fuse_search("door slm")[0]
        assert best.term.category_id == "OBJImpt"
        assert best.score == pytest.approx(16 / 17 * 50)

    def test_uses_fuse_weight(self, registry):
        registry.match_settings.priority_weights.fuse_match = 10
        assert self.matcher.fuse_search("door slm")[0].score == pytest.approx(16 / 17 * 10)

    def test_settings_change_rebuilds(self, registry):
        assert self.matcher.fuse_search("door slm")
        registry.match_settings.fuse.threshold = 0.99
        assert self.matcher.fuse_search("door slm") == []

    def test_empty_and_unloaded(self):
        assert self.matcher.fuse_search("") == []
        assert self.matcher.fuse_search(None) == []
        assert TermMatcher(TermTable()).fuse_search("door slm") == []

    def test_error_degrades(self, events, monkeypatch):
        def boom(text, settings, raw=None):
            raise RuntimeError("scorer failed")

        monkeypatch.setattr(self.matcher, "_fuse_candidates", boom)
        assert self.matcher.fuse_search("door slm") == []
        assert events.of_type("degraded")[0]["stage"] == "fuse_search"


class TestIdentifyCategory:
    """主分類判斷"""

    def test_from_find_match(self, matcher):
        assert matcher.identify_category("old cassette tape") == "OBJECTS"

    def test_empty(self, matcher):
        assert matcher.identify_category("") == ""

    def test_unloaded(self):
        assert TermMatcher(TermTable()).identify_category("tape") == ""


class TestDegradation:
    """錯誤降級"""

    def test_internal_error_degrades_to_none(self, matcher, events, monkeypatch):
        def boom(text, settings, raw=None):
            raise RuntimeError("index corrupted")

        monkeypatch.setattr(matcher, "_collect", boom)

        assert matcher.find_match("door slam", trace_id="t-1") is None
        degraded = events.of_type("degraded")
        assert len(degraded) == 1
        assert degraded[0]["trace_id"] == "t-1"
        assert degraded[0]["exception_type"] == "RuntimeError"

    def test_raise_policy(self, matcher, monkeypatch):
        def boom(text, settings, raw=None):
            raise RuntimeError("index corrupted")

        monkeypatch.setattr(matcher, "_collect", boom)

        with pytest.raises(RuntimeError):
            matcher.find_match("door slam", fail_policy="raise")
        with pytest.raises(RuntimeError):
            matcher.find_match("door slam", mode="evaluation")

    def test_bad_keyword_pattern_is_skipped(self, term_table):
        """無法編譯的自訂關鍵字正則只會被略過"""
        events = EventRecorder()
        registry = MatchStrategyRegistry(
            match_settings=MatchSettings(extra_keyword_patterns={"broken": "([", "hiss": r"\bhiss\b"})
        )
        matcher = TermMatcher(term_table, registry=registry, on_event=events)

        assert matcher.find_match("old cassette tape hiss").source == "cassette tape"
        assert len(events.of_type("pattern_error")) == 1

    def test_reload_rebuilds_index(self, term_table):
        matcher = TermMatcher(term_table)
        assert matcher.find_match("vinyl crackle") is None

        term_table.load(TERMS_CSV + "MUSCVinyl,MUSC,MUSIC,音乐,vinyl,黑胶,,\n")
        assert matcher.find_match("vinyl crackle").category_id == "MUSCVinyl"

    def test_all_matches_rules(self, term_table):
        """規則庫設定 allMatches 時所有命中的規則都成為候選"""
        rules = dict(GLITCH_RULES)
        rules["settings"] = {"multiMatchStrategy": "allMatches"}
        rules["specialPatterns"] = GLITCH_RULES["specialPatterns"] + [
            {"matchType": "contains", "pattern": "robot", "result": {"catID": "ROBTMisc"}}
        ]
        rule_table = RuleTable()
        rule_table.load(rules, term_table)
        matcher = TermMatcher(term_table, rule_table)

        special = [c for c in matcher.collect_candidates("glitchy robot") if c.match_type == "special_rule"]
        assert {c.term.category_id for c in special} == {"DSGNRythm", "ROBTMisc"}


class TestRuleInputForms:
    """規則以原始檔名撰寫時（底線、繁體）也必須優先於一般詞條"""

    @pytest.mark.parametrize(
        "match_type, pattern, filename",
        [
            ("contains", "door_slam", "Door_Slam_Heavy"),
            ("regex", "^door_slam", "Door_Slam_Heavy"),
            ("startsWith", "DOOR_", "Door_Slam_Heavy"),
            ("contains", "門", "門聲"),
        ],
    )
    def test_rule_fires_on_raw_filename(self, term_table, match_type, pattern, filename):
        rule_table = RuleTable()
        rule_table.load(
            {"specialPatterns": [{"matchType": match_type, "pattern": pattern, "result": {"catID": "DSGNRythm"}}]},
            term_table,
        )
        matcher = TermMatcher(term_table, rule_table)

        assert matcher.find_match(filename).category_id == "DSGNRythm"
        assert matcher.rank(filename)[0].match_type == "special_rule"

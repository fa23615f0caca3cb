"""
詞性分析器測試

jieba、nltk 與 requests 以假物件替代，不需要安裝選用依賴。
"""

import pytest

from ucsmatch.analysis import (
    JiebaAnalyzer,
    LexiconAnalyzer,
    NltkAnalyzer,
    PartOfSpeechAnalyzer,
    RemoteAnalyzer,
    ScriptRouter,
    default_analyzer,
    resolve_analyzer,
)
from ucsmatch.analysis.tags import map_tag
from ucsmatch.config import PosWeights
from ucsmatch.core.models import PartOfSpeech
from ucsmatch.core.protocols import AnalyzerProtocol

from conftest import EventRecorder


class TestLexiconAnalyzer:
    """詞典分析器"""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.analyzer = LexiconAnalyzer()

    def test_sorted_by_weight(self):
        """名詞 > 形容詞 > 動詞，同權重保持出現順序"""
        words = self.analyzer.analyze("Heavy Metal Door Slam")
        assert [(w.word, w.weight) for w in words] == [
            ("metal", 100),
            ("door", 100),
            ("heavy", 80),
            ("slam", 60),
        ]

    def test_duplicates_collapsed(self):
        words = self.analyzer.analyze("door DOOR slam door")
        assert [w.word for w in words] == ["door", "slam"]

    def test_stopwords_and_numbers_dropped(self):
        words = self.analyzer.analyze("the door of 03")
        assert [w.word for w in words] == ["door"]

    def test_hyphen_splits_words(self):
        """連字號與底線、空白一樣是分隔符"""
        words = self.analyzer.analyze("door-slam metal_hit")
        assert {w.word for w in words} == {"door", "slam", "metal", "hit"}
        assert self.analyzer.analyze("sci-fi") == self.analyzer.analyze("sci fi")

    def test_apostrophe_kept(self):
        assert [word for word, _ in self.analyzer.tag("rock'n")] == ["rock'n"]

    def test_ing_form(self):
        words = self.analyzer.analyze("knocking")
        assert words[0].word == "knock"
        assert words[0].part_of_speech is PartOfSpeech.VERB

    def test_suffix_rules(self):
        tagged = dict(self.analyzer.tag("slowly crashed wonderful"))
        assert tagged["slowly"] is PartOfSpeech.ADVERB
        assert tagged["crashed"] is PartOfSpeech.VERB
        assert tagged["wonderful"] is PartOfSpeech.ADJECTIVE

    def test_special_sound_verbs(self):
        assert self.analyzer.tag_word("clink") == ("clink", PartOfSpeech.VERB)

    def test_chinese(self):
        """中文連續漢字視為名詞，語尾助詞決定詞性"""
        words = self.analyzer.analyze("键盘 快速地")
        tagged = {w.word: w.part_of_speech for w in words}
        assert tagged["键盘"] is PartOfSpeech.NOUN
        assert tagged["快速"] is PartOfSpeech.ADVERB

    def test_mixed_script(self):
        words = self.analyzer.analyze("UI点击 click")
        assert {w.word for w in words} >= {"ui", "点击", "click"}

    def test_custom_weights(self):
        analyzer = LexiconAnalyzer(weights=PosWeights(noun=10, verb=90))
        words = analyzer.analyze("door slam")
        assert [(w.word, w.weight) for w in words] == [("slam", 90), ("door", 10)]

    def test_extra_lexicon(self):
        analyzer = LexiconAnalyzer(extra_lexicon={"zap": "v"})
        assert analyzer.tag_word("zap") == ("zap", PartOfSpeech.VERB)

    def test_empty_input(self):
        assert self.analyzer.analyze("") == []
        assert self.analyzer.analyze(None) == []
        assert self.analyzer.analyze("   ") == []

    def test_satisfies_protocol(self):
        assert isinstance(self.analyzer, AnalyzerProtocol)


class _BrokenAnalyzer(PartOfSpeechAnalyzer):
    name = "broken"

    def tag(self, text):
        raise RuntimeError("segmenter crashed")


class TestAnalysisDegradation:
    """分析失敗時回傳空序列"""

    def test_failure_returns_empty(self):
        events = EventRecorder()
        analyzer = _BrokenAnalyzer(on_event=events)

        assert analyzer.analyze("door slam") == []
        degraded = events.of_type("degraded")
        assert degraded[0]["degrade_reason"] == "analysis_error"
        assert degraded[0]["component"] == "analyzer.broken"

    def test_handler_error_does_not_propagate(self):
        """事件回呼本身出錯也不影響分析"""

        def bad_handler(event):
            raise ValueError("handler bug")

        assert _BrokenAnalyzer(on_event=bad_handler).analyze("door") == []


class _FakePosseg:
    def __init__(self, pairs):
        self.pairs = pairs

    def lcut(self, text):
        return list(self.pairs)


class TestJiebaAnalyzer:
    """jieba 分析器（以假的 posseg 替代）"""

    def test_tags_are_mapped(self, monkeypatch):
        fake = _FakePosseg([("键盘", "n"), ("的", "uj"), ("打字", "v"), ("，", "x")])
        monkeypatch.setattr("ucsmatch.analysis.jieba_analyzer.get_jieba_posseg", lambda: fake)

        analyzer = JiebaAnalyzer()
        analyzer.initialize()
        words = analyzer.analyze("键盘的打字")

        assert [(w.word, w.part_of_speech) for w in words] == [
            ("键盘", PartOfSpeech.NOUN),
            ("打字", PartOfSpeech.VERB),
        ]

    def test_latin_segments_use_lexicon(self, monkeypatch):
        fake = _FakePosseg([("键盘", "n")])
        monkeypatch.setattr("ucsmatch.analysis.jieba_analyzer.get_jieba_posseg", lambda: fake)

        words = JiebaAnalyzer().analyze("键盘 click")
        assert {w.word for w in words} == {"键盘", "click"}

    def test_missing_dependency(self, monkeypatch):
        def missing():
            raise ImportError("no jieba")

        monkeypatch.setattr("ucsmatch.analysis.jieba_analyzer.get_jieba_posseg", missing)
        with pytest.raises(ImportError):
            JiebaAnalyzer().initialize()


class _FakeNltk:
    """只提供 pos_tag；未指定的詞標成 NN"""

    def __init__(self, tags=None, missing_data=False):
        self.tags = tags or {}
        self.missing_data = missing_data
        self.calls = []

    def pos_tag(self, words):
        if self.missing_data:
            raise LookupError("Resource averaged_perceptron_tagger_eng not found.")
        self.calls.append(list(words))
        return [(w, self.tags.get(w, "NN")) for w in words]


class TestNltkAnalyzer:
    """nltk 分析器（以假的 nltk 替代）"""

    def test_penn_tags_are_mapped(self, monkeypatch):
        fake = _FakeNltk({"heavy": "JJ", "door": "NN", "slam": "VBD"})
        monkeypatch.setattr("ucsmatch.analysis.nltk_analyzer.get_nltk", lambda: fake)

        words = NltkAnalyzer().analyze("Heavy Door-Slam 03")

        assert [(w.word, w.part_of_speech) for w in words] == [
            ("door", PartOfSpeech.NOUN),
            ("heavy", PartOfSpeech.ADJECTIVE),
            ("slam", PartOfSpeech.VERB),
        ]
        # 數字與停用詞在標註前就去掉
        assert fake.calls[-1] == ["heavy", "door", "slam"]

    def test_untagged_words_use_lexicon(self, monkeypatch):
        fake = _FakeNltk({"metal": "DT", "clink": "NN"})
        monkeypatch.setattr("ucsmatch.analysis.nltk_analyzer.get_nltk", lambda: fake)

        tagged = dict(NltkAnalyzer().tag("metal clink"))

        assert tagged["metal"] is PartOfSpeech.NOUN
        assert tagged["clink"] is PartOfSpeech.VERB

    def test_chinese_segments_use_lexicon(self, monkeypatch):
        fake = _FakeNltk()
        monkeypatch.setattr("ucsmatch.analysis.nltk_analyzer.get_nltk", lambda: fake)

        words = NltkAnalyzer().analyze("键盘 click")

        assert {w.word for w in words} == {"键盘", "click"}
        assert fake.calls[-1] == ["click"]

    def test_missing_tagger_data(self, monkeypatch):
        monkeypatch.setattr(
            "ucsmatch.analysis.nltk_analyzer.get_nltk", lambda: _FakeNltk(missing_data=True)
        )
        with pytest.raises(LookupError):
            NltkAnalyzer().initialize()
        assert type(resolve_analyzer([NltkAnalyzer, LexiconAnalyzer])) is LexiconAnalyzer

    def test_missing_dependency(self, monkeypatch):
        def missing():
            raise ImportError("no nltk")

        monkeypatch.setattr("ucsmatch.analysis.nltk_analyzer.get_nltk", missing)
        with pytest.raises(ImportError):
            NltkAnalyzer().initialize()


class TestDefaultAnalyzer:
    """預設分析器的組合"""

    @staticmethod
    def _missing():
        raise ImportError("not installed")

    def test_nltk_before_lexicon(self, monkeypatch):
        monkeypatch.setattr("ucsmatch.analysis.nltk_analyzer.get_nltk", lambda: _FakeNltk())
        monkeypatch.setattr("ucsmatch.analysis.jieba_analyzer.get_jieba_posseg", self._missing)

        assert isinstance(default_analyzer(), NltkAnalyzer)

    def test_jieba_uses_nltk_for_latin(self, monkeypatch):
        monkeypatch.setattr(
            "ucsmatch.analysis.nltk_analyzer.get_nltk", lambda: _FakeNltk({"slam": "NN"})
        )
        monkeypatch.setattr(
            "ucsmatch.analysis.jieba_analyzer.get_jieba_posseg", lambda: _FakePosseg([("键盘", "n")])
        )

        analyzer = default_analyzer()
        tagged = {w.word: w.part_of_speech for w in analyzer.analyze("键盘 slam")}

        assert isinstance(analyzer, JiebaAnalyzer)
        # 詞典會把 slam 判成動詞，這裡採用 nltk 的標註
        assert tagged == {"键盘": PartOfSpeech.NOUN, "slam": PartOfSpeech.NOUN}

    def test_lexicon_when_nothing_installed(self, monkeypatch):
        monkeypatch.setattr("ucsmatch.analysis.nltk_analyzer.get_nltk", self._missing)
        monkeypatch.setattr("ucsmatch.analysis.jieba_analyzer.get_jieba_posseg", self._missing)

        assert type(default_analyzer()) is LexiconAnalyzer


class _FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise RuntimeError(f"HTTP {self.status}")

    def json(self):
        return self.payload


class _FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append((url, json, timeout))
        return self.response


class TestRemoteAnalyzer:
    """遠端分析器（以假的 session 替代）"""

    def test_parses_result(self):
        session = _FakeSession(
            _FakeResponse({"success": True, "result": [{"word": "door", "pos": "n"}, {"word": "slam", "pos": "VB"}]})
        )
        analyzer = RemoteAnalyzer("http://localhost/pos", session=session, timeout=2.0)
        words = analyzer.analyze("door slam")

        assert [(w.word, w.part_of_speech) for w in words] == [
            ("door", PartOfSpeech.NOUN),
            ("slam", PartOfSpeech.VERB),
        ]
        assert session.calls == [("http://localhost/pos", {"text": "door slam"}, 2.0)]

    def test_bare_list_payload(self):
        session = _FakeSession(_FakeResponse([{"word": "loud", "tag": "adjective"}]))
        words = RemoteAnalyzer("http://localhost/pos", session=session).analyze("loud")
        assert words[0].part_of_speech is PartOfSpeech.ADJECTIVE

    def test_service_failure_degrades(self):
        events = EventRecorder()
        session = _FakeSession(_FakeResponse({"success": False, "message": "busy"}))
        analyzer = RemoteAnalyzer("http://localhost/pos", session=session, on_event=events)

        assert analyzer.analyze("door") == []
        assert len(events.of_type("degraded")) == 1

    def test_http_error_degrades(self):
        session = _FakeSession(_FakeResponse({}, status=503))
        assert RemoteAnalyzer("http://localhost/pos", session=session).analyze("door") == []

    def test_requires_endpoint(self):
        with pytest.raises(ValueError):
            RemoteAnalyzer("", session=object()).initialize()


class TestAnalyzerSelection:
    """第一個初始化成功的分析器勝出"""

    def test_first_available_wins(self):
        lexicon = LexiconAnalyzer()
        assert resolve_analyzer([lexicon]) is lexicon

    def test_skips_failing_candidates(self):
        class Unavailable(LexiconAnalyzer):
            def initialize(self):
                raise ImportError("missing backend")

        chosen = resolve_analyzer([Unavailable, LexiconAnalyzer])
        assert type(chosen) is LexiconAnalyzer

    def test_fallback_when_all_fail(self):
        def factory():
            raise RuntimeError("cannot build")

        chosen = resolve_analyzer([factory, RemoteAnalyzer("", session=object())])
        assert isinstance(chosen, LexiconAnalyzer)

    def test_weights_are_passed_to_classes(self):
        chosen = resolve_analyzer([LexiconAnalyzer], weights=PosWeights(noun=1))
        assert chosen.weights.noun == 1


class TestTagMapping:
    """標記對照"""

    @pytest.mark.parametrize(
        "tag, expected",
        [
            ("n", PartOfSpeech.NOUN),
            ("nrfg", PartOfSpeech.NOUN),
            ("vn", PartOfSpeech.VERB),
            ("ad", PartOfSpeech.ADVERB),
            ("NNS", PartOfSpeech.NOUN),
            ("VBG", PartOfSpeech.VERB),
            ("JJ", PartOfSpeech.ADJECTIVE),
            ("RB", PartOfSpeech.ADVERB),
            ("DT", PartOfSpeech.OTHER),
            ("adj", PartOfSpeech.ADJECTIVE),
            ("", PartOfSpeech.OTHER),
        ],
    )
    def test_map_tag(self, tag, expected):
        assert map_tag(tag) is expected


class TestScriptRouter:
    def test_split(self):
        assert ScriptRouter().split_by_script("UI点击sound") == [("en", "UI"), ("zh", "点击"), ("en", "sound")]

    def test_numbers_join_chinese(self):
        assert ScriptRouter().split_by_script("门3号") == [("zh", "门3号")]

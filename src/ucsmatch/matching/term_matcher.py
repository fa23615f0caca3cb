"""
詞條比對器 (TermMatcher)

核心演算法：對正規化後的輸入，從每一種比對方式收集候選，
最後依 multi_match_strategy 取捨：

1. 特殊規則      special_rule        exact_match + rule_bonus
2. 多詞片語      multi_word_<stage>  依子策略計分
3. 完全相同      exact_match         exact_match
4. 子字串包含    contains_match      len(source) / len(text) * contains_match（長者優先）
5. 同義詞        synonym_exact / synonym_contains
6. 在地化名稱    localized_exact / localized_contains
7. 關鍵字正則    regex_<type>        regex_match

fuse_search 另外提供加權欄位模糊搜尋（match_type "fuse"，相似度 * fuse_match），
不列入上述收集流程，由分類器的整段比對步驟合併使用。

分數只在同一次排序內可比較。比對過程中的任何錯誤都會降級為「無匹配」，
除非呼叫時指定 fail_policy="raise"（或 mode="evaluation"）。
"""

from __future__ import annotations

import logging
import re
import threading
import uuid
from dataclasses import asdict, dataclass
from typing import Dict, Hashable, List, Optional, Pattern, Sequence, Tuple, Union

from ucsmatch.analysis.base import PartOfSpeechAnalyzer
from ucsmatch.config import MatchSettings
from ucsmatch.core.errors import PatternError
from ucsmatch.core.events import MatchEventHandler, emit_event, resolve_fail_policy
from ucsmatch.core.models import MatchCandidate, MultiMatchStrategy, TermRecord, WeightedWord
from ucsmatch.data.rule_table import RuleTable
from ucsmatch.data.term_table import TermTable
from ucsmatch.utils.logger import TimingContext, get_logger
from ucsmatch.utils.text import normalize_text

from .fuse import FuseScorer
from .multi_word import MultiWordMatcher
from .phrase_index import PhraseIndex
from .strategy_registry import MatchStrategyRegistry

MatchOutcome = Union[TermRecord, List[TermRecord], None]


@dataclass(frozen=True)
class _IndexedTerm:
    order: int
    term: TermRecord
    source: str
    words: Tuple[str, ...]
    synonyms: Tuple[str, ...]
    localized: str


class _TermIndex:
    """
    詞庫的正規化索引

    詞庫 revision 或影響索引的設定改變時重建。
    """

    def __init__(
        self,
        terms: Sequence[TermRecord],
        settings: MatchSettings,
        on_pattern_error,
    ):
        simplify = settings.normalize_chinese

        entries: List[_IndexedTerm] = []
        for order, term in enumerate(terms):
            source = normalize_text(term.source, simplify)
            if not source:
                continue
            synonyms = {}
            for raw in term.synonyms + term.synonyms_localized:
                value = normalize_text(raw, simplify)
                if value:
                    synonyms.setdefault(value, None)
            localized = normalize_text(term.target, simplify)
            entries.append(
                _IndexedTerm(
                    order=order,
                    term=term,
                    source=source,
                    words=tuple(source.split()),
                    synonyms=tuple(sorted(synonyms, key=len, reverse=True)),
                    localized="" if localized == source else localized,
                )
            )

        self.entries = entries
        self.by_length = sorted(entries, key=lambda e: len(e.source), reverse=True)
        self.multi_word = [e for e in entries if len(e.words) > 1]
        self.sources: PhraseIndex[int] = PhraseIndex((e.source, e.order) for e in entries)
        self.synonym_index: PhraseIndex[Tuple[int, str]] = PhraseIndex(
            (s, (e.order, s)) for e in entries for s in e.synonyms
        )
        self.localized_index: PhraseIndex[int] = PhraseIndex(
            (e.localized, e.order) for e in entries if e.localized
        )
        self.patterns = self._build_patterns(settings, on_pattern_error)

    def _build_patterns(self, settings: MatchSettings, on_pattern_error) -> List[Tuple[str, Pattern[str]]]:
        patterns: List[Tuple[str, Pattern[str]]] = [
            ("version", re.compile(r"\bv\d+(?:\.\d+)*")),
        ]
        if settings.audio_extensions:
            exts = "|".join(re.escape(ext.lower()) for ext in settings.audio_extensions)
            patterns.append(("audio_file", re.compile(rf"\.({exts})\b")))

        keywords = self._sample_keywords(settings.keyword_min_length, settings.keyword_sample_size)
        if keywords:
            alternation = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
            patterns.append(("sound_effect", re.compile(rf"\b({alternation})\b")))

        for pattern_type, raw in settings.extra_keyword_patterns.items():
            try:
                patterns.append((pattern_type, re.compile(raw, re.IGNORECASE)))
            except re.error as exc:
                on_pattern_error(PatternError(raw, str(exc), rule_id=pattern_type))
        return patterns

    def _sample_keywords(self, min_length: int, limit: int) -> List[str]:
        keywords: Dict[str, None] = {}
        for entry in self.entries:
            for value in (entry.source,) + entry.synonyms:
                if len(value) >= min_length:
                    keywords.setdefault(value, None)
                if len(keywords) >= limit:
                    return list(keywords)
        return list(keywords)


class TermMatcher:
    """
    詞條比對器

    持有 TermTable / RuleTable 的唯讀參考；MatchSettings 由 MatchStrategyRegistry 提供，
    每次呼叫開始時取一次，整個呼叫過程使用同一份設定。
    """

    def __init__(
        self,
        term_table: TermTable,
        rule_table: Optional[RuleTable] = None,
        *,
        analyzer: Optional[PartOfSpeechAnalyzer] = None,
        registry: Optional[MatchStrategyRegistry] = None,
        settings: Optional[MatchSettings] = None,
        on_event: Optional[MatchEventHandler] = None,
    ):
        self._term_table = term_table
        self._rule_table = rule_table
        self._analyzer = analyzer
        self._registry = registry
        self._settings = settings
        self._on_event = on_event
        self._logger = get_logger("matching.term_matcher")

        self._lock = threading.Lock()
        self._index: Optional[_TermIndex] = None
        self._index_key: Optional[Hashable] = None
        self._multi_word: Optional[MultiWordMatcher] = None
        self._multi_word_key: Optional[str] = None
        self._fuse: Optional[FuseScorer] = None
        self._fuse_key: Optional[Hashable] = None

    @property
    def term_table(self) -> TermTable:
        return self._term_table

    @property
    def rule_table(self) -> Optional[RuleTable]:
        return self._rule_table

    @property
    def analyzer(self) -> Optional[PartOfSpeechAnalyzer]:
        return self._analyzer

    @property
    def registry(self) -> Optional[MatchStrategyRegistry]:
        return self._registry

    @property
    def settings(self) -> MatchSettings:
        """目前生效的設定（registry 優先）"""
        if self._registry is not None:
            return self._registry.match_settings
        if self._settings is None:
            self._settings = MatchSettings()
        return self._settings

    # =========================================================================
    # 公開 API
    # =========================================================================

    def find_match(
        self,
        text: Optional[str],
        *,
        mode: Optional[str] = None,
        fail_policy: str = "degrade",
        trace_id: Optional[str] = None,
    ) -> MatchOutcome:
        """
        找出最符合 text 的詞條

        Returns:
            - highestPriority: 分數最高的詞條
            - firstMatch: 最先收集到的候選
            - allMatches: 所有候選詞條（依收集順序）
            沒有候選、輸入為空或詞庫未載入時為 None
        """
        settings = self.settings.copy()
        candidates = self._collect_safely(text, settings, mode, fail_policy, trace_id, "find_match")
        if not candidates:
            return None

        strategy = settings.multi_match_strategy
        if strategy is MultiMatchStrategy.FIRST_MATCH:
            return candidates[0].term
        if strategy is MultiMatchStrategy.ALL_MATCHES:
            return [c.term for c in candidates]

        best = max(candidates, key=lambda c: c.score)
        self._logger.debug("最佳匹配: %s (%s, %.2f)", best.term.source, best.match_type, best.score)
        return best.term

    def collect_candidates(
        self,
        text: Optional[str],
        settings: Optional[MatchSettings] = None,
        *,
        mode: Optional[str] = None,
        fail_policy: str = "degrade",
        trace_id: Optional[str] = None,
    ) -> List[MatchCandidate]:
        """依收集順序回傳所有候選"""
        return self._collect_safely(
            text, settings or self.settings.copy(), mode, fail_policy, trace_id, "collect_candidates"
        )

    def rank(
        self,
        text: Optional[str],
        settings: Optional[MatchSettings] = None,
        *,
        mode: Optional[str] = None,
        fail_policy: str = "degrade",
        trace_id: Optional[str] = None,
    ) -> List[MatchCandidate]:
        """所有候選依分數由高到低排序（同分保持收集順序）"""
        candidates = self.collect_candidates(
            text, settings, mode=mode, fail_policy=fail_policy, trace_id=trace_id
        )
        return sorted(candidates, key=lambda c: c.score, reverse=True)

    def analyze(self, text: str) -> List[WeightedWord]:
        """以設定的詞性分析器分析文字；沒有分析器時回傳空列表"""
        if self._analyzer is None:
            return []
        return self._analyzer.analyze(text)

    def score_words(
        self,
        words: Sequence[WeightedWord],
        *,
        max_words: int = 5,
        settings: Optional[MatchSettings] = None,
    ) -> List[MatchCandidate]:
        """
        詞性加權的單詞比對

        對權重最高的 max_words 個詞分別比對，每個詞條的分數為
        Σ (該詞的最佳分數 * 詞權重 / 100)。
        """
        settings = settings or self.settings.copy()
        totals: Dict[TermRecord, float] = {}
        for word in list(words)[: max(0, int(max_words))]:
            for term, candidate in best_per_term(self.rank(word.word, settings)).items():
                totals[term] = totals.get(term, 0.0) + candidate.score * word.weight / 100
        return _to_candidates(totals, "pos_weighted")

    def score_word_pairs(
        self,
        words: Sequence[WeightedWord],
        *,
        max_words: int = 4,
        settings: Optional[MatchSettings] = None,
    ) -> List[MatchCandidate]:
        """
        高權重詞兩兩組合成片語再比對（兩種順序都試）

        分數乘上兩詞的平均權重 / 100，每個詞條取最高分。
        """
        settings = settings or self.settings.copy()
        top = list(words)[: max(0, int(max_words))]
        best: Dict[TermRecord, float] = {}
        for i in range(len(top)):
            for j in range(i + 1, len(top)):
                a, b = top[i], top[j]
                factor = (a.weight + b.weight) / 200
                for phrase in (f"{a.word} {b.word}", f"{b.word} {a.word}"):
                    for term, candidate in best_per_term(self.rank(phrase, settings)).items():
                        score = candidate.score * factor
                        if score > best.get(term, -1.0):
                            best[term] = score
        return _to_candidates(best, "word_pair")

    def fuse_search(
        self,
        text: Optional[str],
        settings: Optional[MatchSettings] = None,
        *,
        mode: Optional[str] = None,
        fail_policy: str = "degrade",
        trace_id: Optional[str] = None,
    ) -> List[MatchCandidate]:
        """
        加權欄位模糊搜尋

        相似度達到 settings.fuse.threshold 的詞條，分數為 相似度 * fuse_match，
        match_type 為 "fuse"，依分數由高到低排序。
        """
        settings = settings or self.settings.copy()
        return self._collect_safely(
            text, settings, mode, fail_policy, trace_id, "fuse_search", collector=self._fuse_candidates
        )

    def identify_category(self, text: Optional[str]) -> str:
        """
        回傳輸入所屬的主分類名稱

        先用 find_match；找不到且輸入為單一詞時，改以詞條片語的完全相同、開頭、包含關係判斷。
        """
        if not text or not self._term_table.loaded:
            return ""

        match = self.find_match(text)
        if isinstance(match, list):
            match = match[0] if match else None
        if match is not None and match.category_name:
            return match.category_name

        settings = self.settings
        lowered = normalize_text(text, settings.normalize_chinese)
        if not lowered or " " in lowered:
            return ""

        weights = settings.priority_weights
        best_name = ""
        best_score = -1.0
        for entry in self._ensure_index(settings).entries:
            if entry.source == lowered:
                score = weights.exact_match
            elif lowered.startswith(entry.source):
                score = len(entry.source) / len(lowered) * weights.partial_match
            elif entry.source in lowered:
                score = len(entry.source) / len(lowered) * weights.contains_match / 2
            else:
                continue
            if score > best_score:
                best_score = score
                best_name = entry.term.category_name or entry.term.source
        return best_name

    # =========================================================================
    # 內部流程
    # =========================================================================

    def _collect_safely(
        self,
        text: Optional[str],
        settings: MatchSettings,
        mode: Optional[str],
        fail_policy: str,
        trace_id: Optional[str],
        operation: str,
        collector=None,
    ) -> List[MatchCandidate]:
        if not text or not isinstance(text, str) or not self._term_table.loaded:
            return []

        policy = resolve_fail_policy(mode, fail_policy)
        with TimingContext(f"TermMatcher.{operation}", self._logger, logging.DEBUG):
            try:
                normalized = normalize_text(text, settings.normalize_chinese)
                if not normalized:
                    return []
                return (collector or self._collect)(normalized, settings, raw=text)
            except Exception as exc:
                if policy == "raise":
                    raise
                self._logger.warning("比對 %r 失敗，視為無匹配: %s", text, exc)
                emit_event(
                    self._on_event,
                    {
                        "type": "degraded",
                        "component": "term_matcher",
                        "trace_id": trace_id or uuid.uuid4().hex,
                        "stage": operation,
                        "text": text,
                        "degrade_reason": "match_error",
                        "exception_type": type(exc).__name__,
                        "exception_message": str(exc),
                    },
                    self._logger,
                )
                return []

    def _collect(self, text: str, settings: MatchSettings, raw: Optional[str] = None) -> List[MatchCandidate]:
        index = self._ensure_index(settings)
        weights = settings.priority_weights
        candidates: List[MatchCandidate] = []

        # 1. 特殊規則
        candidates.extend(self._rule_candidates(raw or text, settings))

        # 2. 多詞片語
        if len(text.split()) > 1 and index.multi_word:
            multi_word = self._ensure_multi_word(settings)
            for entry in index.multi_word:
                result = multi_word.match(text, entry.words)
                if result.matched:
                    candidates.append(MatchCandidate(entry.term, result.score, f"multi_word_{result.stage}"))

        # 3. 完全相同
        for entry in index.entries:
            if entry.source == text:
                candidates.append(MatchCandidate(entry.term, weights.exact_match, "exact_match"))

        # 4. 子字串包含（長者優先；已完全相同者不重複計分）
        found = index.sources.find_values(text)
        if found:
            for entry in index.by_length:
                if entry.order in found and entry.source != text:
                    score = len(entry.source) / len(text) * weights.contains_match
                    candidates.append(MatchCandidate(entry.term, score, "contains_match"))

        # 5. 同義詞（每個詞條只取最長的一個命中）
        found_synonyms = index.synonym_index.find_values(text)
        if found_synonyms:
            for entry in index.entries:
                for synonym in entry.synonyms:
                    if synonym == text:
                        candidates.append(MatchCandidate(entry.term, weights.synonym_match, "synonym_exact"))
                        break
                    if (entry.order, synonym) in found_synonyms:
                        score = len(synonym) / len(text) * weights.synonym_match
                        candidates.append(MatchCandidate(entry.term, score, "synonym_contains"))
                        break

        # 6. 在地化名稱
        if settings.match_localized:
            found_localized = index.localized_index.find_values(text)
            for entry in index.entries:
                if entry.order not in found_localized:
                    continue
                if entry.localized == text:
                    candidates.append(MatchCandidate(entry.term, weights.semantic_match, "localized_exact"))
                else:
                    score = len(entry.localized) / len(text) * weights.semantic_match
                    candidates.append(MatchCandidate(entry.term, score, "localized_contains"))

        # 7. 關鍵字正則
        candidates.extend(self._regex_candidates(text, index, settings))
        return candidates

    def _fuse_candidates(self, text: str, settings: MatchSettings, raw: Optional[str] = None) -> List[MatchCandidate]:
        weight = settings.priority_weights.fuse_match
        return [
            MatchCandidate(term, similarity * weight, "fuse")
            for term, similarity in self._ensure_fuse(settings).search(text)
        ]

    def _rule_candidates(self, text: str, settings: MatchSettings) -> List[MatchCandidate]:
        if self._rule_table is None:
            return []
        hits = self._rule_table.evaluate(text)
        if not hits:
            return []

        # 規則已依 priority 排序，firstMatch 與 highestPriority 都取第一條
        if self._rule_table.settings.multi_match_strategy is not MultiMatchStrategy.ALL_MATCHES:
            hits = hits[:1]
        score = settings.priority_weights.rule_match
        return [MatchCandidate(term, score, "special_rule") for rule in hits for term in rule.results]

    @staticmethod
    def _regex_candidates(text: str, index: _TermIndex, settings: MatchSettings) -> List[MatchCandidate]:
        score = settings.priority_weights.regex_match
        out: List[MatchCandidate] = []
        for pattern_type, pattern in index.patterns:
            m = pattern.search(text)
            if not m:
                continue
            if pattern_type == "sound_effect":
                keyword = m.group(1)
                for entry in index.entries:
                    if keyword in entry.source or any(keyword in s for s in entry.synonyms):
                        out.append(MatchCandidate(entry.term, score, "regex_sound_effect"))
                        break
            else:
                for entry in index.entries:
                    if pattern_type in entry.source:
                        out.append(MatchCandidate(entry.term, score, f"regex_{pattern_type}"))
                        break
        return out

    def _ensure_index(self, settings: MatchSettings) -> _TermIndex:
        key = (
            self._term_table.revision,
            settings.normalize_chinese,
            settings.keyword_min_length,
            settings.keyword_sample_size,
            settings.audio_extensions,
            tuple(sorted(settings.extra_keyword_patterns.items())),
        )
        with self._lock:
            if self._index is None or self._index_key != key:
                with TimingContext("TermMatcher.build_index", self._logger, logging.DEBUG):
                    self._index = _TermIndex(self._term_table.terms, settings, self._report_pattern_error)
                self._index_key = key
            return self._index

    def _ensure_multi_word(self, settings: MatchSettings) -> MultiWordMatcher:
        key = settings.fingerprint()
        with self._lock:
            if self._multi_word is None or self._multi_word_key != key:
                self._multi_word = MultiWordMatcher(settings)
                self._multi_word_key = key
            return self._multi_word

    def _ensure_fuse(self, settings: MatchSettings) -> FuseScorer:
        key = (self._term_table.revision, settings.normalize_chinese, tuple(asdict(settings.fuse).items()))
        with self._lock:
            if self._fuse is None or self._fuse_key != key:
                with TimingContext("TermMatcher.build_fuse", self._logger, logging.DEBUG):
                    self._fuse = FuseScorer(self._term_table.terms, settings.fuse, settings.normalize_chinese)
                self._fuse_key = key
            return self._fuse

    def _report_pattern_error(self, error: PatternError) -> None:
        self._logger.warning("%s，已略過", error)
        emit_event(
            self._on_event,
            {
                "type": "pattern_error",
                "component": "term_matcher",
                "stage": "build_index",
                "text": error.pattern,
                "exception_type": type(error).__name__,
                "exception_message": str(error),
            },
            self._logger,
        )


def best_per_term(candidates: Sequence[MatchCandidate]) -> Dict[TermRecord, MatchCandidate]:
    """每個詞條保留分數最高的候選（保持第一次出現的順序）"""
    best: Dict[TermRecord, MatchCandidate] = {}
    for candidate in candidates:
        current = best.get(candidate.term)
        if current is None or candidate.score > current.score:
            best[candidate.term] = candidate
    return best


def _to_candidates(scores: Dict[TermRecord, float], match_type: str) -> List[MatchCandidate]:
    ranked = [MatchCandidate(term, score, match_type) for term, score in scores.items() if score > 0]
    return sorted(ranked, key=lambda c: c.score, reverse=True)

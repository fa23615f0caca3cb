"""
分類器 (Classifier)

把一個檔名（以及選用的機器翻譯、AI 分類結果）解析成 UCS 分類。
依登錄表中已啟用策略的優先順序逐一嘗試，第一個達到門檻的結果勝出：

    ai -> bilingual -> pos -> translated -> multiWord -> keyword

任何一步失敗只會被記錄並跳過，不會中斷整批檔案的處理；
全部策略都沒有結果時回傳 None，由呼叫端決定預設分類或人工處理。
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ucsmatch.analysis.base import PartOfSpeechAnalyzer
from ucsmatch.analysis.lexicon import LexiconAnalyzer
from ucsmatch.config import MatchSettings
from ucsmatch.core.events import MatchEventHandler, emit_event, resolve_fail_policy
from ucsmatch.core.models import ClassificationResult, MatchCandidate, PartOfSpeech, TermRecord, WeightedWord
from ucsmatch.matching.strategy_registry import MatchStrategyRegistry, StrategyConfig
from ucsmatch.matching.term_matcher import TermMatcher, best_per_term
from ucsmatch.utils.logger import TimingContext, get_logger
from ucsmatch.utils.number_extractor import NumberExtractor
from ucsmatch.utils.text import normalize_text

AUTO = "auto"

AIResult = Union[ClassificationResult, Mapping[str, Any], str]

POS_BOOST_FACTORS: Dict[PartOfSpeech, float] = {
    PartOfSpeech.NOUN: 0.2,
    PartOfSpeech.ADJECTIVE: 0.15,
    PartOfSpeech.VERB: 0.12,
    PartOfSpeech.ADVERB: 0.08,
    PartOfSpeech.OTHER: 0.1,
}


@dataclass
class _Context:
    filename: str
    text: str
    translated: Optional[str]
    ai_result: Optional[AIResult]
    settings: MatchSettings
    trace_id: str
    analyze: Callable[[str], List[WeightedWord]]
    _words: Optional[List[WeightedWord]] = field(default=None, repr=False)

    @property
    def words(self) -> List[WeightedWord]:
        if self._words is None:
            self._words = self.analyze(self.text)
        return self._words


class Classifier:
    """
    分類器

    Args:
        matcher: 詞條比對器
        analyzer: 詞性分析器；未提供時沿用 matcher 的分析器，再沒有則用 LexiconAnalyzer
        registry: 策略登錄表；未提供時沿用 matcher 的登錄表，再沒有則用預設值
        validate_ai: 是否驗證 AI 提供的 CatID 存在於詞庫
        on_event: 事件回呼
    """

    def __init__(
        self,
        matcher: TermMatcher,
        *,
        analyzer: Optional[PartOfSpeechAnalyzer] = None,
        registry: Optional[MatchStrategyRegistry] = None,
        validate_ai: bool = True,
        on_event: Optional[MatchEventHandler] = None,
    ):
        self._matcher = matcher
        self._analyzer = analyzer or matcher.analyzer or LexiconAnalyzer()
        self._registry = registry or matcher.registry or MatchStrategyRegistry()
        self._validate_ai = validate_ai
        self._on_event = on_event
        self._logger = get_logger("classification.classifier")
        self._steps: Dict[str, Callable[[_Context, StrategyConfig], Optional[ClassificationResult]]] = {
            "ai": self._step_ai,
            "bilingual": self._step_bilingual,
            "pos": self._step_pos,
            "translated": self._step_translated,
            "multiWord": self._step_multi_word,
            "keyword": self._step_keyword,
        }

    @property
    def matcher(self) -> TermMatcher:
        return self._matcher

    @property
    def registry(self) -> MatchStrategyRegistry:
        return self._registry

    # =========================================================================
    # 公開 API
    # =========================================================================

    def classify(
        self,
        filename: Optional[str],
        ai_result: Optional[AIResult] = None,
        *,
        translated_text: Optional[str] = None,
        match_strategy: str = AUTO,
        mode: Optional[str] = None,
        fail_policy: str = "degrade",
        trace_id: Optional[str] = None,
    ) -> Optional[ClassificationResult]:
        """
        分類一個檔名

        Args:
            filename: 原始檔名（可含序號與副檔名）
            ai_result: AI 分類結果（dict、ClassificationResult 或 CatID 字串）
            translated_text: 檔名的機器翻譯
            match_strategy: "auto" 依登錄表順序嘗試；指定策略 key 時只執行該策略
            mode / fail_policy: "evaluation" / "raise" 時不吞掉內部錯誤
            trace_id: 事件追蹤 ID

        Returns:
            ClassificationResult；沒有任何策略達到門檻時為 None

        Raises:
            ValueError: match_strategy 不是已知的策略 key
        """
        if not filename or not isinstance(filename, str):
            return None

        policy = resolve_fail_policy(mode, fail_policy)
        snapshot = self._registry.snapshot()
        strategies = self._select_strategies(snapshot, match_strategy)
        ctx = _Context(
            filename=filename,
            text=self._prepare_name(filename, snapshot.match_settings),
            translated=translated_text.strip() if translated_text and translated_text.strip() else None,
            ai_result=ai_result,
            settings=snapshot.match_settings,
            trace_id=trace_id or uuid.uuid4().hex,
            analyze=self.analyze_pos,
        )

        with TimingContext("Classifier.classify", self._logger, logging.DEBUG):
            for config in strategies:
                try:
                    result = self._steps[config.key](ctx, config)
                except Exception as exc:
                    if policy == "raise":
                        raise
                    self._logger.warning("策略 %s 處理 %r 失敗，改試下一個: %s", config.key, filename, exc)
                    emit_event(
                        self._on_event,
                        {
                            "type": "degraded",
                            "component": "classifier",
                            "trace_id": ctx.trace_id,
                            "stage": config.key,
                            "text": filename,
                            "degrade_reason": "strategy_error",
                            "exception_type": type(exc).__name__,
                            "exception_message": str(exc),
                        },
                        self._logger,
                    )
                    continue

                if result is not None:
                    self._logger.debug("%r -> %s (%s, %.2f)", filename, result.category_id, config.key, result.score)
                    emit_event(
                        self._on_event,
                        {
                            "type": "strategy_hit",
                            "component": "classifier",
                            "trace_id": ctx.trace_id,
                            "text": filename,
                            "strategy": config.key,
                            "score": result.score,
                            "category_id": result.category_id,
                        },
                        self._logger,
                    )
                    return result

        self._logger.debug("%r 沒有任何策略達到門檻", filename)
        return None

    def validate_category_id(self, category_id: Optional[str]) -> bool:
        """CatID 必須存在於至少一筆詞條"""
        if not category_id:
            return False
        table = self._matcher.term_table
        return table.loaded and table.has_category_id(category_id)

    def process_ai_classification(
        self,
        ai_result: Optional[AIResult],
        filename: str = "",
        trace_id: Optional[str] = None,
    ) -> Optional[ClassificationResult]:
        """
        驗證 AI 分類結果

        CatID 有效時回傳結果（缺少的欄位由詞庫補齊）；無效時送出 ai_rejected 事件並回傳 None。
        """
        if ai_result is None:
            return None

        if isinstance(ai_result, ClassificationResult):
            proposed = ai_result
        elif isinstance(ai_result, str):
            proposed = ClassificationResult.from_mapping({"catID": ai_result})
        else:
            proposed = ClassificationResult.from_mapping(ai_result)

        category_id = proposed.category_id
        if self._validate_ai and not self.validate_category_id(category_id):
            self._logger.warning("AI 分類結果驗證失敗: %s -> %r", filename, category_id)
            emit_event(
                self._on_event,
                {
                    "type": "ai_rejected",
                    "component": "classifier",
                    "trace_id": trace_id or uuid.uuid4().hex,
                    "text": filename,
                    "category_id": category_id or "",
                },
                self._logger,
            )
            return None

        term = self._matcher.term_table.find_by_category_id(category_id)
        if term is None:
            return ClassificationResult(
                category_id=proposed.category_id,
                category_short=proposed.category_short,
                category=proposed.category,
                category_localized=proposed.category_localized,
                sub_category=proposed.sub_category,
                sub_category_localized=proposed.sub_category_localized,
                strategy="ai",
            )
        return ClassificationResult(
            category_id=category_id,
            category_short=proposed.category_short or term.category_short,
            category=proposed.category or term.category_name,
            category_localized=proposed.category_localized or term.category_name_localized,
            sub_category=proposed.sub_category or term.source,
            sub_category_localized=proposed.sub_category_localized or term.target,
            strategy="ai",
        )

    def analyze_pos(self, text: str) -> List[WeightedWord]:
        return self._analyzer.analyze(text)

    # =========================================================================
    # 策略
    # =========================================================================

    def _step_ai(self, ctx: _Context, config: StrategyConfig) -> Optional[ClassificationResult]:
        return self.process_ai_classification(ctx.ai_result, ctx.filename, ctx.trace_id)

    def _step_bilingual(self, ctx: _Context, config: StrategyConfig) -> Optional[ClassificationResult]:
        if not ctx.translated:
            return None

        original = self._full_text_scores(ctx.text, ctx.settings)
        translated = self._full_text_scores(ctx.translated, ctx.settings)
        original_weight = float(config.get("originalWeight", 3.5))
        translated_weight = float(config.get("translatedWeight", 1.0))
        pos_boost = float(config.get("posBoost", 1.0))

        combined: Dict[TermRecord, float] = {}
        for term, score in original.items():
            combined[term] = score * original_weight
        for term, score in translated.items():
            combined[term] = combined.get(term, 0.0) + score * translated_weight

        if pos_boost > 0 and combined:
            words = ctx.words + self.analyze_pos(ctx.translated)
            for term in combined:
                combined[term] *= 1 + pos_boost * self._pos_boost(term, words, ctx.settings)

        return self._best_above(combined, config)

    def _step_pos(self, ctx: _Context, config: StrategyConfig) -> Optional[ClassificationResult]:
        words = ctx.words
        if not words:
            return None

        fuse_weight = float(config.get("fuseWeight", 1.0))
        semantic_weight = float(config.get("semanticWeight", 0.5))
        max_words = int(config.get("maxWords", 5))

        totals: Dict[TermRecord, float] = {}
        for term, score in self._full_text_scores(ctx.text, ctx.settings).items():
            totals[term] = score * fuse_weight
        for candidate in self._matcher.score_words(words, max_words=max_words, settings=ctx.settings):
            totals[candidate.term] = totals.get(candidate.term, 0.0) + candidate.score * semantic_weight

        return self._best_above(totals, config)

    def _step_translated(self, ctx: _Context, config: StrategyConfig) -> Optional[ClassificationResult]:
        if not ctx.translated:
            return None
        return self._top_above(self._matcher.rank(ctx.translated, ctx.settings), config)

    def _step_multi_word(self, ctx: _Context, config: StrategyConfig) -> Optional[ClassificationResult]:
        words = ctx.words
        if len(words) < 2:
            return None
        max_words = int(config.get("maxWords", 4))
        candidates = self._matcher.score_word_pairs(words, max_words=max_words, settings=ctx.settings)
        return self._top_above(candidates, config)

    def _step_keyword(self, ctx: _Context, config: StrategyConfig) -> Optional[ClassificationResult]:
        words = ctx.words
        if not words:
            return None
        return self._top_above(self._matcher.rank(words[0].word, ctx.settings), config)

    # =========================================================================
    # 內部工具
    # =========================================================================

    def _select_strategies(self, registry: MatchStrategyRegistry, match_strategy: Optional[str]) -> List[StrategyConfig]:
        if not match_strategy or match_strategy == AUTO:
            return [s for s in registry.get_enabled_strategies_in_order() if s.key in self._steps]
        config = registry.get(match_strategy)
        if config is None or match_strategy not in self._steps:
            raise ValueError(f"未知的比對策略: {match_strategy!r}")
        return [config]

    @staticmethod
    def _prepare_name(filename: str, settings: MatchSettings) -> str:
        """去掉已知音訊副檔名與序號"""
        name = filename.strip()
        stem, ext = os.path.splitext(name)
        if stem and ext[1:].lower() in settings.audio_extensions:
            name = stem
        return NumberExtractor.extract(name).text or name

    def _full_text_scores(self, text: str, settings: MatchSettings) -> Dict[TermRecord, float]:
        """整段文字對每個詞條的分數：收集式比對與加權模糊搜尋取高"""
        scores = {term: c.score for term, c in best_per_term(self._matcher.rank(text, settings)).items()}
        for candidate in self._matcher.fuse_search(text, settings):
            if candidate.score > scores.get(candidate.term, 0.0):
                scores[candidate.term] = candidate.score
        return scores

    @staticmethod
    def _pos_boost(term: TermRecord, words: List[WeightedWord], settings: MatchSettings) -> float:
        fields = [term.source, term.target, *term.synonyms, *term.synonyms_localized]
        haystack = [normalize_text(f, settings.normalize_chinese) for f in fields]
        boost = 0.0
        for word in words:
            if any(word.word in h for h in haystack):
                boost += word.weight * POS_BOOST_FACTORS[word.part_of_speech] / 100
        return boost

    @staticmethod
    def _best_above(scores: Dict[TermRecord, float], config: StrategyConfig) -> Optional[ClassificationResult]:
        if not scores:
            return None
        term, score = max(scores.items(), key=lambda item: item[1])
        if score <= 0 or score < config.threshold:
            return None
        return ClassificationResult.from_term(term, strategy=config.key, score=score)

    @staticmethod
    def _top_above(candidates: List[MatchCandidate], config: StrategyConfig) -> Optional[ClassificationResult]:
        if not candidates:
            return None
        best = max(candidates, key=lambda c: c.score)
        if best.score <= 0 or best.score < config.threshold:
            return None
        return ClassificationResult.from_term(best.term, strategy=config.key, score=best.score)

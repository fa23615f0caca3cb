"""
分類引擎 (ClassificationEngine)

持有詞庫、規則庫、詞性分析器與策略登錄表，
並提供工廠方法建立共享這些資源的 TermMatcher / Classifier。

    engine = ClassificationEngine(terms_csv, rules_json, verbose=True)
    result = engine.classify("Metal Door Slam 03.wav")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from ucsmatch.analysis.base import PartOfSpeechAnalyzer
from ucsmatch.analysis.selection import default_analyzer
from ucsmatch.classification.ai import AIClassifier
from ucsmatch.classification.classifier import AUTO, Classifier
from ucsmatch.config import TermColumns
from ucsmatch.core.events import MatchEventHandler, resolve_fail_policy
from ucsmatch.core.models import ClassificationResult, TermRecord
from ucsmatch.data.rule_table import RuleTable
from ucsmatch.data.term_table import TermTable
from ucsmatch.matching.strategy_registry import MatchStrategyRegistry
from ucsmatch.matching.term_matcher import MatchOutcome, TermMatcher
from ucsmatch.utils.logger import TimingContext, get_logger, setup_logger


class ClassificationEngine:
    _engine_name = "classification"

    def __init__(
        self,
        terms_text: Optional[str] = None,
        rules_text: Optional[Union[str, bytes, Mapping[str, Any]]] = None,
        *,
        analyzer: Optional[PartOfSpeechAnalyzer] = None,
        registry: Optional[MatchStrategyRegistry] = None,
        columns: Optional[TermColumns] = None,
        verbose: bool = False,
        on_timing: Optional[Callable[[str, float], None]] = None,
        on_event: Optional[MatchEventHandler] = None,
    ):
        self._init_logger(verbose=verbose, on_timing=on_timing)
        self._on_event = on_event

        with self._log_timing("ClassificationEngine.__init__"):
            self._registry = registry or MatchStrategyRegistry()
            self._analyzer = analyzer or default_analyzer(on_event=on_event)
            self._term_table = TermTable(columns=columns)
            self._rule_table = RuleTable(on_event=on_event)

            if terms_text is not None:
                self.load_terms(terms_text)
            if rules_text is not None:
                self.load_rules(rules_text)

            self._matcher = self.create_matcher()
            self._classifier = self.create_classifier()
            self._logger.info("ClassificationEngine initialized (analyzer=%s)", self._analyzer.name)

    def _init_logger(
        self,
        verbose: bool = False,
        on_timing: Optional[Callable[[str, float], None]] = None,
    ) -> None:
        self._verbose = verbose
        self._timing_callback = on_timing

        if verbose:
            setup_logger(level=logging.DEBUG)

        self._logger = get_logger(f"engine.{self._engine_name}")

    def _log_timing(self, operation: str) -> TimingContext:
        return TimingContext(
            operation=operation,
            logger=self._logger,
            level=logging.DEBUG,
            callback=self._timing_callback,
        )

    @property
    def term_table(self) -> TermTable:
        return self._term_table

    @property
    def rule_table(self) -> RuleTable:
        return self._rule_table

    @property
    def registry(self) -> MatchStrategyRegistry:
        return self._registry

    @property
    def analyzer(self) -> PartOfSpeechAnalyzer:
        return self._analyzer

    @property
    def matcher(self) -> TermMatcher:
        return self._matcher

    @property
    def classifier(self) -> Classifier:
        return self._classifier

    # =========================================================================
    # 載入
    # =========================================================================

    def load_terms(self, text: str) -> List[TermRecord]:
        with self._log_timing("ClassificationEngine.load_terms"):
            return self._term_table.load(text)

    def load_terms_file(self, path: Union[str, Path], encoding: str = "utf-8-sig") -> List[TermRecord]:
        return self.load_terms(Path(path).read_text(encoding=encoding))

    def load_rules(self, raw: Union[str, bytes, Mapping[str, Any]]) -> int:
        """載入規則庫，回傳規則數量（規則結果以目前詞庫補齊）"""
        with self._log_timing("ClassificationEngine.load_rules"):
            return len(self._rule_table.load(raw, self._term_table))

    def load_rules_file(self, path: Union[str, Path], encoding: str = "utf-8") -> int:
        return self.load_rules(Path(path).read_text(encoding=encoding))

    # =========================================================================
    # 工廠
    # =========================================================================

    def create_matcher(self) -> TermMatcher:
        return TermMatcher(
            self._term_table,
            self._rule_table,
            analyzer=self._analyzer,
            registry=self._registry,
            on_event=self._on_event,
        )

    def create_classifier(self, matcher: Optional[TermMatcher] = None, **kwargs) -> Classifier:
        kwargs.setdefault("on_event", self._on_event)
        return Classifier(matcher or self._matcher, **kwargs)

    # =========================================================================
    # 便利方法
    # =========================================================================

    def find_match(self, text: str, **kwargs) -> MatchOutcome:
        return self._matcher.find_match(text, **kwargs)

    def classify(self, filename: str, ai_result: Any = None, **kwargs) -> Optional[ClassificationResult]:
        return self._classifier.classify(filename, ai_result, **kwargs)

    def classify_batch(
        self,
        filenames: Sequence[str],
        *,
        ai_classifier: Optional[AIClassifier] = None,
        translations: Optional[Mapping[str, str]] = None,
        match_strategy: str = AUTO,
        mode: Optional[str] = None,
        fail_policy: str = "degrade",
    ) -> Dict[str, Optional[ClassificationResult]]:
        """
        批次分類

        提供 ai_classifier 時先整批取得 AI 分類；AIClassifier 逐批降級，
        失敗的批次只影響該批檔案。整個 ai_classifier 呼叫失敗時（degrade 策略下）
        記錄警告並全部改用其他策略。
        """
        policy = resolve_fail_policy(mode, fail_policy)
        translations = translations or {}
        ai_results: Dict[str, Any] = {}

        with self._log_timing(f"ClassificationEngine.classify_batch({len(filenames)})"):
            if ai_classifier is not None and filenames:
                try:
                    ai_results = ai_classifier.classify_batch(filenames, fail_policy=policy)
                except Exception as exc:
                    if policy == "raise":
                        raise
                    self._logger.warning("AI 批次分類失敗，改用其他策略: %s", exc)

            return {
                filename: self._classifier.classify(
                    filename,
                    ai_results.get(filename),
                    translated_text=translations.get(filename),
                    match_strategy=match_strategy,
                    fail_policy=policy,
                )
                for filename in filenames
            }

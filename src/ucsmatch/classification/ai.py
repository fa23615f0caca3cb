"""
AI 分類輔助

AI 分類屬於網路工作，不在同步核心之內：呼叫端以 AIClassifier 取得結果，
再把結果交給 Classifier.classify(filename, ai_result) 做 CatID 驗證。

- build_batch_prompt: 批次提示詞
- parse_ai_response: 從模型回應中擷取 JSON
- AIClassifier: 分批送出、以有界 LRU 緩存結果
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ucsmatch.core.errors import AIResponseError
from ucsmatch.core.events import MatchEventHandler, emit_event, resolve_fail_policy
from ucsmatch.core.protocols.translator import TranslatorProtocol
from ucsmatch.utils.cache import LRUCache
from ucsmatch.utils.logger import get_logger

_FENCED_RE = re.compile(r"```(?:json)?\s*\n(.*?)\n\s*```", re.DOTALL)
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")

_AI_FIELDS = ("catID", "catShort", "category", "category_zh", "subCategory", "subCategory_zh")

_logger = get_logger("classification.ai")


def build_batch_prompt(filenames: Sequence[str], valid_category_ids: Optional[Iterable[str]] = None) -> str:
    """
    建立批次分類提示詞

    Args:
        filenames: 音效檔名
        valid_category_ids: 可用的 CatID（提供時列入提示詞，限制模型只能從中選擇）
    """
    lines = [
        "你是專業的音效分類專家，請依照 UCS（Universal Category System）規則，",
        "為下列每個音效檔名提供分類資訊。",
        "",
        "只回傳 JSON，格式如下：",
        "{",
        '  "results": [',
        '    {"filename": "檔名", "classification": {',
        '      "catID": "DSGNRythm", "catShort": "DSGN",',
        '      "category": "DESIGNED", "category_zh": "声音设计",',
        '      "subCategory": "RHYTHMIC", "subCategory_zh": "节奏性"}}',
        "  ]",
        "}",
        "",
        "規則：",
        "1. catID 必須是既有的 UCS CatID，不可自創",
        "2. 無法確定的欄位設為 null",
    ]
    if valid_category_ids:
        ids = sorted(set(valid_category_ids))
        lines.append("3. 可用的 catID：" + ", ".join(ids))
    lines += ["", "檔名："]
    lines += list(filenames)
    return "\n".join(lines)


def _extract_json(response: str) -> str:
    stripped = response.strip()
    try:
        json.loads(stripped)
        return stripped
    except ValueError:
        pass

    m = _FENCED_RE.search(response)
    if m:
        candidate = m.group(1)
    else:
        start = response.find("{")
        end = response.rfind("}")
        if start == -1 or end <= start:
            raise AIResponseError("AI 回應中找不到 JSON")
        candidate = response[start:end + 1]

    candidate = _CONTROL_RE.sub("", candidate)
    return _TRAILING_COMMA_RE.sub(r"\1", candidate)


def _clean_classification(data: Mapping[str, Any]) -> Dict[str, Optional[str]]:
    return {key: (str(data[key]) if data.get(key) is not None else None) for key in _AI_FIELDS}


def parse_ai_response(response: str, filenames: Sequence[str] = ()) -> Dict[str, Dict[str, Optional[str]]]:
    """
    解析 AI 回應

    接受 {"results": [{"filename", "classification"}]} 或 {檔名: classification} 兩種格式。

    Returns:
        {檔名: {catID, catShort, category, category_zh, subCategory, subCategory_zh}}

    Raises:
        AIResponseError: 擷取不到 JSON 或 JSON 無法解析
    """
    if not response or not isinstance(response, str):
        raise AIResponseError("AI 回應為空")

    raw = _extract_json(response)
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise AIResponseError(f"AI 回應 JSON 無法解析: {exc}") from exc

    result: Dict[str, Dict[str, Optional[str]]] = {}
    if isinstance(data, Mapping) and isinstance(data.get("results"), list):
        for item in data["results"]:
            if not isinstance(item, Mapping):
                continue
            filename = item.get("filename")
            classification = item.get("classification")
            if filename and isinstance(classification, Mapping):
                result[str(filename)] = _clean_classification(classification)
    elif isinstance(data, Mapping):
        for filename, classification in data.items():
            if isinstance(classification, Mapping):
                result[str(filename)] = _clean_classification(classification)
    else:
        raise AIResponseError("AI 回應 JSON 頂層必須是物件")

    missing = [f for f in filenames if f not in result]
    if missing:
        _logger.warning("AI 回應缺少 %d 個檔案的分類: %s", len(missing), missing)
    return result


class AIClassifier:
    """
    批次 AI 分類

    以 TranslatorProtocol.translate(prompt, "auto", "auto") 送出提示詞。
    每一批獨立處理：某一批的翻譯服務錯誤或回應無法解析時，
    該批檔案對應 None 並送出 degraded 事件，其餘批次的結果照常回傳；
    fail_policy="raise"（或 mode="evaluation"）時直接拋出。
    """

    def __init__(
        self,
        translator: TranslatorProtocol,
        *,
        batch_size: int = 5,
        cache_size: int = 512,
        valid_category_ids: Optional[Iterable[str]] = None,
        on_event: Optional[MatchEventHandler] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._translator = translator
        self._batch_size = batch_size
        self._cache: LRUCache[Dict[str, Optional[str]]] = LRUCache(cache_size)
        self._valid_ids = sorted(set(valid_category_ids)) if valid_category_ids else None
        self._on_event = on_event

    @property
    def cache(self) -> LRUCache:
        return self._cache

    def classify(
        self,
        filename: str,
        *,
        mode: Optional[str] = None,
        fail_policy: str = "degrade",
    ) -> Optional[Dict[str, Optional[str]]]:
        return self.classify_batch([filename], mode=mode, fail_policy=fail_policy).get(filename)

    def classify_batch(
        self,
        filenames: Sequence[str],
        *,
        mode: Optional[str] = None,
        fail_policy: str = "degrade",
    ) -> Dict[str, Optional[Dict[str, Optional[str]]]]:
        """
        Returns:
            {檔名: AI 分類 dict 或 None}；已緩存的檔名不會再送出
        """
        policy = resolve_fail_policy(mode, fail_policy)
        results: Dict[str, Optional[Dict[str, Optional[str]]]] = {}
        pending: List[str] = []
        for filename in dict.fromkeys(filenames):
            cached = self._cache.get(filename)
            if cached is not None:
                results[filename] = cached
            else:
                pending.append(filename)

        for start in range(0, len(pending), self._batch_size):
            batch = pending[start:start + self._batch_size]
            prompt = build_batch_prompt(batch, self._valid_ids)
            _logger.debug("送出 AI 分類請求，共 %d 個檔案", len(batch))
            try:
                parsed = parse_ai_response(self._translator.translate(prompt, "auto", "auto"), batch)
            except Exception as exc:
                if policy == "raise":
                    raise
                _logger.warning(
                    "第 %d 批 AI 分類失敗，該批 %d 個檔案改用其他策略: %s",
                    start // self._batch_size + 1, len(batch), exc,
                )
                emit_event(
                    self._on_event,
                    {
                        "type": "degraded",
                        "component": "ai_classifier",
                        "stage": "classify_batch",
                        "text": ", ".join(batch),
                        "degrade_reason": "ai_batch_error",
                        "exception_type": type(exc).__name__,
                        "exception_message": str(exc),
                    },
                    _logger,
                )
                parsed = {}

            for filename in batch:
                classification = parsed.get(filename)
                if classification is not None:
                    self._cache.put(filename, classification)
                results[filename] = classification
        return results

    def clear_cache(self) -> None:
        self._cache.clear()

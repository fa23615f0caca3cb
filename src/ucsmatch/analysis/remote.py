"""
遠端服務式詞性分析器

把文字 POST 到 HTTP 詞性分析服務：

    request:  {"text": "..."}
    response: {"success": true, "result": [{"word": "...", "pos": "n"}, ...]}
              或直接回傳 [{"word": "...", "pos": "NN"}, ...]

詞性標記可為 ICTCLAS、Penn Treebank 或 noun/verb 等通用名稱。
需要安裝 `ucsmatch[remote]`。網路錯誤在 analyze() 中被降級為空結果。
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from ucsmatch.config import PosWeights
from ucsmatch.core.events import MatchEventHandler
from ucsmatch.core.models import PartOfSpeech
from ucsmatch.utils.lazy_imports import get_requests

from .base import PartOfSpeechAnalyzer
from .tags import map_tag


class RemoteAnalyzer(PartOfSpeechAnalyzer):
    name = "remote"

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 5.0,
        headers: Optional[Mapping[str, str]] = None,
        session: Any = None,
        weights: Optional[PosWeights] = None,
        on_event: Optional[MatchEventHandler] = None,
    ):
        super().__init__(weights=weights, on_event=on_event)
        self.endpoint = endpoint
        self.timeout = timeout
        self.headers: Dict[str, str] = dict(headers or {})
        self._session = session

    def initialize(self) -> None:
        if not self.endpoint:
            raise ValueError("RemoteAnalyzer 需要 endpoint")
        if self._session is None:
            self._session = get_requests().Session()
        self._initialized = True

    def tag(self, text: str) -> List[Tuple[str, PartOfSpeech]]:
        if self._session is None:
            self.initialize()

        response = self._session.post(
            self.endpoint,
            json={"text": text},
            headers=self.headers or None,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return self._parse(response.json())

    @staticmethod
    def _parse(payload: Any) -> List[Tuple[str, PartOfSpeech]]:
        if isinstance(payload, Mapping):
            if payload.get("success") is False:
                raise RuntimeError(f"遠端詞性分析失敗: {payload.get('message') or payload.get('error')}")
            items = payload.get("result") or payload.get("words") or []
        else:
            items = payload
        if not isinstance(items, list):
            raise ValueError("遠端詞性分析回應格式錯誤")

        tagged: List[Tuple[str, PartOfSpeech]] = []
        for item in items:
            if not isinstance(item, Mapping):
                continue
            word = str(item.get("word") or "")
            tagged.append((word, map_tag(str(item.get("pos") or item.get("tag") or ""))))
        return tagged

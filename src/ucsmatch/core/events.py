"""
事件模型（Event Model）

比對與分類過程預設不輸出到 stdout。
若需要知道「哪個策略命中」或「哪一步被降級」，請傳入事件回呼（event handler）。

設計原則：
- Production favors availability：允許降級，但不允許「默默」降級。
- Evaluation favors detectability：fail_policy="raise" 時遇到錯誤直接拋出。
"""

from __future__ import annotations

import logging
from typing import Callable, Literal, Optional, TypedDict


class MatchEvent(TypedDict, total=False):
    type: Literal["degraded", "pattern_error", "strategy_hit", "ai_rejected"]
    component: str
    trace_id: str
    text: str

    # strategy_hit
    strategy: str
    match_type: str
    score: float
    category_id: str

    # pipeline / diagnostics
    stage: str
    degrade_reason: str
    exception_type: str
    exception_message: str


MatchEventHandler = Callable[[MatchEvent], None]

FailPolicy = Literal["degrade", "raise"]


def resolve_fail_policy(mode: Optional[str], fail_policy: str) -> str:
    """mode="evaluation" 強制 raise，mode="production" 強制 degrade"""
    if mode == "evaluation":
        return "raise"
    if mode == "production":
        return "degrade"
    if fail_policy not in ("degrade", "raise"):
        raise ValueError(f"未知的 fail_policy: {fail_policy!r}")
    return fail_policy


def emit_event(
    handler: Optional[MatchEventHandler],
    event: MatchEvent,
    logger: logging.Logger,
) -> None:
    """送出事件；回呼本身出錯只記錄，不影響比對"""
    if handler is None:
        return
    try:
        handler(event)
    except Exception:
        logger.exception("on_event 回呼執行失敗")

"""
有界 LRU 緩存

比對過程中的中間結果（多詞片語比對、AI 分類結果）都以正規化後的輸入為 key，
容量固定，超過容量時淘汰最久未使用的項目。

用法：
    from ucsmatch.utils.cache import LRUCache

    cache = LRUCache(capacity=1024)
    hit = cache.get(key)
    if hit is None:
        cache.put(key, compute())
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Dict, Generic, Hashable, Optional, TypeVar

V = TypeVar("V")


class LRUCache(Generic[V]):
    """
    固定容量的 LRU 緩存

    - capacity == 0 時停用緩存（get 一律 miss、put 不保存）
    - 支援多執行緒同時讀寫
    """

    def __init__(self, capacity: int = 1024):
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        self._capacity = capacity
        self._data: "OrderedDict[Hashable, V]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: Hashable, default: Optional[V] = None) -> Optional[V]:
        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
                self._hits += 1
                return self._data[key]
            self._misses += 1
            return default

    def put(self, key: Hashable, value: V) -> None:
        if self._capacity == 0:
            return
        with self._lock:
            self._data[key] = value
            self._data.move_to_end(key)
            while len(self._data) > self._capacity:
                self._data.popitem(last=False)

    def clear(self) -> None:
        """清除內容與統計"""
        with self._lock:
            self._data.clear()
            self._hits = 0
            self._misses = 0

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def stats(self) -> Dict[str, Any]:
        """
        取得緩存統計

        Returns:
            Dict: hits / misses / hit_rate / size / capacity
        """
        with self._lock:
            total = self._hits + self._misses
            return {
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / total if total > 0 else 0.0,
                "size": len(self._data),
                "capacity": self._capacity,
            }

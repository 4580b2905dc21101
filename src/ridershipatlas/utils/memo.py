from __future__ import annotations

import hashlib
import json
from collections import OrderedDict
from typing import Any, Callable, Optional, TypeVar


T = TypeVar("T")


class Memoizer:
    """
    Small in-memory memo table for aggregate results, keyed by a hash of the inputs.

    Callers bump the dataset version when the underlying rows change so stale entries
    are never hit; the oldest entries are evicted past `max_entries`.
    """

    def __init__(self, max_entries: int = 256) -> None:
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive: {max_entries}")
        self._max = max_entries
        self._entries: OrderedDict[str, Any] = OrderedDict()

    def make_key(self, namespace: str, payload: Any) -> str:
        raw = json.dumps({"ns": namespace, "payload": payload}, sort_keys=True, ensure_ascii=False, default=str)
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def get(self, key: str) -> Optional[Any]:
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self._max:
            self._entries.popitem(last=False)

    def get_or_compute(self, namespace: str, payload: Any, compute: Callable[[], T]) -> T:
        key = self.make_key(namespace, payload)
        if key in self._entries:
            self._entries.move_to_end(key)
            return self._entries[key]
        value = compute()
        self.set(key, value)
        return value

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

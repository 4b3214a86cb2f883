from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Protocol


class QuotaStore(Protocol):
    def get(self, key: str) -> int: ...

    def increment(self, key: str) -> int: ...


@dataclass(frozen=True)
class QuotaStatus:
    limit: int
    used: int

    @property
    def remaining(self) -> int:
        return max(0, int(self.limit) - int(self.used))

    def to_dict(self) -> dict[str, int]:
        return {"limit": int(self.limit), "used": int(self.used), "remaining": self.remaining}


class InMemoryQuotaStore:
    """Per-client render counter that lives as long as the process.

    Notes:
    - Each call is atomic on its own, but a request reads, awaits the upstream call,
      then increments. Concurrent requests for the same key can therefore overshoot
      the limit by a few renders.
    - Keys are never evicted.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._counts: dict[str, int] = {}

    def get(self, key: str) -> int:
        with self._lock:
            return int(self._counts.get(key, 0))

    def increment(self, key: str) -> int:
        with self._lock:
            value = int(self._counts.get(key, 0)) + 1
            self._counts[key] = value
            return value

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._counts.keys())


def quota_status(store: QuotaStore, key: str, limit: int) -> QuotaStatus:
    return QuotaStatus(limit=int(limit), used=int(store.get(key)))


QUOTA_STORE = InMemoryQuotaStore()

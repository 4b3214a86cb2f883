from __future__ import annotations

from terrastage.core.quota import InMemoryQuotaStore, QuotaStatus, quota_status


def test_unseen_key_reads_zero_without_creating_it() -> None:
    store = InMemoryQuotaStore()

    assert store.get("1.2.3.4") == 0
    assert store.keys() == []


def test_increment_counts_per_key() -> None:
    store = InMemoryQuotaStore()

    assert store.increment("a") == 1
    assert store.increment("a") == 2
    assert store.increment("b") == 1
    assert store.get("a") == 2
    assert store.get("b") == 1
    assert sorted(store.keys()) == ["a", "b"]


def test_status_remaining_never_negative() -> None:
    assert QuotaStatus(limit=3, used=1).to_dict() == {"limit": 3, "used": 1, "remaining": 2}
    assert QuotaStatus(limit=3, used=5).remaining == 0

    store = InMemoryQuotaStore()
    for _ in range(4):
        store.increment("k")
    status = quota_status(store, "k", 3)
    assert status.used == 4
    assert status.remaining == 0

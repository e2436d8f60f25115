from __future__ import annotations

import pytest
import redis

from academy_ops import rate_limiter
from academy_ops.config import BOOKING_RATE_LIMIT
from academy_ops.rate_limiter import check_rate_limit


class FakePipeline:
    def __init__(self, store: "FakeRedis"):
        self.store = store
        self.ops: list[tuple[str, str]] = []

    def incr(self, key: str) -> None:
        self.ops.append(("incr", key))

    def ttl(self, key: str) -> None:
        self.ops.append(("ttl", key))

    def execute(self) -> list[int]:
        results = []
        for op, key in self.ops:
            if op == "incr":
                self.store.counts[key] = self.store.counts.get(key, 0) + 1
                results.append(self.store.counts[key])
            else:
                results.append(self.store.expiries.get(key, -1))
        return results


class FakeRedis:
    """In-memory stand-in for the handful of commands the limiter issues"""

    def __init__(self, counts: dict[str, int] | None = None):
        self.counts = dict(counts or {})
        self.expiries: dict[str, int] = {}

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)

    def expire(self, key: str, seconds: int) -> None:
        self.expiries[key] = seconds


@pytest.fixture
def limiter_enabled(monkeypatch):
    monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", True)


def book(client, slot_id: int = 9999):
    return client.post(
        f"/slots/{slot_id}/book", json={"publicId": "00000000-0000-0000-0000-000000000000"}
    )


def test_fixed_window_counts_and_sets_expiry() -> None:
    fake = FakeRedis()

    first = check_rate_limit("booking:1.2.3.4", 2, 60, fake)
    second = check_rate_limit("booking:1.2.3.4", 2, 60, fake)
    third = check_rate_limit("booking:1.2.3.4", 2, 60, fake)

    assert first == (True, 1, 60)
    assert second == (True, 2, 60)
    assert third == (False, 3, 60)
    assert fake.expiries == {"booking:1.2.3.4": 60}


def test_request_over_limit_gets_429(client, limiter_enabled, monkeypatch) -> None:
    fake = FakeRedis({"booking:testclient": BOOKING_RATE_LIMIT})
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: fake)

    response = book(client)

    assert response.status_code == 429
    assert response.headers["Retry-After"] == str(
        response.json()["detail"]["window_seconds"]
    )


def test_request_within_limit_passes(client, limiter_enabled, monkeypatch) -> None:
    fake = FakeRedis()
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: fake)

    response = book(client)

    # Reaches the booking engine, which reports the unknown applicant
    assert response.status_code == 404
    assert fake.counts == {"booking:testclient": 1}


def test_forwarded_for_header_keys_the_window(client, limiter_enabled, monkeypatch) -> None:
    fake = FakeRedis()
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: fake)

    client.post(
        "/slots/9999/book",
        json={"publicId": "x"},
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )

    assert fake.counts == {"booking:203.0.113.7": 1}


def test_redis_outage_fails_open(client, limiter_enabled, monkeypatch) -> None:
    def unreachable():
        raise redis.ConnectionError("Connection refused")

    monkeypatch.setattr(rate_limiter, "get_redis_client", unreachable)

    response = book(client)

    assert response.status_code == 404

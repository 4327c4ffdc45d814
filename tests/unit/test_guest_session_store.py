"""
Unit tests for the in-memory guest session store.
"""

import asyncio

import pytest

from parley.core.exceptions import CapacityExceededError, GuestLimitExceeded
from parley.infrastructure.local.guest_session_store import InMemoryGuestSessionStore


@pytest.mark.asyncio
async def test_reserve_counts_down_to_the_limit():
    store = InMemoryGuestSessionStore(limit=3)

    assert [await store.reserve("g1") for _ in range(3)] == [2, 1, 0]
    with pytest.raises(GuestLimitExceeded) as exc_info:
        await store.reserve("g1")

    assert isinstance(exc_info.value, CapacityExceededError)
    assert exc_info.value.limit == 3
    assert await store.remaining("g1") == 0


@pytest.mark.asyncio
async def test_sessions_are_independent():
    store = InMemoryGuestSessionStore(limit=1)

    await store.reserve("g1")

    assert await store.remaining("g2") == 1
    assert await store.remaining(None) == 1


@pytest.mark.asyncio
async def test_release_returns_an_allowance():
    store = InMemoryGuestSessionStore(limit=1)
    await store.reserve("g1")

    await store.release("g1")

    assert await store.remaining("g1") == 1


@pytest.mark.asyncio
async def test_concurrent_reservations_never_exceed_limit():
    store = InMemoryGuestSessionStore(limit=5)

    results = await asyncio.gather(
        *[store.reserve("g1") for _ in range(8)],
        return_exceptions=True,
    )

    assert sum(1 for r in results if isinstance(r, GuestLimitExceeded)) == 3
    assert await store.sent_count("g1") == 5


def test_new_session_ids_are_unique():
    store = InMemoryGuestSessionStore()

    assert store.new_session_id() != store.new_session_id()


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_sessions_expire_after_ttl():
    clock = FakeClock()
    store = InMemoryGuestSessionStore(limit=1, ttl_seconds=60, clock=clock)
    await store.reserve("g1")

    clock.now += 61

    assert await store.remaining("g1") == 1
    assert len(store) == 0


@pytest.mark.asyncio
async def test_store_is_bounded_by_max_sessions():
    store = InMemoryGuestSessionStore(limit=5, max_sessions=10)

    for _ in range(100):
        await store.reserve(store.new_session_id())

    assert len(store) <= 10


@pytest.mark.asyncio
async def test_expired_sessions_are_swept_on_new_reservations():
    clock = FakeClock()
    store = InMemoryGuestSessionStore(limit=5, ttl_seconds=60, clock=clock)
    for i in range(20):
        await store.reserve(f"old-{i}")

    clock.now += 120
    await store.reserve("fresh")

    assert len(store) == 1


@pytest.mark.asyncio
async def test_missing_or_unknown_ids_resolve_to_the_client_key():
    store = InMemoryGuestSessionStore(limit=2)

    first = await store.resolve_session_id(None, "10.0.0.1")
    invented = await store.resolve_session_id("guest-made-up", "10.0.0.1")
    other_client = await store.resolve_session_id(None, "10.0.0.2")

    assert first == invented
    assert first != other_client


@pytest.mark.asyncio
async def test_known_session_id_is_kept():
    store = InMemoryGuestSessionStore(limit=2)
    await store.reserve("guest-known")

    assert await store.resolve_session_id("guest-known", "10.0.0.1") == "guest-known"


@pytest.mark.asyncio
async def test_without_client_key_requested_id_is_used():
    store = InMemoryGuestSessionStore()

    assert await store.resolve_session_id("guest-abc", None) == "guest-abc"
    assert (await store.resolve_session_id(None, None)).startswith("guest-")

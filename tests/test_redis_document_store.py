from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Callable

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import WatchError

from recovery_core.services.circle import (
    RedisDocumentStore,
    RosterMutationStatus,
    RosterStore,
    StoreTimeoutError,
    StoreUnavailableError,
)


class FakePipeline:
    def __init__(self, redis: "FakeRedis") -> None:
        self._redis = redis
        self._watched: str | None = None
        self._watched_revision = 0
        self._queued: list[tuple[str, dict[str, str]]] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc_info) -> bool:
        return False

    async def watch(self, key: str) -> None:
        self._watched = key
        self._watched_revision = self._redis.revisions[key]

    async def unwatch(self) -> None:
        self._watched = None

    async def hget(self, key: str, field: str) -> str | None:
        return self._redis.hashes.get(key, {}).get(field)

    def multi(self) -> None:
        self._queued.clear()
        if self._redis.on_multi is not None:
            hook, self._redis.on_multi = self._redis.on_multi, None
            hook()

    def hset(self, key: str, mapping: dict[str, str]) -> "FakePipeline":
        self._queued.append((key, dict(mapping)))
        return self

    async def execute(self) -> list[int]:
        if self._watched and self._redis.revisions[self._watched] != self._watched_revision:
            raise WatchError("Watched variable changed.")
        results = []
        for key, mapping in self._queued:
            self._redis.write(key, mapping)
            results.append(len(mapping))
        self._queued.clear()
        return results


class FakeRedis:
    def __init__(self) -> None:
        self.hashes: dict[str, dict[str, str]] = {}
        self.revisions: dict[str, int] = defaultdict(int)
        self.on_multi: Callable[[], None] | None = None
        self.fail_with: Exception | None = None
        self.delay_seconds = 0.0

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    async def hmget(self, key: str, fields: list[str]) -> list[str | None]:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.fail_with is not None:
            raise self.fail_with
        stored = self.hashes.get(key, {})
        return [stored.get(field) for field in fields]

    def write(self, key: str, mapping: dict[str, str]) -> None:
        self.hashes.setdefault(key, {}).update(mapping)
        self.revisions[key] += 1


@pytest.mark.asyncio
async def test_missing_key_reads_as_version_zero():
    store = RedisDocumentStore(redis_client=FakeRedis())  # type: ignore[arg-type]
    document = await store.get("recovery_circle:owner-1")
    assert document.value is None
    assert document.version == 0
    assert not document.exists


@pytest.mark.asyncio
async def test_write_bumps_version_and_stores_value():
    redis = FakeRedis()
    store = RedisDocumentStore(redis_client=redis)  # type: ignore[arg-type]

    outcome = await store.set("doc", "[]", expected_version=0)
    assert outcome.ok
    assert outcome.new_version == 1
    assert redis.hashes["doc"] == {"value": "[]", "version": "1"}

    document = await store.get("doc")
    assert document.value == "[]"
    assert document.version == 1


@pytest.mark.asyncio
async def test_stale_version_is_refused():
    redis = FakeRedis()
    store = RedisDocumentStore(redis_client=redis)  # type: ignore[arg-type]
    await store.set("doc", "[1]", expected_version=0)

    outcome = await store.set("doc", "[2]", expected_version=0)

    assert not outcome.ok
    assert outcome.current_version == 1
    assert redis.hashes["doc"]["value"] == "[1]"


@pytest.mark.asyncio
async def test_write_landing_between_check_and_exec_is_refused():
    redis = FakeRedis()
    store = RedisDocumentStore(redis_client=redis)  # type: ignore[arg-type]
    redis.on_multi = lambda: redis.write("doc", {"value": "[\"other\"]", "version": "1"})

    outcome = await store.set("doc", "[\"mine\"]", expected_version=0)

    assert not outcome.ok
    assert redis.hashes["doc"]["value"] == "[\"other\"]"


@pytest.mark.asyncio
async def test_redis_errors_surface_as_unavailable():
    redis = FakeRedis()
    redis.fail_with = RedisConnectionError("Connection refused")
    store = RedisDocumentStore(redis_client=redis)  # type: ignore[arg-type]

    with pytest.raises(StoreUnavailableError) as excinfo:
        await store.get("doc")
    assert not isinstance(excinfo.value, StoreTimeoutError)


@pytest.mark.asyncio
async def test_slow_redis_surfaces_as_timeout():
    redis = FakeRedis()
    redis.delay_seconds = 1.0
    store = RedisDocumentStore(redis_client=redis, timeout_seconds=0.01)  # type: ignore[arg-type]

    with pytest.raises(StoreTimeoutError):
        await store.get("doc")


@pytest.mark.asyncio
async def test_roster_store_over_redis(fixed_now):
    redis = FakeRedis()
    documents = RedisDocumentStore(redis_client=redis)  # type: ignore[arg-type]
    ids = iter(["rc_1", "rc_2"])
    roster = RosterStore(documents, owner_id="owner-9", clock=lambda: fixed_now, id_factory=lambda: next(ids))

    added = await roster.add_member({"name": "Morgan", "cleanDate": "2020-05-05", "relationship": "parent"})
    assert added.status is RosterMutationStatus.OK
    assert redis.hashes["recovery_circle:owner-9"]["version"] == "1"

    stale = await roster.add_member(
        {"name": "Quinn", "cleanDate": "2021-05-05", "relationship": "friend"},
        expected_version=0,
    )
    assert stale.status is RosterMutationStatus.CONFLICT

    snapshot = await roster.load()
    assert [member.name for member in snapshot.members] == ["Morgan"]
    assert snapshot.version == 1

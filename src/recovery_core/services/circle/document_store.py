"""Single-key document stores with version-checked writes.

A missing document reads as ``value=None`` at version 0. Every successful
write bumps the version by one, and a write carrying a stale
``expected_version`` is refused rather than overwriting newer data.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Protocol, TypeVar

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError
from redis.exceptions import TimeoutError as RedisTimeoutError

from recovery_core.core.settings import settings
from recovery_core.services.circle.exceptions import StoreTimeoutError, StoreUnavailableError

INITIAL_VERSION = 0

_T = TypeVar("_T")


@dataclass(frozen=True, slots=True)
class StoredDocument:
    value: str | None
    version: int = INITIAL_VERSION

    @property
    def exists(self) -> bool:
        return self.value is not None


@dataclass(frozen=True, slots=True)
class WriteOutcome:
    ok: bool
    new_version: int | None = None
    current_version: int | None = None


class DocumentStore(Protocol):
    """Whole-document get/set with optimistic version checks."""

    async def get(self, key: str) -> StoredDocument:
        ...

    async def set(self, key: str, value: str, *, expected_version: int) -> WriteOutcome:
        ...


class RedisDocumentStore:
    """Documents kept in a Redis hash as ``value`` plus a ``version`` counter.

    Writes use ``WATCH``/``MULTI``/``EXEC`` so the version check and the write
    happen atomically with respect to other clients.
    """

    _VALUE_FIELD = "value"
    _VERSION_FIELD = "version"

    def __init__(
        self,
        redis_client: Redis | None = None,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        self._redis = redis_client or Redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        self._timeout = timeout_seconds or settings.document_store_timeout_seconds

    async def get(self, key: str) -> StoredDocument:
        value, version = await self._guard(
            self._redis.hmget(key, [self._VALUE_FIELD, self._VERSION_FIELD]),
            key=key,
            operation="get",
        )
        return StoredDocument(value=value, version=int(version or INITIAL_VERSION))

    async def set(self, key: str, value: str, *, expected_version: int) -> WriteOutcome:
        return await self._guard(
            self._compare_and_set(key, value, expected_version),
            key=key,
            operation="set",
        )

    async def _compare_and_set(self, key: str, value: str, expected_version: int) -> WriteOutcome:
        async with self._redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                current_raw = await pipe.hget(key, self._VERSION_FIELD)
                current_version = int(current_raw or INITIAL_VERSION)
                if current_version != expected_version:
                    await pipe.unwatch()
                    return WriteOutcome(ok=False, current_version=current_version)

                new_version = current_version + 1
                pipe.multi()
                pipe.hset(
                    key,
                    mapping={self._VALUE_FIELD: value, self._VERSION_FIELD: str(new_version)},
                )
                await pipe.execute()
            except WatchError:
                logger.info("Roster document changed during write", key=key)
                return WriteOutcome(ok=False)
        return WriteOutcome(ok=True, new_version=new_version)

    async def _guard(self, call: Awaitable[_T], *, key: str, operation: str) -> _T:
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except (asyncio.TimeoutError, RedisTimeoutError) as exc:
            logger.warning(
                "Document store timed out",
                key=key,
                operation=operation,
                timeout_seconds=self._timeout,
            )
            raise StoreTimeoutError(f"Document store {operation} timed out for {key}") from exc
        except RedisError as exc:
            logger.warning(
                "Document store request failed",
                key=key,
                operation=operation,
                error=str(exc),
            )
            raise StoreUnavailableError(f"Document store {operation} failed for {key}") from exc


class InMemoryDocumentStore:
    """Process-local store with the same version semantics, for tests and local runs."""

    def __init__(self) -> None:
        self._documents: dict[str, StoredDocument] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> StoredDocument:
        async with self._lock:
            return self._documents.get(key, StoredDocument(value=None))

    async def set(self, key: str, value: str, *, expected_version: int) -> WriteOutcome:
        async with self._lock:
            current = self._documents.get(key, StoredDocument(value=None))
            if current.version != expected_version:
                return WriteOutcome(ok=False, current_version=current.version)
            new_version = current.version + 1
            self._documents[key] = StoredDocument(value=value, version=new_version)
            return WriteOutcome(ok=True, new_version=new_version)


__all__ = [
    "INITIAL_VERSION",
    "DocumentStore",
    "InMemoryDocumentStore",
    "RedisDocumentStore",
    "StoredDocument",
    "WriteOutcome",
]

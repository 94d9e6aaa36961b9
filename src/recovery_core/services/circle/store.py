"""Read-modify-write orchestration for the circle roster document.

Each mutation performs exactly one fetch and at most one write. The write is
conditional on the version that was read, so two concurrent edits cannot
silently overwrite each other: the later one comes back as a conflict and the
caller decides whether to reload and try again. Nothing here retries.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, TypeVar

from loguru import logger

from recovery_core.core.settings import settings
from recovery_core.observability.circle import get_circle_store
from recovery_core.schemas.circle import CircleMember, CircleMemberInput
from recovery_core.services.circle import roster as roster_ops
from recovery_core.services.circle.codec import parse_roster, serialize_roster
from recovery_core.services.circle.document_store import DocumentStore, StoredDocument
from recovery_core.services.circle.exceptions import (
    CircleError,
    ConcurrentModificationError,
    StoreTimeoutError,
    StoreUnavailableError,
    ValidationError,
)

_T = TypeVar("_T")


class RosterMutationStatus(str, Enum):
    OK = "ok"
    UNCHANGED = "unchanged"
    INVALID = "invalid"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, slots=True)
class RosterSnapshot:
    """Members as read from (or written to) the store, with the matching version."""

    members: tuple[CircleMember, ...]
    version: int

    def get(self, member_id: str) -> CircleMember | None:
        return roster_ops.find_member(self.members, member_id)

    def __len__(self) -> int:
        return len(self.members)


@dataclass(frozen=True, slots=True)
class RosterMutationResult:
    """Outcome of a roster mutation; failures are carried, not raised."""

    status: RosterMutationStatus
    snapshot: RosterSnapshot | None = None
    member: CircleMember | None = None
    error: ValidationError | CircleError | None = None

    @property
    def ok(self) -> bool:
        return self.status in (RosterMutationStatus.OK, RosterMutationStatus.UNCHANGED)

    def raise_for_status(self) -> RosterSnapshot:
        if self.error is not None:
            raise self.error
        if self.snapshot is None:
            raise RuntimeError("Mutation result carries neither a snapshot nor an error")
        return self.snapshot


@dataclass(frozen=True, slots=True)
class _Change:
    members: list[CircleMember]
    member: CircleMember | None
    changed: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RosterStore:
    """Persist one account's circle roster as a single versioned document."""

    def __init__(
        self,
        document_store: DocumentStore,
        *,
        owner_id: str,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] = roster_ops.generate_member_id,
        timeout_seconds: float | None = None,
    ) -> None:
        if not owner_id:
            raise ValueError("owner_id is required")
        self._documents = document_store
        self._owner_id = owner_id
        self._clock = clock or _utcnow
        self._id_factory = id_factory
        self._timeout = timeout_seconds or settings.document_store_timeout_seconds
        self._key = settings.roster_document_key_template.format(owner_id=owner_id)

    @property
    def key(self) -> str:
        return self._key

    async def load(self) -> RosterSnapshot:
        """Read the current roster. A missing document is an empty roster."""

        document = await self._fetch()
        return RosterSnapshot(members=tuple(parse_roster(document.value)), version=document.version)

    async def add_member(
        self,
        payload: roster_ops.MemberPayload,
        *,
        expected_version: int | None = None,
    ) -> RosterMutationResult:
        now = self._clock()
        try:
            data = roster_ops.validate_member_input(payload, now=now)
        except ValidationError as exc:
            return self._rejected("add", exc)

        def apply(members: list[CircleMember]) -> _Change:
            updated = roster_ops.add_member(members, data, now=now, id_factory=self._id_factory)
            return _Change(members=updated, member=updated[-1], changed=True)

        return await self._mutate("add", apply, expected_version)

    async def edit_member(
        self,
        member_id: str,
        payload: roster_ops.MemberPayload,
        *,
        expected_version: int | None = None,
    ) -> RosterMutationResult:
        now = self._clock()
        try:
            data: CircleMemberInput = roster_ops.validate_member_input(payload, now=now)
        except ValidationError as exc:
            return self._rejected("edit", exc)

        def apply(members: list[CircleMember]) -> _Change:
            if roster_ops.find_member(members, member_id) is None:
                return _Change(members=members, member=None, changed=False)
            updated = roster_ops.edit_member(members, member_id, data, now=now)
            return _Change(
                members=updated,
                member=roster_ops.find_member(updated, member_id),
                changed=True,
            )

        return await self._mutate("edit", apply, expected_version)

    async def remove_member(
        self,
        member_id: str,
        *,
        expected_version: int | None = None,
    ) -> RosterMutationResult:
        def apply(members: list[CircleMember]) -> _Change:
            removed = roster_ops.find_member(members, member_id)
            if removed is None:
                return _Change(members=members, member=None, changed=False)
            return _Change(
                members=roster_ops.remove_member(members, member_id),
                member=removed,
                changed=True,
            )

        return await self._mutate("remove", apply, expected_version)

    async def _mutate(
        self,
        kind: str,
        apply: Callable[[list[CircleMember]], _Change],
        expected_version: int | None,
    ) -> RosterMutationResult:
        try:
            document = await self._fetch()
        except StoreUnavailableError as exc:
            return self._finish(kind, RosterMutationResult(RosterMutationStatus.UNAVAILABLE, error=exc))

        if expected_version is not None and expected_version != document.version:
            conflict = ConcurrentModificationError(
                self._key,
                expected_version=expected_version,
                actual_version=document.version,
            )
            return self._finish(kind, RosterMutationResult(RosterMutationStatus.CONFLICT, error=conflict))

        current = parse_roster(document.value)
        change = apply(current)
        if not change.changed:
            snapshot = RosterSnapshot(members=tuple(current), version=document.version)
            return self._finish(kind, RosterMutationResult(RosterMutationStatus.UNCHANGED, snapshot=snapshot))

        try:
            outcome = await self._guard(
                self._documents.set(
                    self._key,
                    serialize_roster(change.members),
                    expected_version=document.version,
                ),
                operation="set",
            )
        except StoreUnavailableError as exc:
            return self._finish(kind, RosterMutationResult(RosterMutationStatus.UNAVAILABLE, error=exc))

        if not outcome.ok:
            conflict = ConcurrentModificationError(
                self._key,
                expected_version=document.version,
                actual_version=outcome.current_version,
            )
            return self._finish(kind, RosterMutationResult(RosterMutationStatus.CONFLICT, error=conflict))

        new_version = outcome.new_version if outcome.new_version is not None else document.version + 1
        snapshot = RosterSnapshot(members=tuple(change.members), version=new_version)
        logger.info(
            "Circle roster updated",
            owner_id=self._owner_id,
            action=kind,
            member_id=change.member.id if change.member else None,
            version=new_version,
            size=len(snapshot),
        )
        return self._finish(
            kind,
            RosterMutationResult(RosterMutationStatus.OK, snapshot=snapshot, member=change.member),
        )

    async def _fetch(self) -> StoredDocument:
        return await self._guard(self._documents.get(self._key), operation="get")

    async def _guard(self, call: Awaitable[_T], *, operation: str) -> _T:
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except StoreUnavailableError:
            raise
        except asyncio.TimeoutError as exc:
            raise StoreTimeoutError(f"Roster {operation} timed out for {self._key}") from exc
        except Exception as exc:
            logger.exception("Unexpected document store failure", key=self._key, operation=operation)
            raise StoreUnavailableError(f"Roster {operation} failed for {self._key}") from exc

    def _rejected(self, kind: str, error: ValidationError) -> RosterMutationResult:
        logger.info(
            "Circle member rejected",
            owner_id=self._owner_id,
            action=kind,
            field=error.field,
            reason=error.message,
        )
        return self._finish(kind, RosterMutationResult(RosterMutationStatus.INVALID, error=error))

    def _finish(self, kind: str, result: RosterMutationResult) -> RosterMutationResult:
        get_circle_store().record_mutation(kind, result.status.value)
        if result.status is RosterMutationStatus.CONFLICT:
            logger.warning(
                "Circle roster write conflict",
                owner_id=self._owner_id,
                action=kind,
                error=str(result.error),
            )
        elif result.status is RosterMutationStatus.UNAVAILABLE:
            logger.warning(
                "Circle roster store unavailable",
                owner_id=self._owner_id,
                action=kind,
                error=str(result.error),
            )
        return result


__all__ = ["RosterMutationResult", "RosterMutationStatus", "RosterSnapshot", "RosterStore"]

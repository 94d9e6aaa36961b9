"""Encode and decode the roster document.

Decoding favours availability: a corrupt document or a bad entry never
prevents the rest of the roster from loading. Each array entry is tagged as
``Valid`` or ``Skipped`` so callers and tests can see what was dropped.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Union

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from recovery_core.observability.circle import get_circle_store
from recovery_core.schemas.circle import CircleMember


@dataclass(frozen=True, slots=True)
class Valid:
    index: int
    member: CircleMember


@dataclass(frozen=True, slots=True)
class Skipped:
    index: int
    reason: str
    detail: str | None = None


DecodedEntry = Union[Valid, Skipped]


def _describe(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "entry"
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)


def _load_array(raw: str | bytes | None) -> list[Any]:
    if raw is None:
        return []
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not raw.strip():
        return []
    try:
        parsed = json.loads(raw)
    except (ValueError, RecursionError):
        # Covers deeply nested arrays and integer literals past the digit limit.
        logger.warning("Failed to decode roster document", length=len(raw))
        get_circle_store().record_skipped_record("invalid_json")
        return []
    if not isinstance(parsed, list):
        logger.warning("Roster document is not an array", kind=type(parsed).__name__)
        get_circle_store().record_skipped_record("not_an_array")
        return []
    return parsed


def decode_roster(raw: str | bytes | None) -> list[DecodedEntry]:
    """Tag each stored entry as ``Valid`` or ``Skipped`` without raising."""

    entries: list[DecodedEntry] = []
    seen_ids: set[str] = set()
    for index, item in enumerate(_load_array(raw)):
        if not isinstance(item, dict):
            entries.append(Skipped(index, "not_an_object", type(item).__name__))
            continue
        try:
            member = CircleMember.model_validate(item)
        except PydanticValidationError as exc:
            entries.append(Skipped(index, "invalid_fields", _describe(exc)))
            continue
        if member.id in seen_ids:
            entries.append(Skipped(index, "duplicate_id", member.id))
            continue
        seen_ids.add(member.id)
        entries.append(Valid(index, member))
    return entries


def parse_roster(raw: str | bytes | None) -> list[CircleMember]:
    """Return the well-formed members of a stored roster, in stored order."""

    members: list[CircleMember] = []
    store = get_circle_store()
    for entry in decode_roster(raw):
        if isinstance(entry, Valid):
            members.append(entry.member)
            continue
        store.record_skipped_record(entry.reason)
        logger.warning(
            "Skipping malformed roster entry",
            index=entry.index,
            reason=entry.reason,
            detail=entry.detail,
        )
    return members


def serialize_roster(members: Iterable[CircleMember]) -> str:
    payload = [member.model_dump(mode="json", by_alias=True) for member in members]
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


__all__ = ["DecodedEntry", "Skipped", "Valid", "decode_roster", "parse_roster", "serialize_roster"]

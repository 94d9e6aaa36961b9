"""Pure roster mutations.

Each function takes the current roster and returns a new list; the input list
and its members are never modified. Validation happens before anything is
built so a rejected payload leaves no trace.
"""

from __future__ import annotations

import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Sequence

from pydantic import ValidationError as PydanticValidationError

from recovery_core.schemas.circle import CircleMember, CircleMemberInput
from recovery_core.services.circle.exceptions import ValidationError
from recovery_core.services.milestones.calculator import calendar_date

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 7

MemberPayload = CircleMemberInput | Mapping[str, Any]

_FIELD_BY_ALIAS = {
    (field.alias or name): name for name, field in CircleMemberInput.model_fields.items()
}


def generate_member_id() -> str:
    """Return an opaque member id such as ``rc_1718035200000_k3j9x0a``."""

    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"rc_{int(time.time() * 1000)}_{suffix}"


def _utc(now: datetime) -> datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def validate_member_input(payload: MemberPayload, *, now: datetime) -> CircleMemberInput:
    """Validate a submitted member, raising ``ValidationError`` for the first bad field."""

    if isinstance(payload, CircleMemberInput):
        payload = payload.model_dump(by_alias=True)
    try:
        return CircleMemberInput.model_validate(
            payload, context={"today": calendar_date(_utc(now))}
        )
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = first.get("loc") or ("payload",)
        field = _FIELD_BY_ALIAS.get(str(location[0]), str(location[0]))
        cause = (first.get("ctx") or {}).get("error")
        message = str(cause) if cause is not None else first.get("msg", "Invalid value")
        raise ValidationError(field, message) from exc


def find_member(roster: Sequence[CircleMember], member_id: str) -> CircleMember | None:
    for member in roster:
        if member.id == member_id:
            return member
    return None


def add_member(
    roster: Sequence[CircleMember],
    payload: MemberPayload,
    *,
    now: datetime,
    id_factory: Callable[[], str] = generate_member_id,
) -> list[CircleMember]:
    data = validate_member_input(payload, now=now)
    taken = {member.id for member in roster}
    member_id = id_factory()
    while member_id in taken:
        member_id = id_factory()

    stamp = _utc(now)
    member = CircleMember(
        id=member_id,
        name=data.name,
        clean_date=data.clean_date,
        relationship=data.relationship,
        recovery_program=data.recovery_program,
        created_at=stamp,
        updated_at=stamp,
    )
    return [*roster, member]


def edit_member(
    roster: Sequence[CircleMember],
    member_id: str,
    payload: MemberPayload,
    *,
    now: datetime,
) -> list[CircleMember]:
    """Replace the matching member's editable fields; unknown ids leave the roster as is."""

    data = validate_member_input(payload, now=now)
    stamp = _utc(now)
    updated: list[CircleMember] = []
    for member in roster:
        if member.id != member_id:
            updated.append(member)
            continue
        updated.append(
            member.model_copy(
                update={
                    "name": data.name,
                    "clean_date": data.clean_date,
                    "relationship": data.relationship,
                    "recovery_program": data.recovery_program,
                    "updated_at": stamp,
                }
            )
        )
    return updated


def remove_member(roster: Sequence[CircleMember], member_id: str) -> list[CircleMember]:
    return [member for member in roster if member.id != member_id]


__all__ = [
    "MemberPayload",
    "add_member",
    "edit_member",
    "find_member",
    "generate_member_id",
    "remove_member",
    "validate_member_input",
]

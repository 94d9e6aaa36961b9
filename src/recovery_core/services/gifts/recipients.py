"""Recipient tags attached to cart lines when a token is bought as a gift."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from recovery_core.schemas.circle import CircleMember
from recovery_core.services.gifts.attribution import (
    RECIPIENT_ATTRIBUTE,
    RECIPIENT_MEMBER_ID_ATTRIBUTE,
)
from recovery_core.services.milestones.calculator import InvalidInputError


class RecipientKind(str, Enum):
    SELF = "self"
    CIRCLE = "circle"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class RecipientSelection:
    kind: RecipientKind
    member: CircleMember | None = None
    name: str | None = None

    @classmethod
    def myself(cls) -> "RecipientSelection":
        return cls(kind=RecipientKind.SELF)

    @classmethod
    def for_member(cls, member: CircleMember) -> "RecipientSelection":
        return cls(kind=RecipientKind.CIRCLE, member=member)

    @classmethod
    def for_name(cls, name: str) -> "RecipientSelection":
        return cls(kind=RecipientKind.OTHER, name=name)


def build_recipient_attributes(selection: RecipientSelection) -> list[dict[str, str]]:
    """Cart line attributes identifying who a gift is for; empty for the buyer's own purchase."""

    if selection.kind is RecipientKind.SELF:
        return []
    if selection.kind is RecipientKind.CIRCLE:
        if selection.member is None:
            raise InvalidInputError("recipient", "Choose a member of your circle")
        return [
            {"key": RECIPIENT_ATTRIBUTE, "value": selection.member.name},
            {"key": RECIPIENT_MEMBER_ID_ATTRIBUTE, "value": selection.member.id},
        ]
    name = (selection.name or "").strip()
    if not name:
        raise InvalidInputError("recipient", "Enter the recipient's name")
    return [{"key": RECIPIENT_ATTRIBUTE, "value": name}]


__all__ = ["RecipientKind", "RecipientSelection", "build_recipient_attributes"]

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from recovery_core.core.settings import settings


class Relationship(str, Enum):
    SPOUSE = "spouse"
    PARENT = "parent"
    CHILD = "child"
    SIBLING = "sibling"
    FRIEND = "friend"
    SPONSOR = "sponsor"
    SPONSEE = "sponsee"
    COLLEAGUE = "colleague"
    OTHER = "other"


class RecoveryProgram(str, Enum):
    AA = "AA"
    NA = "NA"
    SMART = "SMART"
    CELEBRATE_RECOVERY = "Celebrate Recovery"
    REFUGE_RECOVERY = "Refuge Recovery"
    OTHER = "Other"
    NONE = "None"


RELATIONSHIP_LABELS: dict[Relationship, str] = {
    Relationship.SPOUSE: "Spouse / Partner",
    Relationship.PARENT: "Parent",
    Relationship.CHILD: "Son / Daughter",
    Relationship.SIBLING: "Sibling",
    Relationship.FRIEND: "Friend",
    Relationship.SPONSOR: "Sponsor",
    Relationship.SPONSEE: "Sponsee",
    Relationship.COLLEAGUE: "Colleague",
    Relationship.OTHER: "Other",
}

RECOVERY_PROGRAM_LABELS: dict[RecoveryProgram, str] = {
    RecoveryProgram.AA: "Alcoholics Anonymous (AA)",
    RecoveryProgram.NA: "Narcotics Anonymous (NA)",
    RecoveryProgram.SMART: "SMART Recovery",
    RecoveryProgram.CELEBRATE_RECOVERY: "Celebrate Recovery",
    RecoveryProgram.REFUGE_RECOVERY: "Refuge Recovery",
    RecoveryProgram.OTHER: "Other",
    RecoveryProgram.NONE: "Prefer not to say",
}


def relationship_label(value: Relationship | str | None) -> str:
    """Human label for a relationship, falling back to the raw value."""

    if value is None:
        return ""
    try:
        return RELATIONSHIP_LABELS[Relationship(value)]
    except ValueError:
        return str(value)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class CircleMember(BaseModel):
    """A person whose sobriety milestones the account holder follows.

    Stored values are read leniently: an unrecognised relationship or program
    tag decodes as the explicit ``OTHER`` case instead of dropping the member.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    clean_date: date = Field(..., alias="cleanDate")
    relationship: Relationship | None = None
    recovery_program: RecoveryProgram | None = Field(None, alias="recoveryProgram")
    created_at: datetime | None = Field(None, alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")

    @field_validator("id", "name", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("relationship", mode="before")
    @classmethod
    def _lenient_relationship(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        if value is None or isinstance(value, Relationship):
            return value
        try:
            return Relationship(str(value).strip().lower())
        except ValueError:
            return Relationship.OTHER

    @field_validator("recovery_program", mode="before")
    @classmethod
    def _lenient_program(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        if value is None or isinstance(value, RecoveryProgram):
            return value
        try:
            return RecoveryProgram(str(value).strip())
        except ValueError:
            return RecoveryProgram.OTHER

    def relationship_label(self) -> str:
        return relationship_label(self.relationship)


class CircleMemberInput(BaseModel):
    """Fields a user submits when adding or editing a circle member.

    Pass ``context={"today": date}`` when validating so that clean dates in
    the future are rejected against the caller's clock.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    clean_date: date = Field(..., alias="cleanDate")
    relationship: Relationship
    recovery_program: RecoveryProgram | None = Field(None, alias="recoveryProgram")

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("name")
    @classmethod
    def _check_name_length(cls, value: str) -> str:
        if len(value) < settings.circle_name_min_length:
            raise ValueError(
                f"Name must be at least {settings.circle_name_min_length} characters"
            )
        if len(value) > settings.circle_name_max_length:
            raise ValueError(
                f"Name must be at most {settings.circle_name_max_length} characters"
            )
        return value

    @field_validator("clean_date", mode="before")
    @classmethod
    def _parse_clean_date(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                raise ValueError("Clean date must be a valid date in the past") from None
        return value

    @field_validator("clean_date")
    @classmethod
    def _reject_future_date(cls, value: date, info: ValidationInfo) -> date:
        today = (info.context or {}).get("today")
        if today is not None and value > today:
            raise ValueError("Clean date must be a valid date in the past")
        return value

    @field_validator("relationship", mode="before")
    @classmethod
    def _require_relationship(cls, value: Any) -> Any:
        if _blank_to_none(value) is None:
            raise ValueError("Please select a relationship")
        if isinstance(value, str):
            try:
                return Relationship(value.strip().lower())
            except ValueError:
                raise ValueError(f"Unknown relationship '{value}'") from None
        return value

    @field_validator("recovery_program", mode="before")
    @classmethod
    def _check_program(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        if isinstance(value, str):
            try:
                return RecoveryProgram(value.strip())
            except ValueError:
                raise ValueError(f"Unknown recovery program '{value}'") from None
        return value

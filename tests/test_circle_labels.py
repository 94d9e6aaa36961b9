import pytest

from recovery_core.schemas.circle import (
    RECOVERY_PROGRAM_LABELS,
    RELATIONSHIP_LABELS,
    RecoveryProgram,
    Relationship,
    relationship_label,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("spouse", "Spouse / Partner"),
        (Relationship.CHILD, "Son / Daughter"),
        (None, ""),
        ("cousin", "cousin"),
    ],
)
def test_relationship_label(value, expected):
    assert relationship_label(value) == expected


def test_member_relationship_label(jane):
    assert jane.relationship_label() == "Sponsee"


def test_every_option_has_a_label():
    assert set(RELATIONSHIP_LABELS) == set(Relationship)
    assert set(RECOVERY_PROGRAM_LABELS) == set(RecoveryProgram)
    assert RECOVERY_PROGRAM_LABELS[RecoveryProgram.NONE] == "Prefer not to say"

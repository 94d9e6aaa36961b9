import pytest

from recovery_core.services.gifts import RecipientSelection, build_recipient_attributes
from recovery_core.services.gifts.attribution import Order, group_gifts_by_recipient
from recovery_core.services.milestones import InvalidInputError


def test_self_purchase_has_no_recipient_attributes():
    assert build_recipient_attributes(RecipientSelection.myself()) == []


def test_circle_member_purchase_carries_the_member_id(jane):
    attributes = build_recipient_attributes(RecipientSelection.for_member(jane))
    assert attributes == [
        {"key": "Recipient", "value": "Jane"},
        {"key": "_Recipient Circle ID", "value": "m1"},
    ]


def test_named_recipient_is_trimmed():
    attributes = build_recipient_attributes(RecipientSelection.for_name("  Robin  "))
    assert attributes == [{"key": "Recipient", "value": "Robin"}]


def test_named_recipient_requires_a_name():
    with pytest.raises(InvalidInputError) as excinfo:
        build_recipient_attributes(RecipientSelection.for_name("  "))
    assert excinfo.value.field == "recipient"


def test_tagged_lines_are_attributed_back_to_the_member(jane):
    order = Order.from_payload(
        {
            "name": "#2001",
            "processedAt": "2024-06-01T10:00:00+00:00",
            "lineItems": [
                {
                    "title": "1 Year Token",
                    "quantity": 1,
                    "price": {"amount": "40", "currencyCode": "USD"},
                    "customAttributes": build_recipient_attributes(RecipientSelection.for_member(jane)),
                }
            ],
        }
    )

    groups = group_gifts_by_recipient([order], [jane])

    assert groups[0].key == "m1"
    assert groups[0].member == jane

"""Group purchased gift tokens by the person they were bought for.

Line items are tagged at purchase time with a free-text ``Recipient`` name and,
when the buyer picked someone from their circle, the member's id. Grouping
prefers the id; untagged purchases fall back to the literal name, so two
purchases "for Jane" without an id share a group. An id-tagged group and a
name-only group are never merged, even when the names match.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Sequence

from recovery_core.schemas.circle import CircleMember

RECIPIENT_ATTRIBUTE = "Recipient"
RECIPIENT_MEMBER_ID_ATTRIBUTE = "_Recipient Circle ID"
ENGRAVING_PREVIEW_ATTRIBUTE = "Engraving Preview"

_NAME_KEY_PREFIX = "other:"


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _clean(value: Any) -> str | None:
    if isinstance(value, str):
        cleaned = value.strip()
        return cleaned or None
    return None


@dataclass(frozen=True, slots=True)
class Money:
    amount: Decimal
    currency_code: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Money":
        try:
            amount = Decimal(str(payload.get("amount", "0")))
        except InvalidOperation as exc:
            raise ValueError(f"Invalid money amount {payload.get('amount')!r}") from exc
        return cls(amount=amount, currency_code=str(payload.get("currencyCode") or "USD"))


@dataclass(frozen=True, slots=True)
class OrderLineItem:
    title: str
    quantity: int
    price: Money
    variant_title: str | None = None
    attributes: Mapping[str, str] = field(default_factory=dict)
    image_url: str | None = None

    def attribute(self, key: str) -> str | None:
        return _clean(self.attributes.get(key))

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "OrderLineItem":
        attributes: Dict[str, str] = {}
        for entry in payload.get("customAttributes") or []:
            key = entry.get("key") if isinstance(entry, Mapping) else None
            if not key:
                continue
            attributes.setdefault(str(key), str(entry.get("value") or ""))
        image = payload.get("image") or {}
        return cls(
            title=str(payload.get("title") or ""),
            quantity=int(payload.get("quantity") or 0),
            price=Money.from_payload(payload.get("price") or {}),
            variant_title=_clean(payload.get("variantTitle")),
            attributes=attributes,
            image_url=_clean(image.get("url")) if isinstance(image, Mapping) else None,
        )


@dataclass(frozen=True, slots=True)
class Order:
    name: str
    processed_at: datetime
    line_items: tuple[OrderLineItem, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Order":
        """Build an order from a storefront order node (``lineItems.nodes`` or a plain list)."""

        raw_items = payload.get("lineItems") or []
        if isinstance(raw_items, Mapping):
            raw_items = raw_items.get("nodes") or []
        processed_at = payload.get("processedAt")
        if isinstance(processed_at, str):
            processed_at = datetime.fromisoformat(processed_at.replace("Z", "+00:00"))
        if not isinstance(processed_at, datetime):
            raise ValueError(f"Order {payload.get('name')!r} is missing processedAt")
        return cls(
            name=str(payload.get("name") or ""),
            processed_at=_as_utc(processed_at),
            line_items=tuple(OrderLineItem.from_payload(item) for item in raw_items),
        )


@dataclass(frozen=True, slots=True)
class GiftLineItem:
    title: str
    variant_title: str | None
    quantity: int
    price: Money
    engraving_preview: str | None
    order_name: str
    processed_at: datetime
    image_url: str | None = None


class RecipientStatus(str, Enum):
    IN_CIRCLE = "in_circle"
    REMOVED_FROM_CIRCLE = "removed_from_circle"
    NOT_IN_CIRCLE = "not_in_circle"


@dataclass(slots=True)
class RecipientGiftGroup:
    key: str
    member_id: str | None
    member_name: str
    member: CircleMember | None
    gifts: list[GiftLineItem] = field(default_factory=list)

    @property
    def status(self) -> RecipientStatus:
        if self.member is not None:
            return RecipientStatus.IN_CIRCLE
        if self.member_id:
            return RecipientStatus.REMOVED_FROM_CIRCLE
        return RecipientStatus.NOT_IN_CIRCLE


@dataclass(frozen=True, slots=True)
class GiftHistorySummary:
    total_gifts: int
    total_quantity: int
    recipients: int


def recipient_group_key(member_id: str | None, recipient_name: str) -> str:
    return member_id or f"{_NAME_KEY_PREFIX}{recipient_name}"


def group_gifts_by_recipient(
    orders: Iterable[Order],
    roster: Iterable[CircleMember],
) -> list[RecipientGiftGroup]:
    """Group tagged line items by recipient; groups keep first-seen order."""

    members_by_id = {member.id: member for member in roster}
    groups: Dict[str, RecipientGiftGroup] = {}

    for order in orders:
        for item in order.line_items:
            recipient_name = item.attribute(RECIPIENT_ATTRIBUTE)
            if not recipient_name:
                continue
            member_id = item.attribute(RECIPIENT_MEMBER_ID_ATTRIBUTE)
            key = recipient_group_key(member_id, recipient_name)

            group = groups.get(key)
            if group is None:
                member = members_by_id.get(member_id) if member_id else None
                group = RecipientGiftGroup(
                    key=key,
                    member_id=member_id,
                    member_name=member.name if member else recipient_name,
                    member=member,
                )
                groups[key] = group

            group.gifts.append(
                GiftLineItem(
                    title=item.title,
                    variant_title=item.variant_title,
                    quantity=item.quantity,
                    price=item.price,
                    engraving_preview=item.attribute(ENGRAVING_PREVIEW_ATTRIBUTE),
                    order_name=order.name,
                    processed_at=_as_utc(order.processed_at),
                    image_url=item.image_url,
                )
            )

    for group in groups.values():
        group.gifts.sort(key=lambda gift: gift.processed_at, reverse=True)
    return list(groups.values())


def summarize_gift_groups(groups: Sequence[RecipientGiftGroup]) -> GiftHistorySummary:
    return GiftHistorySummary(
        total_gifts=sum(len(group.gifts) for group in groups),
        total_quantity=sum(gift.quantity for group in groups for gift in group.gifts),
        recipients=len(groups),
    )


def gift_counts_by_member(groups: Iterable[RecipientGiftGroup]) -> Dict[str, int]:
    """Gift line counts keyed by circle member id, for member card badges."""

    return {group.member_id: len(group.gifts) for group in groups if group.member_id}


__all__ = [
    "ENGRAVING_PREVIEW_ATTRIBUTE",
    "RECIPIENT_ATTRIBUTE",
    "RECIPIENT_MEMBER_ID_ATTRIBUTE",
    "GiftHistorySummary",
    "GiftLineItem",
    "Money",
    "Order",
    "OrderLineItem",
    "RecipientGiftGroup",
    "RecipientStatus",
    "gift_counts_by_member",
    "group_gifts_by_recipient",
    "recipient_group_key",
    "summarize_gift_groups",
]

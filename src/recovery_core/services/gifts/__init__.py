"""Gift attribution helpers."""

from .attribution import (  # noqa: F401
    GiftHistorySummary,
    GiftLineItem,
    Money,
    Order,
    OrderLineItem,
    RecipientGiftGroup,
    RecipientStatus,
    gift_counts_by_member,
    group_gifts_by_recipient,
    summarize_gift_groups,
)
from .recipients import RecipientKind, RecipientSelection, build_recipient_attributes  # noqa: F401

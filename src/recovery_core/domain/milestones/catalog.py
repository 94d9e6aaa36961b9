"""Static catalog of sobriety milestones.

Thresholds are expressed in sober days and must stay strictly ascending; the
calculator walks the catalog in order and relies on that to split achieved
milestones from the next one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Sequence


@dataclass(frozen=True, slots=True)
class ShopLink:
    """Storefront link rendered next to a milestone."""

    label: str
    href: str


@dataclass(frozen=True, slots=True)
class MilestoneDefinition:
    """Immutable descriptor for a named sobriety threshold."""

    id: str
    label: str
    emoji: str
    days: int
    description: str
    shop_link: ShopLink | None = None

    def as_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "emoji": self.emoji,
            "days": self.days,
            "description": self.description,
        }
        if self.shop_link:
            payload["shopLink"] = {"label": self.shop_link.label, "href": self.shop_link.href}
        return payload


_SHOP_HREF = "/collections"

MILESTONES: tuple[MilestoneDefinition, ...] = (
    MilestoneDefinition(
        id="24h",
        label="24 Hours",
        emoji="🌅",
        days=1,
        description="The most important day: the first one.",
        shop_link=ShopLink("Shop 24-Hour Tokens", _SHOP_HREF),
    ),
    MilestoneDefinition(
        id="1w",
        label="1 Week",
        emoji="🌱",
        days=7,
        description="One full week of strength and courage.",
    ),
    MilestoneDefinition(
        id="30d",
        label="30 Days",
        emoji="🌿",
        days=30,
        description="A full month of new habits forming.",
        shop_link=ShopLink("Shop 30-Day Tokens", _SHOP_HREF),
    ),
    MilestoneDefinition(
        id="60d",
        label="60 Days",
        emoji="💪",
        days=60,
        description="Two months of growing resilience.",
    ),
    MilestoneDefinition(
        id="90d",
        label="90 Days",
        emoji="⭐",
        days=90,
        description="A quarter year, a major milestone in early recovery.",
        shop_link=ShopLink("Shop 90-Day Tokens", _SHOP_HREF),
    ),
    MilestoneDefinition(
        id="6m",
        label="6 Months",
        emoji="🔥",
        days=183,
        description="Half a year of dedication and growth.",
        shop_link=ShopLink("Shop 6-Month Tokens", _SHOP_HREF),
    ),
    MilestoneDefinition(
        id="9m",
        label="9 Months",
        emoji="🌟",
        days=274,
        description="Three quarters of a year, the home stretch to one year.",
    ),
    MilestoneDefinition(
        id="1y",
        label="1 Year",
        emoji="🏆",
        days=365,
        description="One full year, an incredible achievement worth celebrating.",
        shop_link=ShopLink("Shop 1-Year Tokens", _SHOP_HREF),
    ),
    MilestoneDefinition(
        id="18m",
        label="18 Months",
        emoji="💎",
        days=548,
        description="A year and a half of unwavering commitment.",
    ),
    MilestoneDefinition(
        id="2y",
        label="2 Years",
        emoji="🎯",
        days=730,
        description="Two years of building a new life.",
        shop_link=ShopLink("Shop 2-Year Tokens", _SHOP_HREF),
    ),
    MilestoneDefinition(
        id="5y",
        label="5 Years",
        emoji="👑",
        days=1826,
        description="Five years, a testament to enduring strength.",
        shop_link=ShopLink("Shop 5-Year Tokens", _SHOP_HREF),
    ),
    MilestoneDefinition(
        id="10y",
        label="10 Years",
        emoji="🏅",
        days=3652,
        description="A decade of recovery, truly inspiring.",
        shop_link=ShopLink("Shop 10-Year Tokens", _SHOP_HREF),
    ),
    MilestoneDefinition(
        id="15y",
        label="15 Years",
        emoji="🌈",
        days=5479,
        description="Fifteen years of living proof that recovery works.",
    ),
    MilestoneDefinition(
        id="20y",
        label="20 Years",
        emoji="✨",
        days=7305,
        description="Two decades of transformation and service.",
    ),
    MilestoneDefinition(
        id="25y",
        label="25 Years",
        emoji="🏛️",
        days=9131,
        description="A quarter century, a legacy of recovery.",
    ),
)

_BY_ID: Dict[str, MilestoneDefinition] = {milestone.id: milestone for milestone in MILESTONES}

# Member cards on the circle page count toward a shorter, rounder list than the
# storefront catalog; it has no first-day or first-week entries.
CIRCLE_CARD_MILESTONES: tuple[MilestoneDefinition, ...] = tuple(
    MilestoneDefinition(id=f"card-{key}", label=label, emoji="🏅", days=days, description=label)
    for key, label, days in (
        ("30d", "30 Days", 30),
        ("60d", "60 Days", 60),
        ("90d", "90 Days", 90),
        ("6m", "6 Months", 180),
        ("1y", "1 Year", 365),
        ("18m", "18 Months", 547),
        ("2y", "2 Years", 730),
        ("3y", "3 Years", 1095),
        ("5y", "5 Years", 1825),
        ("10y", "10 Years", 3650),
        ("20y", "20 Years", 7300),
        ("25y", "25 Years", 9125),
    )
)


def validate_catalog(catalog: Iterable[MilestoneDefinition]) -> tuple[MilestoneDefinition, ...]:
    """Return the catalog as a tuple, raising ``ValueError`` if it is out of order."""

    entries = tuple(catalog)
    seen_ids: set[str] = set()
    previous: int | None = None
    for entry in entries:
        if entry.days <= 0:
            raise ValueError(f"Milestone {entry.id} must have a positive threshold")
        if previous is not None and entry.days <= previous:
            raise ValueError(
                f"Milestone {entry.id} threshold {entry.days} is not greater than {previous}"
            )
        if entry.id in seen_ids:
            raise ValueError(f"Duplicate milestone id {entry.id}")
        seen_ids.add(entry.id)
        previous = entry.days
    return entries


def get_milestone(milestone_id: str) -> MilestoneDefinition | None:
    return _BY_ID.get(milestone_id)


def milestone_for_days(
    days: int, catalog: Sequence[MilestoneDefinition] = MILESTONES
) -> MilestoneDefinition | None:
    """Return the highest milestone reached after ``days`` sober days."""

    reached: MilestoneDefinition | None = None
    for entry in catalog:
        if entry.days > days:
            break
        reached = entry
    return reached


validate_catalog(MILESTONES)
validate_catalog(CIRCLE_CARD_MILESTONES)


__all__ = [
    "CIRCLE_CARD_MILESTONES",
    "MILESTONES",
    "MilestoneDefinition",
    "ShopLink",
    "get_milestone",
    "milestone_for_days",
    "validate_catalog",
]

"""Sobriety milestone catalog."""

from .catalog import (  # noqa: F401
    CIRCLE_CARD_MILESTONES,
    MILESTONES,
    MilestoneDefinition,
    ShopLink,
    get_milestone,
    milestone_for_days,
    validate_catalog,
)

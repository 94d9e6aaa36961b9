"""Sobriety milestone math, circle roster persistence and gift attribution."""

from recovery_core.services.circle import (  # noqa: F401
    ConcurrentModificationError,
    InMemoryDocumentStore,
    RedisDocumentStore,
    RosterMutationResult,
    RosterMutationStatus,
    RosterSnapshot,
    RosterStore,
    StoreTimeoutError,
    StoreUnavailableError,
    ValidationError,
    parse_roster,
    serialize_roster,
)
from recovery_core.services.gifts import group_gifts_by_recipient  # noqa: F401
from recovery_core.services.milestones import (  # noqa: F401
    InvalidInputError,
    calculate_days_sober,
    calculate_milestones,
    decompose,
    next_circle_milestone,
)

__version__ = "0.1.0"

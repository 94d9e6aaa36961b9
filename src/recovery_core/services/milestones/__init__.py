"""Sobriety duration and milestone calculations."""

from .calculator import (  # noqa: F401
    AchievedMilestone,
    CalculationResult,
    DurationBreakdown,
    InvalidInputError,
    NextMilestone,
    UpcomingMilestone,
    add_months,
    calculate_days_sober,
    calendar_date,
    calculate_milestones,
    decompose,
    next_circle_milestone,
    recombine,
)

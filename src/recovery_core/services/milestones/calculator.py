"""Pure sobriety duration and milestone calculations.

Every function here is a function of ``(clean_date, now)`` only. Day counts
use calendar-date subtraction so that daylight-saving shifts and the time of
day never move a result by one.
"""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, Sequence
from zoneinfo import ZoneInfo

from recovery_core.core.settings import settings
from recovery_core.domain.milestones import CIRCLE_CARD_MILESTONES, MILESTONES, MilestoneDefinition

_DAYS_PER_EXTRAPOLATED_YEAR = 365
_EXTRAPOLATION_STEP_YEARS = 5


class InvalidInputError(ValueError):
    """Raised when a date or member field cannot be accepted."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message

    def as_payload(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True, slots=True)
class DurationBreakdown:
    years: int
    months: int
    days: int


@dataclass(frozen=True, slots=True)
class AchievedMilestone:
    milestone: MilestoneDefinition
    date_achieved: date


@dataclass(frozen=True, slots=True)
class NextMilestone:
    milestone: MilestoneDefinition
    days_remaining: int
    target_date: date


@dataclass(frozen=True, slots=True)
class CalculationResult:
    """Milestone report derived from a clean date. Never persisted."""

    clean_date: date
    total_days: int
    years: int
    months: int
    days: int
    achieved: tuple[AchievedMilestone, ...]
    next: NextMilestone | None

    @property
    def all_achieved(self) -> bool:
        return self.next is None

    def as_payload(self) -> Dict[str, Any]:
        return {
            "cleanDate": self.clean_date.isoformat(),
            "totalDays": self.total_days,
            "years": self.years,
            "months": self.months,
            "days": self.days,
            "achieved": [
                {
                    "milestone": item.milestone.as_payload(),
                    "dateAchieved": item.date_achieved.isoformat(),
                }
                for item in self.achieved
            ],
            "next": (
                {
                    "milestone": self.next.milestone.as_payload(),
                    "daysRemaining": self.next.days_remaining,
                    "targetDate": self.next.target_date.isoformat(),
                }
                if self.next
                else None
            ),
        }


@dataclass(frozen=True, slots=True)
class UpcomingMilestone:
    """Next anniversary shown on a circle member card."""

    days: int
    label: str
    days_until: int
    milestone: MilestoneDefinition | None = None


def _coerce_date(value: date | datetime | str, *, field: str) -> date:
    if isinstance(value, datetime):
        return calendar_date(value)
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if "T" in text:
                return calendar_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
            return date.fromisoformat(text)
        except ValueError as exc:
            raise InvalidInputError(field, f"{field} must be an ISO date (YYYY-MM-DD)") from exc
    raise InvalidInputError(field, f"{field} must be a date")


def _calendar_zone() -> tzinfo:
    name = settings.calendar_timezone
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def calendar_date(moment: datetime) -> date:
    """Calendar date of ``moment`` in the configured calendar timezone."""

    if moment.tzinfo is not None:
        moment = moment.astimezone(_calendar_zone())
    return moment.date()


def add_months(start: date, months: int) -> date:
    """Shift ``start`` by whole calendar months, clamping to the month's last day."""

    year_offset, month_index = divmod(start.month - 1 + months, 12)
    year = start.year + year_offset
    month = month_index + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def calculate_days_sober(clean_date: date | datetime | str, now: date | datetime) -> int:
    """Whole calendar days between ``clean_date`` and the calendar date of ``now``."""

    start = _coerce_date(clean_date, field="clean_date")
    today = _coerce_date(now, field="now")
    if start > today:
        raise InvalidInputError("clean_date", "Clean date must not be in the future")
    return (today - start).days


def decompose(total_days: int, start: date | datetime | str) -> DurationBreakdown:
    """Split ``total_days`` counted from ``start`` into calendar years, months and days.

    Whole months are counted from ``start`` itself (not cumulatively), so a
    clean date on the 31st lands on the last day of shorter months without
    drifting. ``recombine`` reverses the split exactly.
    """

    if total_days < 0:
        raise InvalidInputError("total_days", "Elapsed days cannot be negative")
    anchor = _coerce_date(start, field="clean_date")
    end = anchor + timedelta(days=total_days)

    whole_months = (end.year - anchor.year) * 12 + (end.month - anchor.month)
    while whole_months > 0 and add_months(anchor, whole_months) > end:
        whole_months -= 1

    years, months = divmod(whole_months, 12)
    days = (end - add_months(anchor, whole_months)).days
    return DurationBreakdown(years=years, months=months, days=days)


def recombine(breakdown: DurationBreakdown, start: date | datetime | str) -> int:
    anchor = _coerce_date(start, field="clean_date")
    landed = add_months(anchor, breakdown.years * 12 + breakdown.months)
    return (landed - anchor).days + breakdown.days


def calculate_milestones(
    clean_date: date | datetime | str,
    now: date | datetime,
    catalog: Sequence[MilestoneDefinition] = MILESTONES,
) -> CalculationResult:
    """Partition the catalog into achieved milestones and the next one ahead."""

    start = _coerce_date(clean_date, field="clean_date")
    total_days = calculate_days_sober(start, now)
    breakdown = decompose(total_days, start)

    achieved: list[AchievedMilestone] = []
    upcoming: NextMilestone | None = None
    for entry in catalog:
        target = start + timedelta(days=entry.days)
        if entry.days <= total_days:
            achieved.append(AchievedMilestone(milestone=entry, date_achieved=target))
            continue
        upcoming = NextMilestone(
            milestone=entry,
            days_remaining=entry.days - total_days,
            target_date=target,
        )
        break

    return CalculationResult(
        clean_date=start,
        total_days=total_days,
        years=breakdown.years,
        months=breakdown.months,
        days=breakdown.days,
        achieved=tuple(achieved),
        next=upcoming,
    )


def next_circle_milestone(
    clean_date: date | datetime | str,
    now: date | datetime,
    catalog: Sequence[MilestoneDefinition] = CIRCLE_CARD_MILESTONES,
) -> UpcomingMilestone:
    """Next milestone for a member card, extrapolating past the end of the catalog.

    Walks ``CIRCLE_CARD_MILESTONES`` unless another catalog is given. Once
    every entry is reached, the next target is the following five-year
    anniversary (counted in 365-day years).
    """

    total_days = calculate_days_sober(clean_date, now)
    for entry in catalog:
        if entry.days > total_days:
            return UpcomingMilestone(
                days=entry.days,
                label=entry.label,
                days_until=entry.days - total_days,
                milestone=entry,
            )

    years = total_days // _DAYS_PER_EXTRAPOLATED_YEAR
    step = _EXTRAPOLATION_STEP_YEARS
    target_years = math.ceil((years + 1) / step) * step
    target_days = target_years * _DAYS_PER_EXTRAPOLATED_YEAR
    return UpcomingMilestone(
        days=target_days,
        label=f"{target_years} Years",
        days_until=target_days - total_days,
    )


__all__ = [
    "AchievedMilestone",
    "CalculationResult",
    "DurationBreakdown",
    "InvalidInputError",
    "NextMilestone",
    "UpcomingMilestone",
    "add_months",
    "calculate_days_sober",
    "calendar_date",
    "calculate_milestones",
    "decompose",
    "next_circle_milestone",
    "recombine",
]

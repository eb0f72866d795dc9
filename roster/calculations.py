"""Scheduling engine: next due date and urgency tier calculations."""

from datetime import datetime, timedelta
from typing import Dict, Iterable

from dateutil.relativedelta import relativedelta

from .interval import IntervalSpec, IntervalUnit
from .tier import Tier

SATURDAY = 5
CRITICAL_DAYS = 7
WARNING_DAYS = 14

_ONE_DAY = timedelta(days=1)
_MICROSECONDS_PER_DAY = _ONE_DAY // timedelta(microseconds=1)


def is_business_day(day: datetime) -> bool:
    return day.weekday() < SATURDAY


def add_business_days(start: datetime, count: int) -> datetime:
    """Step forward one calendar day at a time until count weekdays are passed."""
    current = start
    counted = 0
    while counted < count:
        current += _ONE_DAY
        if is_business_day(current):
            counted += 1
    return current


def add_months(start: datetime, months: int) -> datetime:
    """
    Add calendar months, letting a missing day-of-month roll over.

    Jan 31 + 1 month is Mar 3 (Mar 2 in leap years) rather than being
    clipped to the end of February.
    """
    first_of_month = start.replace(day=1) + relativedelta(months=months)
    return first_of_month + timedelta(days=start.day - 1)


def compute_next_date(interval: IntervalSpec, now: datetime) -> datetime:
    """
    Calculate the next maintenance date.

    - DAYS: now + interval.value business days (always lands on a weekday)
    - MONTHS: now + interval.value calendar months, no weekend adjustment
    """
    if interval.unit is IntervalUnit.DAYS:
        return add_business_days(now, interval.value)
    return add_months(now, interval.value)


def days_until(due_date: datetime, now: datetime) -> int:
    """Whole days from now to due_date, rounded up (negative when past)."""
    microseconds = (due_date - now) // timedelta(microseconds=1)
    return -(-microseconds // _MICROSECONDS_PER_DAY)


def classify_urgency(due_date: datetime, now: datetime) -> Tier:
    """Determine the urgency tier from the days remaining until due_date."""
    diff_days = days_until(due_date, now)
    if diff_days <= 0:
        return Tier.EXPIRED
    if diff_days <= CRITICAL_DAYS:
        return Tier.CRITICAL
    if diff_days <= WARNING_DAYS:
        return Tier.WARNING
    return Tier.NORMAL


def summarize_urgency(clients: Iterable, now: datetime) -> Dict[Tier, int]:
    """Count clients per tier (every tier present, zero if empty)."""
    counts = {tier: 0 for tier in Tier}
    for client in clients:
        counts[classify_urgency(client.next_maintenance_date, now)] += 1
    return counts

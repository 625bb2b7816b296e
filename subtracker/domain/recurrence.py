"""
Deterministic payment recurrence for subscriptions.

Uses date only (no timezone, time-of-day is dropped before any comparison).

Day-of-month anchoring: when the start day does not exist in the target
month (31 in April, 29 Feb in a non-leap year) the payment falls on the
last day of that month. Both the occurrence predicate and the next-payment
calculator use the same rule, so a date returned by next_payment_date()
is always an occurrence.

Next payment is the first occurrence strictly after the reference date
(a payment due today is considered settled).
"""
import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal

from subtracker.domain.billing_cycle import BillingCycle, parse_billing_cycle


@dataclass(frozen=True)
class OccurrenceInput:
    start_date: date
    cycle: BillingCycle
    amount: Decimal
    currency: str
    category: str
    subscription_id: int | None = None
    name: str = ""

    @classmethod
    def from_row(cls, row) -> "OccurrenceInput":
        """Build from a SubscriptionModel row (any object with matching attributes)."""
        return cls(
            start_date=to_date(row.payment_start_date),
            cycle=parse_billing_cycle(row.payment_cycle),
            amount=Decimal(str(row.price)),
            currency=row.currency,
            category=row.category,
            subscription_id=row.id,
            name=row.name,
        )


def to_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def anchored_day(day: int, year: int, month: int) -> int:
    return min(day, last_day_of_month(year, month))


def add_months(d: date, n: int) -> date:
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    return date(year, month, anchored_day(d.day, year, month))


def months_between(start: date, d: date) -> int:
    return (d.year - start.year) * 12 + (d.month - start.month)


def is_occurrence_on(candidate: date | datetime, sub: OccurrenceInput) -> bool:
    """True if a payment of `sub` is due on `candidate`."""
    d = to_date(candidate)
    start = to_date(sub.start_date)

    if d < start:
        return False
    if d == start:
        return True

    cycle = sub.cycle
    if cycle == BillingCycle.DAILY:
        return True
    if cycle == BillingCycle.WEEKLY:
        return (d - start).days % 7 == 0
    if cycle == BillingCycle.MONTHLY:
        return d.day == anchored_day(start.day, d.year, d.month)
    if cycle == BillingCycle.SEMI_ANNUALLY:
        months_diff = months_between(start, d)
        return (
            months_diff >= 0
            and months_diff % 6 == 0
            and d.day == anchored_day(start.day, d.year, d.month)
        )
    if cycle == BillingCycle.ANNUALLY:
        years_diff = d.year - start.year
        return (
            years_diff >= 0
            and d.month == start.month
            and d.day == anchored_day(start.day, d.year, d.month)
        )
    return False


def next_payment_date(reference: date | datetime, sub: OccurrenceInput) -> date:
    """First payment date strictly after `reference` (start date if not started yet)."""
    ref = to_date(reference)
    start = to_date(sub.start_date)

    if ref < start:
        return start

    cycle = sub.cycle
    if cycle == BillingCycle.DAILY:
        return ref + timedelta(days=1)

    if cycle == BillingCycle.WEEKLY:
        elapsed = (ref - start).days
        return start + timedelta(days=(elapsed // 7 + 1) * 7)

    if cycle == BillingCycle.MONTHLY:
        candidate = add_months(start, months_between(start, ref))
        if candidate > ref:
            return candidate
        return add_months(start, months_between(start, ref) + 1)

    if cycle == BillingCycle.SEMI_ANNUALLY:
        k = months_between(start, ref) // 6
        candidate = add_months(start, k * 6)
        if candidate > ref:
            return candidate
        return add_months(start, (k + 1) * 6)

    if cycle == BillingCycle.ANNUALLY:
        candidate = add_months(start, (ref.year - start.year) * 12)
        if candidate > ref:
            return candidate
        return add_months(start, (ref.year - start.year + 1) * 12)

    return start


def occurrences_between(range_start: date, range_end: date, sub: OccurrenceInput) -> list[date]:
    """Occurrence dates in [range_start, range_end] (inclusive), ascending."""
    first = max(to_date(range_start), to_date(sub.start_date))
    days = range(first.toordinal(), to_date(range_end).toordinal() + 1)
    return [date.fromordinal(n) for n in days if is_occurrence_on(date.fromordinal(n), sub)]

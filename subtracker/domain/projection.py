"""
Payment projection over a date range: calendar totals, upcoming payments, cost stats.

All amounts are converted into the reference currency (JPY) with a rate
table supplied by the caller. A currency absent from the table is taken
as-is (multiplier 1); an empty table therefore sums raw amounts.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from subtracker.domain.billing_cycle import BillingCycle
from subtracker.domain.money import RateTable, rate_for
from subtracker.domain.recurrence import (
    OccurrenceInput, is_occurrence_on, next_payment_date, last_day_of_month, to_date,
)


@dataclass(frozen=True)
class PaymentItem:
    subscription: OccurrenceInput
    amount: Decimal  # original currency
    converted: Decimal  # reference currency


@dataclass
class DayTotal:
    total: Decimal = Decimal(0)
    items: list[PaymentItem] = field(default_factory=list)


@dataclass
class RangeAggregate:
    range_start: date
    range_end: date
    per_date: dict[date, DayTotal] = field(default_factory=dict)
    per_category: dict[str, Decimal] = field(default_factory=dict)

    @property
    def total(self) -> Decimal:
        return sum((day.total for day in self.per_date.values()), Decimal(0))

    def payments_for(self, d: date) -> list[PaymentItem]:
        day = self.per_date.get(d)
        return list(day.items) if day else []


def iter_days(range_start: date, range_end: date):
    for ordinal in range(range_start.toordinal(), range_end.toordinal() + 1):
        yield date.fromordinal(ordinal)


def aggregate_range(
    range_start: date,
    range_end: date,
    subscriptions: list[OccurrenceInput],
    rates: RateTable,
) -> RangeAggregate:
    """
    Collect payment occurrences in [range_start, range_end] (inclusive).

    per_date only holds days with at least one payment, in chronological
    order; items keep the order of `subscriptions`. Every occurrence is
    counted once in per_date and once in per_category.
    """
    range_start, range_end = to_date(range_start), to_date(range_end)
    result = RangeAggregate(range_start=range_start, range_end=range_end)

    for d in iter_days(range_start, range_end):
        for sub in subscriptions:
            if not is_occurrence_on(d, sub):
                continue
            converted = sub.amount * rate_for(sub.currency, rates)
            day = result.per_date.setdefault(d, DayTotal())
            day.total += converted
            day.items.append(PaymentItem(subscription=sub, amount=sub.amount, converted=converted))
            result.per_category[sub.category] = (
                result.per_category.get(sub.category, Decimal(0)) + converted
            )

    return result


# ---------------------------------------------------------------------------
# Month calendar
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CalendarDay:
    day: date
    in_month: bool
    is_today: bool
    total: Decimal
    items: list[PaymentItem]


@dataclass(frozen=True)
class MonthProjection:
    year: int
    month: int
    monthly_total: Decimal
    per_category: dict[str, Decimal]
    days: list[CalendarDay]


def calendar_grid(year: int, month: int) -> list[date]:
    """Whole weeks (Sunday first) covering the month, cut at date.min / date.max."""
    first = date(year, month, 1)
    last = date(year, month, last_day_of_month(year, month))
    # date.weekday(): Monday=0 .. Sunday=6
    lead = (first.weekday() + 1) % 7
    trail = (5 - last.weekday()) % 7
    grid_start = max(date.min.toordinal(), first.toordinal() - lead)
    grid_end = min(date.max.toordinal(), last.toordinal() + trail)
    return list(iter_days(date.fromordinal(grid_start), date.fromordinal(grid_end)))


def month_projection(
    year: int,
    month: int,
    subscriptions: list[OccurrenceInput],
    rates: RateTable,
    today: date | None = None,
) -> MonthProjection:
    """Calendar grid for one month. Only days of the month count toward the totals."""
    if today is None:
        today = date.today()

    grid = calendar_grid(year, month)
    grid_agg = aggregate_range(grid[0], grid[-1], subscriptions, rates)
    month_agg = aggregate_range(
        date(year, month, 1),
        date(year, month, last_day_of_month(year, month)),
        subscriptions,
        rates,
    )

    days = []
    for d in grid:
        day = grid_agg.per_date.get(d)
        days.append(CalendarDay(
            day=d,
            in_month=(d.year == year and d.month == month),
            is_today=(d == today),
            total=day.total if day else Decimal(0),
            items=list(day.items) if day else [],
        ))

    return MonthProjection(
        year=year,
        month=month,
        monthly_total=month_agg.total,
        per_category=month_agg.per_category,
        days=days,
    )


# ---------------------------------------------------------------------------
# Upcoming payments
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UpcomingPayment:
    subscription: OccurrenceInput
    next_payment_date: date
    days_until: int


def upcoming_payments(reference: date, subscriptions: list[OccurrenceInput]) -> list[UpcomingPayment]:
    """Subscriptions ordered by how soon the next payment is due."""
    ref = to_date(reference)
    out = []
    for sub in subscriptions:
        nxt = next_payment_date(ref, sub)
        out.append(UpcomingPayment(subscription=sub, next_payment_date=nxt, days_until=(nxt - ref).days))
    # sorted() is stable: ties keep input order
    return sorted(out, key=lambda p: p.next_payment_date)


# ---------------------------------------------------------------------------
# Cost stats
# ---------------------------------------------------------------------------

# payments per month for each cycle, as (numerator, denominator)
_MONTHLY_FACTOR = {
    BillingCycle.DAILY: (365, 12),
    BillingCycle.WEEKLY: (52, 12),
    BillingCycle.MONTHLY: (1, 1),
    BillingCycle.SEMI_ANNUALLY: (1, 6),
    BillingCycle.ANNUALLY: (1, 12),
}

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class SubscriptionStats:
    total_monthly_cost: Decimal
    total_annual_cost: Decimal
    category_breakdown: dict[str, Decimal]
    currency_breakdown: dict[str, Decimal]


def monthly_equivalent(sub: OccurrenceInput) -> Decimal:
    """Average monthly cost in the subscription's own currency (0 for UNKNOWN)."""
    num, den = _MONTHLY_FACTOR.get(sub.cycle, (0, 1))
    return sub.amount * num / den


def subscription_stats(subscriptions: list[OccurrenceInput], rates: RateTable) -> SubscriptionStats:
    total = Decimal(0)
    by_category: dict[str, Decimal] = {}
    by_currency: dict[str, Decimal] = {}

    for sub in subscriptions:
        raw = monthly_equivalent(sub)
        converted = raw * rate_for(sub.currency, rates)
        total += converted
        by_category[sub.category] = by_category.get(sub.category, Decimal(0)) + converted
        by_currency[sub.currency] = by_currency.get(sub.currency, Decimal(0)) + raw

    return SubscriptionStats(
        total_monthly_cost=total.quantize(_CENT),
        total_annual_cost=(total * 12).quantize(_CENT),
        category_breakdown={k: v.quantize(_CENT) for k, v in by_category.items()},
        currency_breakdown={k: v.quantize(_CENT) for k, v in by_currency.items()},
    )

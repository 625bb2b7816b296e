"""
Subscription use cases: CRUD over SubscriptionModel + glue to the payment projector.

Module works with the ORM directly.
"""
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from subtracker.domain.billing_cycle import validate_billing_cycle
from subtracker.domain.category import validate_category
from subtracker.domain.money import RateTable, validate_amount, validate_currency
from subtracker.domain.projection import (
    MonthProjection, SubscriptionStats, UpcomingPayment,
    month_projection, subscription_stats, upcoming_payments,
)
from subtracker.domain.recurrence import OccurrenceInput
from subtracker.infrastructure.db.models import SubscriptionModel


class SubscriptionValidationError(ValueError):
    pass


class SubscriptionNotFoundError(SubscriptionValidationError):
    pass


def _clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise SubscriptionValidationError("Name must not be empty")
    if len(name) > 255:
        raise SubscriptionValidationError("Name is too long")
    return name


def _parse_start_date(value: date | datetime | str | None) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise SubscriptionValidationError(f"Invalid payment start date: {value}")


def _validated(field: str, value):
    """Run the domain validator for `field`, re-raising as SubscriptionValidationError."""
    try:
        if field == "name":
            return _clean_name(value)
        if field == "price":
            return validate_amount(value)
        if field == "currency":
            return validate_currency(value)
        if field == "payment_cycle":
            return validate_billing_cycle(value).value
        if field == "category":
            return validate_category(value)
        if field == "payment_start_date":
            return _parse_start_date(value)
    except SubscriptionValidationError:
        raise
    except ValueError as e:
        raise SubscriptionValidationError(str(e)) from e
    raise SubscriptionValidationError(f"Unknown field: {field}")


# ============================================================================
# Queries
# ============================================================================


def get_subscription(db: Session, sub_id: int, account_id: int) -> SubscriptionModel:
    sub = db.query(SubscriptionModel).filter(
        SubscriptionModel.id == sub_id,
        SubscriptionModel.account_id == account_id,
    ).first()
    if not sub:
        raise SubscriptionNotFoundError("Subscription not found")
    return sub


def list_subscriptions(db: Session, account_id: int) -> list[SubscriptionModel]:
    return db.query(SubscriptionModel).filter(
        SubscriptionModel.account_id == account_id,
    ).order_by(SubscriptionModel.id.asc()).all()


def load_occurrence_inputs(db: Session, account_id: int) -> list[OccurrenceInput]:
    return [OccurrenceInput.from_row(s) for s in list_subscriptions(db, account_id)]


# ============================================================================
# Commands
# ============================================================================


class CreateSubscriptionUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        account_id: int,
        name: str,
        price: Decimal | int | float | str,
        currency: str,
        payment_cycle: str,
        category: str,
        payment_start_date: date | datetime | str | None = None,
    ) -> int:
        sub = SubscriptionModel(
            account_id=account_id,
            name=_validated("name", name),
            price=_validated("price", price),
            currency=_validated("currency", currency),
            payment_cycle=_validated("payment_cycle", payment_cycle),
            category=_validated("category", category),
            payment_start_date=_validated("payment_start_date", payment_start_date),
        )
        self.db.add(sub)
        self.db.flush()
        self.db.commit()
        return sub.id


class UpdateSubscriptionUseCase:
    EDITABLE = ("name", "price", "currency", "payment_cycle", "category", "payment_start_date")

    def __init__(self, db: Session):
        self.db = db

    def execute(self, sub_id: int, account_id: int, **changes) -> None:
        sub = get_subscription(self.db, sub_id, account_id)

        for key in self.EDITABLE:
            # None means "keep current value"
            if key in changes and changes[key] is not None:
                setattr(sub, key, _validated(key, changes[key]))
        self.db.commit()


class DeleteSubscriptionUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, sub_id: int, account_id: int) -> None:
        sub = get_subscription(self.db, sub_id, account_id)
        self.db.delete(sub)
        self.db.commit()


# ============================================================================
# Projections
# ============================================================================


def build_month_calendar(
    db: Session,
    account_id: int,
    year: int,
    month: int,
    rates: RateTable,
    today: date | None = None,
) -> MonthProjection:
    if not 1 <= month <= 12:
        raise SubscriptionValidationError("month must be in 1..12")
    return month_projection(year, month, load_occurrence_inputs(db, account_id), rates, today)


def build_upcoming(db: Session, account_id: int, reference: date | None = None) -> list[UpcomingPayment]:
    if reference is None:
        reference = date.today()
    return upcoming_payments(reference, load_occurrence_inputs(db, account_id))


def build_stats(db: Session, account_id: int, rates: RateTable) -> SubscriptionStats:
    return subscription_stats(load_occurrence_inputs(db, account_id), rates)

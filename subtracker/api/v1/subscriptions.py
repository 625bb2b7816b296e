"""
Subscription API endpoints
"""
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from subtracker.api.deps import get_db, get_current_user, get_rate_service
from subtracker.application.subscriptions import (
    CreateSubscriptionUseCase, UpdateSubscriptionUseCase, DeleteSubscriptionUseCase,
    SubscriptionValidationError, SubscriptionNotFoundError,
    get_subscription, list_subscriptions,
    build_month_calendar, build_upcoming, build_stats,
)
from subtracker.domain.projection import PaymentItem
from subtracker.domain.recurrence import OccurrenceInput, next_payment_date
from subtracker.infrastructure.db.models import User, SubscriptionModel
from subtracker.infrastructure.exchange_rates import ExchangeRateService


router = APIRouter(prefix="/api/v1/subscriptions", tags=["subscriptions"])


# === Request/Response models ===

class CreateSubscriptionRequest(BaseModel):
    name: str
    price: Decimal
    currency: str
    payment_cycle: str
    category: str
    payment_start_date: date | None = None


class UpdateSubscriptionRequest(BaseModel):
    name: str | None = None
    price: Decimal | None = None
    currency: str | None = None
    payment_cycle: str | None = None
    category: str | None = None
    payment_start_date: date | None = None


class SubscriptionResponse(BaseModel):
    id: int
    name: str
    price: Decimal
    currency: str
    payment_cycle: str
    category: str
    payment_start_date: date
    next_payment_date: date


class PaymentItemResponse(BaseModel):
    subscription_id: int | None
    name: str
    category: str
    amount: Decimal
    currency: str
    amount_jpy: Decimal


class CalendarDayResponse(BaseModel):
    day: date
    in_month: bool
    is_today: bool
    total: Decimal
    payments: list[PaymentItemResponse]


class CalendarResponse(BaseModel):
    year: int
    month: int
    monthly_total: Decimal
    per_category: dict[str, Decimal]
    days: list[CalendarDayResponse]


class UpcomingPaymentResponse(BaseModel):
    subscription_id: int | None
    name: str
    next_payment_date: date
    days_until: int
    amount: Decimal
    currency: str


class StatsResponse(BaseModel):
    total_monthly_cost: Decimal
    total_annual_cost: Decimal
    category_breakdown: dict[str, Decimal]
    currency_breakdown: dict[str, Decimal]


# === Helper functions ===

def _to_response(sub: SubscriptionModel, today: date) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=sub.id,
        name=sub.name,
        price=sub.price,
        currency=sub.currency,
        payment_cycle=sub.payment_cycle,
        category=sub.category,
        payment_start_date=sub.payment_start_date,
        next_payment_date=next_payment_date(today, OccurrenceInput.from_row(sub)),
    )


def _item_response(item: PaymentItem) -> PaymentItemResponse:
    s = item.subscription
    return PaymentItemResponse(
        subscription_id=s.subscription_id,
        name=s.name,
        category=s.category,
        amount=item.amount,
        currency=s.currency,
        amount_jpy=item.converted,
    )


# === Endpoints: projections ===

@router.get("/calendar", response_model=CalendarResponse)
def get_calendar(
    year: int | None = Query(None, ge=1, le=9999),
    month: int | None = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    rates: ExchangeRateService = Depends(get_rate_service),
):
    """Month calendar with payments per day (JPY); defaults to the current month"""
    today = date.today()
    projection = build_month_calendar(
        db, user.id,
        year or today.year, month or today.month,
        rates.get_rates(), today,
    )
    return CalendarResponse(
        year=projection.year,
        month=projection.month,
        monthly_total=projection.monthly_total,
        per_category=projection.per_category,
        days=[
            CalendarDayResponse(
                day=d.day,
                in_month=d.in_month,
                is_today=d.is_today,
                total=d.total,
                payments=[_item_response(i) for i in d.items],
            )
            for d in projection.days
        ],
    )


@router.get("/upcoming", response_model=list[UpcomingPaymentResponse])
def get_upcoming(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Subscriptions sorted by next payment date"""
    return [
        UpcomingPaymentResponse(
            subscription_id=p.subscription.subscription_id,
            name=p.subscription.name,
            next_payment_date=p.next_payment_date,
            days_until=p.days_until,
            amount=p.subscription.amount,
            currency=p.subscription.currency,
        )
        for p in build_upcoming(db, user.id, date.today())
    ]


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    rates: ExchangeRateService = Depends(get_rate_service),
):
    """Monthly / annual cost in JPY with category and currency breakdowns"""
    stats = build_stats(db, user.id, rates.get_rates())
    return StatsResponse(
        total_monthly_cost=stats.total_monthly_cost,
        total_annual_cost=stats.total_annual_cost,
        category_breakdown=stats.category_breakdown,
        currency_breakdown=stats.currency_breakdown,
    )


# === Endpoints: CRUD ===

@router.get("/", response_model=list[SubscriptionResponse])
def list_user_subscriptions(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """All subscriptions of the current user"""
    today = date.today()
    return [_to_response(s, today) for s in list_subscriptions(db, user.id)]


@router.post("/", response_model=SubscriptionResponse, status_code=status.HTTP_201_CREATED)
def create_subscription(
    req: CreateSubscriptionRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Register a new subscription"""
    try:
        sub_id = CreateSubscriptionUseCase(db).execute(
            account_id=user.id,
            name=req.name,
            price=req.price,
            currency=req.currency,
            payment_cycle=req.payment_cycle,
            category=req.category,
            payment_start_date=req.payment_start_date,
        )
    except SubscriptionValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _to_response(get_subscription(db, sub_id, user.id), date.today())


@router.get("/{sub_id}", response_model=SubscriptionResponse)
def get_one(
    sub_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        sub = get_subscription(db, sub_id, user.id)
    except SubscriptionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _to_response(sub, date.today())


@router.put("/{sub_id}", response_model=SubscriptionResponse)
def update_subscription(
    sub_id: int,
    req: UpdateSubscriptionRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Update fields that are present in the body"""
    try:
        UpdateSubscriptionUseCase(db).execute(sub_id, user.id, **req.model_dump(exclude_unset=True))
    except SubscriptionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SubscriptionValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _to_response(get_subscription(db, sub_id, user.id), date.today())


@router.delete("/{sub_id}")
def delete_subscription(
    sub_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        DeleteSubscriptionUseCase(db).execute(sub_id, user.id)
    except SubscriptionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True}

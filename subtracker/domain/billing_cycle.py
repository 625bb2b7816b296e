"""
Billing cycle of a subscription.

Cycles:
  DAILY         - every day from the start date
  WEEKLY        - every 7 days from the start date
  MONTHLY       - same day of month
  SEMI_ANNUALLY - same day every 6 months
  ANNUALLY      - same month+day every year
  UNKNOWN       - anything else read from storage; never occurs
"""
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class BillingCycleValidationError(ValueError):
    pass


class BillingCycle(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    SEMI_ANNUALLY = "SEMI_ANNUALLY"
    ANNUALLY = "ANNUALLY"
    UNKNOWN = "UNKNOWN"


VALID_CYCLES = frozenset(c.value for c in BillingCycle if c is not BillingCycle.UNKNOWN)

CYCLE_LABELS = {
    BillingCycle.DAILY: "Daily",
    BillingCycle.WEEKLY: "Weekly",
    BillingCycle.MONTHLY: "Monthly",
    BillingCycle.SEMI_ANNUALLY: "Every 6 months",
    BillingCycle.ANNUALLY: "Yearly",
    BillingCycle.UNKNOWN: "Unknown",
}


def parse_billing_cycle(value: "str | BillingCycle") -> BillingCycle:
    """Tolerant parse for values read back from storage.

    Unrecognized strings map to UNKNOWN (logged, never raised).
    """
    if isinstance(value, BillingCycle):
        return value
    normalized = (value or "").strip().upper()
    if normalized in VALID_CYCLES:
        return BillingCycle(normalized)
    logger.warning("Unrecognized billing cycle %r, treating as UNKNOWN", value)
    return BillingCycle.UNKNOWN


def validate_billing_cycle(value: str) -> BillingCycle:
    """Strict parse for user input. Raises BillingCycleValidationError."""
    normalized = (value or "").strip().upper()
    if normalized not in VALID_CYCLES:
        raise BillingCycleValidationError(f"Invalid payment cycle: {value}")
    return BillingCycle(normalized)

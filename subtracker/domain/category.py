"""
Subscription category (classification tag).

The projector only uses it as an aggregation key.
"""
from enum import Enum


class CategoryValidationError(ValueError):
    pass


class SubscriptionCategory(str, Enum):
    VIDEO_STREAMING = "VIDEO_STREAMING"
    MUSIC_STREAMING = "MUSIC_STREAMING"
    READING = "READING"
    GAMING = "GAMING"
    FITNESS = "FITNESS"
    EDUCATION = "EDUCATION"
    PRODUCTIVITY = "PRODUCTIVITY"
    CLOUD_STORAGE = "CLOUD_STORAGE"
    SECURITY = "SECURITY"
    OTHER = "OTHER"


VALID_CATEGORIES = frozenset(c.value for c in SubscriptionCategory)

CATEGORY_LABELS = {
    SubscriptionCategory.VIDEO_STREAMING: "Video streaming",
    SubscriptionCategory.MUSIC_STREAMING: "Music streaming",
    SubscriptionCategory.READING: "Reading",
    SubscriptionCategory.GAMING: "Gaming",
    SubscriptionCategory.FITNESS: "Fitness",
    SubscriptionCategory.EDUCATION: "Education",
    SubscriptionCategory.PRODUCTIVITY: "Productivity",
    SubscriptionCategory.CLOUD_STORAGE: "Cloud storage",
    SubscriptionCategory.SECURITY: "Security",
    SubscriptionCategory.OTHER: "Other",
}


def validate_category(value: str) -> str:
    code = (value or "").strip().upper()
    if code not in VALID_CATEGORIES:
        raise CategoryValidationError(f"Invalid subscription category: {value}")
    return code


def category_label(code: str) -> str:
    """Display name; unknown codes are shown as-is."""
    try:
        return CATEGORY_LABELS[SubscriptionCategory(code)]
    except ValueError:
        return code

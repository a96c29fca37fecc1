from enum import Enum


class TargetStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    LOCKED = "locked"
    ARCHIVED = "archived"


class RewardType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"
    BOTH = "both"


class CommissionType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"
    TIERED = "tiered"


class ApplicableTo(str, Enum):
    ALL = "all"
    BRANCH = "branch"
    CASHIER = "cashier"


class PayoutStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


class AlertLevel(str, Enum):
    EXCEEDING = "exceeding"
    ON_TRACK = "on_track"
    WARNING = "warning"
    CRITICAL = "critical"


class ShiftType(str, Enum):
    MORNING = "morning"
    EVENING = "evening"
    NIGHT = "night"


# Только проведенные и утвержденные журналы участвуют в расчетах
ELIGIBLE_JOURNAL_STATUSES = ("posted", "approved")

HOLIDAY_SEASON_TYPE = "holiday"

# Порядок весов в профиле: воскресенье ... суббота
WEEKDAY_WEIGHT_FIELDS = (
    "sunday_weight",
    "monday_weight",
    "tuesday_weight",
    "wednesday_weight",
    "thursday_weight",
    "friday_weight",
    "saturday_weight",
)

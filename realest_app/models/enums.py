from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    OWNER = "owner"
    AGENT = "agent"
    ADMIN = "admin"


class PropertyStatus(str, Enum):
    DRAFT = "draft"
    PENDING_ML_VALIDATION = "pending_ml_validation"
    PENDING_VETTING = "pending_vetting"
    PENDING_DUPLICATE_REVIEW = "pending_duplicate_review"
    LIVE = "live"
    REJECTED = "rejected"
    EXPIRED = "expired"
    SOLD = "sold"


class MLValidationStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    REVIEW_REQUIRED = "review_required"


class MLAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    FLAG_DUPLICATE = "flag_duplicate"


class VettingDecision(str, Enum):
    LIVE = "live"
    REJECTED = "rejected"


class DuplicateResolution(str, Enum):
    KEEP_BOTH = "keep_both"
    KEEP_MASTER = "keep_master"
    REJECT_DUPLICATE = "reject_duplicate"


class OwnerAction(str, Enum):
    SUBMIT = "submit"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AdminActionType(str, Enum):
    ML_VALIDATION_UPDATE = "ml_validation_update"
    PROPERTY_VETTING = "property_vetting"
    DUPLICATE_RESOLUTION = "duplicate_resolution"


class NotificationType(str, Enum):
    ML_VALIDATION = "ml_validation"
    PROPERTY_STATUS = "property_status"
    DUPLICATE_RESOLUTION = "duplicate_resolution"


class ValidationQueue(str, Enum):
    ML = "ml"
    VETTING = "vetting"
    DUPLICATES = "duplicates"


QUEUE_STATUS = {
    ValidationQueue.ML: PropertyStatus.PENDING_ML_VALIDATION,
    ValidationQueue.VETTING: PropertyStatus.PENDING_VETTING,
    ValidationQueue.DUPLICATES: PropertyStatus.PENDING_DUPLICATE_REVIEW,
}


class QueueSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"


class ReportPeriod(str, Enum):
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"
    NINETY_DAYS = "90d"


REPORT_PERIOD_DAYS = {
    ReportPeriod.SEVEN_DAYS: 7,
    ReportPeriod.THIRTY_DAYS: 30,
    ReportPeriod.NINETY_DAYS: 90,
}

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    MASTER_ADMIN = "master_admin"
    ADMIN = "admin"
    HR = "hr"
    EMPLOYEE = "employee"

    @property
    def is_admin(self) -> bool:
        return self in {Role.MASTER_ADMIN, Role.ADMIN}


class Department(str, Enum):
    TECHNICAL = "technical"
    MARKETING = "marketing"
    ADMIN = "admin"
    OPERATIONS = "operations"
    HR = "hr"
    SALES = "sales"

    @classmethod
    def normalize(cls, value: str) -> "Department":
        """Accept display names such as 'Administration' or ' Technical '."""

        v = (value or "").strip().lower()
        if v == "administration":
            v = "admin"
        return cls(v)


class EmploymentType(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    INTERN = "intern"
    CONSULTANT = "consultant"
    FREELANCER = "freelancer"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored in the database."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    EARLY_LEAVE = "EARLY_LEAVE"
    ABSENT = "ABSENT"
    UNKNOWN = "UNKNOWN"


class AttendanceType(str, Enum):
    OFFICE = "office"
    REMOTE = "remote"
    FIELD_WORK = "field_work"


class AdminReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    ADJUSTED = "adjusted"
    REJECTED = "rejected"


class OTType(str, Enum):
    EARLY_ARRIVAL = "early_arrival"
    LATE_DEPARTURE = "late_departure"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"


class OTSessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    LOCKED = "locked"
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def counts_as_approved(self) -> bool:
        return self in {OTSessionStatus.APPROVED, OTSessionStatus.COMPLETED}


class ReviewAction(str, Enum):
    APPROVED = "APPROVED"
    ADJUSTED = "ADJUSTED"
    REJECTED = "REJECTED"


class LeaveType(str, Enum):
    CASUAL_LEAVE = "casual_leave"
    UNPAID_LEAVE = "unpaid_leave"
    PERMISSION = "permission"

    @property
    def is_full_day(self) -> bool:
        return self in {LeaveType.CASUAL_LEAVE, LeaveType.UNPAID_LEAVE}


class RequestStatus(str, Enum):
    """Approval workflow status (leave applications)."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SiteVisitStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    AUTO_CLOSED = "auto_closed"


class VisitPurpose(str, Enum):
    VISIT = "visit"
    INSTALLATION = "installation"
    SERVICE = "service"
    PURCHASE = "purchase"
    EB_OFFICE = "eb_office"
    AMC = "amc"
    BANK = "bank"
    OTHER = "other"


class PropertyType(str, Enum):
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    AGRI = "agri"
    OTHER = "other"


class VisitOutcome(str, Enum):
    CONVERTED = "converted"
    ON_PROCESS = "on_process"
    CANCELLED = "cancelled"


class FollowUpOutcome(str, Enum):
    COMPLETED = "completed"
    ON_PROCESS = "on_process"
    CANCELLED = "cancelled"

    def to_customer_status(self) -> VisitOutcome:
        return {
            FollowUpOutcome.COMPLETED: VisitOutcome.CONVERTED,
            FollowUpOutcome.ON_PROCESS: VisitOutcome.ON_PROCESS,
            FollowUpOutcome.CANCELLED: VisitOutcome.CANCELLED,
        }[self]


class FollowUpReason(str, Enum):
    ADDITIONAL_WORK_REQUIRED = "additional_work_required"
    ISSUE_RESOLUTION = "issue_resolution"
    STATUS_CHECK = "status_check"
    CUSTOMER_REQUEST = "customer_request"
    MAINTENANCE = "maintenance"
    OTHER = "other"


class ActivityType(str, Enum):
    INITIAL_VISIT = "initial_visit"
    FOLLOW_UP = "follow_up"


class QuickAction(str, Enum):
    CONVERT = "convert"
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"


class PayrollPeriodStatus(str, Enum):
    OPEN = "open"
    LOCKED = "locked"
    PROCESSED = "processed"


class HolidayType(str, Enum):
    NATIONAL = "national"
    COMPANY = "company"
    REGIONAL = "regional"


class MarketingProjectType(str, Enum):
    ON_GRID = "on_grid"
    OFF_GRID = "off_grid"
    HYBRID = "hybrid"
    WATER_HEATER = "water_heater"
    WATER_PUMP = "water_pump"


class QuotationStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"

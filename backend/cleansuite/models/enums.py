"""Enumeration types for the CleanSuite domain model."""

from enum import Enum


class CompanyRole(str, Enum):
    """Role within a company."""
    ADMIN = "admin"
    MANAGER = "manager"
    CLEANER = "cleaner"


class ClientStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ServiceType(str, Enum):
    """Cleaning service offered on an estimate."""
    STANDARD = "standard"
    DEEP = "deep"
    MOVE_OUT = "moveOut"
    COMMERCIAL = "commercial"


class Frequency(str, Enum):
    """How often the client books the service."""
    ONE_TIME = "oneTime"
    MONTHLY = "monthly"
    BIWEEKLY = "biweekly"
    WEEKLY = "weekly"


class ExtraKind(str, Enum):
    """The seven priced extras an estimate can carry."""
    PETS = "pets"
    CHILDREN = "children"
    GREEN_CLEANING = "green_cleaning"
    FRIDGE = "fridge"
    OVEN = "oven"
    CABINETS = "cabinets"
    WINDOWS = "windows"


class EstimateStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class JobStatus(str, Enum):
    """Status of a scheduled job."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    """Payment methods accepted at job completion."""
    E_TRANSFER = "e_transfer"
    CASH = "cash"


class PaymentReceiver(str, Enum):
    """Who holds the cash after a cash payment."""
    CLEANER = "cleaner"
    COMPANY = "company"


class CashHandling(str, Enum):
    KEPT_BY_CLEANER = "kept_by_cleaner"
    DELIVERED_TO_OFFICE = "delivered_to_office"


class CompensationStatus(str, Enum):
    """Cash collection compensation lifecycle."""
    PENDING = "pending"
    APPROVED = "approved"
    DISPUTED = "disputed"
    SETTLED = "settled"


class PayrollPeriodStatus(str, Enum):
    """Payroll period lifecycle: pending -> approved -> paid."""
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    CANCELLED = "cancelled"


class InvoiceGenerationMode(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class PhotoPurpose(str, Enum):
    BEFORE = "before"
    AFTER = "after"


class NotificationType(str, Enum):
    JOB = "job"
    INVOICE = "invoice"
    PAYROLL = "payroll"
    FINANCIAL = "financial"
    SYSTEM = "system"


class NotificationSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class Province(str, Enum):
    """Canadian provinces and territories."""
    ON = "ON"
    QC = "QC"
    BC = "BC"
    AB = "AB"
    MB = "MB"
    SK = "SK"
    NS = "NS"
    NB = "NB"
    NL = "NL"
    PE = "PE"
    NT = "NT"
    YT = "YT"
    NU = "NU"


class ActivityAction(str, Enum):
    """Actions recorded in the activity log."""
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    CLIENT_CREATED = "client_created"
    CLIENT_UPDATED = "client_updated"
    CLIENT_DELETED = "client_deleted"
    CLIENT_INACTIVATED = "client_inactivated"
    LOCATION_CREATED = "location_created"
    LOCATION_UPDATED = "location_updated"
    JOB_CREATED = "job_created"
    JOB_UPDATED = "job_updated"
    JOB_STARTED = "job_started"
    JOB_COMPLETED = "job_completed"
    JOB_CANCELLED = "job_cancelled"
    INVOICE_CREATED = "invoice_created"
    INVOICE_SENT = "invoice_sent"
    INVOICE_PAID = "invoice_paid"
    INVOICE_CANCELLED = "invoice_cancelled"
    INVOICE_UPDATED = "invoice_updated"
    PAYMENT_REGISTERED = "payment_registered"
    PAYMENT_CONFIRMED = "payment_confirmed"
    PAYMENT_REJECTED = "payment_rejected"
    PAYROLL_CREATED = "payroll_created"
    PAYROLL_APPROVED = "payroll_approved"
    PAYROLL_PAID = "payroll_paid"
    SETTINGS_UPDATED = "settings_updated"
    LOGIN = "login"
    LOGOUT = "logout"
    COMPANY_CREATED = "company_created"
    COMPANY_UPDATED = "company_updated"
    ESTIMATE_CREATED = "estimate_created"
    ESTIMATE_UPDATED = "estimate_updated"
    ESTIMATE_DELETED = "estimate_deleted"
    ESTIMATE_SENT = "estimate_sent"
    ESTIMATE_ACCEPTED = "estimate_accepted"
    ESTIMATE_REJECTED = "estimate_rejected"
    CASH_KEPT_BY_CLEANER = "cash_kept_by_cleaner"
    CASH_DELIVERED_TO_OFFICE = "cash_delivered_to_office"
    CASH_APPROVED = "cash_approved"
    CASH_DISPUTED = "cash_disputed"
    CASH_COMPENSATION_SETTLED = "cash_compensation_settled"
    JOB_OVERDUE_ALERT = "job_overdue_alert"

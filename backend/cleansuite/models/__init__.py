"""SQLAlchemy models for CleanSuite."""

from cleansuite.models.user import User
from cleansuite.models.company import (
    Company,
    CompanyMembership,
    CompanyEstimateConfig,
    CompanyExtraFee,
    ChecklistItem,
    CompanyBranding,
)
from cleansuite.models.client import Client, ClientLocation
from cleansuite.models.estimate import Estimate
from cleansuite.models.job import Job
from cleansuite.models.payment import PaymentReceipt, CashCollection
from cleansuite.models.payroll import PayrollPeriod, PayrollEntry
from cleansuite.models.invoice import Invoice
from cleansuite.models.activity import ActivityLog
from cleansuite.models.notification import Notification

__all__ = [
    "User",
    "Company",
    "CompanyMembership",
    "CompanyEstimateConfig",
    "CompanyExtraFee",
    "ChecklistItem",
    "CompanyBranding",
    "Client",
    "ClientLocation",
    "Estimate",
    "Job",
    "PaymentReceipt",
    "CashCollection",
    "PayrollPeriod",
    "PayrollEntry",
    "Invoice",
    "ActivityLog",
    "Notification",
]

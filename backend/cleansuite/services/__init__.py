"""Services for CleanSuite."""

from cleansuite.services.activity import ActivityService
from cleansuite.services.cash import CashReconciliationService
from cleansuite.services.company_config import CompanyConfigSnapshot, load_company_config
from cleansuite.services.completion import CompletionService
from cleansuite.services.invoicing import InvoiceService
from cleansuite.services.notifications import NotificationService
from cleansuite.services.storage import StorageService, get_storage_service

__all__ = [
    "ActivityService",
    "CashReconciliationService",
    "CompanyConfigSnapshot",
    "load_company_config",
    "CompletionService",
    "InvoiceService",
    "NotificationService",
    "StorageService",
    "get_storage_service",
]

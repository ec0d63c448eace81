"""API Routers for CleanSuite."""

from cleansuite.routers.auth import router as auth_router
from cleansuite.routers.company import router as company_router
from cleansuite.routers.clients import router as clients_router
from cleansuite.routers.estimates import router as estimates_router
from cleansuite.routers.jobs import router as jobs_router
from cleansuite.routers.invoices import router as invoices_router
from cleansuite.routers.cash_collections import router as cash_collections_router
from cleansuite.routers.payroll import router as payroll_router
from cleansuite.routers.notifications import router as notifications_router
from cleansuite.routers.activity import router as activity_router
from cleansuite.routers.receipts import router as receipts_router

__all__ = [
    "auth_router",
    "company_router",
    "clients_router",
    "estimates_router",
    "jobs_router",
    "invoices_router",
    "cash_collections_router",
    "payroll_router",
    "notifications_router",
    "activity_router",
    "receipts_router",
]

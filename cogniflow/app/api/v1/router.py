"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from cogniflow.app.api.v1.endpoints import (
    auth, dashboard, transactions, invoices, ledger,
    accounts, exchange_rates, reports, audit_logs
)

router = APIRouter()

# Authentication endpoints
router.include_router(auth.router)

# Dashboard KPIs, charts and AI insights
router.include_router(dashboard.router)

# Recorder
router.include_router(transactions.router)
router.include_router(invoices.router)

# General ledger
router.include_router(ledger.router)
router.include_router(accounts.router)

router.include_router(exchange_rates.router)

# Reports
router.include_router(reports.router)

# Admin
router.include_router(audit_logs.router)

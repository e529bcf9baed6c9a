"""
contribmetrics - Donor, campaign and expense metrics for contribution dashboards.

This package turns the flat contribution, sponsor and expense lists served by
a contribution-management backend into the figures its dashboard shows:
unique donors, campaign progress, expense breakdowns and outstanding payments.
"""

from .models import (
    BreakdownItem,
    CampaignProgress,
    DashboardTotals,
    Donor,
    DonorKey,
    OutstandingPayment,
    OutstandingReport,
)
from .metrics import (
    aggregate_donors,
    compute_campaign_progress,
    compute_expense_breakdown,
    compute_outstanding_payments,
    compute_totals,
    filter_contributions,
    filter_expenses,
    filter_sponsors,
    filter_vendors,
)
from .api import DashboardAPI, AsyncDashboardAPI, SessionExpiredError
from .state import AppState, DashboardData

__version__ = "0.1.0"
__all__ = [
    "BreakdownItem",
    "CampaignProgress",
    "DashboardTotals",
    "Donor",
    "DonorKey",
    "OutstandingPayment",
    "OutstandingReport",
    "aggregate_donors",
    "compute_campaign_progress",
    "compute_expense_breakdown",
    "compute_outstanding_payments",
    "compute_totals",
    "filter_contributions",
    "filter_expenses",
    "filter_sponsors",
    "filter_vendors",
    "DashboardAPI",
    "AsyncDashboardAPI",
    "SessionExpiredError",
    "AppState",
    "DashboardData",
]

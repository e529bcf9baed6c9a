"""Derived metrics computed from raw contribution, sponsor and expense lists.

Every function here is pure: it reads the lists it is given and returns
freshly built objects. Rows may be model instances or the backend's raw JSON
dicts. Dirty rows never raise; they are skipped or counted as zero. Passing
something that is not a list at all is a caller bug and raises TypeError.
"""

import logging
import math
from collections.abc import Mapping
from datetime import date, datetime
from numbers import Number
from typing import Any, Optional

from .models import (
    Budget,
    BudgetLine,
    BudgetReport,
    BreakdownItem,
    Campaign,
    CampaignProgress,
    Contribution,
    DashboardSummary,
    DashboardTotals,
    Donor,
    DonorKey,
    Expense,
    OutstandingPayment,
    OutstandingReport,
    Sponsor,
    TimelinePoint,
    Vendor,
)

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
UNKNOWN_VENDOR = "Unknown Vendor"
ALL_FESTIVALS = "all"

BREAKDOWN_PALETTE = [
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
    "#ec4899",
    "#14b8a6",
    "#f97316",
    "#6366f1",
    "#84cc16",
]


def to_number(value: Any) -> float:
    """Coerce a backend value to a number, falling back to 0.

    Numbers pass through (NaN becomes 0), numeric strings are parsed and
    anything else (None, "", "abc", lists) is 0.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Number):
        try:
            number = value if isinstance(value, int) else float(value)
        except (TypeError, ValueError):
            return 0
        return 0 if number != number else number
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return 0
        return 0 if math.isnan(number) else number
    return 0


def _rows(rows, model, argument: str) -> list:
    """Check the list precondition and normalize rows to model instances."""
    if not isinstance(rows, (list, tuple)):
        raise TypeError(f"{argument} must be a list, got {type(rows).__name__}")

    normalized = []
    for row in rows:
        if isinstance(row, model):
            normalized.append(row)
        elif isinstance(row, Mapping):
            normalized.append(model.from_dict(row))
        else:
            logger.debug(f"Skipping malformed {model.__name__} row: {row!r}")
    return normalized


def aggregate_donors(contributions) -> list[Donor]:
    """Roll contributions up into one Donor per (name, tower, flat).

    The list is taken to be in chronological order, oldest first. Contact
    details come from the most recent contribution that has them; totals
    cover every contribution.
    """
    rows = _rows(contributions, Contribution, "contributions")
    donors: dict[DonorKey, Donor] = {}

    # Newest first, so the first value seen for a field is the latest one
    for contribution in reversed(rows):
        key = DonorKey.from_contribution(contribution)
        if key is None:
            logger.debug(f"Skipping contribution {contribution.id!r}: incomplete donor details")
            continue

        donor = donors.get(key)
        if donor is None:
            donor = Donor(
                id=str(key),
                name=str(contribution.donor_name).strip(),
                tower_number=key.tower,
                flat_number=key.flat,
            )
            donors[key] = donor

        if not donor.email and contribution.donor_email:
            donor.email = contribution.donor_email
        if not donor.mobile_number and contribution.mobile_number:
            donor.mobile_number = contribution.mobile_number

        donor.total_contributed += to_number(contribution.amount)
        donor.contribution_count += 1

    return sorted(donors.values(), key=lambda d: d.total_contributed, reverse=True)


def compute_campaign_progress(campaigns, contributions) -> list[CampaignProgress]:
    """Work out raised amount, percentage and unique donors per campaign."""
    campaign_rows = _rows(campaigns, Campaign, "campaigns")
    contribution_rows = _rows(contributions, Contribution, "contributions")

    results = []
    for campaign in campaign_rows:
        relevant = [c for c in contribution_rows if c.campaign_id == campaign.id]
        raised = sum(to_number(c.amount) for c in relevant)
        goal = to_number(campaign.goal)
        progress = min(100, raised / goal * 100) if goal > 0 else 0

        keys = {DonorKey.from_contribution(c) for c in relevant}
        keys.discard(None)

        results.append(CampaignProgress(
            id=campaign.id,
            name=campaign.name,
            goal=goal,
            description=campaign.description,
            raised=raised,
            progress=progress,
            donor_count=len(keys),
        ))

    return results


def _matches_festival(expense: Expense, festival_filter: Any) -> bool:
    if expense.festival_id is None:
        return False
    return str(expense.festival_id) == str(festival_filter)


def compute_expense_breakdown(expenses, festival_filter: Any = None) -> list[BreakdownItem]:
    """Sum expenses per expense head, largest first.

    Args:
        expenses: Expense rows
        festival_filter: Festival id to restrict to; None or "all" keeps everything

    Returns:
        BreakdownItem per head, coloured by rank
    """
    rows = _rows(expenses, Expense, "expenses")
    if festival_filter is not None and festival_filter != ALL_FESTIVALS:
        rows = [e for e in rows if _matches_festival(e, festival_filter)]

    totals: dict[str, float] = {}
    for expense in rows:
        head = expense.expense_head or UNCATEGORIZED
        totals[head] = totals.get(head, 0) + to_number(expense.total_cost)

    grand_total = sum(totals.values())
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)

    return [
        BreakdownItem(
            label=head,
            value=value,
            color=BREAKDOWN_PALETTE[rank % len(BREAKDOWN_PALETTE)],
            percentage=(value / grand_total * 100) if grand_total else 0,
        )
        for rank, (head, value) in enumerate(ranked)
    ]


def _vendor_name(vendor_names: dict, vendor_id: Any) -> str:
    try:
        return vendor_names.get(vendor_id) or UNKNOWN_VENDOR
    except TypeError:
        return UNKNOWN_VENDOR


def compute_outstanding_payments(expenses, vendors) -> OutstandingReport:
    """List expenses that still owe money, largest balance first."""
    expense_rows = _rows(expenses, Expense, "expenses")
    vendor_names = {}
    for vendor in _rows(vendors, Vendor, "vendors"):
        if isinstance(vendor.id, (str, int)):
            vendor_names[vendor.id] = vendor.name

    payments = []
    for expense in expense_rows:
        outstanding = to_number(expense.outstanding_amount)
        if outstanding <= 0:
            continue
        payments.append(OutstandingPayment(
            expense_id=expense.id,
            name=expense.name,
            vendor_id=expense.vendor_id,
            vendor_name=_vendor_name(vendor_names, expense.vendor_id),
            total_cost=to_number(expense.total_cost),
            amount_paid=to_number(expense.amount_paid),
            outstanding_amount=outstanding,
            expense_head=expense.expense_head,
        ))

    payments.sort(key=lambda p: p.outstanding_amount, reverse=True)
    return OutstandingReport(
        payments=payments,
        total_outstanding=sum(p.outstanding_amount for p in payments),
    )


def compute_totals(contributions, sponsors) -> DashboardTotals:
    """Headline money figures for the dashboard."""
    total_contributions = sum(
        to_number(c.amount) for c in _rows(contributions, Contribution, "contributions")
    )
    total_sponsorships = sum(
        to_number(s.sponsorship_amount) for s in _rows(sponsors, Sponsor, "sponsors")
    )
    return DashboardTotals(
        total_contributions=total_contributions,
        total_sponsorships=total_sponsorships,
        total_raised=total_contributions + total_sponsorships,
    )


def _variance_percentage(budgeted: float, actual: float) -> Optional[float]:
    variance = budgeted - actual
    if budgeted > 0:
        return variance / budgeted * 100
    # Spending with no budget has no meaningful percentage
    return None if actual > 0 else 0


def compute_budget_report(budgets, expenses) -> BudgetReport:
    """Compare budgeted amounts against actual spend per expense head."""
    figures: dict[str, list] = {}

    for budget in _rows(budgets, Budget, "budgets"):
        head = budget.expense_head or UNCATEGORIZED
        figures.setdefault(head, [0, 0])[0] += to_number(budget.budgeted_amount)

    for expense in _rows(expenses, Expense, "expenses"):
        head = expense.expense_head or UNCATEGORIZED
        figures.setdefault(head, [0, 0])[1] += to_number(expense.total_cost)

    lines = [
        BudgetLine(
            expense_head=head,
            budgeted=budgeted,
            actual=actual,
            variance=budgeted - actual,
            variance_percentage=_variance_percentage(budgeted, actual),
        )
        for head, (budgeted, actual) in sorted(figures.items(), key=lambda item: item[0].lower())
    ]

    total_budgeted = sum(line.budgeted for line in lines)
    total_actual = sum(line.actual for line in lines)
    return BudgetReport(
        lines=lines,
        total_budgeted=total_budgeted,
        total_actual=total_actual,
        total_variance=total_budgeted - total_actual,
        total_variance_percentage=_variance_percentage(total_budgeted, total_actual),
    )


def parse_day(value: Any) -> Optional[date]:
    """Parse an ISO date or timestamp into a calendar date, or None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None

    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def contribution_timeline(contributions, limit: int = 30) -> list[TimelinePoint]:
    """Daily contribution totals for the dashboard chart, most recent `limit` days."""
    per_day: dict[date, float] = {}
    for contribution in _rows(contributions, Contribution, "contributions"):
        day = parse_day(contribution.date)
        if day is None:
            continue
        per_day[day] = per_day.get(day, 0) + to_number(contribution.amount)

    days = sorted(per_day)
    if limit:
        days = days[-limit:]

    return [
        TimelinePoint(day=d.isoformat(), label=f"{d:%b} {d.day}", contributions=per_day[d])
        for d in days
    ]


def compute_dashboard_summary(contributions, sponsors, top: int = 10) -> DashboardSummary:
    """Totals, counts, top donors and the contribution timeline in one call."""
    sponsor_rows = _rows(sponsors, Sponsor, "sponsors")
    donors = aggregate_donors(contributions)

    return DashboardSummary(
        totals=compute_totals(contributions, sponsor_rows),
        donor_count=len(donors),
        sponsor_count=len(sponsor_rows),
        top_donors=donors[:top],
        timeline=contribution_timeline(contributions),
    )


def expense_heads(expenses) -> list[str]:
    """Distinct expense heads in the order they first appear."""
    heads = []
    for expense in _rows(expenses, Expense, "expenses"):
        if expense.expense_head and expense.expense_head not in heads:
            heads.append(expense.expense_head)
    return heads


# Report filters. Text filters are case-insensitive substring matches and
# amount filters compare with one of COMPARATORS; a None filter matches all.

COMPARATORS = (">=", "<=", "==")


def _check_comparator(comparator: str):
    if comparator not in COMPARATORS:
        raise ValueError(f"Unknown comparator {comparator!r}, expected one of {COMPARATORS}")


def _contains(value: Any, needle: Optional[str]) -> bool:
    if not needle:
        return True
    if value is None:
        return False
    return str(needle).lower() in str(value).lower()


def _compare(value: Any, comparator: str, target: Any) -> bool:
    if target is None:
        return True
    amount, target = to_number(value), to_number(target)
    if comparator == ">=":
        return amount >= target
    if comparator == "<=":
        return amount <= target
    return amount == target


def _same_id(value: Any, wanted: Any) -> bool:
    if wanted is None:
        return True
    return value is not None and str(value) == str(wanted)


def _same_day(value: Any, wanted: Any) -> bool:
    if wanted is None:
        return True
    day = parse_day(value)
    return day is not None and day == parse_day(wanted)


def filter_contributions(contributions, tower: Optional[str] = None, flat: Optional[str] = None,
                         donor_name: Optional[str] = None, mobile_number: Optional[str] = None,
                         contribution_type: Optional[str] = None, amount: Any = None,
                         comparator: str = ">=") -> list[Contribution]:
    """Contributions matching every given filter.

    A mobile number filter only rules out rows that have a different number;
    rows without one are kept.

    Raises:
        ValueError: If comparator is not one of COMPARATORS
    """
    _check_comparator(comparator)
    matches = []
    for c in _rows(contributions, Contribution, "contributions"):
        if not (_contains(c.tower_number, tower) and _contains(c.flat_number, flat)):
            continue
        if not _contains(c.donor_name, donor_name):
            continue
        if mobile_number and c.mobile_number and mobile_number not in c.mobile_number:
            continue
        if contribution_type and c.type != contribution_type:
            continue
        if not _compare(c.amount, comparator, amount):
            continue
        matches.append(c)
    return matches


def filter_expenses(expenses, name: Optional[str] = None, vendor_id: Any = None,
                    expense_by: Optional[str] = None, expense_head: Optional[str] = None,
                    festival_id: Any = None, cost: Any = None, comparator: str = ">=",
                    bill_date: Any = None) -> list[Expense]:
    """Expenses matching every given filter.

    Vendor and festival ids are compared as strings. bill_date matches on the
    calendar day.

    Raises:
        ValueError: If comparator is not one of COMPARATORS
    """
    _check_comparator(comparator)
    return [
        e for e in _rows(expenses, Expense, "expenses")
        if _contains(e.name, name)
        and _same_id(e.vendor_id, vendor_id)
        and _contains(e.expense_by, expense_by)
        and _contains(e.expense_head, expense_head)
        and _same_id(e.festival_id, festival_id)
        and _compare(e.total_cost, comparator, cost)
        and _same_day(e.bill_date, bill_date)
    ]


def filter_sponsors(sponsors, name: Optional[str] = None, business_category: Optional[str] = None,
                    sponsorship_type: Optional[str] = None, amount: Any = None,
                    comparator: str = ">=", date_paid: Any = None) -> list[Sponsor]:
    """Sponsors matching every given filter."""
    _check_comparator(comparator)
    return [
        s for s in _rows(sponsors, Sponsor, "sponsors")
        if _contains(s.name, name)
        and _contains(s.business_category, business_category)
        and _contains(s.sponsorship_type, sponsorship_type)
        and _compare(s.sponsorship_amount, comparator, amount)
        and _same_day(s.date_paid, date_paid)
    ]


def filter_vendors(vendors, name: Optional[str] = None, business: Optional[str] = None,
                   contact_name: Optional[str] = None) -> list[Vendor]:
    """Vendors matching every given filter.

    Vendors with no business recorded pass the business filter. The contact
    filter matches if any contact's name matches.
    """
    matches = []
    for v in _rows(vendors, Vendor, "vendors"):
        if not _contains(v.name, name):
            continue
        if business and v.business and not _contains(v.business, business):
            continue
        if contact_name and not any(
            isinstance(c, Mapping) and _contains(c.get("name"), contact_name) for c in v.contacts
        ):
            continue
        matches.append(v)
    return matches

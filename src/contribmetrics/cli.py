"""Command-line interface for contribmetrics."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .api import DashboardAPI, SessionExpiredError, fetch_dashboard_data
from .config import load_settings
from .export import dated_filename, write_csv, write_json
from .formatting import format_currency, format_date
from .metrics import (
    ALL_FESTIVALS,
    COMPARATORS,
    compute_budget_report,
    compute_campaign_progress,
    compute_dashboard_summary,
    compute_expense_breakdown,
    compute_outstanding_payments,
    contribution_timeline,
    expense_heads,
    filter_contributions,
    filter_expenses,
    filter_sponsors,
    filter_vendors,
)
from .state import COLLECTION_MODELS, AppState, DashboardData, reduce

logger = logging.getLogger(__name__)

REPORTS = [
    "donors", "campaigns", "expenses", "outstanding", "budget", "timeline",
    "contributions", "expense-records", "sponsors", "vendors",
]

# Command-line filter options each filterable report accepts
REPORT_FILTERS = {
    "contributions": ("tower", "flat", "donor_name", "mobile_number", "contribution_type",
                      "amount", "comparator"),
    "expense-records": ("name", "vendor_id", "expense_by", "expense_head", "cost",
                        "comparator", "bill_date"),
    "sponsors": ("name", "business_category", "sponsorship_type", "amount", "comparator",
                 "date_paid"),
    "vendors": ("name", "business", "contact_name"),
}


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler()]
    )
    # Quiet down HTTP libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def load_data_dir(data_dir: Path) -> DashboardData:
    """Load collections from <collection>.json files in a directory.

    Missing files are treated as empty collections.
    """
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Data directory not found: {data_dir}")

    payload = {}
    for name in COLLECTION_MODELS:
        path = data_dir / f"{name}.json"
        if not path.exists():
            logger.debug(f"No {path.name}, treating {name} as empty")
            continue
        records = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(records, list):
            raise ValueError(f"{path.name} must contain a JSON list")
        payload[name] = records

    return DashboardData.from_payload(payload)


def _contribution_row(c) -> dict:
    return {
        "id": c.id,
        "donor_name": c.donor_name,
        "donor_email": c.donor_email,
        "mobile_number": c.mobile_number,
        "tower_number": c.tower_number,
        "flat_number": c.flat_number,
        "amount": c.amount,
        "type": c.type,
        "number_of_coupons": c.number_of_coupons,
        "campaign_id": c.campaign_id,
        "date": format_date(c.date),
        "status": c.status,
        "has_image": "Yes" if c.image else "No",
    }


def _expense_row(e, vendor_names: dict, festival_names: dict) -> dict:
    return {
        "id": e.id,
        "name": e.name,
        "vendor": vendor_names.get(e.vendor_id) or "N/A",
        "festival": festival_names.get(e.festival_id) or "N/A",
        "total_cost": e.total_cost,
        "amount_paid": e.amount_paid or 0,
        "outstanding_amount": e.outstanding_amount or 0,
        "bill_date": format_date(e.bill_date),
        "expense_head": e.expense_head,
        "expense_by": e.expense_by,
    }


def _sponsor_row(s) -> dict:
    row = s.to_dict()
    row["date_paid"] = format_date(s.date_paid)
    return row


def _vendor_rows(v) -> list[dict]:
    """One row per contact, or a single row with N/A contact fields."""
    base = {"id": v.id, "name": v.name, "business": v.business, "address": v.address}
    contacts = [c for c in v.contacts if isinstance(c, dict)]
    if not contacts:
        return [{**base, "contact_name": "N/A", "contact_number": "N/A"}]
    return [
        {**base, "contact_name": c.get("name"), "contact_number": c.get("contactNumber")}
        for c in contacts
    ]


def build_report(report: str, data: DashboardData, festival: Optional[str] = None,
                 **filters) -> list[dict]:
    """Compute one report as a list of flat records ready for export.

    Keyword filters are passed to the matching filter_* function for the
    contributions, expense-records, sponsors and vendors reports.
    """
    if report == "donors":
        return [d.to_dict() for d in data.donors]
    if report == "campaigns":
        return [c.to_dict() for c in compute_campaign_progress(data.campaigns, data.contributions)]
    if report == "expenses":
        return [b.to_dict() for b in compute_expense_breakdown(data.expenses, festival)]
    if report == "outstanding":
        outstanding = compute_outstanding_payments(data.expenses, data.vendors)
        return [p.to_dict() for p in outstanding.payments]
    if report == "budget":
        return [line.to_dict() for line in compute_budget_report(data.budgets, data.expenses).lines]
    if report == "timeline":
        return [p.to_dict() for p in contribution_timeline(data.contributions)]
    if report == "contributions":
        return [_contribution_row(c) for c in filter_contributions(data.contributions, **filters)]
    if report == "expense-records":
        if festival is not None and festival != ALL_FESTIVALS:
            filters["festival_id"] = festival
        vendor_names = {v.id: v.name for v in data.vendors}
        festival_names = data.festival_names
        return [
            _expense_row(e, vendor_names, festival_names)
            for e in filter_expenses(data.expenses, **filters)
        ]
    if report == "sponsors":
        return [_sponsor_row(s) for s in filter_sponsors(data.sponsors, **filters)]
    if report == "vendors":
        rows = []
        for v in filter_vendors(data.vendors, **filters):
            rows.extend(_vendor_rows(v))
        return rows
    raise ValueError(f"Unknown report: {report}")


def print_summary(data: DashboardData):
    """Print the dashboard cards, top donors and campaign progress."""
    summary = compute_dashboard_summary(data.contributions, data.sponsors)
    totals = summary.totals

    print(f"\n{'='*70}")
    print("DASHBOARD")
    print(f"{'='*70}")
    print(f"Total contributions: {format_currency(totals.total_contributions, decimals=0)}")
    print(f"Sponsorships raised: {format_currency(totals.total_sponsorships, decimals=0)}")
    print(f"Total raised:        {format_currency(totals.total_raised, decimals=0)}")
    print(f"Donors: {summary.donor_count}    Sponsors: {summary.sponsor_count}")

    if summary.top_donors:
        print(f"\nTop {len(summary.top_donors)} donors:")
        for donor in summary.top_donors:
            location = f"T-{donor.tower_number}, F-{donor.flat_number}"
            print(f"    {donor.name:<30} {location:<16} {format_currency(donor.total_contributed)}")

    progress = compute_campaign_progress(data.campaigns, data.contributions)
    if progress:
        print("\nCampaigns:")
        for c in progress:
            status = "Goal Reached" if c.goal_reached else "In Progress"
            print(f"    {c.name:<30} {format_currency(c.raised, decimals=0)} of "
                  f"{format_currency(c.goal, decimals=0)} ({c.progress:.1f}%, "
                  f"{c.donor_count} donors) [{status}]")

    outstanding = compute_outstanding_payments(data.expenses, data.vendors)
    if outstanding.payments:
        print(f"\nOutstanding payments: {outstanding.total_payments} "
              f"totalling {format_currency(outstanding.total_outstanding)}")

    heads = expense_heads(data.expenses)
    if heads:
        print(f"Expense heads: {', '.join(heads)}")


def report_filters(report: str, args: argparse.Namespace) -> dict:
    """Collect the filter options given on the command line for a report."""
    return {
        name: getattr(args, name)
        for name in REPORT_FILTERS.get(report, ())
        if getattr(args, name, None) is not None
    }


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="contribmetrics",
        description="Donor, campaign and expense reports from contribution data"
    )

    parser.add_argument(
        "-d", "--data-dir",
        type=Path,
        help="Directory of <collection>.json files to use instead of the API"
    )
    parser.add_argument(
        "--api-url",
        help="Backend API root (default: CONTRIB_API_URL or http://localhost:3001/api)"
    )
    parser.add_argument(
        "--token",
        help="Bearer token (default: CONTRIB_API_TOKEN)"
    )
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Fetch collections one at a time instead of concurrently"
    )
    parser.add_argument(
        "-r", "--report",
        choices=REPORTS,
        help="Report to export"
    )
    parser.add_argument(
        "--festival",
        help="Festival id to restrict the expenses and expense-records reports to (default: all)"
    )

    filters = parser.add_argument_group(
        "report filters",
        "Text filters are case-insensitive substring matches"
    )
    filters.add_argument("--tower", help="Tower number (contributions)")
    filters.add_argument("--flat", help="Flat number (contributions)")
    filters.add_argument("--donor-name", help="Donor name (contributions)")
    filters.add_argument("--mobile", dest="mobile_number", help="Mobile number (contributions)")
    filters.add_argument("--type", dest="contribution_type", choices=["Online", "Cash"],
                         help="Payment type (contributions)")
    filters.add_argument("--amount", type=float,
                         help="Amount to compare against (contributions, sponsors)")
    filters.add_argument("--cost", type=float,
                         help="Total cost to compare against (expense-records)")
    filters.add_argument("--comparator", choices=COMPARATORS, default=">=",
                         help="How --amount/--cost compare (default: >=)")
    filters.add_argument("--name", help="Name (expense-records, sponsors, vendors)")
    filters.add_argument("--vendor", dest="vendor_id", help="Vendor id (expense-records)")
    filters.add_argument("--expense-by", help="Who paid (expense-records)")
    filters.add_argument("--expense-head", help="Expense head (expense-records)")
    filters.add_argument("--bill-date", help="Bill date, YYYY-MM-DD (expense-records)")
    filters.add_argument("--business-category", help="Business category (sponsors)")
    filters.add_argument("--sponsorship-type", help="Sponsorship type (sponsors)")
    filters.add_argument("--date-paid", help="Payment date, YYYY-MM-DD (sponsors)")
    filters.add_argument("--business", help="Business (vendors)")
    filters.add_argument("--contact-name", help="Contact name (vendors)")

    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Output file path (default: output/<report>_<date>.<format>)"
    )
    parser.add_argument(
        "--format",
        choices=["csv", "json"],
        default="csv",
        help="Output format (default: csv)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (minimal output)"
    )

    args = parser.parse_args()

    # Setup logging
    if args.quiet:
        logging.basicConfig(level=logging.ERROR)
    else:
        setup_logging(args.verbose)

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        sys.exit(1)

    api_url = args.api_url or settings.api_url
    token = args.token or settings.token
    state = reduce(AppState(), "login", token=token)

    # Load data
    try:
        if args.data_dir:
            data = load_data_dir(args.data_dir)
        elif args.sequential:
            data = DashboardAPI(api_url, token=token, timeout=settings.timeout).fetch_all()
        else:
            data = asyncio.run(fetch_dashboard_data(api_url, token=token, timeout=settings.timeout))
    except (FileNotFoundError, json.JSONDecodeError, ValueError) as e:
        print(f"Error loading data: {e}", file=sys.stderr)
        sys.exit(1)
    except SessionExpiredError as e:
        print(f"Error: {e}. Check your API token.", file=sys.stderr)
        sys.exit(1)

    state = reduce(state, "data_loaded", data=data)

    if not args.quiet:
        print_summary(state.data)

    if not args.report:
        return

    rows = build_report(args.report, state.data, festival=args.festival,
                        **report_filters(args.report, args))
    suffix = f".{args.format}"
    output_path = args.output or Path("output") / dated_filename(args.report, suffix)
    if output_path.suffix != suffix:
        output_path = output_path.with_suffix(suffix)

    if args.format == "json":
        write_json(rows, output_path)
    else:
        write_csv(rows, output_path)

    if not args.quiet:
        print(f"\n{'='*70}")
        print("COMPLETE")
        print(f"{'='*70}")
        print(f"Report: {args.report} ({len(rows)} rows)")
        print(f"Output: {output_path}")


if __name__ == "__main__":
    main()

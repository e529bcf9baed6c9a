"""Data models for contribmetrics package."""

from dataclasses import dataclass, asdict, field
from typing import Any, NamedTuple, Optional


def _text(value: Any) -> Optional[str]:
    """Return a stripped string, or None for empty/missing values."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class DonorKey(NamedTuple):
    """Composite identity of a donor: normalized name, tower and flat."""
    name: str
    tower: str
    flat: str

    @classmethod
    def from_contribution(cls, contribution: "Contribution") -> Optional["DonorKey"]:
        """Build the key, or None when any part is missing."""
        name = _text(contribution.donor_name)
        tower = _text(contribution.tower_number)
        flat = _text(contribution.flat_number)
        if not (name and tower and flat):
            return None
        return cls("".join(name.lower().split()), tower, flat)

    def __str__(self) -> str:
        return f"{self.name}-{self.tower}-{self.flat}"


@dataclass
class Contribution:
    """A single donation recorded against a flat."""
    id: Any
    donor_name: Optional[str] = None
    tower_number: Optional[str] = None
    flat_number: Optional[str] = None
    amount: Any = 0
    donor_email: Optional[str] = None
    mobile_number: Optional[str] = None
    number_of_coupons: Any = 0
    campaign_id: Any = None
    date: Optional[str] = None
    status: Optional[str] = None
    type: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Contribution":
        return cls(
            id=data.get("id"),
            donor_name=_text(data.get("donorName")),
            tower_number=_text(data.get("towerNumber")),
            flat_number=_text(data.get("flatNumber")),
            amount=data.get("amount"),
            donor_email=_text(data.get("donorEmail")),
            mobile_number=_text(data.get("mobileNumber")),
            number_of_coupons=data.get("numberOfCoupons", 0),
            campaign_id=data.get("campaignId"),
            date=data.get("date"),
            status=data.get("status"),
            type=data.get("type"),
            image=data.get("image"),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class Sponsor:
    """A business sponsoring an event."""
    id: Any
    name: str
    sponsorship_amount: Any = 0
    contact_number: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    business_category: Optional[str] = None
    business_info: Optional[str] = None
    sponsorship_type: Optional[str] = None
    date_paid: Optional[str] = None
    payment_received_by: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Sponsor":
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            sponsorship_amount=data.get("sponsorshipAmount"),
            contact_number=data.get("contactNumber"),
            address=data.get("address"),
            email=data.get("email"),
            business_category=data.get("businessCategory"),
            business_info=data.get("businessInfo"),
            sponsorship_type=data.get("sponsorshipType"),
            date_paid=data.get("datePaid"),
            payment_received_by=data.get("paymentReceivedBy"),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class Vendor:
    """A supplier that expenses are paid to."""
    id: Any
    name: str
    business: Optional[str] = None
    address: Optional[str] = None
    contacts: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "Vendor":
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            business=data.get("business"),
            address=data.get("address"),
            contacts=list(data.get("contacts") or []),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class Expense:
    """A bill recorded against a vendor, possibly partially paid."""
    id: Any
    name: str
    vendor_id: Any = None
    total_cost: Any = 0
    expense_head: Optional[str] = None
    festival_id: Any = None
    outstanding_amount: Any = None
    amount_paid: Any = None
    bill_date: Optional[str] = None
    expense_by: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Expense":
        # Older records carry "cost" instead of "totalCost"
        total_cost = data.get("totalCost")
        if total_cost is None:
            total_cost = data.get("cost")
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            vendor_id=data.get("vendorId"),
            total_cost=total_cost,
            expense_head=data.get("expenseHead"),
            festival_id=data.get("festivalId"),
            outstanding_amount=data.get("outstandingAmount"),
            amount_paid=data.get("amountPaid"),
            bill_date=data.get("billDate"),
            expense_by=data.get("expenseBy"),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class Campaign:
    """A fundraising target that contributions are attributed to."""
    id: Any
    name: str
    goal: Any = 0
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Campaign":
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            goal=data.get("goal"),
            description=data.get("description"),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class Festival:
    """An event; only used to filter expenses."""
    id: Any
    name: str
    campaign_id: Any = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Festival":
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            campaign_id=data.get("campaignId"),
            description=data.get("description"),
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class Budget:
    """A planned spend for one item under an expense head."""
    id: Any
    item_name: str
    budgeted_amount: Any = 0
    expense_head: Optional[str] = None
    festival_id: Any = None

    @classmethod
    def from_dict(cls, data: dict) -> "Budget":
        return cls(
            id=data.get("id"),
            item_name=data.get("itemName") or "",
            budgeted_amount=data.get("budgetedAmount"),
            expense_head=data.get("expenseHead"),
            festival_id=data.get("festivalId"),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


# Derived entities


@dataclass
class Donor:
    """A unique (name, tower, flat) combination and what it has given."""
    id: str
    name: str
    tower_number: str
    flat_number: str
    email: Optional[str] = None
    mobile_number: Optional[str] = None
    total_contributed: float = 0
    contribution_count: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class CampaignProgress:
    """A campaign with how much has been raised against its goal."""
    id: Any
    name: str
    goal: float
    description: Optional[str] = None
    raised: float = 0
    progress: float = 0
    donor_count: int = 0

    @property
    def goal_reached(self) -> bool:
        return self.progress >= 100

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class BreakdownItem:
    """Summed cost for one expense head."""
    label: str
    value: float
    color: str
    percentage: float = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class OutstandingPayment:
    """An expense with money still owed to its vendor."""
    expense_id: Any
    name: str
    vendor_id: Any
    vendor_name: str
    total_cost: float
    amount_paid: float
    outstanding_amount: float
    expense_head: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class OutstandingReport:
    """Outstanding payments, largest first, with their grand total."""
    payments: list[OutstandingPayment]
    total_outstanding: float = 0

    @property
    def total_payments(self) -> int:
        return len(self.payments)


@dataclass
class DashboardTotals:
    total_contributions: float = 0
    total_sponsorships: float = 0
    total_raised: float = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class BudgetLine:
    """Budgeted versus actual spend for one expense head."""
    expense_head: str
    budgeted: float = 0
    actual: float = 0
    variance: float = 0
    variance_percentage: Optional[float] = 0

    @property
    def over_budget(self) -> bool:
        return self.variance < 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class BudgetReport:
    lines: list[BudgetLine]
    total_budgeted: float = 0
    total_actual: float = 0
    total_variance: float = 0
    total_variance_percentage: Optional[float] = 0


@dataclass
class TimelinePoint:
    """Contributions received on one day."""
    day: str
    label: str
    contributions: float = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class DashboardSummary:
    """Everything the dashboard cards and charts show."""
    totals: DashboardTotals
    donor_count: int = 0
    sponsor_count: int = 0
    top_donors: list[Donor] = field(default_factory=list)
    timeline: list[TimelinePoint] = field(default_factory=list)

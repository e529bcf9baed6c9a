"""Display helpers for amounts and dates."""

from typing import Any

from .metrics import parse_day, to_number


def _group_indian(digits: str) -> str:
    """Group an integer digit string the Indian way: 12,34,567."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(value: Any, decimals: int = 2, symbol: str = "₹") -> str:
    """Format an amount as rupees, e.g. 123456.5 -> "₹1,23,456.50"."""
    amount = to_number(value)
    text = f"{abs(amount):.{decimals}f}"
    whole, _, fraction = text.partition(".")

    formatted = symbol + _group_indian(whole)
    if fraction:
        formatted += "." + fraction
    return "-" + formatted if amount < 0 else formatted


def format_date(value: Any) -> str:
    """Format an ISO date as "05 Jan 2024", or "N/A" if it cannot be parsed."""
    day = parse_day(value)
    if day is None:
        return "N/A"
    return day.strftime("%d %b %Y")

"""
Display formatting shared by both invoice renderers.

Every helper returns printable text: absent values collapse to a placeholder,
never to an empty cell or ``None``.
"""

from __future__ import annotations

import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, List, Optional

from dateutil import parser as date_parser

# Placeholders printed in place of missing invoice fields
NAME_PLACEHOLDER = "Name Here"
COMPANY_ADDRESS_PLACEHOLDER = "Company Address Here"
CUSTOMER_ADDRESS_PLACEHOLDER = "Customer Address Here"
ITEM_PLACEHOLDER = "Item here"
QUANTITY_PLACEHOLDER = "xxx.x"
BANK_FIELD_PLACEHOLDER = "Here"
REFERENCE_PLACEHOLDER = "PT"
EMAIL_PLACEHOLDER = "e-mail here"
WEBSITE_PLACEHOLDER = "web site here"
NOT_AVAILABLE = "N/A"

DATE_FORMAT = "%d %b %Y"

_CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce a stored or submitted amount to ``Decimal``; junk counts as zero."""
    if isinstance(value, Decimal):
        return value
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def format_currency(amount: Any) -> str:
    """``1234.5`` -> ``$1,234.50``; negatives keep the sign in front of the symbol."""
    value = to_decimal(amount).quantize(_CENT, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_quantity(quantity: Any) -> str:
    if quantity is None or quantity == "":
        return QUANTITY_PLACEHOLDER
    value = to_decimal(quantity)
    if value == 0:
        return QUANTITY_PLACEHOLDER
    # 2.0000 -> "2", 1.5000 -> "1.5"
    text = f"{value:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def parse_date(value: Any) -> Optional[datetime.date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return date_parser.parse(str(value)).date()
    except (ValueError, OverflowError):
        return None


def format_date(value: Any) -> str:
    """Dates render as ``05 Jan 2026``; anything unparseable renders as ``N/A``."""
    parsed = parse_date(value)
    if parsed is None:
        return NOT_AVAILABLE
    return parsed.strftime(DATE_FORMAT)


def text_or(value: Any, placeholder: str) -> str:
    if value is None:
        return placeholder
    text = str(value).strip()
    return text or placeholder


def address_lines(value: Any, placeholder: str) -> List[str]:
    """Split a multi-line address into printable lines, dropping blank ones."""
    text = text_or(value, placeholder)
    lines = [line.strip() for line in text.splitlines()]
    return [line for line in lines if line] or [placeholder]

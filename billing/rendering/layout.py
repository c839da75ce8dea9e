"""
Invoice layout description.

``build_invoice_document`` turns a stored invoice into an ``InvoiceDocument``:
a plain, deterministic description of everything printed on the page. The
server renderer feeds it to the PDF template and the API hands the same
structure to the browser renderer, so the two outputs cannot drift apart.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from urllib.parse import quote, urlencode

from django.conf import settings

from . import assets
from .formatting import (
    BANK_FIELD_PLACEHOLDER,
    COMPANY_ADDRESS_PLACEHOLDER,
    CUSTOMER_ADDRESS_PLACEHOLDER,
    EMAIL_PLACEHOLDER,
    ITEM_PLACEHOLDER,
    NAME_PLACEHOLDER,
    NOT_AVAILABLE,
    REFERENCE_PLACEHOLDER,
    WEBSITE_PLACEHOLDER,
    address_lines,
    format_currency,
    format_date,
    format_quantity,
    text_or,
    to_decimal,
)

if TYPE_CHECKING:
    from billing.models import Invoice

# Page geometry shared with the browser renderer
LAYOUT_WIDTH_PX = 896
PAGE_WIDTH_MM = 210
MIN_PAGE_HEIGHT_MM = 297


@dataclass(frozen=True)
class Party:
    name: str
    address: List[str]
    phone: str
    email: str
    website: str


@dataclass(frozen=True)
class MetaRow:
    label: str
    value: str


@dataclass(frozen=True)
class ItemRow:
    description: str
    quantity: str
    unit_price: str
    amount: str


@dataclass(frozen=True)
class CardIcon:
    name: str
    src: str


@dataclass(frozen=True)
class PaymentSection:
    due_date: str
    account_name: str
    account_number: str
    bsb: str
    bank_name: str
    card_icons: List[CardIcon]
    link_label: str
    link_url: str


@dataclass(frozen=True)
class AdviceSlip:
    remit_to: Party
    customer: str
    invoice_number: str
    amount: str
    due_date: str


@dataclass(frozen=True)
class PageGeometry:
    layout_width_px: int = LAYOUT_WIDTH_PX
    page_width_mm: int = PAGE_WIDTH_MM
    min_page_height_mm: int = MIN_PAGE_HEIGHT_MM


@dataclass(frozen=True)
class InvoiceDocument:
    title: str
    invoice_number: str
    status: str
    currency: str
    logo: Optional[str]
    customer: Party
    company: Party
    meta: List[MetaRow]
    columns: List[str]
    items: List[ItemRow]
    total_label: str
    total: str
    payment: PaymentSection
    slip: AdviceSlip
    geometry: PageGeometry = field(default_factory=PageGeometry)

    def to_dict(self) -> Dict[str, Any]:
        """camelCase JSON form consumed by the browser renderer."""
        return _camelize(asdict(self))


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {_camel(k): _camelize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_camelize(v) for v in value]
    return value


def payment_link_url(invoice: "Invoice") -> str:
    amount_cents = (to_decimal(invoice.total_amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    email = ""
    if invoice.client_id and invoice.client.email:
        email = invoice.client.email
    elif invoice.customer_details:
        email = invoice.customer_details.get("email") or ""
    query = urlencode(
        {
            "__prefilled_amount": int(amount_cents),
            "client_reference_id": invoice.invoice_number,
            "prefilled_email": email,
        },
        quote_via=quote,
    )
    return f"{settings.PAYMENT_LINK_URL}?{query}"


def _company_party(details: Dict[str, Any]) -> Party:
    return Party(
        name=text_or(details.get("name"), NAME_PLACEHOLDER),
        address=address_lines(details.get("address"), COMPANY_ADDRESS_PLACEHOLDER),
        phone=text_or(details.get("phone"), NOT_AVAILABLE),
        email=text_or(details.get("email"), EMAIL_PLACEHOLDER),
        website=text_or(details.get("website"), WEBSITE_PLACEHOLDER),
    )


def _customer_party(details: Dict[str, Any]) -> Party:
    return Party(
        name=text_or(details.get("name"), NAME_PLACEHOLDER),
        address=address_lines(details.get("address"), CUSTOMER_ADDRESS_PLACEHOLDER),
        phone=text_or(details.get("phone"), NOT_AVAILABLE),
        email=text_or(details.get("email"), EMAIL_PLACEHOLDER),
        website=text_or(details.get("website"), WEBSITE_PLACEHOLDER),
    )


def build_invoice_document(invoice: "Invoice") -> InvoiceDocument:
    company_details = invoice.company_details or {}
    customer_details = invoice.customer_details or {}
    payment_details = invoice.payment_instructions or {}
    currency = text_or(invoice.currency, "AUD").upper()

    company = _company_party(company_details)
    customer = _customer_party(customer_details)
    total = format_currency(invoice.total_amount)
    due_date = format_date(invoice.due_date)

    items = [
        ItemRow(
            description=text_or(item.description, ITEM_PLACEHOLDER),
            quantity=format_quantity(item.quantity),
            unit_price=format_currency(item.unit_price),
            amount=format_currency(item.total),
        )
        for item in invoice.items.all()
    ]

    meta = [
        MetaRow("Invoice Date", format_date(invoice.invoice_date)),
        MetaRow("Invoice Number", text_or(invoice.invoice_number, NOT_AVAILABLE)),
        MetaRow("Reference", text_or(invoice.reference, REFERENCE_PLACEHOLDER)),
        MetaRow("ABN", text_or(company_details.get("abn"), NOT_AVAILABLE)),
    ]

    payment = PaymentSection(
        due_date=due_date,
        account_name=text_or(payment_details.get("accountName") or company_details.get("name"), NAME_PLACEHOLDER),
        account_number=text_or(payment_details.get("accountNumber"), BANK_FIELD_PLACEHOLDER),
        bsb=text_or(payment_details.get("bsb"), BANK_FIELD_PLACEHOLDER),
        bank_name=text_or(payment_details.get("bankName"), BANK_FIELD_PLACEHOLDER),
        card_icons=[CardIcon(name, src) for name, src in assets.card_icon_data_uris()],
        link_label="View and pay online now",
        link_url=payment_link_url(invoice),
    )

    slip = AdviceSlip(
        remit_to=company,
        customer=customer.name,
        invoice_number=text_or(invoice.invoice_number, NOT_AVAILABLE),
        amount=total,
        due_date=due_date,
    )

    return InvoiceDocument(
        title="INVOICE",
        invoice_number=text_or(invoice.invoice_number, NOT_AVAILABLE),
        status=invoice.status,
        currency=currency,
        logo=assets.logo_data_uri(),
        customer=customer,
        company=company,
        meta=meta,
        columns=["Description", "Quantity", "Unit Price", f"Amount {currency}"],
        items=items,
        total_label=f"TOTAL {currency}",
        total=total,
        payment=payment,
        slip=slip,
    )


def link_region(link_rect: Rect, container_rect: Rect, view_scale: float = 1.0) -> Rect:
    """
    Map the on-screen payment-link rectangle to PDF millimetres.

    ``view_scale`` is the CSS scale the preview was displayed at; offsets are
    measured relative to the invoice container.
    """
    scale = view_scale or 1.0
    factor = PAGE_WIDTH_MM / LAYOUT_WIDTH_PX
    return Rect(
        left=((link_rect.left - container_rect.left) / scale) * factor,
        top=((link_rect.top - container_rect.top) / scale) * factor,
        width=(link_rect.width / scale) * factor,
        height=(link_rect.height / scale) * factor,
    )


def page_height_mm(canvas_width: float, canvas_height: float) -> float:
    """Height of the PDF page holding a captured canvas, never shorter than A4."""
    return max(canvas_height * PAGE_WIDTH_MM / canvas_width, MIN_PAGE_HEIGHT_MM)

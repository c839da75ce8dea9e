import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet

from billing.models import Invoice, LineItem
from billing.rendering.formatting import to_decimal
from billing.validation import ConflictError, NotFoundError

from .client_service import ClientService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
QUANTITY_STEP = Decimal("0.0001")

INVOICE_FIELDS = (
    "invoice_number",
    "invoice_date",
    "due_date",
    "reference",
    "company_details",
    "customer_details",
    "payment_instructions",
    "currency",
)


def _money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class InvoiceService:

    @staticmethod
    def calculate_totals(items: Iterable[Dict[str, Any]]) -> Dict[str, Decimal]:
        """Subtotal and total are the plain sum of the submitted line totals."""
        subtotal = sum((_money(item.get("total")) for item in items), Decimal("0.00"))
        return {
            "subtotal": subtotal,
            "total_amount": subtotal,
        }

    @staticmethod
    def owned(owner) -> QuerySet:
        return Invoice.objects.filter(owner=owner).select_related("client").prefetch_related("items")

    @classmethod
    def get_invoice(cls, owner, invoice_id: int) -> Invoice:
        invoice = cls.owned(owner).filter(id=invoice_id).first()
        if invoice is None:
            raise NotFoundError("Invoice not found")
        return invoice

    @classmethod
    def list_invoices(cls, owner, search: Optional[str] = None) -> QuerySet:
        invoices = cls.owned(owner)
        term = (search or "").strip()
        if term:
            invoices = invoices.filter(
                Q(invoice_number__icontains=term) | Q(customer_details__name__icontains=term)
            )
        return invoices.order_by("-created_at", "-id")

    @staticmethod
    def _write_items(invoice: Invoice, items: List[Dict[str, Any]]) -> None:
        LineItem.objects.bulk_create([
            LineItem(
                invoice=invoice,
                description=item.get("description") or "",
                quantity=to_decimal(item.get("quantity")).quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP),
                unit_price=_money(item.get("unit_price")),
                total=_money(item.get("total")),
                sort_order=idx,
            )
            for idx, item in enumerate(items)
        ])

    @staticmethod
    def _save(invoice: Invoice) -> None:
        try:
            with transaction.atomic():
                invoice.save()
        except IntegrityError:
            raise ConflictError(f"Invoice number {invoice.invoice_number} already exists")

    @classmethod
    @transaction.atomic
    def create_invoice(cls, owner, data: Dict[str, Any]) -> Invoice:
        items = data.get("items") or []
        totals = cls.calculate_totals(items)
        client = ClientService.upsert_for_invoice(owner, data.get("customer_details") or {})

        invoice = Invoice(
            owner=owner,
            client=client,
            status=data.get("status") or Invoice.Status.DRAFT,
            subtotal=totals["subtotal"],
            total_amount=totals["total_amount"],
        )
        for field in INVOICE_FIELDS:
            if field in data:
                setattr(invoice, field, data[field])
        cls._save(invoice)
        cls._write_items(invoice, items)

        logger.info(f"Invoice {invoice.id} created by user {owner.id}")
        return cls.get_invoice(owner, invoice.id)

    @classmethod
    @transaction.atomic
    def update_invoice(cls, owner, invoice_id: int, data: Dict[str, Any]) -> Invoice:
        invoice = Invoice.objects.select_for_update().filter(owner=owner, id=invoice_id).first()
        if invoice is None:
            raise NotFoundError("Invoice not found")

        items = data.get("items") or []
        totals = cls.calculate_totals(items)
        invoice.client = ClientService.upsert_for_invoice(owner, data.get("customer_details") or {})

        for field in INVOICE_FIELDS:
            if field in data:
                setattr(invoice, field, data[field])
        if data.get("status"):
            invoice.status = data["status"]
        invoice.subtotal = totals["subtotal"]
        invoice.total_amount = totals["total_amount"]
        cls._save(invoice)

        invoice.items.all().delete()
        cls._write_items(invoice, items)

        logger.info(f"Invoice {invoice.id} updated by user {owner.id}")
        return cls.get_invoice(owner, invoice.id)

    @staticmethod
    def delete_invoice(owner, invoice_id: int) -> None:
        deleted, _ = Invoice.objects.filter(owner=owner, id=invoice_id).delete()
        if not deleted:
            raise NotFoundError("Invoice not found")
        logger.info(f"Invoice {invoice_id} deleted by user {owner.id}")

    @staticmethod
    def delete_all_invoices(owner) -> int:
        """Remove every invoice the owner has; returns how many invoices went."""
        with transaction.atomic():
            count = Invoice.objects.filter(owner=owner).count()
            Invoice.objects.filter(owner=owner).delete()
        logger.info(f"{count} invoices deleted by user {owner.id}")
        return count

    @staticmethod
    def next_invoice_number(owner) -> str:
        return f"INV-{Invoice.objects.filter(owner=owner).count() + 1:03d}"

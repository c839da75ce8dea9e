"""Server-side HTML for an ``InvoiceDocument``."""

from __future__ import annotations

from django.template.loader import render_to_string

from .layout import InvoiceDocument

INVOICE_TEMPLATE = "billing/invoice_pdf.html"


def render_invoice_html(document: InvoiceDocument) -> str:
    return render_to_string(INVOICE_TEMPLATE, {"doc": document})
